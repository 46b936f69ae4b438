"""Core data models for PRAMAAN."""

from pramaan.models.job import ApplicationStatus, Job, JobApplication, JobStatus
from pramaan.models.resume import ResumeAnalysis, ResumeAnalyzer
from pramaan.models.trust import (
    EligibilityResult,
    ImprovementAction,
    NextLevelInfo,
    ScoreBand,
    ScoreIncrease,
    TrustFactors,
    TrustLevel,
    TrustProgress,
)
from pramaan.models.user import User, UserRole

__all__ = [
    "ApplicationStatus",
    "Job",
    "JobApplication",
    "JobStatus",
    "ResumeAnalysis",
    "ResumeAnalyzer",
    "EligibilityResult",
    "ImprovementAction",
    "NextLevelInfo",
    "ScoreBand",
    "ScoreIncrease",
    "TrustFactors",
    "TrustLevel",
    "TrustProgress",
    "User",
    "UserRole",
]
