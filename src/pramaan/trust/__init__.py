"""Trust score engine — scoring, levels, value object and eligibility gate."""

from pramaan.trust.eligibility import is_eligible, validate_job_application
from pramaan.trust.engine import TrustEngine, round_half_up
from pramaan.trust.score import TrustScore, average_scores, validate_score

__all__ = [
    "TrustEngine",
    "TrustScore",
    "average_scores",
    "is_eligible",
    "round_half_up",
    "validate_job_application",
    "validate_score",
]
