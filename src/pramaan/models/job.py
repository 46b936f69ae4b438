"""Job marketplace models — postings and applications.

A job carries a ``min_trust_score`` in [0, 100]. The eligibility gate
compares an applicant's persisted trust score against it before an
application is accepted.

Application lifecycle: SUBMITTED → REVIEWED → ACCEPTED / REJECTED
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional


class JobStatus(str, enum.Enum):
    """Lifecycle state of a job posting."""
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    CLOSED = "CLOSED"
    DRAFT = "DRAFT"


class ApplicationStatus(str, enum.Enum):
    """Lifecycle state of a job application."""
    SUBMITTED = "submitted"
    REVIEWED = "reviewed"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


@dataclass
class Job:
    """A job posted by a BUSINESS user."""
    job_id: str
    company_id: str
    title: str
    description: str
    min_trust_score: int = 0
    skills: list[str] = field(default_factory=list)
    location: str = ""
    salary_range: str = ""
    status: JobStatus = JobStatus.ACTIVE
    metadata: dict[str, Any] = field(default_factory=dict)
    created_utc: Optional[datetime] = None

    def validate(self) -> list[str]:
        """Check entity invariants. Returns errors (empty = valid)."""
        errors: list[str] = []
        if not self.job_id:
            errors.append("Job must have an ID")
        if not self.company_id:
            errors.append("Job must have a company ID")
        if not self.title or not self.title.strip():
            errors.append("Title is required")
        if not self.description or not self.description.strip():
            errors.append("Description is required")
        if not (0 <= self.min_trust_score <= 100):
            errors.append(
                "Minimum trust score must be between 0 and 100, "
                f"got {self.min_trust_score}"
            )
        return errors

    def is_active(self) -> bool:
        return self.status == JobStatus.ACTIVE

    def is_eligible_for_user(self, user_trust_score: int) -> bool:
        from pramaan.trust.eligibility import is_eligible

        return is_eligible(user_trust_score, self.min_trust_score)

    def matches_search(self, query: str) -> bool:
        """True if every whitespace-separated term appears in the job text."""
        haystack = " ".join([
            self.title,
            self.description,
            self.location,
            *self.skills,
            str(self.metadata.get("experience", "")),
            str(self.metadata.get("employment_type", "")),
        ]).lower()
        return all(term in haystack for term in query.lower().split())

    def to_dict(self) -> dict[str, Any]:
        return {
            "job_id": self.job_id,
            "company_id": self.company_id,
            "title": self.title,
            "description": self.description,
            "min_trust_score": self.min_trust_score,
            "skills": list(self.skills),
            "location": self.location,
            "salary_range": self.salary_range,
            "status": self.status.value,
            "metadata": dict(self.metadata),
            "created_utc": self.created_utc.isoformat() if self.created_utc else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Job:
        created = data.get("created_utc")
        return cls(
            job_id=data["job_id"],
            company_id=data["company_id"],
            title=data["title"],
            description=data["description"],
            min_trust_score=int(data.get("min_trust_score", 0)),
            skills=list(data.get("skills") or []),
            location=data.get("location", ""),
            salary_range=data.get("salary_range", ""),
            status=JobStatus(data.get("status", JobStatus.ACTIVE.value)),
            metadata=dict(data.get("metadata") or {}),
            created_utc=datetime.fromisoformat(created) if created else None,
        )


@dataclass
class JobApplication:
    """A user's application to a job.

    ``match_score`` blends resume analysis with skill overlap, falling
    back to a capped trust score when no analysis is available.
    """
    application_id: str
    job_id: str
    user_id: str
    match_score: int = 0
    status: ApplicationStatus = ApplicationStatus.SUBMITTED
    resume_text: str = ""
    applied_utc: Optional[datetime] = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "application_id": self.application_id,
            "job_id": self.job_id,
            "user_id": self.user_id,
            "match_score": self.match_score,
            "status": self.status.value,
            "resume_text": self.resume_text,
            "applied_utc": self.applied_utc.isoformat() if self.applied_utc else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> JobApplication:
        applied = data.get("applied_utc")
        return cls(
            application_id=data["application_id"],
            job_id=data["job_id"],
            user_id=data["user_id"],
            match_score=int(data.get("match_score", 0)),
            status=ApplicationStatus(data.get("status", ApplicationStatus.SUBMITTED.value)),
            resume_text=data.get("resume_text", ""),
            applied_utc=datetime.fromisoformat(applied) if applied else None,
        )
