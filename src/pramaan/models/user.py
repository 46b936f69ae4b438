"""User model — the collaborator whose state drives trust scoring.

The trust engine only reads ``is_verified`` and ``metadata`` and only
writes ``trust_score``. Everything else is owned by the identity and
profile subsystem.
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional


_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class UserRole(str, enum.Enum):
    """Platform role assigned at sign-up."""
    USER = "USER"
    MEDIA = "MEDIA"
    BUSINESS = "BUSINESS"


@dataclass
class User:
    """A PRAMAAN account.

    ``metadata`` is free-form profile data. The keys that matter for
    scoring are ``name``, ``phone`` and ``skills``.
    """
    user_id: str
    email: str
    role: UserRole = UserRole.USER
    trust_score: int = 0
    is_verified: bool = False
    metadata: dict[str, Any] = field(default_factory=dict)
    created_utc: Optional[datetime] = None
    updated_utc: Optional[datetime] = None

    def validate(self) -> list[str]:
        """Check entity invariants. Returns errors (empty = valid)."""
        errors: list[str] = []
        if not self.user_id:
            errors.append("User must have an ID")
        if not self.email or not _EMAIL_RE.match(self.email):
            errors.append(f"Invalid email address: {self.email!r}")
        if not (0 <= self.trust_score <= 100):
            errors.append(
                f"Trust score must be between 0 and 100, got {self.trust_score}"
            )
        if not isinstance(self.role, UserRole):
            errors.append(f"Invalid role: {self.role}")
        return errors

    def account_age_days(self, now: Optional[datetime] = None) -> int:
        """Whole days since the account was created (0 if unknown)."""
        if self.created_utc is None:
            return 0
        now = now or datetime.now(timezone.utc)
        return max(0, (now - self.created_utc).days)

    def merge_metadata(self, updates: dict[str, Any]) -> dict[str, Any]:
        """Shallow-merge profile updates. Does NOT mutate the user."""
        merged = dict(self.metadata)
        merged.update(updates)
        return merged

    def can_apply_to_job(self, min_trust_score: int) -> bool:
        from pramaan.trust.eligibility import is_eligible

        return is_eligible(self.trust_score, min_trust_score)

    def can_create_content(self) -> bool:
        return self.role == UserRole.MEDIA

    def can_create_jobs(self) -> bool:
        return self.role == UserRole.BUSINESS

    def to_dict(self) -> dict[str, Any]:
        return {
            "user_id": self.user_id,
            "email": self.email,
            "role": self.role.value,
            "trust_score": self.trust_score,
            "is_verified": self.is_verified,
            "metadata": dict(self.metadata),
            "created_utc": self.created_utc.isoformat() if self.created_utc else None,
            "updated_utc": self.updated_utc.isoformat() if self.updated_utc else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> User:
        return cls(
            user_id=data["user_id"],
            email=data["email"],
            role=UserRole(data.get("role", UserRole.USER.value)),
            trust_score=int(data.get("trust_score", 0)),
            is_verified=bool(data.get("is_verified", False)),
            metadata=dict(data.get("metadata") or {}),
            created_utc=_parse_ts(data.get("created_utc")),
            updated_utc=_parse_ts(data.get("updated_utc")),
        )


def _parse_ts(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    return datetime.fromisoformat(value)
