"""Trust factor, level, and result data models.

Trust in PRAMAAN is:
- An integer in [0, 100] derived purely from verification facts.
- Dominated by three base factors (identity 40, profile 20, skills 40).
- Nudged at the margin by capped bonus factors (content completion,
  positive reviews, account age), whose sum is capped again at 20.
- Reported through two independent ladders: the six-tier display
  ``TrustLevel`` and the five-band ``ScoreBand`` used by the value object.

TrustFactors are never stored. They are rebuilt from the user's current
state every time scoring runs.
"""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass
from typing import Any, Mapping, Optional


class TrustLevel(str, enum.Enum):
    """Six-tier display level derived from a trust score."""
    NEW = "New"
    BASIC = "Basic"
    VERIFIED = "Verified"
    ADVANCED = "Advanced"
    PREMIUM = "Premium"
    ELITE = "Elite"

    @property
    def rank(self) -> int:
        return _LEVEL_ORDER.index(self)


_LEVEL_ORDER = list(TrustLevel)


class ScoreBand(str, enum.Enum):
    """Five-band category reported by the TrustScore value object."""
    VERY_LOW = "VERY_LOW"
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    EXCELLENT = "EXCELLENT"

    @property
    def rank(self) -> int:
        return _BAND_ORDER.index(self)


_BAND_ORDER = list(ScoreBand)


# Accepted spellings for each factor, snake_case first.
_FACTOR_KEYS: dict[str, tuple[str, ...]] = {
    "identity_verified": ("identity_verified", "identityVerified"),
    "profile_complete": ("profile_complete", "profileComplete"),
    "skill_verified": ("skill_verified", "skillVerified"),
    "content_completed": ("content_completed", "contentCompleted"),
    "positive_reviews": ("positive_reviews", "positiveReviews"),
    "account_age": ("account_age", "accountAge"),
}


def coerce_count(value: Any) -> int:
    """Coerce a counter to a non-negative int.

    None, non-numeric, non-finite and negative values become 0.
    Fractional values are floored.
    """
    if value is None or isinstance(value, bool):
        return 0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    if not math.isfinite(number) or number <= 0:
        return 0
    return int(math.floor(number))


def _lookup(mapping: Mapping[str, Any], field_name: str) -> Any:
    for key in _FACTOR_KEYS[field_name]:
        if key in mapping and mapping[key] is not None:
            return mapping[key]
    return None


@dataclass(frozen=True)
class TrustFactors:
    """Verification facts about a user, the sole input to scoring.

    Base factors are booleans. Bonus factors are non-negative counters
    that default to 0. Build from loosely-typed input with
    ``TrustFactors.from_mapping`` so the defaulting policy stays in one
    place.
    """
    identity_verified: bool = False
    profile_complete: bool = False
    skill_verified: bool = False
    content_completed: int = 0
    positive_reviews: int = 0
    account_age: int = 0  # days

    @classmethod
    def from_mapping(cls, mapping: Optional[Mapping[str, Any]]) -> TrustFactors:
        """Build factors from a mapping, applying the named defaults.

        Booleans are read by truthiness, counters through ``coerce_count``.
        Missing keys and ``None`` values take the field default.
        """
        mapping = mapping or {}
        return cls(
            identity_verified=bool(_lookup(mapping, "identity_verified")),
            profile_complete=bool(_lookup(mapping, "profile_complete")),
            skill_verified=bool(_lookup(mapping, "skill_verified")),
            content_completed=coerce_count(_lookup(mapping, "content_completed")),
            positive_reviews=coerce_count(_lookup(mapping, "positive_reviews")),
            account_age=coerce_count(_lookup(mapping, "account_age")),
        )

    def with_overrides(self, **overrides: Any) -> TrustFactors:
        """Return a copy with the non-None overrides applied."""
        merged = self.to_dict()
        merged.update({k: v for k, v in overrides.items() if v is not None})
        return TrustFactors.from_mapping(merged)

    def to_dict(self) -> dict[str, Any]:
        return {
            "identity_verified": self.identity_verified,
            "profile_complete": self.profile_complete,
            "skill_verified": self.skill_verified,
            "content_completed": self.content_completed,
            "positive_reviews": self.positive_reviews,
            "account_age": self.account_age,
        }


EMPTY_FACTORS = TrustFactors()


@dataclass(frozen=True)
class NextLevelInfo:
    """Distance from a score to the next rung of the progression ladder."""
    next_level: str
    points_needed: int
    progress: int

    @property
    def at_max_level(self) -> bool:
        return self.points_needed == 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "next_level": self.next_level,
            "points_needed": self.points_needed,
            "progress": self.progress,
        }


@dataclass(frozen=True)
class TrustProgress:
    """Progress summary for a trust badge."""
    current_level: TrustLevel
    next_level: Optional[str]
    points_needed: int
    progress_percentage: int
    color: str


@dataclass(frozen=True)
class ScoreIncrease:
    """Projected effect of a single improvement action."""
    new_score: int
    increase: int
    max_possible: int


@dataclass(frozen=True)
class EligibilityResult:
    """Outcome of comparing a user's score with a job's minimum."""
    eligible: bool
    points_needed: int
    percentage: float
    message: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "eligible": self.eligible,
            "points_needed": self.points_needed,
            "percentage": self.percentage,
            "message": self.message,
        }


class ImprovementAction(str, enum.Enum):
    """A single step a user can take to raise their score."""
    VERIFY_IDENTITY = "verify_identity"
    COMPLETE_PROFILE = "complete_profile"
    ADD_SKILLS = "add_skills"
    COMPLETE_CONTENT = "complete_content"
    RECEIVE_REVIEW = "receive_review"
