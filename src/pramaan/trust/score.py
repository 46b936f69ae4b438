"""TrustScore value object — a validated, immutable score.

Unlike the engine, whose output is always clamped, the value object is
strict: construction with a value outside [0, 100], a non-finite value or a
non-number raises InvalidScoreError. Operations that "change" a score return
a new instance clamped to [0, 100].

Scoring itself is not reimplemented here. ``TrustScore.calculate``
delegates to TrustEngine so both paths use the same weights and caps.
"""

from __future__ import annotations

import math
import numbers
from dataclasses import dataclass
from typing import Any, Iterable, Optional

from pramaan.errors import InvalidScoreError
from pramaan.models.trust import ScoreBand, TrustLevel
from pramaan.policy.resolver import PolicyResolver, default_resolver
from pramaan.trust.engine import FactorsLike, TrustEngine, round_half_up


MIN_SCORE = 0
MAX_SCORE = 100

_BAND_COLORS: dict[ScoreBand, str] = {
    ScoreBand.VERY_LOW: "text-red-600 bg-red-50",
    ScoreBand.LOW: "text-orange-600 bg-orange-50",
    ScoreBand.MEDIUM: "text-yellow-600 bg-yellow-50",
    ScoreBand.HIGH: "text-green-600 bg-green-50",
    ScoreBand.EXCELLENT: "text-emerald-600 bg-emerald-50",
}


def validate_score(value: Any) -> tuple[bool, Optional[str]]:
    """Check whether ``value`` can become a TrustScore.

    Returns (True, None) or (False, reason).
    """
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        return False, f"Score must be a number, got {value!r}"
    if not math.isfinite(value):
        return False, "Score must be a finite number"
    if value < MIN_SCORE or value > MAX_SCORE:
        return False, f"Score must be between {MIN_SCORE} and {MAX_SCORE}, got {value}"
    return True, None


@dataclass(frozen=True, init=False)
class TrustScore:
    """An integer trust score in [0, 100].

    The constructor accepts any real number in range and stores it rounded
    half-up. Equality and hashing are by value.
    """
    value: int

    def __init__(self, value: Any) -> None:
        ok, reason = validate_score(value)
        if not ok:
            raise InvalidScoreError(f"Invalid trust score: {reason}")
        object.__setattr__(self, "value", round_half_up(float(value)))

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------

    @staticmethod
    def calculate(
        factors: FactorsLike,
        engine: Optional[TrustEngine] = None,
    ) -> TrustScore:
        """Score a set of factors through the shared TrustEngine."""
        engine = engine or TrustEngine()
        return TrustScore(engine.calculate_score(factors))

    @staticmethod
    def from_string(text: str) -> TrustScore:
        """Parse a score from text, rounding half-up.

        Raises InvalidScoreError for non-numeric, non-finite or
        out-of-range input.
        """
        try:
            number = float(str(text).strip())
        except ValueError as e:
            raise InvalidScoreError(f"Invalid trust score string: {text!r}") from e
        return TrustScore(number)

    # ------------------------------------------------------------------
    # Arithmetic (always clamped, always a new instance)
    # ------------------------------------------------------------------

    def increment(self, amount: float) -> TrustScore:
        return TrustScore(_clamp(self.value + amount))

    def decrement(self, amount: float) -> TrustScore:
        return TrustScore(_clamp(self.value - amount))

    # ------------------------------------------------------------------
    # Comparison
    # ------------------------------------------------------------------

    def equals(self, other: TrustScore) -> bool:
        return isinstance(other, TrustScore) and self.value == other.value

    def meets_requirement(self, minimum: float) -> bool:
        return self.value >= minimum

    def difference_from(self, other: TrustScore) -> int:
        return abs(self.value - other.value)

    # ------------------------------------------------------------------
    # Classification
    # ------------------------------------------------------------------

    @property
    def level(self) -> ScoreBand:
        """Five-band category (VERY_LOW .. EXCELLENT)."""
        return self.band()

    def band(self, resolver: Optional[PolicyResolver] = None) -> ScoreBand:
        bands = (resolver or default_resolver()).score_bands()
        for threshold, band in reversed(bands):
            if self.value >= threshold:
                return band
        return bands[0][1]

    def display_level(self, engine: Optional[TrustEngine] = None) -> TrustLevel:
        """Six-tier display level, as shown on profiles and badges."""
        return (engine or TrustEngine()).get_trust_level(self.value)

    def to_dict(self) -> dict[str, Any]:
        return {"score": self.value, "level": self.level.value}

    def __str__(self) -> str:
        return f"TrustScore({self.value} - {self.level.value})"


def _clamp(value: float) -> float:
    return max(MIN_SCORE, min(MAX_SCORE, value))


def average_scores(scores: Iterable[TrustScore]) -> TrustScore:
    """Mean of several scores (0 for an empty input)."""
    values = [s.value for s in scores]
    if not values:
        return TrustScore(0)
    return TrustScore(sum(values) / len(values))


def color_for_band(band: ScoreBand) -> str:
    """CSS utility classes used to render a band."""
    return _BAND_COLORS[band]
