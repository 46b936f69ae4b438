"""Policy resolver — the single source of every scoring constant.

Weights, bonus rules, caps, level ladders and the recalculation epsilon all
live in one table (``DEFAULT_POLICY``, mirrored by
``config/trust_policy.json``). Engine code never hard-codes a threshold; it
asks the resolver. The resolver is read-only once constructed: policy is
loaded at startup and never mutated at runtime.

Invariants (checked by ``validate``):
- Base weights are non-negative and sum to the maximum score.
- The aggregate bonus cap is positive and no larger than the maximum score.
- Every ladder starts at the minimum score and is strictly ascending.
- Ladder labels name real TrustLevel / ScoreBand members.
- Recalculation epsilon is positive.
- Match-score blend weights sum to 1.0.
"""

from __future__ import annotations

import copy
import json
import math
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any

from pramaan.errors import PolicyError
from pramaan.models.trust import ScoreBand, TrustLevel


POLICY_FILENAME = "trust_policy.json"

DEFAULT_POLICY: dict[str, Any] = {
    "version": 1,
    "score_bounds": {"min": 0, "max": 100},
    "base_weights": {
        "identity_verified": 40,
        "profile_complete": 20,
        "skill_verified": 40,
    },
    "bonus_rules": {
        "content_completed": {
            "unit": 5, "points_per_unit": 10, "max_points": 10, "min_exclusive": 0,
        },
        "positive_reviews": {
            "unit": 3, "points_per_unit": 5, "max_points": 5, "min_exclusive": 0,
        },
        "account_age": {
            "unit": 30, "points_per_unit": 5, "max_points": 5, "min_exclusive": 30,
        },
    },
    "bonus_cap": 20,
    # Six-tier display ladder. 70 "Advanced" is reporting-only: it is not a
    # rung of the progression ladder below.
    "trust_levels": [
        {"threshold": 0, "level": "New"},
        {"threshold": 40, "level": "Basic"},
        {"threshold": 60, "level": "Verified"},
        {"threshold": 70, "level": "Advanced"},
        {"threshold": 80, "level": "Premium"},
        {"threshold": 90, "level": "Elite"},
    ],
    "progression_ladder": [
        {"threshold": 0, "level": "New"},
        {"threshold": 40, "level": "Basic"},
        {"threshold": 60, "level": "Verified"},
        {"threshold": 80, "level": "Premium"},
        {"threshold": 90, "level": "Elite"},
    ],
    # Five-band ladder reported by the TrustScore value object.
    "score_bands": [
        {"threshold": 0, "band": "VERY_LOW"},
        {"threshold": 40, "band": "LOW"},
        {"threshold": 60, "band": "MEDIUM"},
        {"threshold": 80, "band": "HIGH"},
        {"threshold": 90, "band": "EXCELLENT"},
    ],
    "display_colors": [
        {"threshold": 80, "color": "green"},
        {"threshold": 60, "color": "blue"},
        {"threshold": 40, "color": "yellow"},
        {"threshold": 0, "color": "red"},
    ],
    "profile_required_fields": ["name", "phone"],
    "recalculation": {"epsilon": 0.1},
    "match_scoring": {
        "analysis_weight": 0.7,
        "skill_weight": 0.3,
        "no_job_skills_match": 50,
        "analysis_failed_cap": 85,
        "no_resume_cap": 70,
    },
}


@dataclass(frozen=True)
class BonusRule:
    """A capped bonus factor.

    points = min(floor(count / unit) * points_per_unit, max_points),
    awarded only when count > min_exclusive.
    """
    factor: str
    unit: int
    points_per_unit: int
    max_points: int
    min_exclusive: int = 0

    def points(self, count: int) -> int:
        if count <= self.min_exclusive:
            return 0
        return min((count // self.unit) * self.points_per_unit, self.max_points)


class PolicyResolver:
    """Read-only accessor over a scoring policy table.

    Usage:
        resolver = PolicyResolver.from_config_dir(config_dir)
        engine = TrustEngine(resolver)
    """

    def __init__(self, params: dict[str, Any]) -> None:
        self._params = copy.deepcopy(params)
        try:
            errors = self.validate()
        except (KeyError, TypeError, ValueError) as e:
            raise PolicyError(f"Malformed trust policy: {e!r}") from e
        if errors:
            raise PolicyError("Invalid trust policy: " + "; ".join(errors))

    @classmethod
    def default(cls) -> PolicyResolver:
        return cls(DEFAULT_POLICY)

    @classmethod
    def from_config_dir(cls, config_dir: Path) -> PolicyResolver:
        """Load ``trust_policy.json`` from a config directory.

        Top-level keys in the file replace the corresponding defaults, so a
        deployment may override a single section.
        """
        path = Path(config_dir) / POLICY_FILENAME
        if not path.exists():
            raise PolicyError(f"Trust policy not found: {path}")
        try:
            with path.open("r", encoding="utf-8") as handle:
                loaded = json.load(handle)
        except json.JSONDecodeError as e:
            raise PolicyError(f"Trust policy is not valid JSON ({path}): {e}") from e
        if not isinstance(loaded, dict):
            raise PolicyError(f"Trust policy must be a JSON object: {path}")
        merged = copy.deepcopy(DEFAULT_POLICY)
        merged.update(loaded)
        return cls(merged)

    def as_dict(self) -> dict[str, Any]:
        return copy.deepcopy(self._params)

    # ------------------------------------------------------------------
    # Score bounds and weights
    # ------------------------------------------------------------------

    def score_bounds(self) -> tuple[int, int]:
        bounds = self._params["score_bounds"]
        return int(bounds["min"]), int(bounds["max"])

    def base_weights(self) -> dict[str, int]:
        return {k: int(v) for k, v in self._params["base_weights"].items()}

    def bonus_rules(self) -> list[BonusRule]:
        return [
            BonusRule(
                factor=factor,
                unit=int(rule["unit"]),
                points_per_unit=int(rule["points_per_unit"]),
                max_points=int(rule["max_points"]),
                min_exclusive=int(rule.get("min_exclusive", 0)),
            )
            for factor, rule in self._params["bonus_rules"].items()
        ]

    def bonus_rule(self, factor: str) -> BonusRule:
        for rule in self.bonus_rules():
            if rule.factor == factor:
                return rule
        raise PolicyError(f"No bonus rule for factor: {factor}")

    def bonus_cap(self) -> int:
        return int(self._params["bonus_cap"])

    # ------------------------------------------------------------------
    # Ladders
    # ------------------------------------------------------------------

    def trust_levels(self) -> list[tuple[int, TrustLevel]]:
        """Six-tier display ladder, ascending by threshold."""
        return [
            (int(rung["threshold"]), TrustLevel(rung["level"]))
            for rung in self._params["trust_levels"]
        ]

    def progression_ladder(self) -> list[tuple[int, TrustLevel]]:
        """Rungs used for next-level progress, ascending by threshold."""
        return [
            (int(rung["threshold"]), TrustLevel(rung["level"]))
            for rung in self._params["progression_ladder"]
        ]

    def score_bands(self) -> list[tuple[int, ScoreBand]]:
        """Five-band value-object ladder, ascending by threshold."""
        return [
            (int(rung["threshold"]), ScoreBand(rung["band"]))
            for rung in self._params["score_bands"]
        ]

    def display_colors(self) -> list[tuple[int, str]]:
        """Badge colours, descending by threshold."""
        rungs = [
            (int(rung["threshold"]), str(rung["color"]))
            for rung in self._params["display_colors"]
        ]
        return sorted(rungs, key=lambda r: -r[0])

    # ------------------------------------------------------------------
    # Profile, recalculation and matching
    # ------------------------------------------------------------------

    def profile_required_fields(self) -> list[str]:
        return list(self._params["profile_required_fields"])

    def recalculation_epsilon(self) -> float:
        return float(self._params["recalculation"]["epsilon"])

    def match_scoring(self) -> dict[str, float]:
        return {k: float(v) for k, v in self._params["match_scoring"].items()}

    # ------------------------------------------------------------------
    # Invariants
    # ------------------------------------------------------------------

    def validate(self) -> list[str]:
        """Check policy invariants. Returns violations (empty = healthy)."""
        errors: list[str] = []

        lo, hi = self.score_bounds()
        if lo != 0:
            errors.append(f"score_bounds.min must be 0, got {lo}")
        if hi <= lo:
            errors.append(f"score_bounds.max must exceed min, got {hi}")

        # --- Base weight invariants ---
        weights = self.base_weights()
        for name in ("identity_verified", "profile_complete", "skill_verified"):
            if name not in weights:
                errors.append(f"base_weights missing factor: {name}")
            elif weights[name] < 0:
                errors.append(f"base_weights.{name} must be >= 0, got {weights[name]}")
        if sum(weights.values()) != hi:
            errors.append(
                f"base weights must sum to {hi}, got {sum(weights.values())}"
            )

        # --- Bonus invariants ---
        cap = self.bonus_cap()
        if not (0 < cap <= hi):
            errors.append(f"bonus_cap must be in (0, {hi}], got {cap}")
        for rule in self.bonus_rules():
            if rule.unit <= 0:
                errors.append(f"bonus_rules.{rule.factor}.unit must be > 0")
            if rule.points_per_unit < 0 or rule.max_points < 0:
                errors.append(f"bonus_rules.{rule.factor} points must be >= 0")
            if rule.min_exclusive < 0:
                errors.append(f"bonus_rules.{rule.factor}.min_exclusive must be >= 0")

        # --- Ladder invariants ---
        for name, ladder in (
            ("trust_levels", self.trust_levels()),
            ("progression_ladder", self.progression_ladder()),
            ("score_bands", self.score_bands()),
        ):
            _check_ladder(name, [t for t, _ in ladder], lo, hi, errors)

        colors = self.display_colors()
        if not colors or colors[-1][0] != lo:
            errors.append(f"display_colors must include a rung at {lo}")

        if not self.profile_required_fields():
            errors.append("profile_required_fields must not be empty")

        epsilon = self.recalculation_epsilon()
        if not (epsilon > 0 and math.isfinite(epsilon)):
            errors.append(f"recalculation.epsilon must be > 0, got {epsilon}")

        match = self.match_scoring()
        blend = match["analysis_weight"] + match["skill_weight"]
        if not math.isclose(blend, 1.0, rel_tol=0.0, abs_tol=1e-9):
            errors.append("match_scoring analysis_weight + skill_weight must equal 1.0")

        return errors


def _check_ladder(
    name: str,
    thresholds: list[int],
    lo: int,
    hi: int,
    errors: list[str],
) -> None:
    if not thresholds:
        errors.append(f"{name} must not be empty")
        return
    if thresholds[0] != lo:
        errors.append(f"{name} must start at {lo}, got {thresholds[0]}")
    for prev, cur in zip(thresholds, thresholds[1:]):
        if cur <= prev:
            errors.append(f"{name} thresholds must be strictly ascending ({prev} -> {cur})")
    if thresholds[-1] > hi:
        errors.append(f"{name} top threshold {thresholds[-1]} exceeds {hi}")


@lru_cache()
def default_resolver() -> PolicyResolver:
    """Shared resolver over DEFAULT_POLICY. Safe to share: it is read-only."""
    return PolicyResolver.default()
