"""Trust score engine — computes scores, levels and improvement guidance.

Trust model:
  T = clamp(B + min(S, bonus_cap), 0, 100)

  B = 40 * identity_verified + 20 * profile_complete + 40 * skill_verified
  S = content bonus + review bonus + account-age bonus, each capped on its own

Invariants enforced:
- 0 <= T <= 100 for every input (the output is clamped, never rejected)
- Base factors alone can reach 100; bonuses alone can never exceed bonus_cap
- Bulk activity cannot substitute for identity or skill verification
- Every weight, cap and threshold comes from the PolicyResolver
- Pure and deterministic: no I/O, no shared mutable state
"""

from __future__ import annotations

import math
from typing import Any, Mapping, Optional, Union

from pramaan.models.trust import (
    ImprovementAction,
    NextLevelInfo,
    ScoreIncrease,
    TrustFactors,
    TrustLevel,
    TrustProgress,
)
from pramaan.policy.resolver import PolicyResolver, default_resolver


MAX_LEVEL = "Max Level"

FactorsLike = Union[TrustFactors, Mapping[str, Any], None]


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from negative infinity.

    85.5 -> 86 and 84.5 -> 85, unlike Python's banker's rounding.
    """
    return int(math.floor(value + 0.5))


def as_factors(factors: FactorsLike) -> TrustFactors:
    if isinstance(factors, TrustFactors):
        return factors
    return TrustFactors.from_mapping(factors)


def _user_field(user: Any, *names: str) -> Any:
    """Read the first present attribute or key among ``names``."""
    for name in names:
        if isinstance(user, Mapping):
            if name in user:
                return user[name]
        elif hasattr(user, name):
            return getattr(user, name)
    return None


class TrustEngine:
    """Computes trust scores and the guidance derived from them.

    Stateless: construct one per call site (or share one freely), passing
    the resolver that carries the scoring policy.

    Usage:
        engine = TrustEngine(PolicyResolver.from_config_dir(config_dir))
        score = engine.calculate_score(factors)
        level = engine.get_trust_level(score)
    """

    def __init__(self, resolver: Optional[PolicyResolver] = None) -> None:
        self._resolver = resolver or default_resolver()

    @property
    def resolver(self) -> PolicyResolver:
        return self._resolver

    # ------------------------------------------------------------------
    # Score calculation
    # ------------------------------------------------------------------

    def calculate_score(self, factors: FactorsLike) -> int:
        """Compute the trust score for a set of factors, clamped to bounds."""
        return self.score_breakdown(factors)["total"]

    def score_breakdown(self, factors: FactorsLike) -> dict[str, Any]:
        """Itemise a score: base points, per-rule bonus, capped bonus, total."""
        f = as_factors(factors)
        lo, hi = self._resolver.score_bounds()
        weights = self._resolver.base_weights()

        base = {
            name: (weight if getattr(f, name, False) else 0)
            for name, weight in weights.items()
        }
        bonus = {
            rule.factor: rule.points(getattr(f, rule.factor, 0))
            for rule in self._resolver.bonus_rules()
        }
        raw_bonus = sum(bonus.values())
        capped_bonus = min(raw_bonus, self._resolver.bonus_cap())
        total = max(lo, min(hi, sum(base.values()) + capped_bonus))

        return {
            "base": base,
            "bonus": bonus,
            "bonus_raw": raw_bonus,
            "bonus_applied": capped_bonus,
            "total": total,
        }

    def is_profile_complete(self, metadata: Optional[Mapping[str, Any]]) -> bool:
        """Every required field is present and non-blank after trimming."""
        if not isinstance(metadata, Mapping):
            return False
        for field_name in self._resolver.profile_required_fields():
            value = metadata.get(field_name)
            if not value or not str(value).strip():
                return False
        return True

    @staticmethod
    def has_verified_skills(metadata: Optional[Mapping[str, Any]]) -> bool:
        if not isinstance(metadata, Mapping):
            return False
        skills = metadata.get("skills")
        return isinstance(skills, (list, tuple)) and len(skills) > 0

    def factors_for_user(
        self,
        user: Any,
        identity_verified: Optional[bool] = None,
        content_completed: Optional[int] = None,
        positive_reviews: Optional[int] = None,
        account_age: Optional[int] = None,
    ) -> TrustFactors:
        """Derive factors from a user's persisted state plus fresh overrides.

        ``user`` may be a ``User`` or any object / mapping exposing
        ``is_verified`` (or ``isVerified``) and ``metadata``.
        """
        metadata = _user_field(user, "metadata") or {}
        verified = _user_field(user, "is_verified", "isVerified")
        if identity_verified is not None:
            verified = identity_verified
        return TrustFactors.from_mapping({
            "identity_verified": verified,
            "profile_complete": self.is_profile_complete(metadata),
            "skill_verified": self.has_verified_skills(metadata),
            "content_completed": content_completed,
            "positive_reviews": positive_reviews,
            "account_age": account_age,
        })

    def recalculate_for_user(self, user: Any, **overrides: Any) -> int:
        return self.calculate_score(self.factors_for_user(user, **overrides))

    def calculate_user_trust_score(self, user: Any, **overrides: Any) -> dict[str, Any]:
        """Score, display level and factor breakdown for a user."""
        factors = self.factors_for_user(user, **overrides)
        score = self.calculate_score(factors)
        return {
            "score": score,
            "level": self.get_trust_level(score),
            "breakdown": factors.to_dict(),
        }

    # ------------------------------------------------------------------
    # Levels and progress
    # ------------------------------------------------------------------

    def get_trust_level(self, score: float) -> TrustLevel:
        """Six-tier display level for a score."""
        ladder = self._resolver.trust_levels()
        for threshold, level in reversed(ladder):
            if score >= threshold:
                return level
        return ladder[0][1]

    def get_next_level_info(self, score: float) -> NextLevelInfo:
        """Progress from the current progression rung to the next one.

        The current rung is the highest threshold <= score. At the top
        rung the result is ("Max Level", 0, 100).
        """
        ladder = self._resolver.progression_ladder()

        current_index = 0
        next_index = 1
        for i in range(len(ladder) - 1, -1, -1):
            if score >= ladder[i][0]:
                current_index = i
                next_index = i + 1
                break

        if next_index >= len(ladder):
            return NextLevelInfo(next_level=MAX_LEVEL, points_needed=0, progress=100)

        current_threshold = ladder[current_index][0]
        next_threshold, next_level = ladder[next_index]
        points_needed = next_threshold - score
        progress = round_half_up(
            (score - current_threshold) / (next_threshold - current_threshold) * 100
        )
        return NextLevelInfo(
            next_level=next_level.value,
            points_needed=max(0, int(math.ceil(points_needed))),
            progress=min(100, max(0, progress)),
        )

    def get_trust_score_progress(self, score: float) -> TrustProgress:
        """Badge summary: level, next rung, progress and display colour."""
        info = self.get_next_level_info(score)
        color = "gray"
        for threshold, candidate in self._resolver.display_colors():
            if score >= threshold:
                color = candidate
                break
        return TrustProgress(
            current_level=self.get_trust_level(score),
            next_level=info.next_level if info.points_needed > 0 else None,
            points_needed=info.points_needed,
            progress_percentage=info.progress,
            color=color,
        )

    # ------------------------------------------------------------------
    # Guidance
    # ------------------------------------------------------------------

    def get_improvement_recommendations(self, factors: FactorsLike) -> list[str]:
        """Actionable tips in fixed order: identity, profile, skills, content."""
        f = as_factors(factors)
        weights = self._resolver.base_weights()
        content_rule = self._resolver.bonus_rule("content_completed")
        fields = " and ".join(self._resolver.profile_required_fields())

        recommendations: list[str] = []
        if not f.identity_verified:
            recommendations.append(
                f"Verify your identity to gain {weights['identity_verified']} points"
            )
        if not f.profile_complete:
            recommendations.append(
                f"Complete your profile (add {fields}) to gain "
                f"{weights['profile_complete']} points"
            )
        if not f.skill_verified:
            recommendations.append(
                f"Add verified skills to gain {weights['skill_verified']} points"
            )
        if f.content_completed < content_rule.unit:
            recommendations.append(
                f"Complete {content_rule.unit} learning modules to gain "
                f"{content_rule.max_points} bonus points"
            )
        return recommendations

    def calculate_score_increase(
        self,
        current_score: int,
        action: Union[ImprovementAction, str],
    ) -> ScoreIncrease:
        """Project the effect of one improvement action on a score.

        Unknown actions project no increase.
        """
        _, hi = self._resolver.score_bounds()
        weights = self._resolver.base_weights()
        headroom = max(0, hi - current_score)

        try:
            action = ImprovementAction(action)
        except ValueError:
            return ScoreIncrease(new_score=min(hi, current_score), increase=0, max_possible=hi)

        if action == ImprovementAction.VERIFY_IDENTITY:
            increase = weights["identity_verified"]
        elif action == ImprovementAction.COMPLETE_PROFILE:
            increase = weights["profile_complete"]
        elif action == ImprovementAction.ADD_SKILLS:
            increase = weights["skill_verified"]
        elif action == ImprovementAction.COMPLETE_CONTENT:
            increase = min(self._resolver.bonus_rule("content_completed").max_points, headroom)
        else:
            increase = min(self._resolver.bonus_rule("positive_reviews").max_points, headroom)

        return ScoreIncrease(
            new_score=min(hi, current_score + increase),
            increase=increase,
            max_possible=hi,
        )
