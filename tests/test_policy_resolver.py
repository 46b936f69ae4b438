"""Tests for the policy resolver — proves it loads, validates and resolves the scoring policy."""

import copy
import json

import pytest
from pathlib import Path

from pramaan.errors import PolicyError
from pramaan.models.trust import ScoreBand, TrustLevel
from pramaan.policy.resolver import (
    DEFAULT_POLICY,
    POLICY_FILENAME,
    BonusRule,
    PolicyResolver,
    default_resolver,
)


CONFIG_DIR = Path(__file__).resolve().parents[1] / "config"


@pytest.fixture
def resolver() -> PolicyResolver:
    return PolicyResolver.from_config_dir(CONFIG_DIR)


def _write_policy(directory: Path, data: object) -> Path:
    path = directory / POLICY_FILENAME
    path.write_text(json.dumps(data), encoding="utf-8")
    return directory


class TestConfigFile:
    def test_config_file_matches_defaults(self) -> None:
        with (CONFIG_DIR / POLICY_FILENAME).open(encoding="utf-8") as f:
            assert json.load(f) == DEFAULT_POLICY

    def test_shipped_policy_is_healthy(self, resolver: PolicyResolver) -> None:
        assert resolver.validate() == []

    def test_default_resolver_is_shared(self) -> None:
        assert default_resolver() is default_resolver()


class TestWeights:
    def test_base_weights_sum_to_max(self, resolver: PolicyResolver) -> None:
        _, hi = resolver.score_bounds()
        assert sum(resolver.base_weights().values()) == hi

    def test_base_weights(self, resolver: PolicyResolver) -> None:
        assert resolver.base_weights() == {
            "identity_verified": 40,
            "profile_complete": 20,
            "skill_verified": 40,
        }

    def test_bonus_cap(self, resolver: PolicyResolver) -> None:
        assert resolver.bonus_cap() == 20

    def test_unknown_bonus_rule(self, resolver: PolicyResolver) -> None:
        with pytest.raises(PolicyError):
            resolver.bonus_rule("followers")


class TestBonusRule:
    def test_points_per_full_unit(self) -> None:
        rule = BonusRule("content_completed", unit=5, points_per_unit=10, max_points=10)
        assert rule.points(4) == 0
        assert rule.points(5) == 10
        assert rule.points(500) == 10

    def test_activation_threshold_is_exclusive(self) -> None:
        rule = BonusRule("account_age", unit=30, points_per_unit=5, max_points=5, min_exclusive=30)
        assert rule.points(30) == 0
        assert rule.points(31) == 5


class TestLadders:
    def test_display_ladder(self, resolver: PolicyResolver) -> None:
        assert [level for _, level in resolver.trust_levels()] == list(TrustLevel)

    def test_progression_skips_advanced(self, resolver: PolicyResolver) -> None:
        levels = [level for _, level in resolver.progression_ladder()]
        assert TrustLevel.ADVANCED not in levels
        assert [t for t, _ in resolver.progression_ladder()] == [0, 40, 60, 80, 90]

    def test_score_bands(self, resolver: PolicyResolver) -> None:
        assert resolver.score_bands() == [
            (0, ScoreBand.VERY_LOW),
            (40, ScoreBand.LOW),
            (60, ScoreBand.MEDIUM),
            (80, ScoreBand.HIGH),
            (90, ScoreBand.EXCELLENT),
        ]

    def test_display_colors_descending(self, resolver: PolicyResolver) -> None:
        thresholds = [t for t, _ in resolver.display_colors()]
        assert thresholds == sorted(thresholds, reverse=True)


class TestRecalculationPolicy:
    def test_epsilon(self, resolver: PolicyResolver) -> None:
        assert resolver.recalculation_epsilon() == pytest.approx(0.1)

    def test_profile_fields(self, resolver: PolicyResolver) -> None:
        assert resolver.profile_required_fields() == ["name", "phone"]


class TestInvariants:
    def test_weights_not_summing_to_max_rejected(self) -> None:
        params = copy.deepcopy(DEFAULT_POLICY)
        params["base_weights"]["skill_verified"] = 30
        with pytest.raises(PolicyError, match="sum to 100"):
            PolicyResolver(params)

    def test_non_ascending_ladder_rejected(self) -> None:
        params = copy.deepcopy(DEFAULT_POLICY)
        params["trust_levels"][2]["threshold"] = 30
        with pytest.raises(PolicyError, match="strictly ascending"):
            PolicyResolver(params)

    def test_ladder_must_start_at_zero(self) -> None:
        params = copy.deepcopy(DEFAULT_POLICY)
        params["score_bands"][0]["threshold"] = 5
        with pytest.raises(PolicyError, match="must start at 0"):
            PolicyResolver(params)

    def test_zero_bonus_cap_rejected(self) -> None:
        params = copy.deepcopy(DEFAULT_POLICY)
        params["bonus_cap"] = 0
        with pytest.raises(PolicyError, match="bonus_cap"):
            PolicyResolver(params)

    def test_unknown_level_label_rejected(self) -> None:
        params = copy.deepcopy(DEFAULT_POLICY)
        params["trust_levels"][1]["level"] = "Gold"
        with pytest.raises(PolicyError, match="Malformed"):
            PolicyResolver(params)

    def test_non_positive_epsilon_rejected(self) -> None:
        params = copy.deepcopy(DEFAULT_POLICY)
        params["recalculation"]["epsilon"] = 0
        with pytest.raises(PolicyError, match="epsilon"):
            PolicyResolver(params)

    def test_resolver_copies_input(self) -> None:
        params = copy.deepcopy(DEFAULT_POLICY)
        resolver = PolicyResolver(params)
        params["bonus_cap"] = 99
        assert resolver.bonus_cap() == 20


class TestLoading:
    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(PolicyError, match="not found"):
            PolicyResolver.from_config_dir(tmp_path)

    def test_invalid_json(self, tmp_path: Path) -> None:
        (tmp_path / POLICY_FILENAME).write_text("{not json", encoding="utf-8")
        with pytest.raises(PolicyError, match="not valid JSON"):
            PolicyResolver.from_config_dir(tmp_path)

    def test_non_object(self, tmp_path: Path) -> None:
        with pytest.raises(PolicyError, match="JSON object"):
            PolicyResolver.from_config_dir(_write_policy(tmp_path, [1, 2, 3]))

    def test_partial_override_merges_with_defaults(self, tmp_path: Path) -> None:
        resolver = PolicyResolver.from_config_dir(
            _write_policy(tmp_path, {"recalculation": {"epsilon": 0.5}})
        )
        assert resolver.recalculation_epsilon() == pytest.approx(0.5)
        assert resolver.bonus_cap() == 20
