"""Tests for the TrustScore value object — strict construction, clamped arithmetic."""

import dataclasses

import pytest
from pathlib import Path

from pramaan.errors import InvalidScoreError
from pramaan.models.trust import ScoreBand, TrustFactors, TrustLevel
from pramaan.policy.resolver import PolicyResolver
from pramaan.trust.engine import TrustEngine
from pramaan.trust.score import (
    TrustScore,
    average_scores,
    color_for_band,
    validate_score,
)


CONFIG_DIR = Path(__file__).resolve().parents[1] / "config"


@pytest.fixture
def engine() -> TrustEngine:
    return TrustEngine(PolicyResolver.from_config_dir(CONFIG_DIR))


class TestConstruction:
    def test_from_string_rounds_half_up(self) -> None:
        assert TrustScore.from_string("85.5").value == 86

    def test_from_string_trims_whitespace(self) -> None:
        assert TrustScore.from_string(" 42 ").value == 42

    @pytest.mark.parametrize("bad", [-1, 101, -0.01, 100.01])
    def test_out_of_range_rejected(self, bad: float) -> None:
        with pytest.raises(InvalidScoreError):
            TrustScore(bad)

    @pytest.mark.parametrize("bad", [float("nan"), float("inf"), "50", None, True])
    def test_non_numbers_rejected(self, bad: object) -> None:
        with pytest.raises(InvalidScoreError):
            TrustScore(bad)

    def test_unparseable_string_rejected(self) -> None:
        with pytest.raises(InvalidScoreError):
            TrustScore.from_string("eighty")

    def test_out_of_range_string_rejected(self) -> None:
        with pytest.raises(InvalidScoreError):
            TrustScore.from_string("101")

    def test_error_is_a_value_error(self) -> None:
        with pytest.raises(ValueError):
            TrustScore(150)

    def test_bounds_accepted(self) -> None:
        assert TrustScore(0).value == 0
        assert TrustScore(100).value == 100

    def test_immutable(self) -> None:
        score = TrustScore(50)
        with pytest.raises(dataclasses.FrozenInstanceError):
            score.value = 60  # type: ignore[misc]


class TestValidateScore:
    def test_valid(self) -> None:
        assert validate_score(55) == (True, None)

    def test_invalid_has_reason(self) -> None:
        ok, reason = validate_score(-3)
        assert ok is False
        assert "between 0 and 100" in reason


class TestCalculate:
    def test_delegates_to_engine(self, engine: TrustEngine) -> None:
        factors = TrustFactors(identity_verified=True, skill_verified=True)
        assert TrustScore.calculate(factors, engine).value == engine.calculate_score(factors)

    def test_defaults_for_missing_factors(self) -> None:
        assert TrustScore.calculate({}).value == 0
        assert TrustScore.calculate({"profileComplete": True}).value == 20


class TestArithmetic:
    def test_increment_clamps_at_max(self) -> None:
        assert TrustScore(80).increment(30).value == 100

    def test_decrement_clamps_at_min(self) -> None:
        assert TrustScore(10).decrement(30).value == 0

    def test_returns_new_instance(self) -> None:
        original = TrustScore(50)
        bumped = original.increment(5)
        assert original.value == 50
        assert bumped.value == 55


class TestComparison:
    def test_equality_by_value(self) -> None:
        assert TrustScore(70) == TrustScore(70.4)
        assert TrustScore(70).equals(TrustScore(70))
        assert not TrustScore(70).equals(TrustScore(71))
        assert len({TrustScore(70), TrustScore(70)}) == 1

    def test_meets_requirement(self) -> None:
        assert TrustScore(70).meets_requirement(70) is True
        assert TrustScore(69).meets_requirement(70) is False

    def test_difference_is_absolute(self) -> None:
        assert TrustScore(40).difference_from(TrustScore(75)) == 35
        assert TrustScore(75).difference_from(TrustScore(40)) == 35


class TestClassification:
    @pytest.mark.parametrize("value,band", [
        (0, ScoreBand.VERY_LOW),
        (39, ScoreBand.VERY_LOW),
        (40, ScoreBand.LOW),
        (60, ScoreBand.MEDIUM),
        (75, ScoreBand.MEDIUM),
        (80, ScoreBand.HIGH),
        (90, ScoreBand.EXCELLENT),
    ])
    def test_bands(self, value: int, band: ScoreBand) -> None:
        assert TrustScore(value).level == band

    def test_display_level_uses_six_tier_ladder(self, engine: TrustEngine) -> None:
        assert TrustScore(70).display_level(engine) == TrustLevel.ADVANCED

    def test_str(self) -> None:
        assert str(TrustScore(75)) == "TrustScore(75 - MEDIUM)"

    def test_to_dict(self) -> None:
        assert TrustScore(92).to_dict() == {"score": 92, "level": "EXCELLENT"}

    def test_band_colours(self) -> None:
        assert "emerald" in color_for_band(ScoreBand.EXCELLENT)
        assert "red" in color_for_band(ScoreBand.VERY_LOW)


class TestAverage:
    def test_empty_is_zero(self) -> None:
        assert average_scores([]).value == 0

    def test_mean_rounds_half_up(self) -> None:
        assert average_scores([TrustScore(50), TrustScore(75)]).value == 63
