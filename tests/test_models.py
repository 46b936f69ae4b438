"""Tests for data models — TrustFactors defaults, User, Job and resume analysis."""

import pytest
from datetime import datetime, timedelta, timezone

from pramaan.models.job import Job, JobApplication, JobStatus
from pramaan.models.resume import ResumeAnalysis
from pramaan.models.trust import (
    EMPTY_FACTORS,
    ScoreBand,
    TrustFactors,
    TrustLevel,
    coerce_count,
)
from pramaan.models.user import User, UserRole


class TestEnums:
    def test_levels_ordered(self) -> None:
        assert [lvl.value for lvl in TrustLevel] == [
            "New", "Basic", "Verified", "Advanced", "Premium", "Elite",
        ]
        assert TrustLevel.NEW.rank < TrustLevel.ELITE.rank

    def test_string_enums(self) -> None:
        assert TrustLevel.VERIFIED == "Verified"
        assert ScoreBand.HIGH == "HIGH"
        assert ScoreBand.EXCELLENT.rank == 4


class TestTrustFactors:
    def test_named_defaults(self) -> None:
        assert TrustFactors.from_mapping(None) == EMPTY_FACTORS
        assert TrustFactors.from_mapping({}).content_completed == 0

    def test_none_values_take_defaults(self) -> None:
        f = TrustFactors.from_mapping({"contentCompleted": None, "positive_reviews": 4})
        assert f.content_completed == 0
        assert f.positive_reviews == 4

    def test_overrides_ignore_none(self) -> None:
        f = TrustFactors(content_completed=3).with_overrides(content_completed=None, account_age=40)
        assert f.content_completed == 3
        assert f.account_age == 40

    @pytest.mark.parametrize("raw,expected", [
        (None, 0), (True, 0), (-3, 0), (float("inf"), 0), ("x", 0),
        (4.9, 4), ("7", 7), (12, 12),
    ])
    def test_coerce_count(self, raw: object, expected: int) -> None:
        assert coerce_count(raw) == expected


class TestUser:
    def test_valid_user(self) -> None:
        assert User(user_id="u1", email="a@example.com").validate() == []

    def test_invalid_fields(self) -> None:
        errors = User(user_id="", email="bad", trust_score=101).validate()
        assert len(errors) == 3

    def test_account_age(self) -> None:
        created = datetime(2026, 1, 1, tzinfo=timezone.utc)
        user = User(user_id="u1", email="a@example.com", created_utc=created)
        assert user.account_age_days(created + timedelta(days=40, hours=5)) == 40
        assert User(user_id="u2", email="b@example.com").account_age_days() == 0

    def test_merge_metadata_does_not_mutate(self) -> None:
        user = User(user_id="u1", email="a@example.com", metadata={"name": "A"})
        merged = user.merge_metadata({"phone": "1"})
        assert merged == {"name": "A", "phone": "1"}
        assert user.metadata == {"name": "A"}

    def test_role_capabilities(self) -> None:
        assert User(user_id="b", email="b@x.io", role=UserRole.BUSINESS).can_create_jobs()
        assert User(user_id="m", email="m@x.io", role=UserRole.MEDIA).can_create_content()
        assert not User(user_id="u", email="u@x.io").can_create_jobs()

    def test_can_apply_uses_eligibility_gate(self) -> None:
        user = User(user_id="u", email="u@x.io", trust_score=70)
        assert user.can_apply_to_job(70)
        assert not user.can_apply_to_job(71)

    def test_dict_round_trip(self) -> None:
        user = User(
            user_id="u1", email="a@example.com", role=UserRole.MEDIA,
            trust_score=60, is_verified=True, metadata={"skills": ["go"]},
            created_utc=datetime(2026, 2, 1, tzinfo=timezone.utc),
        )
        assert User.from_dict(user.to_dict()) == user


class TestJob:
    def _job(self, **kwargs) -> Job:
        defaults = dict(job_id="j1", company_id="c1", title="Data Analyst", description="SQL work")
        defaults.update(kwargs)
        return Job(**defaults)

    def test_validate(self) -> None:
        assert self._job().validate() == []
        assert self._job(title=" ", min_trust_score=-1).validate() != []

    def test_status(self) -> None:
        assert self._job().is_active()
        assert not self._job(status=JobStatus.CLOSED).is_active()

    def test_search(self) -> None:
        job = self._job(skills=["Python"], location="Pune")
        assert job.matches_search("python pune")
        assert not job.matches_search("java")

    def test_application_round_trip(self) -> None:
        app = JobApplication(application_id="a1", job_id="j1", user_id="u1", match_score=71)
        assert JobApplication.from_dict(app.to_dict()) == app


class TestResumeAnalysis:
    def test_skills_from_parsed_data(self) -> None:
        analysis = ResumeAnalysis(overall=80, parsed_data={"skills": ["Python", 3]})
        assert analysis.skills == ["Python", "3"]

    def test_no_skills(self) -> None:
        assert ResumeAnalysis(overall=10).skills == []
