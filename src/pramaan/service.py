"""PRAMAAN service — use-case facade over the trust engine.

This is the primary interface for application code. It orchestrates:
- Recalculation (gather factors, score, persist only on real change)
- Trust-affecting mutations (profile edits, identity verification,
  content completion, positive reviews), each followed by recalculation
- Job posting and gated job applications
- Audit (every state change appends to the event log)

The engine is pure; this facade is the only layer with side effects.
Operations never raise past this boundary. Failures come back as
``ServiceResult(success=False, errors=[...])``. Trust score display is
advisory, so a failed recalculation reports the safe default of 0 / "New".

Recalculations are synchronous, one compute-then-write step per call.
Concurrent recalculations for the same user are not ordered against each
other; callers needing strict ordering must serialize per user id.
"""

from __future__ import annotations

import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Iterator, Optional

from pramaan.errors import (
    DependencyError,
    JobNotFoundError,
    PramaanError,
    UserNotFoundError,
)
from pramaan.log import get_logger
from pramaan.models.job import ApplicationStatus, Job, JobApplication
from pramaan.models.resume import ResumeAnalysis, ResumeAnalyzer
from pramaan.models.trust import EMPTY_FACTORS, TrustLevel, coerce_count
from pramaan.models.user import User, UserRole
from pramaan.persistence.event_log import EventKind, EventLog, EventRecord
from pramaan.persistence.repositories import (
    ApplicationRepository,
    InMemoryApplicationRepository,
    InMemoryJobRepository,
    InMemoryUserRepository,
    JobRepository,
    UserRepository,
)
from pramaan.policy.resolver import PolicyResolver, default_resolver
from pramaan.trust.eligibility import validate_job_application
from pramaan.trust.engine import TrustEngine, round_half_up


logger = get_logger(__name__)

# Activity counters live in user metadata under these keys. Only the
# dedicated record_* operations may write them.
CONTENT_COMPLETED_KEY = "content_completed"
POSITIVE_REVIEWS_KEY = "positive_reviews"
_RESERVED_METADATA_KEYS = frozenset({CONTENT_COMPLETED_KEY, POSITIVE_REVIEWS_KEY})

# Failures the facade converts into ServiceResult(success=False).
# Storage errors of any type reach here as DependencyError via _storage().
_SERVICE_FAILURES = (PramaanError, OSError, ValueError)


@contextmanager
def _storage(what: str) -> Iterator[None]:
    """Surface any error from a repository or the audit log as DependencyError.

    Adapters are pluggable, so their driver errors (sqlite3, network
    clients, plain RuntimeError) are not known in advance.
    """
    try:
        yield
    except PramaanError:
        raise
    except Exception as e:
        raise DependencyError(f"{what}: {e}") from e


@dataclass(frozen=True)
class ServiceResult:
    """Result of a service operation."""
    success: bool
    errors: list[str] = field(default_factory=list)
    data: dict[str, Any] = field(default_factory=dict)


def _failed_recalculation(user_id: Optional[str], error: str) -> ServiceResult:
    return ServiceResult(
        success=False,
        errors=[error],
        data={
            "user_id": user_id,
            "trust_score": 0,
            "trust_level": TrustLevel.NEW.value,
            "breakdown": EMPTY_FACTORS.to_dict(),
            "next_level": None,
            "recommendations": [],
            "persisted": False,
        },
    )


class PramaanService:
    """Trust engine facade.

    Usage:
        resolver = PolicyResolver.from_config_dir(config_dir)
        service = PramaanService(resolver)
        service.register_user("u1", "a@example.com")
        result = service.verify_identity("u1")
        result.data["trust_score"]  # 40
    """

    def __init__(
        self,
        resolver: Optional[PolicyResolver] = None,
        users: Optional[UserRepository] = None,
        jobs: Optional[JobRepository] = None,
        applications: Optional[ApplicationRepository] = None,
        event_log: Optional[EventLog] = None,
        resume_analyzer: Optional[ResumeAnalyzer] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._resolver = resolver or default_resolver()
        self._engine = TrustEngine(self._resolver)
        self._users = users if users is not None else InMemoryUserRepository()
        self._jobs = jobs if jobs is not None else InMemoryJobRepository()
        self._applications = (
            applications if applications is not None else InMemoryApplicationRepository()
        )
        self._event_log = event_log if event_log is not None else EventLog()
        self._resume_analyzer = resume_analyzer
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    @property
    def engine(self) -> TrustEngine:
        return self._engine

    @property
    def event_log(self) -> EventLog:
        return self._event_log

    # ------------------------------------------------------------------
    # Recalculation
    # ------------------------------------------------------------------

    def recalculate_trust_score(
        self,
        user_id: str,
        identity_verified: Optional[bool] = None,
        content_completed: Optional[int] = None,
        positive_reviews: Optional[int] = None,
        account_age: Optional[int] = None,
    ) -> ServiceResult:
        """Recompute a user's score and persist it if it moved.

        Factors come from the stored ``is_verified`` and ``metadata`` plus
        the stored activity counters, with any non-None argument taking
        precedence. The write happens only when the score moves by more
        than the policy epsilon (or the verification flag changes).
        """
        if not user_id:
            return _failed_recalculation(user_id, "User ID is required")
        try:
            return self._recalculate(
                user_id,
                identity_verified=identity_verified,
                content_completed=content_completed,
                positive_reviews=positive_reviews,
                account_age=account_age,
            )
        except _SERVICE_FAILURES as e:
            logger.warning("trust_recalculation_failed", user_id=user_id, error=str(e))
            return _failed_recalculation(user_id, str(e))

    def _recalculate(self, user_id: str, **overrides: Any) -> ServiceResult:
        user = self._load_user(user_id)
        factors = self._engine.factors_for_user(user, **self._counter_defaults(user, overrides))
        score = self._engine.calculate_score(factors)

        delta = abs(score - user.trust_score)
        persisted = False
        if (
            delta > self._resolver.recalculation_epsilon()
            or factors.identity_verified != user.is_verified
        ):
            self._update_user(user_id, {
                "trust_score": score,
                "is_verified": factors.identity_verified,
            })
            self._record(EventKind.TRUST_RECALCULATED, user_id, {
                "previous_score": user.trust_score,
                "trust_score": score,
                "is_verified": factors.identity_verified,
            })
            persisted = True
            logger.info(
                "trust_recalculated",
                user_id=user_id, previous=user.trust_score, score=score,
            )
        else:
            logger.debug("trust_recalculation_skipped", user_id=user_id, score=score)

        next_info = self._engine.get_next_level_info(score)
        return ServiceResult(
            success=True,
            data={
                "user_id": user_id,
                "trust_score": score,
                "trust_level": self._engine.get_trust_level(score).value,
                "breakdown": factors.to_dict(),
                "next_level": None if next_info.at_max_level else next_info.to_dict(),
                "recommendations": self._engine.get_improvement_recommendations(factors),
                "persisted": persisted,
            },
        )

    def _counter_defaults(self, user: User, overrides: dict[str, Any]) -> dict[str, Any]:
        """Fill unspecified counters from the user's stored activity."""
        resolved = dict(overrides)
        if resolved.get("content_completed") is None:
            resolved["content_completed"] = coerce_count(
                user.metadata.get(CONTENT_COMPLETED_KEY)
            )
        if resolved.get("positive_reviews") is None:
            resolved["positive_reviews"] = coerce_count(
                user.metadata.get(POSITIVE_REVIEWS_KEY)
            )
        if resolved.get("account_age") is None:
            resolved["account_age"] = user.account_age_days(self._clock())
        return resolved

    # ------------------------------------------------------------------
    # Trust-affecting mutations
    # ------------------------------------------------------------------

    def register_user(
        self,
        user_id: str,
        email: str,
        role: UserRole = UserRole.USER,
        metadata: Optional[dict[str, Any]] = None,
    ) -> ServiceResult:
        """Create an account and compute its initial score.

        New accounts are never identity-verified.
        """
        try:
            with _storage("User repository unavailable"):
                existing = self._users.find_by_id(user_id)
            if existing is not None:
                return ServiceResult(success=False, errors=[f"User already exists: {user_id}"])
            metadata = dict(metadata or {})
            reserved = _RESERVED_METADATA_KEYS & set(metadata)
            if reserved:
                return ServiceResult(
                    success=False,
                    errors=[f"Metadata keys are managed by the platform: {sorted(reserved)}"],
                )

            now = self._clock()
            user = User(
                user_id=user_id,
                email=email,
                role=UserRole(role),
                metadata=metadata,
                created_utc=now,
                updated_utc=now,
            )
            user.trust_score = self._engine.recalculate_for_user(user, account_age=0)
            errors = user.validate()
            if errors:
                return ServiceResult(success=False, errors=errors)

            with _storage(f"Failed to persist user {user_id}"):
                self._users.save(user)
            self._record(EventKind.USER_REGISTERED, user_id, {
                "role": user.role.value,
                "trust_score": user.trust_score,
            })
        except _SERVICE_FAILURES as e:
            logger.warning("user_registration_failed", user_id=user_id, error=str(e))
            return ServiceResult(success=False, errors=[str(e)])

        logger.info("user_registered", user_id=user_id, role=user.role.value)
        return ServiceResult(success=True, data={
            "user_id": user_id,
            "trust_score": user.trust_score,
            "trust_level": self._engine.get_trust_level(user.trust_score).value,
        })

    def update_profile(
        self,
        user_id: str,
        metadata_updates: dict[str, Any],
    ) -> ServiceResult:
        """Merge profile fields into the user's metadata, then recalculate."""
        reserved = _RESERVED_METADATA_KEYS & set(metadata_updates)
        if reserved:
            return ServiceResult(
                success=False,
                errors=[f"Metadata keys are managed by the platform: {sorted(reserved)}"],
            )

        def mutate(user: User) -> dict[str, Any]:
            self._update_user(user_id, {"metadata": user.merge_metadata(metadata_updates)})
            return {"fields": sorted(metadata_updates)}

        return self._mutate_then_recalculate(user_id, EventKind.PROFILE_UPDATED, mutate)

    def verify_identity(self, user_id: str, verified: bool = True) -> ServiceResult:
        """Record the outcome of identity verification and recalculate."""
        return self._mutate_then_recalculate(
            user_id,
            EventKind.IDENTITY_VERIFIED,
            lambda user: {"verified": verified, "previously_verified": user.is_verified},
            identity_verified=verified,
        )

    def record_content_completion(self, user_id: str, completed_count: int) -> ServiceResult:
        """Store the user's total completed learning modules and recalculate."""
        count = coerce_count(completed_count)

        def mutate(user: User) -> dict[str, Any]:
            self._update_user(user_id, {
                "metadata": user.merge_metadata({CONTENT_COMPLETED_KEY: count}),
            })
            return {"content_completed": count}

        return self._mutate_then_recalculate(user_id, EventKind.CONTENT_COMPLETED, mutate)

    def record_positive_review(self, user_id: str, review_count: int) -> ServiceResult:
        """Store the user's total positive reviews and recalculate."""
        count = coerce_count(review_count)

        def mutate(user: User) -> dict[str, Any]:
            self._update_user(user_id, {
                "metadata": user.merge_metadata({POSITIVE_REVIEWS_KEY: count}),
            })
            return {"positive_reviews": count}

        return self._mutate_then_recalculate(user_id, EventKind.REVIEW_RECEIVED, mutate)

    def _mutate_then_recalculate(
        self,
        user_id: str,
        kind: EventKind,
        mutate: Callable[[User], dict[str, Any]],
        **overrides: Any,
    ) -> ServiceResult:
        try:
            user = self._load_user(user_id)
            payload = mutate(user)
            self._record(kind, user_id, payload)
        except _SERVICE_FAILURES as e:
            logger.warning("trust_mutation_failed", user_id=user_id, kind=kind.value, error=str(e))
            return _failed_recalculation(user_id, str(e))
        return self.recalculate_trust_score(user_id, **overrides)

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    def trust_summary(self, user_id: str) -> ServiceResult:
        """Stored score with level, badge progress and current guidance."""
        try:
            user = self._load_user(user_id)
        except _SERVICE_FAILURES as e:
            return ServiceResult(success=False, errors=[str(e)])

        factors = self._engine.factors_for_user(user, **self._counter_defaults(user, {}))
        progress = self._engine.get_trust_score_progress(user.trust_score)
        return ServiceResult(success=True, data={
            "user_id": user_id,
            "trust_score": user.trust_score,
            "trust_level": progress.current_level.value,
            "next_level": progress.next_level,
            "points_needed": progress.points_needed,
            "progress_percentage": progress.progress_percentage,
            "color": progress.color,
            "recommendations": self._engine.get_improvement_recommendations(factors),
        })

    def check_job_eligibility(self, user_id: str, job_id: str) -> ServiceResult:
        """Advisory eligibility badge for a user viewing a job."""
        try:
            user = self._load_user(user_id)
            job = self._load_job(job_id)
        except _SERVICE_FAILURES as e:
            return ServiceResult(success=False, errors=[str(e)])

        result = validate_job_application(user.trust_score, job.min_trust_score)
        data = result.to_dict()
        data.update({
            "user_id": user_id,
            "job_id": job_id,
            "required_score": job.min_trust_score,
            "trust_score": user.trust_score,
        })
        return ServiceResult(success=True, data=data)

    # ------------------------------------------------------------------
    # Jobs
    # ------------------------------------------------------------------

    def post_job(
        self,
        company_id: str,
        title: str,
        description: str,
        min_trust_score: int = 0,
        skills: Optional[list[str]] = None,
        location: str = "",
        salary_range: str = "",
        metadata: Optional[dict[str, Any]] = None,
        job_id: Optional[str] = None,
    ) -> ServiceResult:
        """Publish a job. Only BUSINESS accounts may post."""
        try:
            company = self._load_user(company_id)
            if not company.can_create_jobs():
                return ServiceResult(
                    success=False, errors=["Only business accounts can post jobs"],
                )
            job = Job(
                job_id=job_id or f"job_{uuid.uuid4().hex[:12]}",
                company_id=company_id,
                title=title,
                description=description,
                min_trust_score=min_trust_score,
                skills=list(skills or []),
                location=location,
                salary_range=salary_range,
                metadata=dict(metadata or {}),
                created_utc=self._clock(),
            )
            errors = job.validate()
            if errors:
                return ServiceResult(success=False, errors=errors)
            with _storage("Job repository unavailable"):
                existing = self._jobs.find_by_id(job.job_id)
            if existing is not None:
                return ServiceResult(success=False, errors=[f"Job already exists: {job.job_id}"])

            with _storage(f"Failed to persist job {job.job_id}"):
                self._jobs.save(job)
            self._record(EventKind.JOB_POSTED, company_id, {
                "job_id": job.job_id,
                "min_trust_score": job.min_trust_score,
            })
        except _SERVICE_FAILURES as e:
            logger.warning("job_post_failed", company_id=company_id, error=str(e))
            return ServiceResult(success=False, errors=[str(e)])

        logger.info("job_posted", job_id=job.job_id, company_id=company_id)
        return ServiceResult(success=True, data={
            "job_id": job.job_id,
            "min_trust_score": job.min_trust_score,
        })

    def apply_to_job(
        self,
        user_id: str,
        job_id: str,
        resume_text: str = "",
    ) -> ServiceResult:
        """Submit an application, gated on the applicant's stored score.

        An ineligible applicant is rejected before anything is written to
        the application store. Only the rejection itself is audited.
        """
        try:
            user = self._load_user(user_id)
            job = self._load_job(job_id)
            if not job.is_active():
                return ServiceResult(
                    success=False, errors=["Job is not accepting applications"],
                )

            eligibility = validate_job_application(user.trust_score, job.min_trust_score)
            if not eligibility.eligible:
                self._record(EventKind.JOB_APPLICATION_REJECTED, user_id, {
                    "job_id": job_id,
                    "trust_score": user.trust_score,
                    "required_score": job.min_trust_score,
                })
                logger.info(
                    "job_application_rejected",
                    user_id=user_id, job_id=job_id,
                    score=user.trust_score, required=job.min_trust_score,
                )
                return ServiceResult(
                    success=False,
                    errors=[
                        "Trust score requirement not met. "
                        f"Required: {job.min_trust_score}, Your score: {user.trust_score}"
                    ],
                    data={
                        "eligible": False,
                        "points_needed": eligibility.points_needed,
                        "required_score": job.min_trust_score,
                        "trust_score": user.trust_score,
                    },
                )

            with _storage("Application repository unavailable"):
                previous = self._applications.find_by_job_and_user(job_id, user_id)
            if previous is not None:
                return ServiceResult(
                    success=False, errors=["You have already applied to this job"],
                )

            application = JobApplication(
                application_id=f"app_{uuid.uuid4().hex}",
                job_id=job_id,
                user_id=user_id,
                match_score=self.match_score(user.trust_score, job, resume_text),
                status=ApplicationStatus.SUBMITTED,
                resume_text=resume_text,
                applied_utc=self._clock(),
            )
            with _storage("Failed to persist application"):
                self._applications.save(application)
            self._record(EventKind.JOB_APPLICATION_SUBMITTED, user_id, {
                "job_id": job_id,
                "application_id": application.application_id,
                "match_score": application.match_score,
            })
        except _SERVICE_FAILURES as e:
            logger.warning("job_application_failed", user_id=user_id, job_id=job_id, error=str(e))
            return ServiceResult(success=False, errors=[str(e)])

        logger.info(
            "job_application_submitted",
            user_id=user_id, job_id=job_id, match_score=application.match_score,
        )
        return ServiceResult(success=True, data={
            "eligible": True,
            "application_id": application.application_id,
            "match_score": application.match_score,
        })

    def match_score(self, trust_score: int, job: Job, resume_text: str) -> int:
        """How well an applicant fits a job, 0-100.

        With a resume and a working analyser: a weighted blend of the
        analyser's overall score and the share of job skills found on the
        resume. Without one, the trust score stands in, capped.
        """
        policy = self._resolver.match_scoring()
        if not resume_text or not resume_text.strip():
            return round_half_up(min(trust_score, policy["no_resume_cap"]))
        if self._resume_analyzer is None:
            return round_half_up(min(trust_score, policy["analysis_failed_cap"]))

        try:
            analysis = self._resume_analyzer.analyze(resume_text)
        except Exception as e:  # analyser is an external collaborator
            logger.warning("resume_analysis_failed", job_id=job.job_id, error=str(e))
            return round_half_up(min(trust_score, policy["analysis_failed_cap"]))

        overlap = _skill_overlap(job.skills, analysis, policy["no_job_skills_match"])
        blended = (
            analysis.overall * policy["analysis_weight"]
            + overlap * policy["skill_weight"]
        )
        return max(0, min(100, round_half_up(blended)))

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _load_user(self, user_id: str) -> User:
        with _storage("User repository unavailable"):
            user = self._users.find_by_id(user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        return user

    def _load_job(self, job_id: str) -> Job:
        with _storage("Job repository unavailable"):
            job = self._jobs.find_by_id(job_id)
        if job is None:
            raise JobNotFoundError(job_id)
        return job

    def _update_user(self, user_id: str, changes: dict[str, Any]) -> User:
        with _storage(f"Failed to persist user {user_id}"):
            updated = self._users.update(user_id, changes)
        if updated is None:
            raise UserNotFoundError(user_id)
        return updated

    def _record(self, kind: EventKind, actor_id: str, payload: dict[str, Any]) -> None:
        event = EventRecord.create(
            event_id=f"evt_{uuid.uuid4().hex}",
            event_kind=kind,
            actor_id=actor_id,
            payload=payload,
            timestamp_utc=self._clock(),
        )
        with _storage("Audit log unavailable"):
            self._event_log.append(event)

    def status(self) -> dict[str, Any]:
        """Operational summary: policy health and audit counts."""
        counts: dict[str, int] = {}
        for event in self._event_log.events():
            counts[event.event_kind.value] = counts.get(event.event_kind.value, 0) + 1
        return {
            "policy_version": self._resolver.as_dict().get("version"),
            "policy_errors": self._resolver.validate(),
            "events": {"total": self._event_log.count, "by_kind": counts},
        }


def _skill_overlap(
    job_skills: list[str],
    analysis: ResumeAnalysis,
    no_job_skills_match: float,
) -> float:
    """Percentage of the job's skills that appear on the resume."""
    wanted = {s.strip().lower() for s in job_skills if s and s.strip()}
    if not wanted:
        return no_job_skills_match
    have = {s.strip().lower() for s in analysis.skills}
    return len(wanted & have) / len(wanted) * 100
