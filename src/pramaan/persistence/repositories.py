"""Repository ports and their in-memory adapters.

The trust engine never talks to storage directly. Use cases depend on the
narrow ports below (``find_by_id``, ``save``, ``update``); any store that
implements them can be plugged in. The in-memory adapters optionally
mirror every write into a StateStore for durability.

Reads return copies: callers cannot mutate stored state except through
``save`` / ``update``. Writes reach the StateStore before memory, so a
failed flush leaves the adapter exactly as it was.
"""

from __future__ import annotations

import copy
from datetime import datetime, timezone
from typing import Any, Optional, Protocol

from pramaan.models.job import Job, JobApplication
from pramaan.models.user import User, UserRole
from pramaan.persistence.state_store import StateStore


class UserRepository(Protocol):
    def find_by_id(self, user_id: str) -> Optional[User]: ...
    def save(self, user: User) -> User: ...
    def update(self, user_id: str, changes: dict[str, Any]) -> Optional[User]: ...


class JobRepository(Protocol):
    def find_by_id(self, job_id: str) -> Optional[Job]: ...
    def save(self, job: Job) -> Job: ...
    def update(self, job_id: str, changes: dict[str, Any]) -> Optional[Job]: ...


class ApplicationRepository(Protocol):
    def find_by_id(self, application_id: str) -> Optional[JobApplication]: ...
    def find_by_job_and_user(self, job_id: str, user_id: str) -> Optional[JobApplication]: ...
    def save(self, application: JobApplication) -> JobApplication: ...


# Fields a user update may touch. Anything else is rejected.
_USER_UPDATABLE = frozenset({"email", "role", "trust_score", "is_verified", "metadata"})
_JOB_UPDATABLE = frozenset({
    "title", "description", "min_trust_score", "skills",
    "location", "salary_range", "status", "metadata",
})


class InMemoryUserRepository:
    """Dict-backed UserRepository, optionally mirrored to a StateStore."""

    def __init__(self, store: Optional[StateStore] = None) -> None:
        self._store = store
        self._users: dict[str, User] = {}
        if store is not None:
            for uid, data in store.load_section("users").items():
                self._users[uid] = User.from_dict(data)

    def find_by_id(self, user_id: str) -> Optional[User]:
        user = self._users.get(user_id)
        return copy.deepcopy(user) if user is not None else None

    def save(self, user: User) -> User:
        self._commit(user.user_id, copy.deepcopy(user))
        return copy.deepcopy(user)

    def update(self, user_id: str, changes: dict[str, Any]) -> Optional[User]:
        """Apply a partial update. Returns the updated user, or None if absent.

        Raises ValueError for fields outside the updatable set.
        """
        user = self._users.get(user_id)
        if user is None:
            return None
        unknown = set(changes) - _USER_UPDATABLE
        if unknown:
            raise ValueError(f"Cannot update user fields: {sorted(unknown)}")

        updated = copy.deepcopy(user)
        for key, value in changes.items():
            if key == "role":
                value = UserRole(value)
            setattr(updated, key, copy.deepcopy(value))
        updated.updated_utc = datetime.now(timezone.utc)

        self._commit(user_id, updated)
        return copy.deepcopy(updated)

    def _commit(self, user_id: str, user: User) -> None:
        staged = dict(self._users)
        staged[user_id] = user
        if self._store is not None:
            self._store.save_section(
                "users", {uid: u.to_dict() for uid, u in staged.items()},
            )
        self._users = staged


class InMemoryJobRepository:
    """Dict-backed JobRepository, optionally mirrored to a StateStore."""

    def __init__(self, store: Optional[StateStore] = None) -> None:
        self._store = store
        self._jobs: dict[str, Job] = {}
        if store is not None:
            for jid, data in store.load_section("jobs").items():
                self._jobs[jid] = Job.from_dict(data)

    def find_by_id(self, job_id: str) -> Optional[Job]:
        job = self._jobs.get(job_id)
        return copy.deepcopy(job) if job is not None else None

    def save(self, job: Job) -> Job:
        self._commit(job.job_id, copy.deepcopy(job))
        return copy.deepcopy(job)

    def update(self, job_id: str, changes: dict[str, Any]) -> Optional[Job]:
        job = self._jobs.get(job_id)
        if job is None:
            return None
        unknown = set(changes) - _JOB_UPDATABLE
        if unknown:
            raise ValueError(f"Cannot update job fields: {sorted(unknown)}")
        updated = copy.deepcopy(job)
        for key, value in changes.items():
            setattr(updated, key, copy.deepcopy(value))
        self._commit(job_id, updated)
        return copy.deepcopy(updated)

    def _commit(self, job_id: str, job: Job) -> None:
        staged = dict(self._jobs)
        staged[job_id] = job
        if self._store is not None:
            self._store.save_section(
                "jobs", {jid: j.to_dict() for jid, j in staged.items()},
            )
        self._jobs = staged


class InMemoryApplicationRepository:
    """Dict-backed ApplicationRepository, optionally mirrored to a StateStore."""

    def __init__(self, store: Optional[StateStore] = None) -> None:
        self._store = store
        self._applications: dict[str, JobApplication] = {}
        if store is not None:
            for aid, data in store.load_section("applications").items():
                self._applications[aid] = JobApplication.from_dict(data)

    def find_by_id(self, application_id: str) -> Optional[JobApplication]:
        app = self._applications.get(application_id)
        return copy.deepcopy(app) if app is not None else None

    def find_by_job_and_user(self, job_id: str, user_id: str) -> Optional[JobApplication]:
        for app in self._applications.values():
            if app.job_id == job_id and app.user_id == user_id:
                return copy.deepcopy(app)
        return None

    def save(self, application: JobApplication) -> JobApplication:
        staged = dict(self._applications)
        staged[application.application_id] = copy.deepcopy(application)
        if self._store is not None:
            self._store.save_section(
                "applications", {aid: a.to_dict() for aid, a in staged.items()},
            )
        self._applications = staged
        return copy.deepcopy(application)
