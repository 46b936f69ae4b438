"""Exception taxonomy for the trust score engine.

Pure scoring functions coerce their inputs and never raise. Only the
TrustScore value object validates strictly. Service-layer operations catch
the lookup and dependency errors below and convert them into a
``ServiceResult(success=False)``.
"""

from __future__ import annotations


class PramaanError(Exception):
    """Base class for all engine errors."""


class InvalidScoreError(PramaanError, ValueError):
    """A score outside [0, 100], or a non-numeric / non-finite score."""


class PolicyError(PramaanError):
    """The scoring policy is missing, malformed, or violates an invariant."""


class UserNotFoundError(PramaanError):
    """The referenced user does not exist in the user repository."""

    def __init__(self, user_id: str) -> None:
        super().__init__(f"User not found: {user_id}")
        self.user_id = user_id


class JobNotFoundError(PramaanError):
    """The referenced job does not exist in the job repository."""

    def __init__(self, job_id: str) -> None:
        super().__init__(f"Job not found: {job_id}")
        self.job_id = job_id


class DependencyError(PramaanError):
    """A collaborator (repository, resume analyser) failed."""
