"""Persistence — repository ports, in-memory adapters, state store, audit log."""

from pramaan.persistence.event_log import EventKind, EventLog, EventRecord
from pramaan.persistence.repositories import (
    ApplicationRepository,
    InMemoryApplicationRepository,
    InMemoryJobRepository,
    InMemoryUserRepository,
    JobRepository,
    UserRepository,
)
from pramaan.persistence.state_store import StateStore

__all__ = [
    "EventKind",
    "EventLog",
    "EventRecord",
    "ApplicationRepository",
    "InMemoryApplicationRepository",
    "InMemoryJobRepository",
    "InMemoryUserRepository",
    "JobRepository",
    "UserRepository",
    "StateStore",
]
