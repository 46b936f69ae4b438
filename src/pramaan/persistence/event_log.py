"""Append-only audit log of trust-affecting actions.

Profile edits, identity verification, content completion, reviews, every
persisted score change and every job-application decision append one
immutable record. Reading the TRUST_RECALCULATED records for a user gives
the full history of their stored score.

A recalculation that does not change the stored score writes nothing.
"""

from __future__ import annotations

import enum
import hashlib
import json
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional


class EventKind(str, enum.Enum):
    """Classification of audit events."""
    USER_REGISTERED = "user_registered"
    PROFILE_UPDATED = "profile_updated"
    IDENTITY_VERIFIED = "identity_verified"
    CONTENT_COMPLETED = "content_completed"
    REVIEW_RECEIVED = "review_received"
    TRUST_RECALCULATED = "trust_recalculated"
    # Marketplace
    JOB_POSTED = "job_posted"
    JOB_APPLICATION_SUBMITTED = "job_application_submitted"
    JOB_APPLICATION_REJECTED = "job_application_rejected"


def _digest(fields: dict[str, Any]) -> str:
    canonical = json.dumps(fields, sort_keys=True, ensure_ascii=False)
    return "sha256:" + hashlib.sha256(canonical.encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class EventRecord:
    """One audit event. ``event_hash`` covers every other field."""
    event_id: str
    event_kind: EventKind
    timestamp_utc: str
    actor_id: str
    payload: dict[str, Any]
    event_hash: str

    @staticmethod
    def create(
        event_id: str,
        event_kind: EventKind,
        actor_id: str,
        payload: dict[str, Any],
        timestamp_utc: Optional[datetime] = None,
    ) -> EventRecord:
        ts = (timestamp_utc or datetime.now(timezone.utc)).strftime("%Y-%m-%dT%H:%M:%SZ")
        unsigned = {
            "event_id": event_id,
            "event_kind": EventKind(event_kind).value,
            "timestamp_utc": ts,
            "actor_id": actor_id,
            "payload": payload,
        }
        return EventRecord(
            event_id=event_id,
            event_kind=EventKind(event_kind),
            timestamp_utc=ts,
            actor_id=actor_id,
            payload=payload,
            event_hash=_digest(unsigned),
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EventRecord:
        return cls(
            event_id=data["event_id"],
            event_kind=EventKind(data["event_kind"]),
            timestamp_utc=data["timestamp_utc"],
            actor_id=data["actor_id"],
            payload=data["payload"],
            event_hash=data["event_hash"],
        )

    def expected_hash(self) -> str:
        body = self.to_dict()
        del body["event_hash"]
        return _digest(body)

    def verify(self) -> bool:
        return self.event_hash == self.expected_hash()

    def to_dict(self) -> dict[str, Any]:
        return {
            "event_id": self.event_id,
            "event_kind": self.event_kind.value,
            "timestamp_utc": self.timestamp_utc,
            "actor_id": self.actor_id,
            "payload": self.payload,
            "event_hash": self.event_hash,
        }


class EventLog:
    """Append-only event log, optionally backed by a JSONL file.

    The file is written before memory is updated, so an append that fails
    on disk leaves the in-memory log unchanged. Loading fails closed on a
    tampered record or a replayed event id.
    """

    def __init__(self, storage_path: Optional[Path] = None) -> None:
        self._storage_path = Path(storage_path) if storage_path else None
        self._events: list[EventRecord] = []
        self._ids: set[str] = set()
        if self._storage_path is not None and self._storage_path.exists():
            self._load()

    def append(self, event: EventRecord) -> None:
        """Append an event. Raises ValueError on a duplicate event id."""
        if event.event_id in self._ids:
            raise ValueError(f"Duplicate event ID: {event.event_id}")
        if self._storage_path is not None:
            with self._storage_path.open("a", encoding="utf-8") as f:
                f.write(json.dumps(event.to_dict(), sort_keys=True, ensure_ascii=False) + "\n")
        self._events.append(event)
        self._ids.add(event.event_id)

    def events(
        self,
        kind: Optional[EventKind] = None,
        actor_id: Optional[str] = None,
    ) -> list[EventRecord]:
        return [
            e for e in self._events
            if (kind is None or e.event_kind == kind)
            and (actor_id is None or e.actor_id == actor_id)
        ]

    def score_history(self, user_id: str) -> list[tuple[str, int]]:
        """(timestamp, stored score) for every persisted recalculation."""
        return [
            (e.timestamp_utc, int(e.payload["trust_score"]))
            for e in self.events(kind=EventKind.TRUST_RECALCULATED, actor_id=user_id)
        ]

    @property
    def count(self) -> int:
        return len(self._events)

    @property
    def last_event(self) -> Optional[EventRecord]:
        return self._events[-1] if self._events else None

    def _load(self) -> None:
        with self._storage_path.open("r", encoding="utf-8") as f:
            for line_num, line in enumerate(f, 1):
                if not line.strip():
                    continue
                event = EventRecord.from_dict(json.loads(line))
                if event.event_id in self._ids:
                    raise ValueError(
                        f"Duplicate event ID on recovery (line {line_num}): {event.event_id}"
                    )
                if not event.verify():
                    raise ValueError(
                        f"Integrity check failed (line {line_num}): event {event.event_id} "
                        f"stored hash {event.event_hash} != computed {event.expected_hash()}"
                    )
                self._events.append(event)
                self._ids.add(event.event_id)
