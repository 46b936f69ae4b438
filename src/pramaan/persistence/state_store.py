"""JSON state store — durable snapshot of users, jobs and applications.

The file holds one JSON object with a section per record type, each a map
from record id to the record's ``to_dict()`` form. Writes replace the file
atomically (write to a sibling temp file, then rename) so a crash never
leaves a half-written snapshot behind.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any


SECTIONS = ("users", "jobs", "applications")


class StateStore:
    """Section-oriented JSON snapshot on disk."""

    def __init__(self, storage_path: Path) -> None:
        self._storage_path = Path(storage_path)

    @property
    def storage_path(self) -> Path:
        return self._storage_path

    def load_section(self, section: str) -> dict[str, dict[str, Any]]:
        """Return the records of one section (empty if the file is absent)."""
        if section not in SECTIONS:
            raise ValueError(f"Unknown state section: {section}")
        return dict(self._read().get(section, {}))

    def save_section(self, section: str, records: dict[str, dict[str, Any]]) -> None:
        """Replace one section, leaving the others untouched.

        Raises OSError if the snapshot cannot be written.
        """
        if section not in SECTIONS:
            raise ValueError(f"Unknown state section: {section}")
        state = self._read()
        state[section] = records
        self._write(state)

    def _read(self) -> dict[str, Any]:
        if not self._storage_path.exists():
            return {}
        with self._storage_path.open("r", encoding="utf-8") as f:
            return json.load(f)

    def _write(self, state: dict[str, Any]) -> None:
        self._storage_path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._storage_path.with_suffix(self._storage_path.suffix + ".tmp")
        with tmp.open("w", encoding="utf-8") as f:
            json.dump(state, f, indent=2, sort_keys=True, ensure_ascii=False)
        os.replace(tmp, self._storage_path)
