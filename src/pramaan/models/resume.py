"""Resume analysis result, as returned by an external resume analyser.

The analyser itself (an LLM behind an API) is a collaborator. The engine
only consumes ``overall`` and ``parsed_data.skills``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol


@dataclass(frozen=True)
class ResumeAnalysis:
    overall: int
    breakdown: dict[str, Any] = field(default_factory=dict)
    parsed_data: dict[str, Any] = field(default_factory=dict)

    @property
    def skills(self) -> list[str]:
        return [str(s) for s in self.parsed_data.get("skills") or []]


class ResumeAnalyzer(Protocol):
    """Anything that can turn resume text into a ResumeAnalysis."""

    def analyze(self, resume_text: str) -> ResumeAnalysis:
        ...
