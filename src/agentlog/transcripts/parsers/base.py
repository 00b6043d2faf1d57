"""Base class for provider-specific transcript parsers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from agentlog.models import Todo, Turn, UsageTotals


class TranscriptParser(ABC):
    """Turns the decoded events of a finished session log into summaries.

    Every method receives the full, ordered event list and is pure: the
    same input always yields the same output.
    """

    @property
    @abstractmethod
    def provider(self) -> str:
        """The provider whose logs this parser understands."""

    @abstractmethod
    def parse_events(self, events: list[Any]) -> list[dict[str, Any]]:
        """Return the events that are JSON objects, in order."""

    @abstractmethod
    def parse_todos(self, events: list[Any]) -> list[Todo]:
        """Collect todo/plan items, merged by id."""

    @abstractmethod
    def parse_turns(self, events: list[Any]) -> list[Turn]:
        """Group item events into numbered turns."""

    @abstractmethod
    def parse_usage_totals(self, events: list[Any]) -> UsageTotals:
        """Sum token usage across all completed turns."""
