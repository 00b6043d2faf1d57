"""Base class for provider-specific event renderers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


def format_lines(lines: list[str | None]) -> str | None:
    """Join non-empty lines into a newline-terminated block, or None."""
    kept = [line for line in lines if line]
    if not kept:
        return None
    return "\n".join(kept) + "\n"


class EventRenderer(ABC):
    """Turns decoded events into human-readable text blocks.

    Renderers are stateful: one instance serves exactly one session.
    """

    @property
    @abstractmethod
    def provider(self) -> str:
        """The provider whose event protocol this renderer understands."""

    @property
    @abstractmethod
    def session_id(self) -> str | None:
        """The session id announced by the agent, once seen."""

    @abstractmethod
    def reset(self) -> None:
        """Forget all per-session state."""

    @abstractmethod
    def render(self, event: dict[str, Any]) -> str | None:
        """Render one event.

        Returns:
            A newline-terminated block, or None when the event produces no
            visible output.
        """
