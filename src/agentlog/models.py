"""Domain models: sessions, todos, turns and token usage."""

from __future__ import annotations

from enum import StrEnum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, PrivateAttr


class Provider(StrEnum):
    """Agent providers with built-in rendering and transcript parsing."""

    CODEX = "codex"


class Session(BaseModel):
    """Identity and log location of one headless run.

    ``placeholder_id`` is generated before the agent emits anything and never
    changes. ``session_id`` is the identifier the agent reports for itself and
    can be assigned only once.
    """

    placeholder_id: str
    provider: str
    log_path: Path
    _session_id: str | None = PrivateAttr(default=None)

    @property
    def session_id(self) -> str | None:
        return self._session_id

    @property
    def best_id(self) -> str:
        """The authoritative id if known, otherwise the placeholder."""
        return self._session_id or self.placeholder_id

    def adopt_session_id(self, session_id: str) -> bool:
        """Record the authoritative id. Returns False if one is already set."""
        session_id = session_id.strip()
        if not session_id or self._session_id is not None:
            return False
        self._session_id = session_id
        return True


class SessionResult(BaseModel):
    """What a finished run reports back to its caller."""

    session_id: str
    log_path: Path | None = None
    exit_code: int | None = None


class TodoStatus(StrEnum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    UNKNOWN = "unknown"

    @property
    def priority(self) -> int:
        return _STATUS_PRIORITY[self]


_STATUS_PRIORITY: dict[TodoStatus, int] = {
    TodoStatus.COMPLETED: 3,
    TodoStatus.IN_PROGRESS: 2,
    TodoStatus.PENDING: 1,
    TodoStatus.UNKNOWN: 0,
}


class Todo(BaseModel):
    """A todo/plan item tracked across item events."""

    id: str | None = None
    title: str | None = None
    status: TodoStatus = TodoStatus.UNKNOWN
    raw: dict[str, Any] = Field(default_factory=dict)

    def merge(self, incoming: Todo) -> None:
        """Fold a later observation of the same todo into this one.

        Status only moves to an equal or higher priority (ties take the
        incoming value), a missing title is filled but never cleared, and
        the raw payload always tracks the latest event.
        """
        if incoming.status.priority >= self.status.priority:
            self.status = incoming.status
        if self.title is None and incoming.title is not None:
            self.title = incoming.title
        self.raw = incoming.raw


class TokenUsage(BaseModel):
    input_tokens: int = 0
    cached_input_tokens: int = 0
    output_tokens: int = 0


class UsageTotals(TokenUsage):
    """Token usage summed across turns. Cached input is not part of the total."""

    total_tokens: int = 0


class TurnAction(BaseModel):
    """One item event recorded inside a turn."""

    type: str
    item_type: str = ""
    item: dict[str, Any] = Field(default_factory=dict)


class Turn(BaseModel):
    index: int
    actions: list[TurnAction] = Field(default_factory=list)
    usage: TokenUsage | None = None
