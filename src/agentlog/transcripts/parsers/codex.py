"""Codex JSONL transcript parser."""

from __future__ import annotations

from typing import Any

from agentlog.events import ITEM_EVENT_TYPES, EventType, as_int, as_text
from agentlog.models import Provider, Todo, TodoStatus, TokenUsage, Turn, TurnAction, UsageTotals
from agentlog.transcripts.parsers.base import TranscriptParser

TODO_ITEM_TYPES = frozenset({"todo", "todo_list", "task", "task_list", "plan"})

_TITLE_FIELDS = ("title", "text", "summary", "task")

_STATUS_SYNONYMS: dict[str, TodoStatus] = {
    "complete": TodoStatus.COMPLETED,
    "completed": TodoStatus.COMPLETED,
    "done": TodoStatus.COMPLETED,
    "in-progress": TodoStatus.IN_PROGRESS,
    "in_progress": TodoStatus.IN_PROGRESS,
    "in progress": TodoStatus.IN_PROGRESS,
    "in processing": TodoStatus.IN_PROGRESS,
    "processing": TodoStatus.IN_PROGRESS,
    "pending": TodoStatus.PENDING,
    "todo": TodoStatus.PENDING,
    "not started": TodoStatus.PENDING,
}


def normalize_todo_id(value: Any) -> str | None:
    """Strings (stripped, non-empty) and integers become ids; nothing else does."""
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        return value.strip() or None
    if isinstance(value, int):
        return str(value)
    return None


def normalize_status(value: Any) -> TodoStatus | None:
    """Map free-text status to a TodoStatus; None when the text is empty."""
    text = as_text(value).lower()
    if not text:
        return None
    return _STATUS_SYNONYMS.get(text, TodoStatus.UNKNOWN)


def _usage_from(payload: Any) -> TokenUsage | None:
    if not isinstance(payload, dict):
        return None
    return TokenUsage(
        input_tokens=as_int(payload.get("input_tokens")),
        cached_input_tokens=as_int(payload.get("cached_input_tokens")),
        output_tokens=as_int(payload.get("output_tokens")),
    )


class CodexTranscriptParser(TranscriptParser):
    """Summarizes Codex session logs into todos, turns and usage totals."""

    @property
    def provider(self) -> str:
        return Provider.CODEX.value

    def parse_events(self, events: list[Any]) -> list[dict[str, Any]]:
        return [event for event in events if isinstance(event, dict)]

    def parse_todos(self, events: list[Any]) -> list[Todo]:
        todos: list[Todo] = []
        by_id: dict[str, Todo] = {}

        for event in self.parse_events(events):
            item = event.get("item")
            if not isinstance(item, dict):
                continue
            if as_text(item.get("type")) not in TODO_ITEM_TYPES:
                continue

            todo = Todo(
                id=normalize_todo_id(item.get("id")),
                title=self._resolve_title(item),
                status=self._resolve_status(as_text(event.get("type")), item),
                raw=item,
            )

            if todo.id is not None and todo.id in by_id:
                by_id[todo.id].merge(todo)
                continue

            todos.append(todo)
            if todo.id is not None:
                by_id[todo.id] = todo

        return todos

    def parse_turns(self, events: list[Any]) -> list[Turn]:
        turns: list[Turn] = []
        active: Turn | None = None

        def open_turn() -> Turn:
            turn = Turn(index=len(turns) + 1)
            turns.append(turn)
            return turn

        for event in self.parse_events(events):
            event_type = as_text(event.get("type"))

            if event_type == EventType.TURN_STARTED:
                active = open_turn()
                continue

            if event_type == EventType.TURN_COMPLETED:
                if active is None:
                    active = open_turn()
                active.usage = _usage_from(event.get("usage"))
                active = None
                continue

            if event_type not in ITEM_EVENT_TYPES:
                continue

            if active is None:
                active = open_turn()

            item = event.get("item")
            item_payload = item if isinstance(item, dict) else {}
            active.actions.append(
                TurnAction(
                    type=event_type,
                    item_type=as_text(item_payload.get("type")),
                    item=item_payload,
                )
            )

        return turns

    def parse_usage_totals(self, events: list[Any]) -> UsageTotals:
        totals = UsageTotals()

        for event in self.parse_events(events):
            if as_text(event.get("type")) != EventType.TURN_COMPLETED:
                continue
            usage = _usage_from(event.get("usage"))
            if usage is None:
                continue
            totals.input_tokens += usage.input_tokens
            totals.cached_input_tokens += usage.cached_input_tokens
            totals.output_tokens += usage.output_tokens

        totals.total_tokens = totals.input_tokens + totals.output_tokens
        return totals

    @staticmethod
    def _resolve_title(item: dict[str, Any]) -> str | None:
        for field in _TITLE_FIELDS:
            candidate = item.get(field)
            if isinstance(candidate, str) and candidate.strip():
                return candidate.strip()
        return None

    @staticmethod
    def _resolve_status(event_type: str, item: dict[str, Any]) -> TodoStatus:
        explicit = normalize_status(item.get("status"))
        if explicit is not None:
            return explicit
        if event_type == EventType.ITEM_COMPLETED:
            return TodoStatus.COMPLETED
        if event_type in (EventType.ITEM_STARTED, EventType.ITEM_UPDATED):
            return TodoStatus.IN_PROGRESS
        return TodoStatus.UNKNOWN
