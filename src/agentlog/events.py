"""Typed views over the agent's JSONL event protocol.

The agent emits one JSON object per line. Each object carries a ``type``
string; the payload is open-ended. ``decode_event`` maps a decoded object to
one of the known event models, falling back to ``UnknownEvent`` so nothing is
ever dropped. Models keep unrecognized fields (``extra="allow"``) and the
original payload in ``raw``.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class EventType(StrEnum):
    """Event types understood by the renderer and analyzer."""

    THREAD_REQUEST = "thread.request"
    THREAD_STARTED = "thread.started"
    THREAD_RESUMED = "thread.resumed"
    TURN_STARTED = "turn.started"
    TURN_COMPLETED = "turn.completed"
    ITEM_STARTED = "item.started"
    ITEM_UPDATED = "item.updated"
    ITEM_COMPLETED = "item.completed"


THREAD_OPENING_TYPES = frozenset({EventType.THREAD_STARTED, EventType.THREAD_RESUMED})
ITEM_EVENT_TYPES = frozenset(
    {EventType.ITEM_STARTED, EventType.ITEM_UPDATED, EventType.ITEM_COMPLETED}
)


class ItemType(StrEnum):
    """Item subtypes with dedicated rendering."""

    REASONING = "reasoning"
    AGENT_MESSAGE = "agent_message"
    COMMAND_EXECUTION = "command_execution"


class ItemPhase(StrEnum):
    STARTED = "started"
    UPDATED = "updated"
    COMPLETED = "completed"


def as_text(value: Any) -> str:
    """Coerce a loosely-typed payload value to stripped text."""
    if value is None or isinstance(value, (dict, list)):
        return ""
    return str(value).strip()


def as_int(value: Any) -> int:
    """Truncate integers, floats and numeric strings to int; anything else is zero."""
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return value
    try:
        if isinstance(value, float):
            return int(value)
        if isinstance(value, str):
            return int(float(value.strip()))
    except (ValueError, OverflowError):
        return 0
    return 0


class _Event(BaseModel):
    model_config = ConfigDict(extra="allow")

    type: str
    raw: dict[str, Any] = Field(default_factory=dict, exclude=True)


class ThreadRequestEvent(_Event):
    """Synthetic summary of the task and instructions a session was given."""

    instructions: Any = None
    task: Any = None


class ThreadOpenedEvent(_Event):
    """``thread.started`` or ``thread.resumed``."""

    thread_id: Any = None
    initial_user_input: Any = None

    @property
    def resumed(self) -> bool:
        return self.type == EventType.THREAD_RESUMED


class TurnStartedEvent(_Event):
    pass


class TurnCompletedEvent(_Event):
    usage: dict[str, Any] | None = None


class Item(BaseModel):
    """An ``item`` payload; only ``type`` and ``id`` are structural."""

    model_config = ConfigDict(extra="allow")

    type: Any = None
    id: Any = None
    text: Any = None
    command: Any = None
    aggregated_output: Any = None
    exit_code: Any = None
    role: Any = None
    content: Any = None

    @property
    def item_type(self) -> str:
        return as_text(self.type)

    @property
    def item_id(self) -> str:
        return as_text(self.id)


class ItemEvent(_Event):
    item: Item = Field(default_factory=Item)
    item_raw: dict[str, Any] = Field(default_factory=dict, exclude=True)

    @property
    def phase(self) -> ItemPhase:
        return ItemPhase(self.type.removeprefix("item."))


class UnknownEvent(_Event):
    """Any event whose type is not recognized; rendered and logged as-is."""


_RESERVED_KEYS = frozenset({"raw", "item_raw"})

CodexEvent = (
    ThreadRequestEvent
    | ThreadOpenedEvent
    | TurnStartedEvent
    | TurnCompletedEvent
    | ItemEvent
    | UnknownEvent
)


def decode_event(payload: dict[str, Any]) -> CodexEvent:
    """Map a decoded JSON object onto its typed event model.

    Payload fields that do not fit the model's shape (for example an ``item``
    that is not an object) never raise: the event degrades to an empty
    ``Item`` or ``UnknownEvent`` with the raw payload preserved.
    """
    event_type = as_text(payload.get("type"))
    data = {key: value for key, value in payload.items() if key not in _RESERVED_KEYS}
    data["type"] = event_type

    if event_type == EventType.THREAD_REQUEST:
        return ThreadRequestEvent(**data, raw=payload)
    if event_type in THREAD_OPENING_TYPES:
        return ThreadOpenedEvent(**data, raw=payload)
    if event_type == EventType.TURN_STARTED:
        return TurnStartedEvent(**data, raw=payload)
    if event_type == EventType.TURN_COMPLETED:
        usage = payload.get("usage")
        data["usage"] = usage if isinstance(usage, dict) else None
        return TurnCompletedEvent(**data, raw=payload)
    if event_type in ITEM_EVENT_TYPES:
        item = payload.get("item")
        item_raw = item if isinstance(item, dict) else {}
        data["item"] = Item.model_validate(item_raw)
        return ItemEvent(**data, raw=payload, item_raw=item_raw)
    return UnknownEvent(**data, raw=payload)
