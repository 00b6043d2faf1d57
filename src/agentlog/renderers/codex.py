"""Console rendering for the Codex ``exec --json`` event stream."""

from __future__ import annotations

import json
from typing import Any

from agentlog.events import (
    Item,
    ItemEvent,
    ItemPhase,
    ItemType,
    ThreadOpenedEvent,
    ThreadRequestEvent,
    TurnCompletedEvent,
    TurnStartedEvent,
    as_int,
    as_text,
    decode_event,
)
from agentlog.models import Provider
from agentlog.renderers.base import EventRenderer, format_lines
from agentlog.sanitize import strip_escape_sequences


def _format_count(value: Any) -> str:
    return f"{as_int(value):,}"


def _raw_text(value: Any) -> str:
    if value is None or isinstance(value, (dict, list)):
        return ""
    return str(value)


def _pretty(payload: dict[str, Any]) -> str:
    return json.dumps(payload, indent=4, ensure_ascii=False, default=str)


class CodexEventRenderer(EventRenderer):
    """Renders Codex events, tracking command executions between phases.

    ``item.started`` for a ``command_execution`` records the command under
    the item id; later phases of the same item recover the command from that
    record when the event omits it, and ``item.completed`` discards it.
    """

    def __init__(self) -> None:
        self._pending_commands: dict[str, str] = {}
        self._session_id: str | None = None

    @property
    def provider(self) -> str:
        return Provider.CODEX.value

    @property
    def session_id(self) -> str | None:
        return self._session_id

    @property
    def pending_commands(self) -> dict[str, str]:
        return dict(self._pending_commands)

    def reset(self) -> None:
        self._pending_commands.clear()
        self._session_id = None

    def render(self, event: dict[str, Any]) -> str | None:
        decoded = decode_event(event)

        if isinstance(decoded, ThreadRequestEvent):
            instructions = as_text(decoded.instructions)
            task = as_text(decoded.task)
            return format_lines(
                [
                    "thread request",
                    f"instructions: {instructions}" if instructions else None,
                    f"task: {task}" if task else None,
                ]
            )

        if isinstance(decoded, ThreadOpenedEvent):
            thread_id = as_text(decoded.thread_id)
            if thread_id:
                self._session_id = thread_id
            return format_lines(
                [
                    "thread resumed" if decoded.resumed else "thread started",
                    f"session id: {self._session_id}" if self._session_id else None,
                ]
            )

        if isinstance(decoded, TurnStartedEvent):
            return None

        if isinstance(decoded, ItemEvent):
            return self._render_item(decoded)

        if isinstance(decoded, TurnCompletedEvent):
            return self._render_usage(decoded.usage or {})

        return format_lines([f"event: {decoded.type}", _pretty(decoded.raw)])

    def _render_item(self, event: ItemEvent) -> str | None:
        item = event.item
        phase = event.phase

        match item.item_type:
            case ItemType.REASONING:
                return self._render_text_item("thinking", item)
            case ItemType.AGENT_MESSAGE:
                return self._render_text_item("codex", item)
            case ItemType.COMMAND_EXECUTION:
                return self._render_command(phase, item)
            case _:
                return format_lines(
                    [
                        f"item ({item.item_type or 'unknown'}) {phase.value}",
                        _pretty(event.item_raw),
                    ]
                )

    @staticmethod
    def _render_text_item(label: str, item: Item) -> str | None:
        text = as_text(item.text)
        if not text:
            return None
        return format_lines([label, text])

    def _render_command(self, phase: ItemPhase, item: Item) -> str | None:
        command = "" if item.command is None else str(item.command)
        item_id = item.item_id
        has_pending = bool(item_id) and item_id in self._pending_commands

        if phase is ItemPhase.STARTED:
            if item_id:
                self._pending_commands[item_id] = command
            return format_lines(["exec", command])

        if not command and has_pending:
            command = self._pending_commands[item_id]

        if phase is ItemPhase.COMPLETED and has_pending:
            del self._pending_commands[item_id]

        output = strip_escape_sequences(_raw_text(item.aggregated_output)).rstrip("\n")

        lines: list[str | None] = []
        if phase is ItemPhase.COMPLETED and not has_pending and command:
            lines.extend(["exec", command])
        lines.append(output)
        if phase is ItemPhase.COMPLETED and item.exit_code is not None:
            lines.append(f"exit code: {item.exit_code}")
        return format_lines(lines)

    @staticmethod
    def _render_usage(usage: dict[str, Any]) -> str | None:
        if not usage:
            return None

        input_tokens = usage.get("input_tokens")
        cached_tokens = usage.get("cached_input_tokens")
        output_tokens = usage.get("output_tokens")

        lines: list[str | None] = ["tokens used"]
        if input_tokens is not None:
            line = f"input: {_format_count(input_tokens)}"
            if cached_tokens is not None:
                line += f" (cached: {_format_count(cached_tokens)})"
            lines.append(line)
        if output_tokens is not None:
            lines.append(f"output: {_format_count(output_tokens)}")
        return format_lines(lines)
