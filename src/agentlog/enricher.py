"""Bookkeeping enrichment applied to events before they are logged.

The agent's own stream never states what it was asked to do. The enricher
fills that gap: it synthesizes a ``thread.request`` event ahead of the first
logged line, remembers the task text (from the caller, a template, or the
stream itself), and copies it into the ``thread.started`` /
``thread.resumed`` event as ``initial_user_input``.
"""

from __future__ import annotations

import logging
from typing import Any

from agentlog.events import THREAD_OPENING_TYPES, EventType, as_text

logger = logging.getLogger(__name__)

TASK_PLACEHOLDER = "{TASK}"
INSTRUCTIONS_PLACEHOLDER = "{INSTRUCTIONS}"
PROMPT_SEPARATOR = "\n"

_USER_TEXT_PART_TYPES = frozenset({"", "text", "input_text"})


def render_template(template: str | None, placeholder: str, value: str | None) -> str | None:
    """Substitute ``value`` into ``template``.

    A template without the placeholder is used verbatim and the value is
    dropped. A template whose placeholder has no value renders to nothing.
    Without a template the value is used as-is.
    """
    template = (template or "").strip()
    value = (value or "").strip()
    if not template:
        return value or None
    if placeholder not in template:
        return template
    if not value:
        return None
    return template.replace(placeholder, value).strip() or None


def combine_prompt(instructions: str | None, task: str | None) -> str | None:
    """Join rendered instructions and task into the prompt sent to the agent."""
    parts = [part for part in (instructions, task) if part]
    return PROMPT_SEPARATOR.join(parts) if parts else None


def extract_item_text(item: dict[str, Any]) -> str | None:
    """Pull user-visible text out of an item payload.

    Prefers a non-empty ``text`` field; otherwise joins the text of every
    ``content`` part typed ``text``/``input_text`` (or untyped).
    """
    text = as_text(item.get("text"))
    if text:
        return text

    content = item.get("content")
    if not isinstance(content, list):
        return None

    parts: list[str] = []
    for part in content:
        if not isinstance(part, dict):
            continue
        payload = as_text(part.get("text"))
        if payload and as_text(part.get("type")) in _USER_TEXT_PART_TYPES:
            parts.append(payload)
    return "\n".join(parts) if parts else None


class EventEnricher:
    """Per-session enrichment state.

    Args:
        task: Caller-supplied task text.
        instructions: Caller-supplied system instructions.
        task_template: Template containing ``{TASK}``.
        instructions_template: Template containing ``{INSTRUCTIONS}``.
        metadata: Extra fields merged into the synthetic request event.
    """

    def __init__(
        self,
        *,
        task: str | None = None,
        instructions: str | None = None,
        task_template: str | None = None,
        instructions_template: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        self.task_template = task_template or None
        self.instructions_template = instructions_template or None
        self.metadata = dict(metadata or {})
        self.task = render_template(task_template, TASK_PLACEHOLDER, task)
        self.instructions = render_template(
            instructions_template, INSTRUCTIONS_PLACEHOLDER, instructions
        )
        self.request_emitted = False
        self.input_injected = False

    @property
    def prompt(self) -> str | None:
        """The combined message to hand to the agent, if any."""
        return combine_prompt(self.instructions, self.task)

    def request_event(self) -> dict[str, Any] | None:
        """Build the synthetic ``thread.request`` event, at most once.

        Returns None when the request was already emitted (or seen on the
        stream) or when there is neither task nor instructions to report.
        """
        if self.request_emitted:
            return None
        if self.instructions is None and self.task is None:
            return None

        event: dict[str, Any] = {
            "type": EventType.THREAD_REQUEST.value,
            "instructions": self.instructions,
            "task": self.task,
            "instructions_template": self.instructions_template,
            "task_template": self.task_template,
        }
        for key, value in self.metadata.items():
            event.setdefault(key, value)

        self.request_emitted = True
        return event

    def enrich(self, event: dict[str, Any]) -> dict[str, Any]:
        """Capture what the event reveals and return the event to log.

        The input is never mutated. When nothing changes the same object is
        returned, so callers can use identity to decide whether to re-encode.
        """
        self._capture(event)
        return self._inject_initial_input(event)

    def _capture(self, event: dict[str, Any]) -> None:
        event_type = as_text(event.get("type"))

        if event_type == EventType.THREAD_REQUEST:
            instructions = as_text(event.get("instructions"))
            if instructions:
                self.instructions = instructions
            task = as_text(event.get("task"))
            if task:
                self.task = task
            self.request_emitted = True
            return

        if self.task:
            return

        if event_type in THREAD_OPENING_TYPES:
            thread_input = as_text(event.get("initial_user_input"))
            if thread_input:
                self.task = thread_input
            return

        item = event.get("item")
        if not isinstance(item, dict):
            return

        role = as_text(item.get("role"))
        item_type = as_text(item.get("type"))
        if role != "user" and "user" not in item_type:
            return

        text = extract_item_text(item)
        if text:
            logger.debug("Captured task text from %s item", item_type or role)
            self.task = text

    def _inject_initial_input(self, event: dict[str, Any]) -> dict[str, Any]:
        if as_text(event.get("type")) not in THREAD_OPENING_TYPES:
            return event

        if event.get("initial_user_input") not in (None, ""):
            self.input_injected = True
            return event

        if not self.task:
            return event

        self.input_injected = True
        return {**event, "initial_user_input": self.task}
