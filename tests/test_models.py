"""Tests for agentlog.models and agentlog.events."""

from pathlib import Path

from agentlog.events import (
    ItemEvent,
    ItemPhase,
    ThreadOpenedEvent,
    ThreadRequestEvent,
    TurnCompletedEvent,
    UnknownEvent,
    as_text,
    decode_event,
)
from agentlog.models import Session, Todo, TodoStatus


class TestSession:
    def make(self) -> Session:
        return Session(placeholder_id="p-1", provider="codex", log_path=Path("/tmp/codex/p-1.jsonl"))

    def test_best_id_falls_back_to_placeholder(self):
        assert self.make().best_id == "p-1"

    def test_session_id_is_write_once(self):
        session = self.make()
        assert session.adopt_session_id("t1") is True
        assert session.adopt_session_id("t2") is False
        assert session.session_id == "t1"
        assert session.best_id == "t1"

    def test_blank_id_is_ignored(self):
        session = self.make()
        assert session.adopt_session_id("  ") is False
        assert session.session_id is None


class TestTodoMerge:
    def test_higher_priority_wins(self):
        todo = Todo(id="1", status=TodoStatus.PENDING)
        todo.merge(Todo(id="1", status=TodoStatus.COMPLETED))
        assert todo.status == TodoStatus.COMPLETED

    def test_lower_priority_is_ignored(self):
        todo = Todo(id="1", status=TodoStatus.IN_PROGRESS)
        todo.merge(Todo(id="1", status=TodoStatus.UNKNOWN))
        assert todo.status == TodoStatus.IN_PROGRESS

    def test_title_kept_and_raw_replaced(self):
        todo = Todo(id="1", title="Write docs", raw={"v": 1})
        todo.merge(Todo(id="1", title=None, raw={"v": 2}))
        assert todo.title == "Write docs"
        assert todo.raw == {"v": 2}


class TestAsText:
    def test_values(self):
        assert as_text("  hi ") == "hi"
        assert as_text(42) == "42"
        assert as_text(None) == ""
        assert as_text({"a": 1}) == ""
        assert as_text([1]) == ""


class TestDecodeEvent:
    def test_thread_request(self):
        event = decode_event({"type": "thread.request", "task": "Fix", "ticket": "A-1"})
        assert isinstance(event, ThreadRequestEvent)
        assert event.task == "Fix"
        assert event.model_extra == {"ticket": "A-1"}

    def test_thread_resumed(self):
        event = decode_event({"type": "thread.resumed", "thread_id": "t1"})
        assert isinstance(event, ThreadOpenedEvent)
        assert event.resumed is True

    def test_item_event(self):
        payload = {"type": "item.updated", "item": {"type": "command_execution", "id": 5, "command": "ls"}}
        event = decode_event(payload)
        assert isinstance(event, ItemEvent)
        assert event.phase is ItemPhase.UPDATED
        assert event.item.item_id == "5"
        assert event.item_raw == payload["item"]
        assert event.raw == payload

    def test_item_that_is_not_an_object(self):
        event = decode_event({"type": "item.completed", "item": "oops"})
        assert isinstance(event, ItemEvent)
        assert event.item.item_type == ""
        assert event.item_raw == {}

    def test_usage_that_is_not_an_object(self):
        event = decode_event({"type": "turn.completed", "usage": 12})
        assert isinstance(event, TurnCompletedEvent)
        assert event.usage is None

    def test_unknown(self):
        event = decode_event({"type": "error", "message": "boom", "raw": "kept"})
        assert isinstance(event, UnknownEvent)
        assert event.raw == {"type": "error", "message": "boom", "raw": "kept"}

    def test_missing_type(self):
        event = decode_event({"message": "no type"})
        assert isinstance(event, UnknownEvent)
        assert event.type == ""
