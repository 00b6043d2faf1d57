"""Tests for CodexTranscriptParser: todos, turns and usage totals."""

import pytest

from agentlog.errors import ProviderNotSupportedError
from agentlog.events import as_int
from agentlog.models import TodoStatus
from agentlog.transcripts import CodexTranscriptParser, create_transcript_parser
from agentlog.transcripts.parsers.codex import normalize_status, normalize_todo_id


@pytest.fixture
def parser() -> CodexTranscriptParser:
    return CodexTranscriptParser()


class TestNormalizers:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [("abc", "abc"), ("  x1 ", "x1"), (7, "7"), ("", None), (True, None), (1.5, None), (None, None)],
    )
    def test_todo_id(self, value, expected):
        assert normalize_todo_id(value) == expected

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("done", TodoStatus.COMPLETED),
            ("Complete", TodoStatus.COMPLETED),
            ("in-progress", TodoStatus.IN_PROGRESS),
            ("In Processing", TodoStatus.IN_PROGRESS),
            ("not started", TodoStatus.PENDING),
            ("todo", TodoStatus.PENDING),
            ("blocked", TodoStatus.UNKNOWN),
            ("", None),
            (None, None),
        ],
    )
    def test_status(self, value, expected):
        assert normalize_status(value) == expected

    @pytest.mark.parametrize(
        ("value", "expected"),
        [(12, 12), ("15", 15), ("7.0", 7), ("12.5", 12), (5.9, 5), ("lots", 0), (None, 0), (True, 0), ([1], 0)],
    )
    def test_as_int(self, value, expected):
        assert as_int(value) == expected


class TestParseEvents:
    def test_keeps_objects_in_order(self, parser):
        events = [{"type": "a"}, "text", ["list"], {"type": "b"}]
        assert parser.parse_events(events) == [{"type": "a"}, {"type": "b"}]


class TestParseTodos:
    def test_pending_then_completed(self, parser):
        events = [
            {"type": "item.started", "item": {"type": "todo", "id": "1", "title": "Write tests", "status": "pending"}},
            {"type": "item.completed", "item": {"type": "todo", "id": "1", "title": ""}},
        ]
        todos = parser.parse_todos(events)
        assert len(todos) == 1
        assert todos[0].id == "1"
        assert todos[0].status == TodoStatus.COMPLETED
        assert todos[0].title == "Write tests"
        assert todos[0].raw == {"type": "todo", "id": "1", "title": ""}

    def test_status_never_regresses(self, parser):
        events = [
            {"type": "item.completed", "item": {"type": "task", "id": 3, "text": "Ship"}},
            {"type": "item.updated", "item": {"type": "task", "id": "3", "status": "pending"}},
        ]
        todos = parser.parse_todos(events)
        assert len(todos) == 1
        assert todos[0].status == TodoStatus.COMPLETED

    def test_missing_title_is_filled_later(self, parser):
        events = [
            {"type": "item.started", "item": {"type": "plan", "id": "p"}},
            {"type": "item.updated", "item": {"type": "plan", "id": "p", "summary": "Refactor"}},
        ]
        todos = parser.parse_todos(events)
        assert todos[0].title == "Refactor"
        assert todos[0].status == TodoStatus.IN_PROGRESS

    def test_status_from_event_type(self, parser):
        events = [
            {"type": "item.started", "item": {"type": "todo", "id": "a"}},
            {"type": "item.completed", "item": {"type": "todo", "id": "b"}},
            {"type": "item.other", "item": {"type": "todo", "id": "c"}},
        ]
        statuses = [todo.status for todo in parser.parse_todos(events)]
        assert statuses == [TodoStatus.IN_PROGRESS, TodoStatus.COMPLETED, TodoStatus.UNKNOWN]

    def test_items_without_id_are_not_merged(self, parser):
        events = [
            {"type": "item.started", "item": {"type": "todo_list", "title": "One"}},
            {"type": "item.started", "item": {"type": "todo_list", "title": "Two"}},
        ]
        assert [todo.title for todo in parser.parse_todos(events)] == ["One", "Two"]

    def test_ignores_other_items(self, parser):
        events = [
            {"type": "item.completed", "item": {"type": "agent_message", "text": "hi"}},
            {"type": "item.completed", "item": "not an object"},
            {"type": "turn.completed"},
        ]
        assert parser.parse_todos(events) == []


class TestParseTurns:
    def test_implicit_turn(self, parser):
        events = [
            {"type": "thread.started", "thread_id": "t1"},
            {"type": "item.started", "item": {"type": "reasoning", "id": "r1"}},
            {"type": "item.completed", "item": {"type": "agent_message", "id": "m1", "text": "Done"}},
            {"type": "turn.completed", "usage": {"input_tokens": 3, "output_tokens": 4}},
        ]
        turns = parser.parse_turns(events)
        assert len(turns) == 1
        assert turns[0].index == 1
        assert [action.item_type for action in turns[0].actions] == ["reasoning", "agent_message"]
        assert [action.type for action in turns[0].actions] == ["item.started", "item.completed"]
        assert turns[0].usage.input_tokens == 3
        assert turns[0].usage.output_tokens == 4

    def test_explicit_turns_are_numbered(self, parser):
        events = [
            {"type": "turn.started"},
            {"type": "item.completed", "item": {"type": "agent_message"}},
            {"type": "turn.completed", "usage": {"input_tokens": 1}},
            {"type": "turn.started"},
            {"type": "turn.completed"},
            {"type": "item.completed", "item": {"type": "agent_message"}},
        ]
        turns = parser.parse_turns(events)
        assert [turn.index for turn in turns] == [1, 2, 3]
        assert len(turns[0].actions) == 1
        assert turns[1].actions == []
        assert turns[1].usage is None
        assert turns[2].usage is None

    def test_completed_without_start_opens_turn(self, parser):
        turns = parser.parse_turns([{"type": "turn.completed", "usage": {"output_tokens": 9}}])
        assert len(turns) == 1
        assert turns[0].usage.output_tokens == 9

    def test_no_events(self, parser):
        assert parser.parse_turns([]) == []


class TestParseUsageTotals:
    def test_sums_turns(self, parser):
        events = [
            {"type": "turn.completed", "usage": {"input_tokens": 12, "cached_input_tokens": 2, "output_tokens": 4}},
            {"type": "item.completed", "item": {"type": "agent_message"}},
            {"type": "turn.completed", "usage": {"input_tokens": 15, "cached_input_tokens": 0, "output_tokens": 7}},
        ]
        totals = parser.parse_usage_totals(events)
        assert totals.input_tokens == 27
        assert totals.cached_input_tokens == 2
        assert totals.output_tokens == 11
        assert totals.total_tokens == 38

    def test_tolerates_loose_values(self, parser):
        events = [
            {"type": "turn.completed", "usage": {"input_tokens": "10", "output_tokens": "n/a"}},
            {"type": "turn.completed", "usage": "broken"},
            {"type": "turn.completed"},
        ]
        totals = parser.parse_usage_totals(events)
        assert totals.input_tokens == 10
        assert totals.output_tokens == 0
        assert totals.total_tokens == 10

    def test_empty(self, parser):
        assert parser.parse_usage_totals([]).total_tokens == 0


class TestCreateTranscriptParser:
    def test_codex(self):
        assert isinstance(create_transcript_parser("Codex"), CodexTranscriptParser)

    def test_unknown(self):
        with pytest.raises(ProviderNotSupportedError):
            create_transcript_parser("claude")
