"""Loads finished session logs and exposes normalized insights."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from agentlog.errors import (
    InvalidTranscriptReferenceError,
    ProviderNotSupportedError,
    TranscriptNotFoundError,
)
from agentlog.models import Todo, Turn, UsageTotals
from agentlog.session_log import is_safe_segment, session_log_path
from agentlog.transcripts.parsers import TranscriptParser, default_parsers

logger = logging.getLogger(__name__)


def _validate_segment(value: str, label: str) -> str:
    trimmed = value.strip()
    if not trimmed:
        raise InvalidTranscriptReferenceError(f"{label} is required for transcript parsing.")
    if not is_safe_segment(trimmed):
        raise InvalidTranscriptReferenceError(f"Invalid {label.lower()} supplied for transcript parsing.")
    return trimmed


class SessionTranscriptService:
    """Reads ``<sessions_dir>/<provider>/<session_id>.jsonl`` and summarizes it.

    Args:
        sessions_dir: Root directory holding one sub-directory per provider.
        parsers: Parsers to register; defaults to every built-in provider.
    """

    def __init__(
        self,
        sessions_dir: Path,
        parsers: list[TranscriptParser] | None = None,
    ) -> None:
        self._sessions_dir = Path(sessions_dir)
        self._parsers: dict[str, TranscriptParser] = {}
        for parser in parsers if parsers is not None else default_parsers():
            self._parsers[self._normalize_provider(parser.provider)] = parser

    @property
    def providers(self) -> list[str]:
        return sorted(self._parsers)

    def log_path(self, provider: str, session_id: str) -> Path:
        return session_log_path(
            self._sessions_dir,
            self._normalize_provider(provider),
            _validate_segment(session_id, "Session ID"),
        )

    def full_transcript(self, provider: str, session_id: str) -> list[dict[str, Any]]:
        parser, events = self._load(provider, session_id)
        return parser.parse_events(events)

    def todo_list(self, provider: str, session_id: str) -> list[Todo]:
        parser, events = self._load(provider, session_id)
        return parser.parse_todos(events)

    def turns(self, provider: str, session_id: str) -> list[Turn]:
        parser, events = self._load(provider, session_id)
        return parser.parse_turns(events)

    def usage_totals(self, provider: str, session_id: str) -> UsageTotals:
        parser, events = self._load(provider, session_id)
        return parser.parse_usage_totals(events)

    def _load(self, provider: str, session_id: str) -> tuple[TranscriptParser, list[dict[str, Any]]]:
        normalized = self._normalize_provider(provider)
        parser = self._parsers.get(normalized)
        if parser is None:
            raise ProviderNotSupportedError(f"Unsupported provider: {provider}")
        return parser, self._read_events(self.log_path(normalized, session_id))

    @staticmethod
    def _read_events(path: Path) -> list[dict[str, Any]]:
        if not path.is_file():
            raise TranscriptNotFoundError(f"Session log not found: {path}")

        events: list[dict[str, Any]] = []
        with path.open("r", encoding="utf-8", errors="replace") as f:
            for line_num, line in enumerate(f, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    decoded = json.loads(line)
                except json.JSONDecodeError:
                    logger.debug("Skipping non-JSON line %d in %s", line_num, path)
                    continue
                if isinstance(decoded, dict):
                    events.append(decoded)
        return events

    @staticmethod
    def _normalize_provider(provider: str) -> str:
        return _validate_segment(provider, "Provider").lower()
