"""Transcript parsers, one per provider."""

from __future__ import annotations

from agentlog.errors import ProviderNotSupportedError
from agentlog.models import Provider
from agentlog.transcripts.parsers.base import TranscriptParser
from agentlog.transcripts.parsers.codex import CodexTranscriptParser


def default_parsers() -> list[TranscriptParser]:
    """Parsers for every built-in provider."""
    return [CodexTranscriptParser()]


def create_transcript_parser(provider: Provider | str) -> TranscriptParser:
    """Create the parser for a provider.

    Raises:
        ProviderNotSupportedError: If the provider is unknown.
    """
    normalized = str(provider).strip().lower()
    for parser in default_parsers():
        if parser.provider == normalized:
            return parser
    raise ProviderNotSupportedError(f"Unsupported provider: {provider}")


__all__ = [
    "CodexTranscriptParser",
    "TranscriptParser",
    "create_transcript_parser",
    "default_parsers",
]
