"""Offline analysis of persisted session logs."""

from agentlog.transcripts.parsers import (
    CodexTranscriptParser,
    TranscriptParser,
    create_transcript_parser,
    default_parsers,
)
from agentlog.transcripts.service import SessionTranscriptService

__all__ = [
    "CodexTranscriptParser",
    "SessionTranscriptService",
    "TranscriptParser",
    "create_transcript_parser",
    "default_parsers",
]
