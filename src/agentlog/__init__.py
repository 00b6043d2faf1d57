"""agentlog - run coding agents headless and keep a faithful record.

Streams the agent's JSONL events to a per-session log, renders them for the
terminal, and analyzes finished logs into todos, turns and token usage.
"""

from agentlog.enricher import EventEnricher
from agentlog.errors import (
    AgentLogError,
    InvalidTranscriptReferenceError,
    LaunchError,
    MetadataValidationError,
    ProviderNotSupportedError,
    SessionFailedError,
    SessionLogError,
    TranscriptNotFoundError,
)
from agentlog.models import (
    Provider,
    Session,
    SessionResult,
    Todo,
    TodoStatus,
    TokenUsage,
    Turn,
    TurnAction,
    UsageTotals,
)
from agentlog.renderers import CodexEventRenderer, EventRenderer, create_renderer
from agentlog.session import SessionRunner, SessionStream
from agentlog.session_log import SessionLog
from agentlog.transcripts import CodexTranscriptParser, SessionTranscriptService

__version__ = "0.1.0"

__all__ = [
    "AgentLogError",
    "CodexEventRenderer",
    "CodexTranscriptParser",
    "EventEnricher",
    "EventRenderer",
    "InvalidTranscriptReferenceError",
    "LaunchError",
    "MetadataValidationError",
    "Provider",
    "ProviderNotSupportedError",
    "Session",
    "SessionFailedError",
    "SessionLog",
    "SessionLogError",
    "SessionResult",
    "SessionRunner",
    "SessionStream",
    "SessionTranscriptService",
    "Todo",
    "TodoStatus",
    "TokenUsage",
    "TranscriptNotFoundError",
    "Turn",
    "TurnAction",
    "UsageTotals",
    "create_renderer",
    "__version__",
]
