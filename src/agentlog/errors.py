"""Exception hierarchy for agentlog."""

from __future__ import annotations

from pathlib import Path


class AgentLogError(Exception):
    """Base error for everything raised by agentlog."""


class LaunchError(AgentLogError):
    """The agent process could not be spawned."""


class SessionLogError(AgentLogError):
    """The session log file could not be opened or written."""


class SessionFailedError(AgentLogError):
    """The agent process exited unsuccessfully."""

    def __init__(
        self,
        exit_code: int | None,
        *,
        session_id: str = "",
        log_path: Path | None = None,
        stderr_tail: str = "",
    ) -> None:
        self.exit_code = exit_code
        self.session_id = session_id
        self.log_path = log_path
        self.stderr_tail = stderr_tail
        message = f"Agent process exited with code {exit_code}"
        if stderr_tail:
            message += f": {stderr_tail}"
        super().__init__(message)


class MetadataValidationError(AgentLogError, ValueError):
    """Caller-supplied metadata is not a JSON object."""


class TranscriptError(AgentLogError):
    """Base error for transcript lookups."""


class ProviderNotSupportedError(TranscriptError, ValueError):
    """No renderer or transcript parser is registered for a provider."""


class InvalidTranscriptReferenceError(TranscriptError, ValueError):
    """Provider or session id is empty or would escape the sessions directory."""


class TranscriptNotFoundError(TranscriptError, FileNotFoundError):
    """No session log exists for the requested provider and session id."""
