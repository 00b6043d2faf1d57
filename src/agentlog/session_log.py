"""Append-only JSONL session log with late-bound file name."""

from __future__ import annotations

import logging
import os
import shutil
from pathlib import Path
from types import TracebackType
from typing import IO

from agentlog.errors import SessionLogError

logger = logging.getLogger(__name__)

LOG_SUFFIX = ".jsonl"


def session_log_path(sessions_dir: Path, provider: str, session_id: str) -> Path:
    """Return ``<sessions_dir>/<provider>/<session_id>.jsonl``."""
    return Path(sessions_dir) / provider / f"{session_id}{LOG_SUFFIX}"


def is_safe_segment(value: str) -> bool:
    """True if ``value`` can be used as one path segment under the sessions dir."""
    trimmed = value.strip()
    return bool(trimmed) and ".." not in trimmed and "/" not in trimmed and "\\" not in trimmed


class SessionLog:
    """Writes one line per accepted event, in arrival order.

    The file is opened in append mode under the placeholder id. Once the
    agent reveals its own session id, ``rename()`` moves the file; a failed
    move is logged and the placeholder path stays authoritative.

    Use as a context manager so the handle is released on every exit path.
    """

    def __init__(self, sessions_dir: Path, provider: str, session_id: str) -> None:
        self._sessions_dir = Path(sessions_dir)
        self._provider = provider
        self.path = session_log_path(self._sessions_dir, provider, session_id)
        self._handle: IO[str] | None = None
        self._renamed = False

    @property
    def is_open(self) -> bool:
        return self._handle is not None

    def open(self) -> SessionLog:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._handle = self.path.open("a", encoding="utf-8", newline="\n")
        except OSError as exc:
            raise SessionLogError(f"Unable to open session log for writing: {self.path}") from exc
        logger.debug("Opened session log %s", self.path)
        return self

    def write_line(self, line: str) -> None:
        """Append ``line`` plus a newline and flush before returning."""
        if self._handle is None:
            raise SessionLogError(f"Session log is not open: {self.path}")
        try:
            self._handle.write(line + "\n")
            self._handle.flush()
        except OSError as exc:
            raise SessionLogError(f"Failed to write session log: {self.path}") from exc

    def close(self) -> None:
        if self._handle is None:
            return
        try:
            self._handle.close()
        finally:
            self._handle = None
            logger.debug("Closed session log %s", self.path)

    def rename(self, session_id: str) -> Path:
        """Move the log to the file named after ``session_id``.

        If that file already exists (a resumed thread), this session's lines
        are appended to it instead. Only the first rename takes effect.
        Failures, including an id that is not a single path segment, are
        logged; the returned path is wherever the data actually lives.
        """
        if self._renamed:
            return self.path

        if not is_safe_segment(session_id):
            logger.warning("Not renaming session log %s: unsafe session id %r", self.path, session_id)
            return self.path

        target = session_log_path(self._sessions_dir, self._provider, session_id.strip())
        if target == self.path:
            return self.path

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            if target.exists():
                self._append_to(target)
            else:
                os.replace(self.path, target)
        except OSError as exc:
            logger.warning("Could not rename session log %s to %s: %s", self.path, target, exc)
            return self.path

        self.path = target
        self._renamed = True
        return self.path

    def _append_to(self, target: Path) -> None:
        with self.path.open("rb") as src, target.open("ab") as dst:
            shutil.copyfileobj(src, dst)
        self.path.unlink()
        logger.debug("Appended session log %s to existing %s", self.path, target)

    def __enter__(self) -> SessionLog:
        return self.open()

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()
