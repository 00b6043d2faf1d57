"""Process launching for agent sessions.

Headless runs need the child's stdout and stderr as two independent byte
streams plus an exit status. ``ProcessLauncher`` is the seam; the default
``AsyncioLauncher`` uses ``asyncio.create_subprocess_exec``. Interactive runs
bypass all of this and simply inherit the terminal.
"""

from __future__ import annotations

import asyncio
import logging
import subprocess
from collections.abc import AsyncIterator, Mapping, Sequence
from pathlib import Path
from typing import Protocol

from agentlog.errors import LaunchError

logger = logging.getLogger(__name__)

READ_CHUNK_SIZE = 64 * 1024


class LaunchedProcess(Protocol):
    """A running child process."""

    def stdout(self) -> AsyncIterator[bytes]:
        """Yield stdout bytes as they arrive, until EOF."""
        ...

    def stderr(self) -> AsyncIterator[bytes]:
        """Yield stderr bytes as they arrive, until EOF."""
        ...

    async def wait(self) -> int:
        """Wait for exit and return the exit code."""
        ...


class ProcessLauncher(Protocol):
    async def spawn(
        self,
        argv: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
    ) -> LaunchedProcess: ...


async def _iter_stream(reader: asyncio.StreamReader | None) -> AsyncIterator[bytes]:
    if reader is None:
        return
    while True:
        chunk = await reader.read(READ_CHUNK_SIZE)
        if not chunk:
            break
        yield chunk


class AsyncioProcess:
    """``LaunchedProcess`` backed by an ``asyncio.subprocess.Process``."""

    def __init__(self, proc: asyncio.subprocess.Process) -> None:
        self._proc = proc

    @property
    def pid(self) -> int:
        return self._proc.pid

    def stdout(self) -> AsyncIterator[bytes]:
        return _iter_stream(self._proc.stdout)

    def stderr(self) -> AsyncIterator[bytes]:
        return _iter_stream(self._proc.stderr)

    async def wait(self) -> int:
        return await self._proc.wait()


class AsyncioLauncher:
    """Spawns the agent with piped stdout/stderr and no stdin."""

    async def spawn(
        self,
        argv: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
    ) -> AsyncioProcess:
        if not argv:
            raise LaunchError("No command specified")

        logger.debug("Spawning %s (cwd=%s)", list(argv), cwd)
        try:
            proc = await asyncio.create_subprocess_exec(
                *argv,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=str(cwd) if cwd is not None else None,
                env=dict(env) if env is not None else None,
            )
        except FileNotFoundError as exc:
            raise LaunchError(f"Agent binary not found: is '{argv[0]}' on the PATH?") from exc
        except OSError as exc:
            raise LaunchError(f"Failed to spawn {argv[0]}: {exc}") from exc
        return AsyncioProcess(proc)


def run_interactive(
    argv: Sequence[str],
    *,
    cwd: Path | None = None,
    env: Mapping[str, str] | None = None,
) -> int:
    """Run the agent attached to the current terminal and return its exit code.

    Output is neither parsed nor logged.
    """
    if not argv:
        raise LaunchError("No command specified")

    logger.debug("Running interactively: %s (cwd=%s)", list(argv), cwd)
    try:
        completed = subprocess.run(
            list(argv),
            cwd=str(cwd) if cwd is not None else None,
            env=dict(env) if env is not None else None,
            check=False,
        )
    except FileNotFoundError as exc:
        raise LaunchError(f"Agent binary not found: is '{argv[0]}' on the PATH?") from exc
    return completed.returncode
