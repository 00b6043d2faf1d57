"""Shared fixtures: an in-memory process launcher and an isolated config."""

import asyncio
import json
from collections.abc import AsyncIterator, Sequence
from pathlib import Path

import pytest

from agentlog.config import AgentLogConfig, CodexConfig, SessionsConfig


async def _replay(chunks: Sequence[bytes]) -> AsyncIterator[bytes]:
    for chunk in chunks:
        await asyncio.sleep(0)
        yield chunk


class FakeProcess:
    """Replays scripted stdout/stderr chunks, then exits with a fixed code."""

    def __init__(self, stdout: Sequence[bytes], stderr: Sequence[bytes], exit_code: int) -> None:
        self._stdout = stdout
        self._stderr = stderr
        self.exit_code = exit_code

    def stdout(self) -> AsyncIterator[bytes]:
        return _replay(self._stdout)

    def stderr(self) -> AsyncIterator[bytes]:
        return _replay(self._stderr)

    async def wait(self) -> int:
        return self.exit_code


class FakeLauncher:
    """Records spawn calls instead of starting a real process."""

    def __init__(
        self,
        stdout: Sequence[bytes] = (),
        stderr: Sequence[bytes] = (),
        exit_code: int = 0,
        error: Exception | None = None,
    ) -> None:
        self.stdout = list(stdout)
        self.stderr = list(stderr)
        self.exit_code = exit_code
        self.error = error
        self.calls: list[dict] = []

    async def spawn(self, argv, *, cwd=None, env=None) -> FakeProcess:
        self.calls.append({"argv": list(argv), "cwd": cwd, "env": env})
        if self.error is not None:
            raise self.error
        return FakeProcess(self.stdout, self.stderr, self.exit_code)


def jsonl(*events: dict) -> bytes:
    """Encode events as newline-terminated JSON lines."""
    return "".join(json.dumps(event) + "\n" for event in events).encode("utf-8")


@pytest.fixture
def sessions_dir(tmp_path: Path) -> Path:
    return tmp_path / "sessions"


@pytest.fixture
def config(sessions_dir: Path, tmp_path: Path) -> AgentLogConfig:
    """Config pointing at a temp sessions dir with fixed model settings."""
    return AgentLogConfig(
        sessions=SessionsConfig(directory=str(sessions_dir)),
        codex=CodexConfig(binary="codex", model="gpt-test", reasoning="high"),
        workspace={"path": str(tmp_path)},
    )


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Keep AGENTLOG_* variables from the developer's shell out of tests."""
    for key in (
        "AGENTLOG_SESSIONS_DIR",
        "AGENTLOG_WORKSPACE",
        "AGENTLOG_CODEX_BINARY",
        "AGENTLOG_MODEL",
        "AGENTLOG_REASONING",
    ):
        monkeypatch.delenv(key, raising=False)
