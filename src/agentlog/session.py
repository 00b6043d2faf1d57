"""Headless agent sessions: stream, enrich, log and render.

A run wires the pieces together::

    child stdout ─▶ LineBuffer ─▶ EventEnricher ─▶ SessionLog ─▶ EventRenderer ─▶ stdout
    child stderr ─▶ strip_escape_sequences ───────────────────────────────────────▶ stderr

Both child streams are drained concurrently on one event loop. When the
child exits, the log is renamed after the session id the agent announced.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
import uuid
from collections.abc import AsyncIterator, Mapping, Sequence
from pathlib import Path
from typing import Any, TextIO

from agentlog.config import AgentLogConfig, CodexConfig
from agentlog.enricher import EventEnricher
from agentlog.errors import MetadataValidationError, SessionFailedError
from agentlog.events import THREAD_OPENING_TYPES, as_text
from agentlog.launcher import AsyncioLauncher, ProcessLauncher, run_interactive
from agentlog.models import Provider, Session, SessionResult
from agentlog.renderers import EventRenderer, create_renderer, normalize_provider
from agentlog.sanitize import strip_escape_sequences
from agentlog.session_log import SessionLog, is_safe_segment, session_log_path
from agentlog.stream import LineBuffer, TextDecoderStream

logger = logging.getLogger(__name__)

STDERR_TAIL_CHARS = 2000


def parse_metadata(raw: str | Mapping[str, Any] | None) -> dict[str, Any]:
    """Validate caller-supplied metadata.

    Accepts a mapping or a JSON string encoding an object.

    Raises:
        MetadataValidationError: If the value is not a JSON object.
    """
    if raw is None:
        return {}
    if isinstance(raw, Mapping):
        data: Any = dict(raw)
    else:
        if not raw.strip():
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise MetadataValidationError(f"Metadata is not valid JSON: {exc.msg}") from exc
    if not isinstance(data, dict):
        raise MetadataValidationError("Metadata must be a JSON object.")
    try:
        json.dumps(data)
    except (TypeError, ValueError) as exc:
        raise MetadataValidationError(f"Metadata is not JSON serializable: {exc}") from exc
    return data


def build_codex_argv(
    codex: CodexConfig,
    args: Sequence[str] = (),
    *,
    prompt: str | None = None,
    resume: str | None = None,
    interactive: bool = False,
) -> list[str]:
    """Build the Codex command line.

    Headless runs use ``codex exec --json``; ``resume`` switches to the
    ``exec resume <id>`` form. The prompt, if any, is the final argument.
    """
    argv = [codex.binary]
    if not interactive:
        argv.extend(["exec", "--json"])
    if codex.model:
        argv.extend(["--model", codex.model])
    if codex.reasoning:
        argv.extend(["-c", f"model_reasoning_effort={codex.reasoning}"])
    argv.extend(args)
    if interactive:
        return argv
    if resume:
        argv.extend(["resume", resume])
    if prompt:
        argv.append(prompt)
    return argv


def encode_event(event: dict[str, Any]) -> str:
    return json.dumps(event, ensure_ascii=False, separators=(",", ":"))


class SessionStream:
    """Per-session processing state for one headless run.

    Owns the stdout line buffer, the stderr decoder, the enricher, the
    renderer and the open session log. Nothing here is shared between
    sessions.
    """

    def __init__(
        self,
        *,
        session: Session,
        log: SessionLog,
        enricher: EventEnricher,
        renderer: EventRenderer,
        stdout: TextIO,
        stderr: TextIO,
    ) -> None:
        self.session = session
        self.log = log
        self.enricher = enricher
        self.renderer = renderer
        self._stdout = stdout
        self._stderr = stderr
        self._lines = LineBuffer()
        self._stderr_decoder = TextDecoderStream()
        self._stderr_tail = ""

    @property
    def stderr_tail(self) -> str:
        return self._stderr_tail.strip()

    def begin(self) -> None:
        """Log the synthetic request event ahead of anything the agent emits."""
        request = self.enricher.request_event()
        if request is not None:
            self.process_line(encode_event(request))

    def feed_stdout(self, chunk: bytes) -> None:
        for line in self._lines.feed(chunk):
            self.process_line(line)

    def end_stdout(self) -> None:
        line = self._lines.flush()
        if line is not None:
            self.process_line(line)

    def feed_stderr(self, chunk: bytes) -> None:
        self._forward_stderr(self._stderr_decoder.feed(chunk))

    def end_stderr(self) -> None:
        self._forward_stderr(self._stderr_decoder.flush())

    async def drain_stdout(self, chunks: AsyncIterator[bytes]) -> None:
        async for chunk in chunks:
            self.feed_stdout(chunk)
        self.end_stdout()

    async def drain_stderr(self, chunks: AsyncIterator[bytes]) -> None:
        async for chunk in chunks:
            self.feed_stderr(chunk)
        self.end_stderr()

    def process_line(self, line: str) -> None:
        """Log one stdout line and render it.

        Lines that are not JSON objects are logged and echoed verbatim.
        """
        trimmed = line.strip()
        if not trimmed:
            return

        try:
            decoded = json.loads(trimmed)
        except json.JSONDecodeError:
            decoded = None

        if not isinstance(decoded, dict):
            self.log.write_line(line)
            self._write(self._stdout, trimmed + "\n")
            return

        event = self.enricher.enrich(decoded)
        self.log.write_line(line if event is decoded else encode_event(event))
        self._observe_identity(event)

        rendered = self.renderer.render(event)
        if rendered:
            self._write(self._stdout, rendered)

    def _observe_identity(self, event: dict[str, Any]) -> None:
        if as_text(event.get("type")) not in THREAD_OPENING_TYPES:
            return
        thread_id = as_text(event.get("thread_id"))
        if not thread_id:
            return
        if not is_safe_segment(thread_id):
            logger.warning("Ignoring session id %r: not usable as a log file name", thread_id)
            return
        if self.session.adopt_session_id(thread_id):
            logger.debug("Discovered session id %s", thread_id)

    def _forward_stderr(self, text: str) -> None:
        clean = strip_escape_sequences(text)
        if not clean:
            return
        self._stderr_tail = (self._stderr_tail + clean)[-STDERR_TAIL_CHARS:]
        self._write(self._stderr, clean)

    @staticmethod
    def _write(stream: TextIO, text: str) -> None:
        stream.write(text)
        stream.flush()


class SessionRunner:
    """Runs agent sessions headless (logged) or interactive (pass-through).

    Args:
        config: Resolved configuration; defaults to ``AgentLogConfig()``.
        launcher: Process launcher for headless runs.
        provider: Provider name used for the renderer and the log directory.
        stdout: Where rendered text goes; defaults to ``sys.stdout``.
        stderr: Where sanitized child stderr goes; defaults to ``sys.stderr``.
    """

    def __init__(
        self,
        config: AgentLogConfig | None = None,
        *,
        launcher: ProcessLauncher | None = None,
        provider: Provider | str = Provider.CODEX,
        stdout: TextIO | None = None,
        stderr: TextIO | None = None,
    ) -> None:
        self.config = config or AgentLogConfig()
        self.provider = normalize_provider(provider)
        self._launcher = launcher or AsyncioLauncher()
        self._stdout = stdout
        self._stderr = stderr

    @property
    def sessions_dir(self) -> Path:
        return self.config.sessions.path

    def start_session(
        self,
        args: Sequence[str] = (),
        *,
        interactive: bool = False,
        task: str | None = None,
        instructions: str | None = None,
        metadata: str | Mapping[str, Any] | None = None,
        resume: str | None = None,
        workspace: Path | None = None,
        env: Mapping[str, str] | None = None,
    ) -> SessionResult:
        """Run one agent session to completion.

        Returns:
            The best-known session id, the final log path (None for
            interactive runs) and the exit code.

        Raises:
            MetadataValidationError: If ``metadata`` is not a JSON object.
            LaunchError: If the agent binary cannot be started.
            SessionLogError: If the log file cannot be opened.
            SessionFailedError: If the agent exits non-zero.
        """
        fields = parse_metadata(metadata)
        cwd = workspace if workspace is not None else self.config.workspace.resolved

        if interactive:
            return self._run_interactive(args, cwd=cwd, env=env)

        return asyncio.run(
            self._run_headless(
                args,
                task=task,
                instructions=instructions,
                metadata=fields,
                resume=resume,
                cwd=cwd,
                env=env,
            )
        )

    def _run_interactive(
        self,
        args: Sequence[str],
        *,
        cwd: Path,
        env: Mapping[str, str] | None,
    ) -> SessionResult:
        session_id = str(uuid.uuid4())
        argv = build_codex_argv(self.config.codex, args, interactive=True)
        exit_code = run_interactive(argv, cwd=cwd, env=env)
        if exit_code != 0:
            raise SessionFailedError(exit_code, session_id=session_id)
        return SessionResult(session_id=session_id, log_path=None, exit_code=exit_code)

    async def _run_headless(
        self,
        args: Sequence[str],
        *,
        task: str | None,
        instructions: str | None,
        metadata: dict[str, Any],
        resume: str | None,
        cwd: Path,
        env: Mapping[str, str] | None,
    ) -> SessionResult:
        placeholder_id = str(uuid.uuid4())
        session = Session(
            placeholder_id=placeholder_id,
            provider=self.provider,
            log_path=session_log_path(self.sessions_dir, self.provider, placeholder_id),
        )
        enricher = EventEnricher(
            task=task,
            instructions=instructions,
            task_template=self.config.codex.task_template,
            instructions_template=self.config.codex.instructions_template,
            metadata=metadata,
        )
        argv = build_codex_argv(
            self.config.codex, args, prompt=enricher.prompt, resume=resume
        )

        with SessionLog(self.sessions_dir, self.provider, placeholder_id) as log:
            stream = SessionStream(
                session=session,
                log=log,
                enricher=enricher,
                renderer=create_renderer(self.provider),
                stdout=self._stdout or sys.stdout,
                stderr=self._stderr or sys.stderr,
            )
            stream.begin()
            process = await self._launcher.spawn(argv, cwd=cwd, env=env)
            await asyncio.gather(
                stream.drain_stdout(process.stdout()),
                stream.drain_stderr(process.stderr()),
            )
            exit_code = await process.wait()

        if session.session_id is not None:
            session.log_path = log.rename(session.session_id)

        if exit_code != 0:
            raise SessionFailedError(
                exit_code,
                session_id=session.best_id,
                log_path=session.log_path,
                stderr_tail=stream.stderr_tail,
            )

        return SessionResult(
            session_id=session.best_id,
            log_path=session.log_path,
            exit_code=exit_code,
        )
