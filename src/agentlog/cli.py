"""CLI interface for agentlog."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.table import Table

from agentlog.config import AgentLogConfig, load_config, merge_cli_overrides
from agentlog.errors import AgentLogError, SessionFailedError
from agentlog.models import Provider
from agentlog.session import SessionRunner
from agentlog.transcripts import SessionTranscriptService

app = typer.Typer(
    name="agentlog",
    help="Run coding agents headless, log their event streams, and analyze the logs.",
)
transcript_app = typer.Typer(help="Analyze a finished session log.")
app.add_typer(transcript_app, name="transcript")

console = Console()
err_console = Console(stderr=True)

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", help="Path to an .agentlog.toml file."),
]
SessionsDirOption = Annotated[
    Optional[Path],
    typer.Option("--sessions-dir", help="Root directory for session logs."),
]
ProviderOption = Annotated[
    str,
    typer.Option("--provider", "-p", help="Agent provider whose log to read."),
]
JsonOption = Annotated[
    bool,
    typer.Option("--json", help="Print machine-readable JSON."),
]


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        from agentlog import __version__

        console.print(f"agentlog {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit.",
            callback=version_callback,
            is_eager=True,
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable debug logging."),
    ] = False,
) -> None:
    """agentlog - structured logging for coding agent sessions."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _fail(message: str, code: int = 1) -> typer.Exit:
    err_console.print(f"[red]Error:[/red] {message}")
    return typer.Exit(code)


def _resolve_config(config_path: Path | None, **overrides: object) -> AgentLogConfig:
    return merge_cli_overrides(load_config(config_path), **overrides)


@app.command(
    context_settings={"allow_extra_args": True, "ignore_unknown_options": True},
)
def run(
    args: Annotated[
        Optional[list[str]],
        typer.Argument(help="Extra arguments passed through to the agent CLI."),
    ] = None,
    task: Annotated[
        Optional[str], typer.Option("--task", "-t", help="Task for the agent.")
    ] = None,
    instructions: Annotated[
        Optional[str],
        typer.Option("--instructions", "-i", help="System instructions for the agent."),
    ] = None,
    metadata: Annotated[
        Optional[str],
        typer.Option("--metadata", help="JSON object recorded on the request event."),
    ] = None,
    resume: Annotated[
        Optional[str], typer.Option("--resume", help="Session id to resume.")
    ] = None,
    workspace: Annotated[
        Optional[Path],
        typer.Option("--workspace", "-w", help="Directory the agent runs in."),
    ] = None,
    model: Annotated[
        Optional[str], typer.Option("--model", "-m", help="Model override.")
    ] = None,
    reasoning: Annotated[
        Optional[str], typer.Option("--reasoning", help="Reasoning effort override.")
    ] = None,
    interactive: Annotated[
        bool,
        typer.Option(
            "--interactive",
            help="Run attached to the terminal without parsing or logging.",
        ),
    ] = False,
    sessions_dir: SessionsDirOption = None,
    config_path: ConfigOption = None,
) -> None:
    """Run an agent session, stream its output, and record it to a JSONL log."""
    config = _resolve_config(
        config_path,
        sessions_dir=sessions_dir,
        workspace=workspace,
        model=model,
        reasoning=reasoning,
    )
    runner = SessionRunner(config)

    if not interactive and not (args or task or instructions or resume):
        raise _fail("Provide a task, instructions, or arguments for the agent CLI.")

    try:
        result = runner.start_session(
            args or [],
            interactive=interactive,
            task=task,
            instructions=instructions,
            metadata=metadata,
            resume=resume,
            workspace=workspace,
        )
    except SessionFailedError as exc:
        if exc.log_path is not None:
            err_console.print(f"JSON log file: {exc.log_path}")
        raise _fail(f"Agent session failed: {exc}") from exc
    except AgentLogError as exc:
        raise _fail(str(exc)) from exc

    console.print()
    console.print("[bold green]Agent session completed.[/bold green]")
    console.print(f"Session ID: {result.session_id}")
    console.print(f"JSON log file: {result.log_path or 'N/A (interactive)'}")
    console.print(f"Exit code: {result.exit_code}")


def _transcript_service(config_path: Path | None, sessions_dir: Path | None) -> SessionTranscriptService:
    config = _resolve_config(config_path, sessions_dir=sessions_dir)
    return SessionTranscriptService(config.sessions.path)


@transcript_app.command("events")
def events_cmd(
    session_id: Annotated[str, typer.Argument(help="Session id of the log.")],
    provider: ProviderOption = Provider.CODEX.value,
    sessions_dir: SessionsDirOption = None,
    config_path: ConfigOption = None,
) -> None:
    """Print every JSON event of a session log, one per line."""
    service = _transcript_service(config_path, sessions_dir)
    try:
        events = service.full_transcript(provider, session_id)
    except AgentLogError as exc:
        raise _fail(str(exc)) from exc
    for event in events:
        typer.echo(json.dumps(event, ensure_ascii=False))


@transcript_app.command("todos")
def todos_cmd(
    session_id: Annotated[str, typer.Argument(help="Session id of the log.")],
    provider: ProviderOption = Provider.CODEX.value,
    sessions_dir: SessionsDirOption = None,
    config_path: ConfigOption = None,
    as_json: JsonOption = False,
) -> None:
    """List the todo items a session produced."""
    service = _transcript_service(config_path, sessions_dir)
    try:
        todos = service.todo_list(provider, session_id)
    except AgentLogError as exc:
        raise _fail(str(exc)) from exc

    if as_json:
        typer.echo(json.dumps([t.model_dump(mode="json") for t in todos], indent=2))
        return

    if not todos:
        console.print("[yellow]No todos found.[/yellow]")
        return

    table = Table(title=f"Todos for {session_id}")
    table.add_column("ID")
    table.add_column("Status")
    table.add_column("Title")
    for todo in todos:
        table.add_row(todo.id or "-", todo.status.value, todo.title or "")
    console.print(table)


@transcript_app.command("turns")
def turns_cmd(
    session_id: Annotated[str, typer.Argument(help="Session id of the log.")],
    provider: ProviderOption = Provider.CODEX.value,
    sessions_dir: SessionsDirOption = None,
    config_path: ConfigOption = None,
    as_json: JsonOption = False,
) -> None:
    """Summarize the turns of a session."""
    service = _transcript_service(config_path, sessions_dir)
    try:
        turns = service.turns(provider, session_id)
    except AgentLogError as exc:
        raise _fail(str(exc)) from exc

    if as_json:
        typer.echo(json.dumps([t.model_dump(mode="json") for t in turns], indent=2))
        return

    if not turns:
        console.print("[yellow]No turns found.[/yellow]")
        return

    table = Table(title=f"Turns for {session_id}")
    table.add_column("Turn", justify="right")
    table.add_column("Actions", justify="right")
    table.add_column("Item types")
    table.add_column("Input", justify="right")
    table.add_column("Output", justify="right")
    for turn in turns:
        item_types = sorted({a.item_type for a in turn.actions if a.item_type})
        table.add_row(
            str(turn.index),
            str(len(turn.actions)),
            ", ".join(item_types),
            f"{turn.usage.input_tokens:,}" if turn.usage else "-",
            f"{turn.usage.output_tokens:,}" if turn.usage else "-",
        )
    console.print(table)


@transcript_app.command("usage")
def usage_cmd(
    session_id: Annotated[str, typer.Argument(help="Session id of the log.")],
    provider: ProviderOption = Provider.CODEX.value,
    sessions_dir: SessionsDirOption = None,
    config_path: ConfigOption = None,
    as_json: JsonOption = False,
) -> None:
    """Show token usage totals for a session."""
    service = _transcript_service(config_path, sessions_dir)
    try:
        totals = service.usage_totals(provider, session_id)
    except AgentLogError as exc:
        raise _fail(str(exc)) from exc

    if as_json:
        typer.echo(totals.model_dump_json(indent=2))
        return

    console.print(f"Input tokens: {totals.input_tokens:,}")
    console.print(f"Cached input tokens: {totals.cached_input_tokens:,}")
    console.print(f"Output tokens: {totals.output_tokens:,}")
    console.print(f"Total tokens: {totals.total_tokens:,}")


if __name__ == "__main__":
    app()
