"""Configuration loaded from .agentlog.toml, env vars, and CLI flags.

Loading order: defaults → TOML file → env vars → CLI flags.
"""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".agentlog.toml"
CONFIG_SEARCH_PATHS = [
    Path("."),
    Path.home() / ".config" / "agentlog",
]


class SessionsConfig(BaseModel):
    """[sessions] section."""

    directory: str = "./storage/sessions"

    @property
    def path(self) -> Path:
        return Path(self.directory).expanduser()


class WorkspaceConfig(BaseModel):
    """[workspace] section: where the agent runs."""

    path: str = "."

    @property
    def resolved(self) -> Path:
        return Path(self.path).expanduser()


class CodexConfig(BaseModel):
    """[codex] section."""

    binary: str = "codex"
    model: str = "gpt-5.1-codex-max"
    reasoning: str = ""
    task_template: str = ""
    instructions_template: str = ""


class AgentLogConfig(BaseModel):
    """Top-level configuration model."""

    sessions: SessionsConfig = Field(default_factory=SessionsConfig)
    workspace: WorkspaceConfig = Field(default_factory=WorkspaceConfig)
    codex: CodexConfig = Field(default_factory=CodexConfig)


def load_config(path: str | Path | None = None) -> AgentLogConfig:
    """Load configuration from a TOML file.

    Search order:
    1. Explicit path (if provided)
    2. .agentlog.toml in CWD
    3. ~/.config/agentlog/.agentlog.toml
    4. ~/.config/agentlog/config.toml

    Then overlay environment variables.

    Args:
        path: Explicit path to a TOML file.

    Returns:
        Merged AgentLogConfig.
    """
    data: dict[str, object] = {}

    if path is not None:
        toml_path = Path(path)
        if toml_path.exists():
            data = _load_toml(toml_path)
        else:
            logger.warning("Config file not found: %s", toml_path)
    else:
        for search_dir in CONFIG_SEARCH_PATHS:
            candidate = search_dir / CONFIG_FILENAME
            if candidate.exists():
                data = _load_toml(candidate)
                logger.info("Loaded config from %s", candidate)
                break
        global_config = Path.home() / ".config" / "agentlog" / "config.toml"
        if not data and global_config.exists():
            data = _load_toml(global_config)
            logger.info("Loaded config from %s", global_config)

    config = AgentLogConfig.model_validate(data) if data else AgentLogConfig()

    return _apply_env_vars(config)


def merge_cli_overrides(config: AgentLogConfig, **cli_kwargs: object) -> AgentLogConfig:
    """Overlay explicitly-set CLI flags onto the config.

    Only overrides values where the CLI flag was explicitly provided
    (i.e., not None).

    Args:
        config: Base config.
        **cli_kwargs: CLI flag values, e.g. ``sessions_dir``, ``workspace``,
            ``model``, ``reasoning``.

    Returns:
        Updated config with CLI overrides applied.
    """
    data = config.model_dump()

    mapping: dict[str, tuple[str, str]] = {
        "sessions_dir": ("sessions", "directory"),
        "workspace": ("workspace", "path"),
        "binary": ("codex", "binary"),
        "model": ("codex", "model"),
        "reasoning": ("codex", "reasoning"),
        "task_template": ("codex", "task_template"),
        "instructions_template": ("codex", "instructions_template"),
    }

    for key, value in cli_kwargs.items():
        if value is None or key not in mapping:
            continue
        section, field = mapping[key]
        data[section][field] = str(value) if isinstance(value, Path) else value

    return AgentLogConfig.model_validate(data)


def _load_toml(path: Path) -> dict[str, object]:
    """Load a TOML file and return the data dict."""
    try:
        with open(path, "rb") as f:
            return tomllib.load(f)
    except (tomllib.TOMLDecodeError, OSError) as exc:
        logger.warning("Failed to parse %s: %s", path, exc)
        return {}


def _apply_env_vars(config: AgentLogConfig) -> AgentLogConfig:
    """Apply environment variable overrides to config."""
    data = config.model_dump()

    env_mapping: dict[str, tuple[str, str]] = {
        "AGENTLOG_SESSIONS_DIR": ("sessions", "directory"),
        "AGENTLOG_WORKSPACE": ("workspace", "path"),
        "AGENTLOG_CODEX_BINARY": ("codex", "binary"),
        "AGENTLOG_MODEL": ("codex", "model"),
        "AGENTLOG_REASONING": ("codex", "reasoning"),
    }

    for env_var, (section, field) in env_mapping.items():
        value = os.environ.get(env_var)
        if value is not None:
            data[section][field] = value

    return AgentLogConfig.model_validate(data)
