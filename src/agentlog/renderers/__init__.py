"""Event renderer factory and registry."""

from __future__ import annotations

from agentlog.errors import ProviderNotSupportedError
from agentlog.models import Provider
from agentlog.renderers.base import EventRenderer, format_lines
from agentlog.renderers.codex import CodexEventRenderer


def normalize_provider(provider: Provider | str) -> str:
    """Lower-case and strip a provider name.

    Raises:
        ProviderNotSupportedError: If the name is empty.
    """
    normalized = str(provider).strip().lower()
    if not normalized:
        raise ProviderNotSupportedError("Provider name cannot be empty.")
    return normalized


def create_renderer(provider: Provider | str) -> EventRenderer:
    """Create a fresh renderer for the given provider.

    Each call returns a new instance; renderers hold per-session state.

    Raises:
        ProviderNotSupportedError: If no renderer is registered for the
            provider.
    """
    normalized = normalize_provider(provider)

    renderers: dict[str, type[EventRenderer]] = {
        Provider.CODEX.value: CodexEventRenderer,
    }

    if normalized in renderers:
        return renderers[normalized]()

    raise ProviderNotSupportedError(f"No renderer registered for provider: {provider}")


__all__ = [
    "CodexEventRenderer",
    "EventRenderer",
    "create_renderer",
    "format_lines",
    "normalize_provider",
]
