"""Terminal escape-sequence stripping for text forwarded to the console."""

from __future__ import annotations

import re

_ESCAPE_PATTERNS = [
    re.compile(r"\x1b\[[0-9;?]*[ -/]*[@-~]"),  # CSI
    re.compile(r"\x1b\][^\x07\x1b]*(?:\x07|\x1b\\)"),  # OSC
    re.compile(r"\x1b[@-Z\\-_]"),  # two-byte Fe
    re.compile(r"[\x0e\x0f]"),  # shift out / shift in
]


def strip_escape_sequences(text: str) -> str:
    """Remove ANSI/VT control sequences and normalize line endings to ``\\n``.

    Args:
        text: Raw text, typically a chunk of a child process's stderr or a
            command's aggregated output.

    Returns:
        The text with escape sequences removed, ``\\r\\n`` collapsed to
        ``\\n`` and stray ``\\r`` characters dropped.
    """
    for pattern in _ESCAPE_PATTERNS:
        text = pattern.sub("", text)
    return text.replace("\r\n", "\n").replace("\r", "")
