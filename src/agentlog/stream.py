"""Incremental line splitting for the agent's stdout byte stream."""

from __future__ import annotations

import codecs


class LineBuffer:
    """Turns arbitrary byte chunks into complete lines.

    Bytes after the last ``\\n`` of a chunk are carried over to the next
    ``feed()`` call. Lines are decoded only once complete, so a multi-byte
    character split across reads is never mangled.
    """

    def __init__(self, encoding: str = "utf-8") -> None:
        self._encoding = encoding
        self._pending = b""

    @property
    def pending(self) -> bytes:
        """Bytes received but not yet terminated by a newline."""
        return self._pending

    def feed(self, chunk: bytes) -> list[str]:
        """Append a chunk and return every line it completed."""
        if not chunk:
            return []
        data = self._pending + chunk
        *complete, self._pending = data.split(b"\n")
        return [self._decode(raw) for raw in complete]

    def flush(self) -> str | None:
        """Return the trailing fragment at end of stream, if non-empty."""
        raw, self._pending = self._pending, b""
        if not raw.strip():
            return None
        return self._decode(raw)

    def _decode(self, raw: bytes) -> str:
        return raw.decode(self._encoding, errors="replace").rstrip("\r")


class TextDecoderStream:
    """Incremental decoder for streams that are forwarded chunk by chunk."""

    def __init__(self, encoding: str = "utf-8") -> None:
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")

    def feed(self, chunk: bytes) -> str:
        return self._decoder.decode(chunk)

    def flush(self) -> str:
        return self._decoder.decode(b"", final=True)
