"""CRLF line framing for the client byte stream."""

from __future__ import annotations

from typing import BinaryIO

from .constants import CRLF, CRLF_BYTES


class TransportError(ConnectionError):
    """The connection can no longer be read from or written to."""


class LineReader:
    """Splits a binary stream into CRLF-terminated lines.

    A bare ``\\n`` or ``\\r`` is kept as line content; only the two-byte
    terminator ends a line. With ``max_line_bytes`` set, a line whose
    content runs past that many bytes fails the reader instead of growing
    the buffer without bound.
    """

    def __init__(self, stream: BinaryIO, max_line_bytes: int = 0) -> None:
        self._stream = stream
        self._max_line_bytes = max(0, int(max_line_bytes))

    def next_line(self) -> bytes:
        """Block until a full line is read and return it without the terminator.

        Raises TransportError on end of stream (a trailing partial line is
        discarded), on an over-long line, or when the underlying read fails.
        """
        line = bytearray()
        while not line.endswith(CRLF_BYTES):
            limit = -1
            if self._max_line_bytes:
                limit = self._max_line_bytes + len(CRLF_BYTES) - len(line)
                if limit <= 0:
                    raise TransportError(f"line exceeds {self._max_line_bytes} bytes")
            try:
                chunk = self._stream.readline(limit)
            except (OSError, ValueError) as e:
                raise TransportError(f"read failed: {e}") from e
            if not chunk:
                if line:
                    raise TransportError(
                        f"connection closed mid-line ({len(line)} bytes pending)"
                    )
                raise TransportError("connection closed by peer")
            line.extend(chunk)
        return bytes(line[: -len(CRLF_BYTES)])


def encode_line(text: str) -> bytes:
    if not text.endswith(CRLF):
        text = text + CRLF
    return text.encode("utf-8", "replace")
