from __future__ import annotations

import logging
import socket
import threading
from typing import Any

from .constants import NO_NICK
from .framing import TransportError, encode_line


class Session:
    """
    Server-side state for one client connection.

    The session is the only writer to its connection. Writes are serialized
    with a per-session lock so lines from concurrent broadcasts never
    interleave.

    ``nick`` and ``channels`` are only mutated by the Registry while its
    state lock is held.
    """

    def __init__(self, sid: str, conn: Any, address: Any = None) -> None:
        self.id = sid
        self.conn = conn
        self.address = address
        self.nick = ""
        self.name = ""
        self.realname = ""
        self.channels: set[str] = set()
        self.alive = True
        self.log = logging.getLogger("ircd.session")
        self._write_lock = threading.Lock()
        self._close_lock = threading.Lock()

    def __repr__(self) -> str:
        return f"<Session {self.id} nick={self.nick!r}>"

    @property
    def display_nick(self) -> str:
        return self.nick or NO_NICK

    @property
    def prefix(self) -> str:
        """``nick!~user`` part of a client-originated message prefix."""
        return f"{self.display_nick}!~{self.name or self.display_nick}"

    def send(self, line: str) -> None:
        """Write one line, appending CRLF when missing."""
        data = encode_line(line)
        with self._write_lock:
            if not self.alive:
                raise TransportError(f"session {self.id} is closed")
            try:
                self.conn.sendall(data)
            except OSError as e:
                raise TransportError(f"write failed: {e}") from e
        if self.log.isEnabledFor(logging.DEBUG):
            self.log.debug("TX sid=%s %r", self.id, line.rstrip("\r\n"))

    def close(self) -> bool:
        """Close the transport. Returns False if it was already closed."""
        with self._close_lock:
            if not self.alive:
                return False
            self.alive = False

        # shutdown() wakes a reader blocked on a makefile() stream, which
        # close() alone does not.
        try:
            self.conn.shutdown(socket.SHUT_RDWR)
        except OSError:
            pass
        try:
            self.conn.close()
        except OSError:
            pass
        return True
