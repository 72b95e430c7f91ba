from __future__ import annotations

import logging
import signal
import socket
import threading
import time
from datetime import datetime, timezone
from typing import Any

from .commands import CommandDispatcher
from .config import ServerRuntimeConfig
from .framing import LineReader, TransportError
from .ids import IdGenerator
from .registry import Registry
from .session import Session


class IrcService:
    """
    Accepts TCP connections and runs one thread per connection.

    The accept loop never blocks on a client: each accepted socket becomes
    a Session, is registered immediately, and is handed to its own daemon
    thread that reads lines and dispatches them until QUIT or a transport
    error.
    """

    def __init__(self, config: ServerRuntimeConfig) -> None:
        self.config = config
        self.log = logging.getLogger("ircd.server")

        self.created = datetime.now(timezone.utc)
        self.ids = IdGenerator()
        self.registry = Registry(nick_max_chars=int(config.nick_max_chars))
        self.dispatcher = CommandDispatcher(self)

        self._shutdown = threading.Event()
        self._listener: socket.socket | None = None
        self._accept_thread: threading.Thread | None = None

    @property
    def address(self) -> tuple[str, int] | None:
        if self._listener is None:
            return None
        host, port = self._listener.getsockname()[:2]
        return host, port

    @property
    def port(self) -> int:
        addr = self.address
        return addr[1] if addr is not None else int(self.config.port)

    def start(self) -> None:
        self._listener = socket.create_server(
            (self.config.host, int(self.config.port)),
            backlog=int(self.config.backlog),
        )
        # Poll so stop() is noticed; accepted sockets are still blocking.
        self._listener.settimeout(0.5)
        self._accept_thread = threading.Thread(
            target=self._accept_loop, name="ircd-accept", daemon=True
        )
        self._accept_thread.start()

        host, port = self.address or (self.config.host, self.config.port)
        self.log.info(
            "Listening on %s:%s server_name=%s nick_max_chars=%s",
            host,
            port,
            self.config.server_name,
            self.config.nick_max_chars,
        )

    def _accept_loop(self) -> None:
        listener = self._listener
        if listener is None:
            return
        while not self._shutdown.is_set():
            try:
                conn, addr = listener.accept()
            except TimeoutError:
                continue
            except OSError:
                if not self._shutdown.is_set():
                    self.log.exception("Accept failed; shutting down")
                    self._shutdown.set()
                break
            self.accept(conn, addr)

    def accept(self, conn: Any, address: Any = None) -> Session:
        session = Session(self.ids.next_id(), conn, address)
        self.registry.add_session(session)
        self.log.info("Connection accepted sid=%s addr=%s", session.id, address)

        threading.Thread(
            target=self._serve_session,
            args=(session,),
            name=f"ircd-{session.id}",
            daemon=True,
        ).start()
        return session

    def _serve_session(self, session: Session) -> None:
        stream = session.conn.makefile("rb")
        reader = LineReader(stream, max_line_bytes=int(self.config.max_line_bytes))
        try:
            while session.alive:
                try:
                    line = reader.next_line()
                except TransportError as e:
                    if session.alive:
                        self.log.info("Read error sid=%s: %s", session.id, e)
                    break
                self.dispatcher.dispatch(session, line)
        except Exception:
            self.log.exception("Connection handler failed sid=%s", session.id)
        finally:
            try:
                stream.close()
            except OSError:
                pass
            self.close_session(session)

    def close_session(self, session: Session) -> None:
        nick, channels_left = self.registry.remove_session(session)
        session.close()
        self.log.info(
            "Connection closed sid=%s nick=%r channels=%s",
            session.id,
            nick,
            channels_left,
        )

    def run_forever(self) -> None:
        if self._listener is None:
            self.start()

        signal.signal(signal.SIGINT, lambda *_: self.stop())
        signal.signal(signal.SIGTERM, lambda *_: self.stop())

        while not self._shutdown.is_set():
            time.sleep(0.25)

    def stop(self) -> None:
        self._shutdown.set()

        listener, self._listener = self._listener, None
        if listener is not None:
            try:
                listener.close()
            except OSError:
                pass
        if self._accept_thread is not None:
            self._accept_thread.join(timeout=1.0)

        self.log.info("Shutting down stats=%s", self.registry.get_stats())
        for session in self.registry.clear_all():
            session.close()
