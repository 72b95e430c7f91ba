import pytest

from ircd.config import ServerRuntimeConfig
from ircd.service import IrcService
from ircd.session import Session


class FakeConn:
    """In-memory stand-in for a client socket."""

    def __init__(self, *, fail_writes: bool = False) -> None:
        self.sent = bytearray()
        self.closed = False
        self.shut_down = False
        self.fail_writes = fail_writes

    def sendall(self, data: bytes) -> None:
        if self.closed or self.fail_writes:
            raise BrokenPipeError("peer gone")
        self.sent.extend(data)

    def shutdown(self, how: int) -> None:
        self.shut_down = True

    def close(self) -> None:
        self.closed = True

    def lines(self) -> list[str]:
        text = self.sent.decode("utf-8")
        self.sent.clear()
        return [line for line in text.split("\r\n") if line]


@pytest.fixture
def service() -> IrcService:
    cfg = ServerRuntimeConfig(server_name="test.irc", port=6667, motd="hello\nworld")
    return IrcService(cfg)


@pytest.fixture
def connect(service):
    """Register a session backed by a FakeConn, without a reader thread."""

    def _connect(**kwargs) -> Session:
        session = Session(service.ids.next_id(), FakeConn(**kwargs), ("127.0.0.1", 0))
        service.registry.add_session(session)
        return session

    return _connect


@pytest.fixture
def send(service):
    def _send(session: Session, text: str) -> list[str]:
        service.dispatcher.dispatch(session, text.encode("utf-8"))
        return session.conn.lines()

    return _send
