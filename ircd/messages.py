"""Reply formatting, queueing and delivery."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .framing import TransportError

if TYPE_CHECKING:
    from .errors import IrcError
    from .session import Session

Outgoing = list[tuple["Session", str]]

log = logging.getLogger("ircd.messages")


def format_numeric(code: int, target: str, *params: str, text: str | None = None) -> str:
    """Build ``NNN <target> [params...] [:text]``."""
    parts = [f"{int(code):03d}", target, *params]
    line = " ".join(p for p in parts if p)
    if text is not None:
        line = f"{line} :{text}"
    return line


def queue_line(outgoing: Outgoing, session: Session, line: str) -> None:
    outgoing.append((session, line))


def queue_numeric(
    outgoing: Outgoing,
    session: Session,
    code: int,
    *params: str,
    text: str | None = None,
    target: str | None = None,
) -> None:
    """Queue a numeric addressed to ``target``, or to the session's current nick."""
    queue_line(
        outgoing,
        session,
        format_numeric(code, target or session.display_nick, *params, text=text),
    )


def queue_error(outgoing: Outgoing, session: Session, err: IrcError) -> None:
    queue_line(outgoing, session, err.reply(session.nick))


def deliver(outgoing: Outgoing) -> int:
    """
    Write queued lines in order. Must be called without the registry lock.

    A peer that cannot be written to is closed; its own connection thread
    notices on the next read and unregisters it. Returns the number of
    lines written.
    """
    sent = 0
    for session, line in outgoing:
        if not session.alive:
            continue
        try:
            session.send(line)
            sent += 1
        except TransportError as e:
            log.warning("Send failed sid=%s nick=%r err=%s", session.id, session.nick or None, e)
            session.close()
    return sent
