"""Server-wide registry of sessions, nick bindings and channels.

The registry is the only owner of cross-session state. Every check and every
mutation happens under a single re-entrant state lock, so a precondition that
was checked still holds when the mutation is applied. Callers that need to
write to sockets take a snapshot under the lock and write after releasing it.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any

from .channels import Channel, normalize_channel_name
from .errors import ErroneousNickname, NicknameInUse, NoNicknameGiven
from .session import Session
from .util import normalize_nick


@dataclass
class JoinResult:
    channel: str
    created: bool
    added: bool
    members: list[Session] = field(default_factory=list)
    # (member, reply target) pairs; the target is read under the lock.
    targets: list[tuple[Session, str]] = field(default_factory=list)
    nicks: list[str] = field(default_factory=list)


class Registry:
    def __init__(self, *, nick_max_chars: int = 0) -> None:
        self.log = logging.getLogger("ircd.registry")
        self.nick_max_chars = nick_max_chars

        self._state_lock = threading.RLock()

        self.sessions: dict[str, Session] = {}
        self.nicks: dict[str, Session] = {}
        self.channels: dict[str, Channel] = {}

    def add_session(self, session: Session) -> None:
        with self._state_lock:
            self.sessions[session.id] = session
        self.log.debug("Session registered sid=%s", session.id)

    def remove_session(self, session: Session) -> tuple[str | None, int]:
        """
        Drop a session from every table it appears in.

        Safe to call more than once. Returns (nick, channels_left).
        """
        with self._state_lock:
            self.sessions.pop(session.id, None)

            nick = session.nick or None
            if nick and self.nicks.get(nick) is session:
                self.nicks.pop(nick, None)

            left = 0
            for name in list(session.channels):
                channel = self.channels.get(name)
                if channel is not None and channel.remove(session):
                    left += 1
            session.channels.clear()

        return nick, left

    def change_nick(self, session: Session, nick: str) -> str:
        """
        Bind ``nick`` to ``session``, releasing its previous binding.

        Returns the previous nick ("" if none). Raises an IrcError and leaves
        the registry untouched if the nick is unavailable.
        """
        if not nick:
            raise NoNicknameGiven()

        with self._state_lock:
            if nick in self.nicks:
                raise NicknameInUse(nick)
            if nick in self.channels:
                raise ErroneousNickname(nick)
            if normalize_nick(nick, self.nick_max_chars) != nick:
                raise ErroneousNickname(nick)

            old = session.nick
            if old and self.nicks.get(old) is session:
                self.nicks.pop(old, None)
            self.nicks[nick] = session
            session.nick = nick

        self.log.info("NICK sid=%s %r -> %r", session.id, old or None, nick)
        return old

    def join_channel(self, session: Session, name: str) -> JoinResult:
        """
        Add ``session`` to the channel, creating it on first use.

        The returned member, target and nick lists are snapshots taken under
        the lock, safe to use for delivery after it is released.
        """
        channel_name = normalize_channel_name(name)

        with self._state_lock:
            channel = self.channels.get(channel_name)
            created = channel is None
            if channel is None:
                channel = Channel(channel_name)
                self.channels[channel_name] = channel

            added = channel.add(session)
            session.channels.add(channel_name)

            members = channel.snapshot()
            result = JoinResult(
                channel=channel_name,
                created=created,
                added=added,
                members=members,
                targets=[(m, m.display_nick) for m in members],
                nicks=channel.nicks(),
            )

        self.log.info(
            "JOIN sid=%s nick=%r channel=%s created=%s members=%s",
            session.id,
            session.nick or None,
            channel_name,
            created,
            len(result.members),
        )
        return result

    def get_session_by_nick(self, nick: str) -> Session | None:
        with self._state_lock:
            return self.nicks.get(nick)

    def clear_all(self) -> list[Session]:
        """Empty the session and nick tables; return the sessions for teardown."""
        with self._state_lock:
            sessions = list(self.sessions.values())
            self.sessions.clear()
            self.nicks.clear()
            for channel in self.channels.values():
                channel.members.clear()
            for s in sessions:
                s.channels.clear()
        return sessions

    def get_stats(self) -> dict[str, Any]:
        with self._state_lock:
            return {
                "sessions": len(self.sessions),
                "nicks": len(self.nicks),
                "channels": len(self.channels),
                "memberships": sum(len(c) for c in self.channels.values()),
            }
