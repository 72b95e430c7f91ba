"""Channel membership for the ircd registry."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .constants import CHANNEL_PREFIX

if TYPE_CHECKING:
    from .session import Session


def normalize_channel_name(name: str) -> str:
    """Prepend the channel marker when the caller left it out."""
    if not name.startswith(CHANNEL_PREFIX):
        return CHANNEL_PREFIX + name
    return name


class Channel:
    """A named set of member sessions. Mutated only by the Registry."""

    def __init__(self, name: str) -> None:
        self.name = normalize_channel_name(name)
        self.members: dict[str, Session] = {}

    def __repr__(self) -> str:
        return f"<Channel {self.name} members={len(self.members)}>"

    def __len__(self) -> int:
        return len(self.members)

    def __contains__(self, session: object) -> bool:
        sid = getattr(session, "id", None)
        return sid is not None and sid in self.members

    def add(self, session: Session) -> bool:
        """Add a member. Returns False if it was already present."""
        if session.id in self.members:
            return False
        self.members[session.id] = session
        return True

    def remove(self, session: Session) -> bool:
        return self.members.pop(session.id, None) is not None

    def snapshot(self) -> list[Session]:
        return list(self.members.values())

    def nicks(self) -> list[str]:
        """Sorted nicks of members that have one."""
        return sorted(s.nick for s in self.members.values() if s.nick)
