"""Protocol errors reported back to the originating session as numerics."""

from __future__ import annotations

from .constants import (
    ERR_ERRONEUSNICKNAME,
    ERR_NEEDMOREPARAMS,
    ERR_NICKNAMEINUSE,
    ERR_NONICKNAMEGIVEN,
    ERR_UNKNOWNCOMMAND,
    NO_NICK,
)


class IrcError(Exception):
    """A recoverable protocol error; the connection stays open."""

    numeric: int = 0
    text: str = "Error"

    def __init__(self, subject: str | None = None) -> None:
        self.subject = subject
        msg = f"{self.numeric:03d} {self.text}"
        if subject:
            msg = f"{msg} ({subject})"
        super().__init__(msg)

    def params(self, nick: str) -> list[str]:
        """Middle parameters of the reply line, after the numeric."""
        out = [nick or NO_NICK]
        if self.subject:
            out.append(self.subject)
        return out

    def reply(self, nick: str) -> str:
        return f"{self.numeric:03d} {' '.join(self.params(nick))} :{self.text}"


class NoNicknameGiven(IrcError):
    numeric = ERR_NONICKNAMEGIVEN
    text = "No nickname given"

    def params(self, nick: str) -> list[str]:
        return [nick or NO_NICK]


class ErroneousNickname(IrcError):
    numeric = ERR_ERRONEUSNICKNAME
    text = "Erroneous nickname"

    def params(self, nick: str) -> list[str]:
        return [self.subject or NO_NICK]


class NicknameInUse(IrcError):
    numeric = ERR_NICKNAMEINUSE
    text = "Nickname is already in use"

    def params(self, nick: str) -> list[str]:
        # The caller may not have a nick yet; conventionally "*".
        return [NO_NICK, self.subject or NO_NICK]


class NeedMoreParams(IrcError):
    numeric = ERR_NEEDMOREPARAMS
    text = "Not enough parameters"


class UnknownCommand(IrcError):
    numeric = ERR_UNKNOWNCOMMAND
    text = "Unknown command"
