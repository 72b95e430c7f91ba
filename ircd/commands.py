"""Command parsing and dispatch for client lines."""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING, Callable

from . import __version__
from .constants import (
    RPL_CREATED,
    RPL_ENDOFMOTD,
    RPL_ENDOFNAMES,
    RPL_MOTD,
    RPL_MOTDSTART,
    RPL_MYINFO,
    RPL_NAMREPLY,
    RPL_TOPIC,
    RPL_WELCOME,
    RPL_YOURHOST,
)
from .errors import IrcError, NeedMoreParams, NoNicknameGiven, UnknownCommand
from .messages import Outgoing, deliver, queue_error, queue_line, queue_numeric

if TYPE_CHECKING:
    from .service import IrcService
    from .session import Session


class Command(Enum):
    """The closed set of verbs the server accepts.

    Each member carries the minimum number of parameters and the error
    raised when fewer are given.
    """

    NICK = ("NICK", 1, NoNicknameGiven)
    USER = ("USER", 4, NeedMoreParams)
    JOIN = ("JOIN", 1, NeedMoreParams)
    PING = ("PING", 0, None)
    QUIT = ("QUIT", 0, None)
    PART = ("PART", 0, None)
    PRIVMSG = ("PRIVMSG", 0, None)

    def __init__(self, verb: str, min_params: int, arity_error: type[IrcError] | None) -> None:
        self.verb = verb
        self.min_params = min_params
        self.arity_error = arity_error

    def check_arity(self, params: list[str]) -> None:
        if len(params) < self.min_params and self.arity_error is not None:
            raise self.arity_error(self.verb)


COMMANDS: dict[str, Command] = {c.verb: c for c in Command}


def parse_line(line: bytes) -> tuple[str, list[str]] | None:
    """Split a framed line into (verb, params). Returns None for blank lines.

    Params are separated by single spaces; there is no ``:trailing``
    parameter, so a colon is ordinary content.
    """
    text = line.decode("utf-8", "replace").strip()
    if not text:
        return None
    tokens = [t for t in text.split(" ") if t]
    return tokens[0], tokens[1:]


class CommandDispatcher:
    """
    Maps verbs to handlers and runs them on the calling connection thread.

    Handlers queue reply lines into ``outgoing``; the dispatcher writes them
    once the handler returns, outside the registry lock.
    """

    def __init__(self, server: IrcService) -> None:
        self.server = server
        self.registry = server.registry
        self.log = logging.getLogger("ircd.commands")

        self._handlers: dict[Command, Callable[[Session, list[str], Outgoing], None]] = {
            Command.NICK: self._handle_nick,
            Command.USER: self._handle_user,
            Command.JOIN: self._handle_join,
            Command.PING: self._handle_unimplemented,
            Command.QUIT: self._handle_quit,
            Command.PART: self._handle_unimplemented,
            Command.PRIVMSG: self._handle_unimplemented,
        }

    def dispatch(self, session: Session, line: bytes) -> None:
        parsed = parse_line(line)
        if parsed is None:
            return
        verb, params = parsed

        if self.log.isEnabledFor(logging.DEBUG):
            self.log.debug("RX sid=%s verb=%s params=%r", session.id, verb, params)

        outgoing: Outgoing = []
        try:
            command = COMMANDS.get(verb)
            if command is None:
                raise UnknownCommand(verb)
            command.check_arity(params)
            self._handlers[command](session, params, outgoing)
        except IrcError as e:
            self.log.debug("Protocol error sid=%s verb=%s: %s", session.id, verb, e)
            queue_error(outgoing, session, e)
        finally:
            deliver(outgoing)

    def _source(self, session: Session) -> str:
        return f":{session.prefix}@{self.server.config.server_name}"

    def _handle_nick(self, session: Session, params: list[str], outgoing: Outgoing) -> None:
        source = self._source(session)
        nick = params[0]
        self.registry.change_nick(session, nick)
        queue_line(outgoing, session, f"{source} NICK :{nick}")

    def _handle_user(self, session: Session, params: list[str], outgoing: Outgoing) -> None:
        session.name = params[0]
        session.realname = " ".join(params[3:])

        cfg = self.server.config
        created = self.server.created.strftime("%Y-%m-%d %H:%M:%S UTC")

        queue_line(outgoing, session, f"NOTICE AUTH :*** You connected on port {self.server.port}")
        queue_numeric(outgoing, session, RPL_WELCOME, text=f"Welcome to {cfg.server_name}")
        queue_numeric(
            outgoing,
            session,
            RPL_YOURHOST,
            text=f"Your host is {cfg.server_name}, running version {__version__}",
        )
        queue_numeric(outgoing, session, RPL_CREATED, text=f"This server was created {created}")
        queue_numeric(outgoing, session, RPL_MYINFO, cfg.server_name, __version__)
        queue_numeric(
            outgoing,
            session,
            RPL_MOTDSTART,
            text=f"- {cfg.server_name} Message of the day - ",
        )
        for motd_line in (cfg.motd or "").splitlines() or [""]:
            queue_numeric(outgoing, session, RPL_MOTD, text=f"- {motd_line}")
        queue_numeric(outgoing, session, RPL_ENDOFMOTD, text="End of /MOTD command")

    def _handle_join(self, session: Session, params: list[str], outgoing: Outgoing) -> None:
        result = self.registry.join_channel(session, params[0])
        channel = result.channel

        queue_line(outgoing, session, f"{self._source(session)} JOIN :{channel}")
        # No separate topic storage: the topic is the channel name.
        queue_numeric(outgoing, session, RPL_TOPIC, channel, text=channel)

        names = " ".join(result.nicks)
        for member, target in result.targets:
            queue_numeric(outgoing, member, RPL_NAMREPLY, "=", channel, text=names, target=target)
            queue_numeric(
                outgoing, member, RPL_ENDOFNAMES, channel, text="End of NAMES list", target=target
            )

    def _handle_quit(self, session: Session, params: list[str], outgoing: Outgoing) -> None:
        reason = " ".join(params)
        queue_line(outgoing, session, f"{self._source(session)} QUIT :Quit: {reason}")
        deliver(outgoing)
        outgoing.clear()

        session.close()
        nick, channels_left = self.registry.remove_session(session)
        self.log.info(
            "QUIT sid=%s nick=%r channels=%s reason=%r",
            session.id,
            nick,
            channels_left,
            reason,
        )

    def _handle_unimplemented(self, session: Session, params: list[str], outgoing: Outgoing) -> None:
        self.log.debug("Ignoring unimplemented command sid=%s params=%r", session.id, params)
