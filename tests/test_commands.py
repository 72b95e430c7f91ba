import pytest

from ircd.commands import COMMANDS, Command, parse_line
from ircd.config import ServerRuntimeConfig
from ircd.errors import NeedMoreParams, NoNicknameGiven
from ircd.service import IrcService
from ircd.session import Session

from .conftest import FakeConn


def test_parse_line_splits_on_spaces() -> None:
    assert parse_line(b"  USER bob 0 *  Bob Real \t") == ("USER", ["bob", "0", "*", "Bob", "Real"])
    assert parse_line(b"PRIVMSG #test :hello there") == ("PRIVMSG", ["#test", ":hello", "there"])


def test_parse_line_blank() -> None:
    assert parse_line(b"") is None
    assert parse_line(b"   \t ") is None


def test_command_table_is_closed() -> None:
    assert set(COMMANDS) == {"NICK", "USER", "JOIN", "PING", "QUIT", "PART", "PRIVMSG"}
    assert COMMANDS["USER"] is Command.USER
    assert "nick" not in COMMANDS


def test_command_arity() -> None:
    with pytest.raises(NoNicknameGiven):
        Command.NICK.check_arity([])
    with pytest.raises(NeedMoreParams):
        Command.USER.check_arity(["bob", "0", "*"])
    Command.USER.check_arity(["bob", "0", "*", "Bob"])
    Command.QUIT.check_arity([])


def test_nick_assigns(service, connect, send) -> None:
    s = connect()
    assert send(s, "NICK alice") == [":*!~*@test.irc NICK :alice"]
    assert s.nick == "alice"
    assert service.registry.nicks["alice"] is s


def test_nick_in_use(service, connect, send) -> None:
    first = connect()
    second = connect()
    send(first, "NICK alice")

    assert send(second, "NICK alice") == ["433 * alice :Nickname is already in use"]
    assert second.nick == ""
    assert service.registry.nicks == {"alice": first}


def test_nick_without_params(service, connect, send) -> None:
    s = connect()
    assert send(s, "NICK") == ["431 * :No nickname given"]
    assert service.registry.nicks == {}


def test_nick_matching_channel_is_erroneous(service, connect, send) -> None:
    s = connect()
    send(s, "JOIN test")

    other = connect()
    assert send(other, "NICK #test") == ["432 #test :Erroneous nickname"]
    assert other.nick == ""
    assert "#test" not in service.registry.nicks


def test_long_nick_accepted_by_default(service, connect, send) -> None:
    s = connect()
    nick = "n" * 33
    assert send(s, f"NICK {nick}") == [f":*!~*@test.irc NICK :{nick}"]
    assert service.registry.nicks[nick] is s


def test_nick_over_configured_limit_is_erroneous() -> None:
    svc = IrcService(ServerRuntimeConfig(server_name="test.irc", nick_max_chars=32))
    s = Session(svc.ids.next_id(), FakeConn(), ("127.0.0.1", 0))
    svc.registry.add_session(s)

    nick = "n" * 33
    svc.dispatcher.dispatch(s, f"NICK {nick}".encode())
    assert s.conn.lines() == [f"432 {nick} :Erroneous nickname"]
    assert s.nick == ""

    svc.dispatcher.dispatch(s, f"NICK {nick[:32]}".encode())
    assert s.nick == nick[:32]


@pytest.mark.parametrize("nick", ["a,b", "a\x01b", "[away]", "nick|afk"])
def test_nick_punctuation_and_control_chars_accepted(service, connect, send, nick) -> None:
    s = connect()
    assert send(s, f"NICK {nick}") == [f":*!~*@test.irc NICK :{nick}"]
    assert s.nick == nick


def test_nick_with_line_break_is_erroneous(service, connect, send) -> None:
    s = connect()
    lines = send(s, "NICK a\nb")
    assert len(lines) == 1
    assert lines[0].startswith("432 ")
    assert lines[0].endswith(":Erroneous nickname")
    assert s.nick == ""
    assert service.registry.nicks == {}


def test_nick_change_releases_old_binding(service, connect, send) -> None:
    s = connect()
    send(s, "USER alice 0 * Alice")
    send(s, "NICK alice")
    assert send(s, "NICK alicia") == [":alice!~alice@test.irc NICK :alicia"]
    assert service.registry.nicks == {"alicia": s}

    other = connect()
    send(other, "NICK alice")
    assert service.registry.nicks["alice"] is other


def test_user_sends_banner(connect, send) -> None:
    s = connect()
    lines = send(s, "USER bob 0 * Bob Real")

    assert [line.split(" ")[0] for line in lines] == [
        "NOTICE",
        "001",
        "002",
        "003",
        "004",
        "375",
        "372",
        "372",
        "376",
    ]
    assert lines[0] == "NOTICE AUTH :*** You connected on port 6667"
    assert lines[1] == "001 * :Welcome to test.irc"
    assert lines[6] == "372 * :- hello"
    assert lines[-1] == "376 * :End of /MOTD command"
    assert s.name == "bob"
    assert s.realname == "Bob Real"


def test_user_is_repeatable(connect, send) -> None:
    s = connect()
    first = send(s, "USER bob 0 * Bob")
    second = send(s, "USER bob 0 * Bob")
    assert len(first) == len(second)
    assert second[-1].startswith("376 ")


def test_user_needs_four_params(connect, send) -> None:
    s = connect()
    assert send(s, "USER bob 0 *") == ["461 * USER :Not enough parameters"]
    assert s.name == ""


def test_join_creates_channel(service, connect, send) -> None:
    s = connect()
    send(s, "NICK alice")
    lines = send(s, "JOIN test")

    assert lines == [
        ":alice!~alice@test.irc JOIN :#test",
        "332 alice #test :#test",
        "353 alice = #test :alice",
        "366 alice #test :End of NAMES list",
    ]
    channel = service.registry.channels["#test"]
    assert len(channel) == 1
    assert s in channel
    assert s.channels == {"#test"}


def test_join_broadcasts_names_to_all_members(service, connect, send) -> None:
    alice = connect()
    bob = connect()
    send(alice, "NICK alice")
    send(bob, "NICK bob")
    send(alice, "JOIN #test")
    alice.conn.lines()

    bob_lines = send(bob, "JOIN #test")
    alice_lines = alice.conn.lines()

    assert "353 bob = #test :alice bob" in bob_lines
    assert alice_lines == [
        "353 alice = #test :alice bob",
        "366 alice #test :End of NAMES list",
    ]


def test_join_twice_keeps_single_membership(service, connect, send) -> None:
    s = connect()
    send(s, "JOIN test")
    send(s, "JOIN #test")
    assert list(service.registry.channels) == ["#test"]
    assert len(service.registry.channels["#test"]) == 1


def test_join_without_params(service, connect, send) -> None:
    s = connect()
    assert send(s, "JOIN") == ["461 * JOIN :Not enough parameters"]
    assert service.registry.channels == {}


def test_join_uses_first_token_only(service, connect, send) -> None:
    s = connect()
    send(s, "JOIN a b")
    assert list(service.registry.channels) == ["#a"]


def test_join_before_nick_is_allowed(service, connect, send) -> None:
    s = connect()
    lines = send(s, "JOIN test")
    assert lines[0] == ":*!~*@test.irc JOIN :#test"
    assert "353 * = #test :" in lines


def test_quit(service, connect, send) -> None:
    s = connect()
    send(s, "NICK alice")
    send(s, "JOIN test")

    assert send(s, "QUIT leaving now") == [":alice!~alice@test.irc QUIT :Quit: leaving now"]
    assert s.conn.closed
    assert not s.alive
    assert s.id not in service.registry.sessions
    assert "alice" not in service.registry.nicks
    assert s not in service.registry.channels["#test"]


def test_quit_frees_nick(service, connect, send) -> None:
    s = connect()
    send(s, "NICK alice")
    send(s, "QUIT")

    other = connect()
    assert send(other, "NICK alice") == [":*!~*@test.irc NICK :alice"]


def test_unknown_command(service, connect, send) -> None:
    s = connect()
    assert send(s, "FOO bar") == ["421 * FOO :Unknown command"]
    assert s.alive
    assert s.id in service.registry.sessions


def test_verbs_are_case_sensitive(connect, send) -> None:
    s = connect()
    assert send(s, "nick alice") == ["421 * nick :Unknown command"]
    assert s.nick == ""


def test_blank_line_is_ignored(connect, send) -> None:
    s = connect()
    assert send(s, "") == []
    assert send(s, "   ") == []


@pytest.mark.parametrize("line", ["PING", "PING token", "PART #test", "PRIVMSG bob hi"])
def test_accepted_commands_without_behavior(service, connect, send, line: str) -> None:
    s = connect()
    send(s, "NICK alice")
    send(s, "JOIN test")

    assert send(s, line) == []
    assert s.alive
    assert s in service.registry.channels["#test"]


def test_failed_peer_write_closes_peer_only(service, connect, send) -> None:
    dead = connect(fail_writes=True)
    send_ok = connect()
    service.registry.join_channel(dead, "#test")

    lines = send(send_ok, "JOIN test")

    assert lines[-1] == "366 * #test :End of NAMES list"
    assert not dead.alive
    assert dead.conn.closed
    assert send_ok.alive
