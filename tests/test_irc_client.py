"""Tests for IRCClient (ircbot/adapters/irc/client.py)."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from ircbot.adapters.irc import IRCClient, SessionState
from ircbot.core.constants import Permission, Source
from ircbot.events import ChannelMembers, Connected, Join, Kick, MessageIn, TopicChange
from tests.mocks import make_config

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_client(config=None, nick: str = "bot"):
    bus = MagicMock()
    runtime = MagicMock()
    outbound = MagicMock()
    session = SessionState()
    session.on_registered(nick)
    client = IRCClient(
        nick,
        config=config or make_config(),
        session=session,
        bus=bus,
        runtime=runtime,
        outbound=outbound,
    )
    client.nickname = nick
    # pydle only assigns encoding inside connect(); mirror a connected client
    client.encoding = "utf-8"
    return client, session, bus, runtime


def _raw(*params, source=None):
    msg = MagicMock()
    msg.params = list(params)
    msg.source = source
    return msg


def _published(bus, kind):
    return [c.args[1] for c in bus.publish.call_args_list if isinstance(c.args[1], kind)]


def _base():
    return IRCClient.__mro__[1]


# ---------------------------------------------------------------------------
# on_connect / on_disconnect
# ---------------------------------------------------------------------------


class TestConnection:
    @pytest.mark.asyncio
    async def test_on_connect_joins_configured_and_previous_channels(self):
        # Arrange
        client, session, bus, _ = _make_client()
        session.register("#old")
        session.register("#DEV")
        client.join = AsyncMock()

        # Act
        with patch.object(_base(), "on_connect", AsyncMock()):
            await client.on_connect()

        # Assert
        joined = [c.args[0] for c in client.join.await_args_list]
        assert joined == ["#dev", "#random", "#old"]
        assert _published(bus, Connected)[0].nick == "bot"
        client._outbound.attach.assert_called_once_with(client._send_reply)
        assert session.connected is True

    @pytest.mark.asyncio
    async def test_on_disconnect_detaches_and_signals(self):
        client, session, _, _ = _make_client()

        with patch.object(_base(), "on_disconnect", AsyncMock()):
            await client.on_disconnect(expected=False)

        client._outbound.detach.assert_called_once_with()
        assert session.connected is False
        assert client.closed.is_set()


# ---------------------------------------------------------------------------
# join / part / kick
# ---------------------------------------------------------------------------


class TestMembership:
    @pytest.mark.asyncio
    async def test_own_join_asks_topic(self):
        # Arrange
        client, _, bus, _ = _make_client()
        client.rawmsg = AsyncMock()

        # Act
        with patch.object(_base(), "on_join", AsyncMock()):
            await client.on_join("#dev", "bot")

        # Assert
        client.rawmsg.assert_awaited_once_with("TOPIC", "#dev")
        assert _published(bus, Join)[0].nick == "bot"

    @pytest.mark.asyncio
    async def test_own_raw_join_registers_before_pydle_handler(self):
        # Arrange
        client, session, _, _ = _make_client()
        seen = []

        async def base_join(self, message):
            seen.append(session.channel_names())

        # Act
        with patch.object(_base(), "on_raw_join", base_join, create=True):
            await client.on_raw_join(_raw("#dev,#ops", source="bot!bot@host"))

        # Assert
        assert seen == [["#dev", "#ops"]]

    @pytest.mark.asyncio
    async def test_raw_join_of_other_user_registers_nothing(self):
        client, session, _, _ = _make_client()

        with patch.object(_base(), "on_raw_join", AsyncMock(), create=True):
            await client.on_raw_join(_raw("#dev", source="carol!c@host"))

        assert session.channel_names() == []

    @pytest.mark.asyncio
    async def test_other_join_only_publishes(self):
        client, session, bus, _ = _make_client()
        client.rawmsg = AsyncMock()

        with patch.object(_base(), "on_join", AsyncMock()):
            await client.on_join("#dev", "carol")

        assert session.channel("#dev") is None
        client.rawmsg.assert_not_called()
        assert _published(bus, Join)[0].nick == "carol"

    @pytest.mark.asyncio
    async def test_own_part_forgets_channel(self):
        client, session, _, _ = _make_client()
        session.register("#dev")

        with patch.object(_base(), "on_part", AsyncMock()):
            await client.on_part("#dev", "bot", "bye")

        assert session.channel("#dev") is None

    @pytest.mark.asyncio
    async def test_rejoins_after_own_kick(self):
        # Arrange
        client, session, bus, _ = _make_client()
        session.register("#dev")
        client.join = AsyncMock()

        # Act
        with patch.object(_base(), "on_kick", AsyncMock()):
            await client.on_kick("#dev", "bot", "op", "spam")

        # Assert
        client.join.assert_awaited_once_with("#dev")
        assert session.channel("#dev") is None
        assert _published(bus, Kick)[0].reason == "spam"

    @pytest.mark.asyncio
    async def test_no_rejoin_when_other_user_kicked(self):
        client, _, _, _ = _make_client()
        client.join = AsyncMock()

        with patch.object(_base(), "on_kick", AsyncMock()):
            await client.on_kick("#dev", "carol", "op")

        client.join.assert_not_called()

    @pytest.mark.asyncio
    async def test_failed_rejoin_is_logged(self):
        client, _, _, _ = _make_client()
        client.join = AsyncMock(side_effect=RuntimeError("banned"))

        with patch.object(_base(), "on_kick", AsyncMock()):
            await client.on_kick("#dev", "bot", "op")

        client.join.assert_awaited_once()


# ---------------------------------------------------------------------------
# NickServ
# ---------------------------------------------------------------------------


class TestNickServ:
    @pytest.mark.asyncio
    async def test_identifies_when_nick_is_registered(self):
        client, _, _, _ = _make_client()
        client.message = AsyncMock()

        with patch.object(_base(), "on_notice", AsyncMock()):
            await client.on_notice("bot", "NickServ", "This nickname is registered. Please choose...")

        client.message.assert_awaited_once_with("NickServ", "IDENTIFY hunter2")

    @pytest.mark.asyncio
    async def test_no_identify_without_password(self):
        config = make_config(irc={"server": "irc.example.net", "name": "bot", "channels": []})
        client, _, _, _ = _make_client(config)
        client.message = AsyncMock()

        with patch.object(_base(), "on_notice", AsyncMock()):
            await client.on_notice("bot", "NickServ", "This nickname is registered.")

        client.message.assert_not_called()

    @pytest.mark.asyncio
    async def test_ignores_other_senders(self):
        client, _, _, _ = _make_client()
        client.message = AsyncMock()

        with patch.object(_base(), "on_notice", AsyncMock()):
            await client.on_notice("bot", "mallory", "This nickname is registered.")

        client.message.assert_not_called()


# ---------------------------------------------------------------------------
# Topics and NAMES
# ---------------------------------------------------------------------------


class TestNumerics:
    @pytest.mark.asyncio
    async def test_rpl_topic_sets_topic(self):
        # Arrange
        client, session, bus, _ = _make_client()
        session.register("#dev")

        # Act
        with patch.object(_base(), "on_raw_332", AsyncMock(), create=True):
            await client.on_raw_332(_raw("bot", "#dev", "Release day"))

        # Assert
        assert session.channel("#dev").topic == "Release day"
        assert _published(bus, TopicChange)[0].topic == "Release day"

    @pytest.mark.asyncio
    async def test_rpl_topic_with_bad_params(self):
        client, session, bus, _ = _make_client()
        session.register("#dev")

        with patch.object(_base(), "on_raw_332", AsyncMock(), create=True):
            await client.on_raw_332(_raw("bot", "#dev"))

        assert session.channel("#dev").topic == ""
        bus.publish.assert_not_called()

    @pytest.mark.asyncio
    async def test_rpl_notopic_clears_topic(self):
        client, session, _, _ = _make_client()
        session.register("#dev")
        session.set_topic("#dev", "old")

        with patch.object(_base(), "on_raw_331", AsyncMock(), create=True):
            await client.on_raw_331(_raw("bot", "#dev", "No topic is set"))

        assert session.channel("#dev").topic == ""

    @pytest.mark.asyncio
    async def test_topic_change(self):
        client, session, _, _ = _make_client()
        session.register("#dev")

        with patch.object(_base(), "on_topic_change", AsyncMock()):
            await client.on_topic_change("#dev", "new topic", "alice")

        assert session.channel("#dev").topic == "new topic"

    @pytest.mark.asyncio
    async def test_names_are_accumulated_until_end(self):
        # Arrange
        client, session, bus, _ = _make_client()
        session.register("#dev")

        # Act
        with (
            patch.object(_base(), "on_raw_353", AsyncMock(), create=True),
            patch.object(_base(), "on_raw_366", AsyncMock(), create=True),
        ):
            await client.on_raw_353(_raw("bot", "=", "#dev", "@alice bob"))
            await client.on_raw_353(_raw("bot", "=", "#dev", "+carol"))
            assert _published(bus, ChannelMembers) == []
            await client.on_raw_366(_raw("bot", "#dev", "End of /NAMES list."))

        # Assert
        [evt] = _published(bus, ChannelMembers)
        assert evt.members == ["@alice", "bob", "+carol"]
        assert session.channel("#dev").members == ["@alice", "bob", "+carol"]

    @pytest.mark.asyncio
    async def test_names_survive_slow_pydle_handler(self):
        # Arrange: pydle's 353 handler blocks, e.g. waiting on a WHOIS reply
        client, session, bus, _ = _make_client()
        session.register("#dev")
        whois_done = asyncio.Event()

        async def base_353(self, message):
            await whois_done.wait()

        # Act: every line becomes its own task inside on_data
        with (
            patch.object(_base(), "on_raw_353", base_353, create=True),
            patch.object(_base(), "on_raw_366", AsyncMock(), create=True),
        ):
            await client.on_data(
                b":srv 353 bot = #dev :@alice bob\r\n"
                b":srv 353 bot = #dev :carol\r\n"
                b":srv 366 bot #dev :End of /NAMES list.\r\n"
            )
            for _ in range(10):
                await asyncio.sleep(0)

            # Assert
            [evt] = _published(bus, ChannelMembers)
            assert evt.members == ["@alice", "bob", "carol"]
            assert session.channel("#dev").members == ["@alice", "bob", "carol"]
            assert session.pending_names("#dev") == []

            whois_done.set()
            for _ in range(10):
                await asyncio.sleep(0)

    @pytest.mark.asyncio
    async def test_own_nick_change_is_tracked(self):
        client, session, bus, runtime = _make_client()

        with patch.object(_base(), "on_nick_change", AsyncMock()):
            await client.on_nick_change("bot", "bot_")
        with patch.object(_base(), "on_message", AsyncMock()):
            await client.on_message("#dev", "bot_", ".help")

        assert session.own_nick == "bot_"
        runtime.submit.assert_not_called()

    @pytest.mark.asyncio
    async def test_other_nick_change_keeps_own_nick(self):
        client, session, _, _ = _make_client()

        with patch.object(_base(), "on_nick_change", AsyncMock()):
            await client.on_nick_change("alice", "alice_")

        assert session.own_nick == "bot"


# ---------------------------------------------------------------------------
# Lines written to the socket
# ---------------------------------------------------------------------------


class TestWire:
    def _connected(self):
        client, _, _, _ = _make_client()
        client.connection = MagicMock()
        client.connection.send = AsyncMock()
        return client

    def _sent(self, client) -> list[bytes]:
        return [c.args[0] for c in client.connection.send.await_args_list]

    @pytest.mark.asyncio
    async def test_rawmsg_reaches_the_connection(self):
        client = self._connected()

        await client.rawmsg("NICK", "bot")

        [line] = self._sent(client)
        assert line.startswith(b"NICK bot")

    @pytest.mark.asyncio
    async def test_reply_is_sent_as_privmsg(self):
        # Arrange
        client = self._connected()

        # Act: the callable handed to the outbound queue
        await client._send_reply("#dev", "hello")

        # Assert
        [line] = self._sent(client)
        assert line.startswith(b"PRIVMSG #dev ")
        assert line.rstrip(b"\r\n").endswith(b"hello")


# ---------------------------------------------------------------------------
# on_message
# ---------------------------------------------------------------------------


class TestOnMessage:
    @pytest.mark.asyncio
    async def test_channel_command_goes_to_runtime(self):
        # Arrange
        client, _, bus, runtime = _make_client()

        # Act
        with patch.object(_base(), "on_message", AsyncMock()):
            await client.on_message("#dev", "bob", ".weather Paris")

        # Assert
        line, principal, target = runtime.submit.call_args.args
        assert line == "weather Paris"
        assert target == "#dev"
        assert principal.source is Source.CHANNEL
        assert principal.channel == "#dev"
        assert principal.permission is Permission.USER
        bus.publish.assert_not_called()

    @pytest.mark.asyncio
    async def test_admin_gets_admin_permission(self):
        client, _, _, runtime = _make_client()

        with patch.object(_base(), "on_message", AsyncMock()):
            await client.on_message("#dev", "Alice", ".say hi")

        principal = runtime.submit.call_args.args[1]
        assert principal.permission is Permission.ADMIN

    @pytest.mark.asyncio
    async def test_private_message_without_sigil_is_a_command(self):
        client, _, _, runtime = _make_client()

        with patch.object(_base(), "on_message", AsyncMock()):
            await client.on_message("bot", "bob", "help")

        line, principal, target = runtime.submit.call_args.args
        assert line == "help"
        assert target == "bob"
        assert principal.source is Source.PRIVATE
        assert principal.channel is None

    @pytest.mark.asyncio
    async def test_private_message_with_sigil(self):
        client, _, _, runtime = _make_client()

        with patch.object(_base(), "on_message", AsyncMock()):
            await client.on_message("bot", "bob", ".list")

        assert runtime.submit.call_args.args[0] == "list"

    @pytest.mark.asyncio
    async def test_plain_channel_message_is_published(self):
        client, _, bus, runtime = _make_client()

        with patch.object(_base(), "on_message", AsyncMock()):
            await client.on_message("#dev", "bob", "hello there")

        runtime.submit.assert_not_called()
        [evt] = _published(bus, MessageIn)
        assert evt.content == "hello there"
        assert evt.nick == "bob"

    @pytest.mark.asyncio
    async def test_ignores_own_messages(self):
        client, _, bus, runtime = _make_client()

        with patch.object(_base(), "on_message", AsyncMock()):
            await client.on_message("#dev", "bot", ".help")

        runtime.submit.assert_not_called()
        bus.publish.assert_not_called()
