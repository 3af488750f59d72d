"""pydle client: turns IRC events into session updates, commands and Router events."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import pydle
from loguru import logger

from ircbot.commands.nodes import Principal
from ircbot.config import Config
from ircbot.core.constants import Permission, Source
from ircbot.events import (
    channel_members,
    connected,
    join,
    kick,
    message_in,
    notice,
    part,
    topic_change,
)
from ircbot.gateway import Bus

if TYPE_CHECKING:
    from ircbot.adapters.irc.outbound import OutboundQueue
    from ircbot.adapters.irc.session import SessionState
    from ircbot.commands.runtime import CommandRuntime

NICKSERV = "NickServ"
NICKSERV_REGISTERED = "This nickname is registered"
NICKSERV_IDENTIFIED = "You are now identified"
NICKSERV_INVALID = "Invalid password"


class IRCClient(pydle.Client):
    """One IRC session. Reconnection is left to the supervisor."""

    RECONNECT_ON_ERROR = False

    def __init__(
        self,
        nick: str,
        *,
        config: Config,
        session: SessionState,
        bus: Bus,
        runtime: CommandRuntime,
        outbound: OutboundQueue,
        **kwargs,
    ):
        super().__init__(nick, realname=nick, **kwargs)
        self._config = config
        self._session = session
        self._bus = bus
        self._runtime = runtime
        self._outbound = outbound
        self.closed = asyncio.Event()

    async def _super_raw(self, name: str, message) -> None:
        handler = getattr(super(), name, None)
        if handler is not None:
            await handler(message)

    async def _send_reply(self, target: str, text: str) -> None:
        await self.message(target, text)

    async def on_connect(self):
        """Registered: record our nick, open the outbound queue, join channels."""
        await super().on_connect()
        self._session.on_registered(self.nickname)
        logger.info("Connected to IRC (name: {})", self.nickname)
        _, evt = connected(self.nickname)
        self._bus.publish("irc", evt)
        self._outbound.attach(self._send_reply)

        # Configured channels plus the ones we were in before a reconnect
        wanted = [c.name for c in self._config.irc_channels]
        for name in self._session.channel_names():
            if name.lower() not in {w.lower() for w in wanted}:
                wanted.append(name)
        for channel in wanted:
            await self.join(channel)

    async def on_disconnect(self, expected: bool) -> None:
        await super().on_disconnect(expected)
        self._outbound.detach()
        self._session.on_disconnected()
        if expected:
            logger.info("IRC disconnected")
        else:
            logger.warning("IRC connection lost")
        self.closed.set()

    async def on_raw_join(self, message) -> None:
        """Register our own channels before pydle's handler gets to await anything."""
        nick = (message.source or "").split("!", 1)[0]
        if self._session.is_self(nick) and message.params:
            for channel in message.params[0].split(","):
                self._session.register(channel)
        await self._super_raw("on_raw_join", message)

    async def on_join(self, channel: str, user: str) -> None:
        await super().on_join(channel, user)
        if self._session.is_self(user):
            logger.info("Channel {} joined.", channel)
            await self.rawmsg("TOPIC", channel)
        _, evt = join(channel, user)
        self._bus.publish("irc", evt)

    async def on_part(self, channel: str, user: str, message: str | None = None) -> None:
        await super().on_part(channel, user, message)
        if self._session.is_self(user):
            logger.info("Channel {} left.", channel)
            self._session.leave(channel)
        _, evt = part(channel, user, reason=message)
        self._bus.publish("irc", evt)

    async def on_kick(self, channel: str, target: str, by: str, reason: str | None = None) -> None:
        await super().on_kick(channel, target, by, reason)
        _, evt = kick(channel, target, by, reason=reason)
        self._bus.publish("irc", evt)
        if not self._session.is_self(target):
            return
        logger.warning("I was kicked from {} by {}, trying to re-join.", channel, by)
        self._session.leave(channel)
        try:
            await self.join(channel)
        except Exception as exc:
            logger.error("Unable to join channel {}, ignoring: {}", channel, exc)

    async def on_notice(self, target: str, by: str, message: str) -> None:
        await super().on_notice(target, by, message)
        if by and by.lower() == NICKSERV.lower():
            await self._on_nickserv(message)
        _, evt = notice(target, by, message)
        self._bus.publish("irc", evt)

    async def _on_nickserv(self, message: str) -> None:
        if message.startswith(NICKSERV_REGISTERED):
            password = self._config.irc_password
            if not password:
                logger.warning("Nickname is registered but no irc.password is configured")
                return
            await self.message(NICKSERV, f"IDENTIFY {password}")
        elif message.startswith(NICKSERV_IDENTIFIED):
            logger.info("IRC authentication succeed.")
        elif message.startswith(NICKSERV_INVALID):
            logger.error("Invalid IRC password!")

    async def on_topic_change(self, channel: str, message: str, by: str) -> None:
        await super().on_topic_change(channel, message, by)
        self._session.set_topic(channel, message or "")
        _, evt = topic_change(channel, message or "", by=by)
        self._bus.publish("irc", evt)

    async def on_raw_331(self, message) -> None:
        """RPL_NOTOPIC: <me> <channel> :No topic is set"""
        await self._super_raw("on_raw_331", message)
        params = getattr(message, "params", [])
        if len(params) < 2:
            logger.error("RPL_NOTOPIC with invalid params: {}", params)
            return
        self._session.set_topic(params[1], "")
        _, evt = topic_change(params[1], "")
        self._bus.publish("irc", evt)

    async def on_raw_332(self, message) -> None:
        """RPL_TOPIC: <me> <channel> :<topic>"""
        await self._super_raw("on_raw_332", message)
        params = getattr(message, "params", [])
        if len(params) != 3:
            logger.error("RPL_TOPIC with invalid params: {}", params)
            return
        self._session.set_topic(params[1], params[2])
        _, evt = topic_change(params[1], params[2])
        self._bus.publish("irc", evt)

    async def on_raw_333(self, message) -> None:
        """RPL_TOPICWHOTIME, ignored."""
        await self._super_raw("on_raw_333", message)

    async def on_raw_353(self, message) -> None:
        """RPL_NAMREPLY: <me> <symbol> <channel> :<names>

        Lines are dispatched as concurrent tasks, so the names are queued
        before pydle's own handler runs (it may wait on WHOIS replies).
        """
        params = getattr(message, "params", [])
        if len(params) == 4:
            self._session.add_names(params[2], [n for n in params[3].split(" ") if n])
        else:
            logger.error("RPL_NAMREPLY with invalid params: {}", params)
        await self._super_raw("on_raw_353", message)

    async def on_raw_366(self, message) -> None:
        """RPL_ENDOFNAMES: <me> <channel> :End of /NAMES list."""
        params = getattr(message, "params", [])
        if len(params) == 3:
            channel = params[1]

            def publish(members: list[str]) -> None:
                _, evt = channel_members(channel, members)
                self._bus.publish("irc", evt)

            self._session.end_names(channel, publish)
        else:
            logger.error("RPL_ENDOFNAMES with invalid params: {}", params)
        await self._super_raw("on_raw_366", message)

    async def on_nick_change(self, old: str, new: str) -> None:
        if self._session.on_nick_change(old, new):
            logger.info("Own nick changed from {} to {}", old, new)
        await super().on_nick_change(old, new)

    def _principal(self, nick: str, source: Source, channel: str | None) -> Principal:
        permission = Permission.ADMIN if self._config.is_admin(nick) else Permission.USER
        return Principal(source=source, nick=nick, permission=permission, channel=channel)

    async def on_message(self, target: str, by: str, message: str) -> None:
        """Commands go to the runtime, everything else to the Router."""
        await super().on_message(target, by, message)
        if not by or self._session.is_self(by) or not message:
            return

        sigil = self._config.sigil
        if self._session.is_self(target):
            line = message[len(sigil) :] if message.startswith(sigil) else message
            self._runtime.submit(line, self._principal(by, Source.PRIVATE, None), by)
            return
        if message.startswith(sigil):
            self._runtime.submit(message[len(sigil) :], self._principal(by, Source.CHANNEL, target), target)
            return
        _, evt = message_in(target, by, message)
        self._bus.publish("irc", evt)
