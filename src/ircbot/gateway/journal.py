"""Journal: logs channel traffic received from the IRC session."""

from __future__ import annotations

from collections import deque

from loguru import logger

from ircbot.events import (
    ChannelMembers,
    Connected,
    Join,
    Kick,
    MessageIn,
    Notice,
    Part,
    TopicChange,
)

_JOURNALED = (Connected, MessageIn, Join, Part, Kick, TopicChange, Notice, ChannelMembers)


class EventJournal:
    """Logs Router events and keeps the last few lines per channel."""

    def __init__(self, history: int = 50) -> None:
        self._history = history
        self._lines: dict[str, deque[str]] = {}

    def accept_event(self, source: str, evt: object) -> bool:
        return isinstance(evt, _JOURNALED)

    def push_event(self, source: str, evt: object) -> None:
        if isinstance(evt, Connected):
            logger.info("Connected to IRC as {}", evt.nick)
        elif isinstance(evt, MessageIn):
            channel = evt.nick if evt.is_private else evt.channel
            self._remember(channel, f"<{evt.nick}> {evt.content}")
        elif isinstance(evt, Join):
            self._remember(evt.channel, f"* {evt.nick} joined")
        elif isinstance(evt, Part):
            self._remember(evt.channel, f"* {evt.nick} left ({evt.reason or ''})")
        elif isinstance(evt, Kick):
            self._remember(evt.channel, f"* {evt.nick} was kicked by {evt.by} ({evt.reason or ''})")
        elif isinstance(evt, TopicChange):
            logger.info("Topic of {}: {}", evt.channel, evt.topic)
        elif isinstance(evt, Notice):
            logger.debug("Notice from {} to {}: {}", evt.nick, evt.target, evt.content)
        elif isinstance(evt, ChannelMembers):
            logger.info("{} has {} members", evt.channel, len(evt.members))

    def _remember(self, channel: str, line: str) -> None:
        logger.debug("[{}] {}", channel, line)
        lines = self._lines.get(channel)
        if lines is None:
            lines = self._lines[channel] = deque(maxlen=self._history)
        lines.append(line)

    def recent(self, channel: str) -> list[str]:
        """Last lines seen on a channel, oldest first."""
        return list(self._lines.get(channel, ()))
