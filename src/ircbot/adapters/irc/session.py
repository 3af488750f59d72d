"""Session state owned by the supervisor: own nick, joined channels, pending NAMES."""

from __future__ import annotations

import threading
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, field

from loguru import logger


@dataclass
class IRCChannel:
    name: str
    topic: str = ""
    members: list[str] = field(default_factory=list)


def _key(channel: str) -> str:
    return channel.lower()


class SessionState:
    """Channel registry guarded by one lock. Critical sections never do I/O.

    A channel exists from our own JOIN until our own PART or KICK. NAMES
    replies are queued per channel until ENDOFNAMES drains them.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._own_nick = ""
        self._connected = False
        self._channels: dict[str, IRCChannel] = {}
        self._pending_names: dict[str, deque[str]] = {}

    @property
    def own_nick(self) -> str:
        with self._lock:
            return self._own_nick

    @property
    def connected(self) -> bool:
        with self._lock:
            return self._connected

    def on_registered(self, nick: str) -> None:
        with self._lock:
            self._own_nick = nick
            self._connected = True

    def on_disconnected(self) -> None:
        with self._lock:
            self._connected = False
            self._pending_names.clear()

    def on_nick_change(self, old: str, new: str) -> bool:
        """Follow a rename of our own nick. False if ``old`` was someone else."""
        with self._lock:
            if not self._own_nick or old.lower() != self._own_nick.lower():
                return False
            self._own_nick = new
            return True

    def is_self(self, nick: str | None) -> bool:
        if not nick:
            return False
        with self._lock:
            return bool(self._own_nick) and nick.lower() == self._own_nick.lower()

    def register(self, channel: str) -> None:
        with self._lock:
            self._channels[_key(channel)] = IRCChannel(name=channel)

    def leave(self, channel: str) -> bool:
        """Forget a channel. Returns False if it was not registered."""
        with self._lock:
            self._pending_names.pop(_key(channel), None)
            return self._channels.pop(_key(channel), None) is not None

    def set_topic(self, channel: str, topic: str) -> bool:
        with self._lock:
            entry = self._channels.get(_key(channel))
            if entry is None:
                logger.warning("Setting topic on unregistered channel '{}', ignoring.", channel)
                return False
            entry.topic = topic
            return True

    def add_names(self, channel: str, names: list[str]) -> None:
        with self._lock:
            self._pending_names.setdefault(_key(channel), deque()).extend(names)

    def pending_names(self, channel: str) -> list[str]:
        with self._lock:
            return list(self._pending_names.get(_key(channel), ()))

    def end_names(self, channel: str, publish: Callable[[list[str]], None]) -> list[str]:
        """Drain the NAMES queue into the channel members and publish them, atomically."""
        with self._lock:
            queue = self._pending_names.pop(_key(channel), deque())
            members: list[str] = []
            while queue:
                members.append(queue.popleft())
            entry = self._channels.get(_key(channel))
            if entry is not None:
                entry.members = list(members)
            publish(members)
            return members

    def channel(self, channel: str) -> IRCChannel | None:
        """Copy of one channel entry."""
        with self._lock:
            entry = self._channels.get(_key(channel))
            if entry is None:
                return None
            return IRCChannel(name=entry.name, topic=entry.topic, members=list(entry.members))

    def channel_names(self) -> list[str]:
        with self._lock:
            return [c.name for c in self._channels.values()]
