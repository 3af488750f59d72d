"""Events the IRC session hands to the Router, and the dispatcher that fans them out."""

from __future__ import annotations

import contextlib
import functools
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any, Protocol

from loguru import logger


@dataclass
class Connected:
    """Registered with the server under the confirmed nickname."""

    nick: str


@dataclass
class MessageIn:
    """Non-command message seen on IRC."""

    channel: str
    nick: str
    content: str
    is_private: bool = False
    raw: dict[str, Any] = field(default_factory=dict)


@dataclass
class Join:
    """Someone (possibly the bot) joined a channel."""

    channel: str
    nick: str


@dataclass
class Part:
    """Someone left a channel on their own."""

    channel: str
    nick: str
    reason: str | None = None


@dataclass
class Kick:
    """User was kicked from a channel."""

    channel: str
    nick: str
    by: str
    reason: str | None = None


@dataclass
class TopicChange:
    channel: str
    topic: str
    by: str | None = None


@dataclass
class Notice:
    target: str
    nick: str
    content: str


@dataclass
class ChannelMembers:
    """Full member list of a channel, published once per ENDOFNAMES."""

    channel: str
    members: list[str]


@dataclass
class ConfigReload:
    """The config file was re-read after SIGHUP."""


class EventTarget(Protocol):
    """Anything registered on the Bus."""

    def accept_event(self, source: str, evt: object) -> bool: ...

    def push_event(self, source: str, evt: object) -> None: ...


EventFactory = Callable[..., tuple[str, object]]


def event(type_name: str) -> Callable[[Callable[..., object]], EventFactory]:
    """Wrap a constructor so it returns ``(type_name, evt)``; the name is kept on ``.TYPE``."""

    def wrap(build: Callable[..., object]) -> EventFactory:
        @functools.wraps(build)
        def factory(*args: Any, **kwargs: Any) -> tuple[str, object]:
            return type_name, build(*args, **kwargs)

        factory.TYPE = type_name  # type: ignore[attr-defined]
        return factory

    return wrap


@event("connected")
def connected(nick: str) -> Connected:
    return Connected(nick=nick)


@event("message_in")
def message_in(
    channel: str,
    nick: str,
    content: str,
    *,
    is_private: bool = False,
    raw: dict[str, Any] | None = None,
) -> MessageIn:
    return MessageIn(channel=channel, nick=nick, content=content, is_private=is_private, raw=raw or {})


@event("join")
def join(channel: str, nick: str) -> Join:
    return Join(channel=channel, nick=nick)


@event("part")
def part(channel: str, nick: str, *, reason: str | None = None) -> Part:
    return Part(channel=channel, nick=nick, reason=reason)


@event("kick")
def kick(channel: str, nick: str, by: str, *, reason: str | None = None) -> Kick:
    return Kick(channel=channel, nick=nick, by=by, reason=reason)


@event("topic_change")
def topic_change(channel: str, topic: str, *, by: str | None = None) -> TopicChange:
    return TopicChange(channel=channel, topic=topic, by=by)


@event("notice")
def notice(target: str, nick: str, content: str) -> Notice:
    return Notice(target=target, nick=nick, content=content)


@event("channel_members")
def channel_members(channel: str, members: list[str]) -> ChannelMembers:
    return ChannelMembers(channel=channel, members=list(members))


@event("config_reload")
def config_reload() -> ConfigReload:
    return ConfigReload()


class Dispatcher:
    """Hands each event to every target whose ``accept_event`` says yes, in registration order.

    A target that raises is logged and skipped; the others still get the event.
    """

    def __init__(self) -> None:
        self._targets: list[EventTarget] = []

    @property
    def targets(self) -> list[EventTarget]:
        return list(self._targets)

    def register(self, target: EventTarget) -> None:
        self._targets.append(target)

    def unregister(self, target: EventTarget) -> None:
        with contextlib.suppress(ValueError):
            self._targets.remove(target)

    def dispatch(self, source: str, evt: object) -> None:
        # Snapshot: a target may unregister itself while handling the event
        for target in list(self._targets):
            try:
                if target.accept_event(source, evt):
                    target.push_event(source, evt)
            except Exception as exc:
                logger.exception("{} from {} broke target {}: {}", type(evt).__name__, source, target, exc)
