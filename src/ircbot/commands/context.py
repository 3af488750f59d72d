"""Per-dispatch context handed to command handlers."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from ircbot.commands.nodes import CommandNode, Principal
from ircbot.config import Config

if TYPE_CHECKING:
    from ircbot.clients.gitlab import GitlabClient
    from ircbot.clients.http import JsonClient
    from ircbot.mail import MailBox


class OutboundSink(Protocol):
    """Anything replies can be written to (the IRC outbound queue, the console)."""

    def put(self, target: str, text: str) -> None: ...


@dataclass
class Services:
    """External collaborators shared by handlers."""

    http: JsonClient
    gitlab: GitlabClient
    mailbox: MailBox


@dataclass
class CommandContext:
    principal: Principal
    target: str
    sink: OutboundSink
    config: Config
    table: Sequence[CommandNode]
    services: Services
    request_shutdown: Callable[[], None]

    def publish(self, text: str) -> None:
        """Send text to the originating channel (or private target)."""
        self.sink.put(self.target, text)
