"""IRC adapter package: pydle client, session state, outbound queue, supervisor."""

from ircbot.adapters.irc.client import IRCClient
from ircbot.adapters.irc.outbound import MinInterval, OutboundQueue, PendingLine
from ircbot.adapters.irc.session import IRCChannel, SessionState
from ircbot.adapters.irc.supervisor import IRCSupervisor

__all__ = [
    "IRCChannel",
    "IRCClient",
    "IRCSupervisor",
    "MinInterval",
    "OutboundQueue",
    "PendingLine",
    "SessionState",
]
