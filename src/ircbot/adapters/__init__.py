"""Input adapters: the IRC session and the local console."""

from ircbot.adapters.console import ConsoleAdapter
from ircbot.adapters.irc import IRCSupervisor

__all__ = ["ConsoleAdapter", "IRCSupervisor"]
