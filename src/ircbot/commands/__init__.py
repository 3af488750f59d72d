"""Command tree, resolver, permission gate and handler runtime."""

from ircbot.commands.context import CommandContext, OutboundSink, Services
from ircbot.commands.nodes import Branch, CommandNode, Leaf, Principal, branch, leaf
from ircbot.commands.permissions import ensure_permitted, is_permitted
from ircbot.commands.resolver import Outcome, Resolution, resolve
from ircbot.commands.runtime import CommandRuntime
from ircbot.commands.table import COMMAND_TABLE

__all__ = [
    "COMMAND_TABLE",
    "Branch",
    "CommandContext",
    "CommandNode",
    "CommandRuntime",
    "Leaf",
    "OutboundSink",
    "Outcome",
    "Principal",
    "Resolution",
    "Services",
    "branch",
    "ensure_permitted",
    "is_permitted",
    "leaf",
    "resolve",
]
