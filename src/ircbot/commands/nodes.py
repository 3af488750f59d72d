"""Command tree nodes and the principal issuing a command."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Union

from ircbot.core.constants import Permission, Source

if TYPE_CHECKING:
    from ircbot.commands.context import CommandContext

Handler = Callable[[str, "Principal", "CommandContext"], Awaitable[Union[str, None]]]


@dataclass(frozen=True)
class Principal:
    """Identified source of a command line."""

    source: Source
    nick: str
    permission: Permission = Permission.USER
    channel: str | None = None  # None for private and console input


@dataclass(frozen=True)
class Leaf:
    """Terminal command. A leaf without handler is a placeholder and never matches."""

    handler: Handler | None
    source: str | None = None  # upstream name used in timeout replies


@dataclass(frozen=True)
class Branch:
    """Subcommand container."""

    children: tuple[CommandNode, ...]


@dataclass(frozen=True)
class CommandNode:
    name: str
    help: str
    kind: Leaf | Branch
    min_permission: Permission = Permission.USER

    @property
    def is_branch(self) -> bool:
        return isinstance(self.kind, Branch)

    @property
    def children(self) -> tuple[CommandNode, ...]:
        return self.kind.children if isinstance(self.kind, Branch) else ()


def leaf(
    name: str,
    handler: Handler | None,
    help: str = "",
    *,
    permission: Permission = Permission.USER,
    source: str | None = None,
) -> CommandNode:
    return CommandNode(name=name, help=help, kind=Leaf(handler, source), min_permission=permission)


def branch(
    name: str,
    children: tuple[CommandNode, ...] | list[CommandNode],
    help: str = "",
    *,
    permission: Permission = Permission.USER,
) -> CommandNode:
    names = [child.name for child in children]
    if len(names) != len(set(names)):
        raise ValueError(f"duplicate subcommand names under {name!r}: {names}")
    return CommandNode(name=name, help=help, kind=Branch(tuple(children)), min_permission=permission)
