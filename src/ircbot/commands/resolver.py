"""Command resolver: walks the command tree along the head tokens of a line.

Tokens are separated by ASCII spaces only; tabs and other whitespace stay part
of the token. Matching is exact and case-sensitive, first match wins.

A branch recurses into its children with the rest of the line:

* child found          -> ``OK`` with the leaf, ``parent`` is the deepest branch
* nothing matched      -> ``UNKNOWN_SUBCOMMAND`` carrying the branch; ``args``
                          restarts right after the branch token
* deeper unknown sub   -> propagated as is

Nothing is mutated; the same table and line always give the same result.
"""

from __future__ import annotations

import enum
from collections.abc import Sequence
from dataclasses import dataclass

from ircbot.commands.nodes import Branch, CommandNode


class Outcome(enum.Enum):
    OK = "ok"
    UNKNOWN = "unknown"
    UNKNOWN_SUBCOMMAND = "unknown_subcommand"


@dataclass(frozen=True)
class Resolution:
    outcome: Outcome
    node: CommandNode | None = None
    args: str = ""
    consumed: int = 0  # characters of the input used by the command path
    parent: CommandNode | None = None


def split_head(text: str) -> tuple[str, int]:
    """Return the head token and the offset of the text after its separator run."""
    end = text.find(" ")
    if end < 0:
        return text, len(text)
    offset = end
    while offset < len(text) and text[offset] == " ":
        offset += 1
    return text[:end], offset


def resolve(table: Sequence[CommandNode], text: str) -> Resolution:
    """Resolve ``text`` (without sigil) against ``table``."""
    head, offset = split_head(text)
    rest = text[offset:]
    for node in table:
        if node.name != head:
            continue
        if isinstance(node.kind, Branch):
            sub = resolve(node.kind.children, rest)
            if sub.outcome is Outcome.OK:
                return Resolution(
                    Outcome.OK,
                    node=sub.node,
                    args=sub.args,
                    consumed=offset + sub.consumed,
                    parent=sub.parent or node,
                )
            if sub.outcome is Outcome.UNKNOWN:
                return Resolution(Outcome.UNKNOWN_SUBCOMMAND, node=node, args=rest, consumed=offset)
            return Resolution(
                Outcome.UNKNOWN_SUBCOMMAND,
                node=sub.node,
                args=sub.args,
                consumed=offset + sub.consumed,
                parent=sub.parent or node,
            )
        if node.kind.handler is None:
            continue
        return Resolution(Outcome.OK, node=node, args=rest, consumed=offset)
    return Resolution(Outcome.UNKNOWN, args=text)
