"""Permission gate: USER < ADMIN < CONSOLE."""

from __future__ import annotations

from ircbot.commands.nodes import CommandNode, Principal
from ircbot.core.constants import Permission
from ircbot.core.errors import PermissionDenied


def is_permitted(required: Permission, granted: Permission) -> bool:
    return granted >= required


def ensure_permitted(node: CommandNode, principal: Principal) -> None:
    """Raise PermissionDenied when the caller is below the command floor."""
    if not is_permitted(node.min_permission, principal.permission):
        raise PermissionDenied(
            code="permission_denied",
            details={
                "command": node.name,
                "nick": principal.nick,
                "required": node.min_permission.name,
                "granted": principal.permission.name,
            },
        )
