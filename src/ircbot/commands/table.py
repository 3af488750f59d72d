"""The static command table. Its order is the order shown by ``list``."""

from __future__ import annotations

from ircbot.commands import handlers
from ircbot.commands.nodes import CommandNode, branch, leaf
from ircbot.core.constants import Permission

GITLAB_COMMANDS: tuple[CommandNode, ...] = (
    leaf("issue", handlers.handle_gitlab_issue, "Usage: .gitlab issue <issue_id>", source="gitlab"),
)

COMMAND_TABLE: tuple[CommandNode, ...] = (
    leaf("weather", handlers.handle_weather, "Usage: .weather <ville>", source="openweathermap"),
    branch("gitlab", GITLAB_COMMANDS, "Usage: .gitlab <issue>"),
    leaf("chuck_norris", handlers.handle_chuck_norris, "Usage: .chuck_norris", source="icndb"),
    leaf("joke", handlers.handle_joke, "Usage: .joke", source="webknox"),
    leaf("vdm", handlers.handle_vdm, "Usage: .vdm"),
    leaf("quote", handlers.handle_quote, "Usage: .quote", source="quote"),
    leaf("say", handlers.handle_say, "Usage: .say text", permission=Permission.ADMIN),
    leaf("help", handlers.handle_help, "Usage: .help [command]"),
    leaf("list", handlers.handle_list, "Usage: .list"),
    leaf("mail", handlers.handle_mail, "Usage: .mail <pseudo> <message>"),
    leaf("stop", handlers.handle_stop, "Stop bot", permission=Permission.ADMIN),
)
