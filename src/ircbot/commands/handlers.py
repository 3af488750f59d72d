"""Built-in command handlers.

Every handler is ``async (args, principal, ctx) -> str | None``. The returned
string is the reply to the caller; None means nothing to send back. Handlers
raise InputError for bad input and let UpstreamError from the HTTP clients
propagate; the runtime turns both into one-line replies.
"""

from __future__ import annotations

import html
import math
from collections.abc import Sequence

from loguru import logger

from ircbot.clients.http import json_path
from ircbot.commands.context import CommandContext
from ircbot.commands.nodes import CommandNode, Principal
from ircbot.commands.resolver import Outcome, resolve
from ircbot.config import ChannelConfig, Config
from ircbot.core.constants import FAREWELL
from ircbot.core.errors import InputError, UpstreamError

WEATHER_URL = "http://api.openweathermap.org/data/2.5/weather"
ICNDB_URL = "http://api.icndb.com/jokes/random"
WEBKNOX_URL = "http://webknox.com/api/jokes/random"
QUOTE_URL = "http://q.uote.me/api.php"

HELP_HEADER = "/help <command> to get the help of the command"
MAIL_USAGE = "Usage : .mail <pseudo> <message>"


def _missing_key(name: str) -> str:
    logger.warning("Key {} doesn't exist !", name)
    return f"Key {name} doesn't exist !"


def command_list(table: Sequence[CommandNode]) -> str:
    return "Command list : " + ", ".join(node.name for node in table)


async def handle_list(args: str, principal: Principal, ctx: CommandContext) -> str:
    return command_list(ctx.table)


async def handle_help(args: str, principal: Principal, ctx: CommandContext) -> str:
    if not args:
        return f"{HELP_HEADER}\n{command_list(ctx.table)}"

    res = resolve(ctx.table, args)
    if res.outcome is Outcome.OK:
        return res.node.help
    if res.outcome is Outcome.UNKNOWN_SUBCOMMAND:
        lines = [res.node.help]
        for child in res.node.children:
            lines.append(f"{child.name}\n\t{child.help}")
        return "\n".join(lines)
    return "Command not found"


async def handle_say(args: str, principal: Principal, ctx: CommandContext) -> None:
    if not args:
        raise InputError("Usage: .say text")
    ctx.publish(args)


async def handle_stop(args: str, principal: Principal, ctx: CommandContext) -> str:
    logger.warning("Stop requested by {}", principal.nick)
    ctx.publish(FAREWELL)
    ctx.request_shutdown()
    return "Server stop..."


async def handle_vdm(args: str, principal: Principal, ctx: CommandContext) -> str:
    return "WIP"


def _celsius(kelvin: object) -> int:
    return math.floor(float(kelvin) - 273.15)


async def handle_weather(args: str, principal: Principal, ctx: CommandContext) -> str:
    key = ctx.config.openweathermap_api_key
    if not key:
        return _missing_key("openweather")
    city = args.strip()
    if not city:
        raise InputError("Usage: .weather <ville>")

    data = await ctx.services.http.get_json(
        WEATHER_URL,
        source="openweathermap",
        params={"q": city, "APPID": key},
    )
    main = json_path(data, "main", source="openweathermap")
    try:
        temp = _celsius(json_path(main, "temp", source="openweathermap"))
        tmin = _celsius(json_path(main, "temp_min", source="openweathermap"))
        tmax = _celsius(json_path(main, "temp_max", source="openweathermap"))
    except (TypeError, ValueError) as exc:
        raise UpstreamError("Temperature is not a number", source="openweathermap", original_error=exc) from exc
    name = json_path(data, "name", source="openweathermap")
    return f"La température à {name} est de {temp} degrés. (min : {tmin} max : {tmax})"


async def handle_chuck_norris(args: str, principal: Principal, ctx: CommandContext) -> str:
    data = await ctx.services.http.get_json(ICNDB_URL, source="icndb")
    return html.unescape(str(json_path(data, "value", "joke", source="icndb")))


async def handle_joke(args: str, principal: Principal, ctx: CommandContext) -> str:
    key = ctx.config.webknox_api_key
    if not key:
        return _missing_key("webknox")
    data = await ctx.services.http.get_json(WEBKNOX_URL, source="webknox", params={"apiKey": key})
    return str(json_path(data, "joke", source="webknox"))


async def handle_quote(args: str, principal: Principal, ctx: CommandContext) -> str:
    data = await ctx.services.http.get_json(
        QUOTE_URL,
        source="quote",
        params={"p": "json", "l": 1, "s": "random"},
    )
    return str(json_path(data, "data", 0, "text", source="quote"))


def _gitlab_channel(config: Config, channel: str | None) -> ChannelConfig | None:
    """GitLab project of the calling channel, else of the first channel that has one."""
    if channel:
        own = config.channel_config(channel)
        if own and own.has_gitlab:
            return own
    for candidate in config.irc_channels:
        if candidate.has_gitlab:
            return candidate
    return None


async def handle_gitlab_issue(args: str, principal: Principal, ctx: CommandContext) -> str:
    arg = args.strip()
    # int() alone would take "4_2" and non-ASCII digits
    if not (arg.isascii() and arg.isdigit()):
        raise InputError("Invalid argument.")
    issue_id = int(arg)
    if issue_id <= 0:
        raise InputError("Invalid argument.")

    project = _gitlab_channel(ctx.config, principal.channel)
    if project is None:
        return "Invalid gitlab project"

    gitlab = ctx.services.gitlab
    if not gitlab.configured:
        return _missing_key("gitlab")

    project_id = await gitlab.get_project_id(project.gitlab_namespace, project.gitlab_project)
    if project_id is None:
        return "This issue does not exist"
    issue = await gitlab.get_issue(project_id, issue_id)
    if issue is None:
        return "This issue does not exist"

    author = json_path(issue, "author", "name", source="gitlab")
    state = json_path(issue, "state", source="gitlab")
    title = json_path(issue, "title", source="gitlab")
    web_url = json_path(issue, "web_url", source="gitlab")
    return f"Issue #{issue_id} (par {author}, {state}): {title} => {web_url}"


async def handle_mail(args: str, principal: Principal, ctx: CommandContext) -> str:
    nick, _, message = args.partition(" ")
    message = message.strip(" ")
    if not nick or not message:
        raise InputError(MAIL_USAGE)
    ctx.services.mailbox.add(principal.nick, nick, message)
    return f"Send message to {nick}"
