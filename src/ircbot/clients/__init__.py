"""HTTP/JSON adapters consumed by command handlers."""

from ircbot.clients.gitlab import GitlabClient
from ircbot.clients.http import JsonClient, json_path

__all__ = ["GitlabClient", "JsonClient", "json_path"]
