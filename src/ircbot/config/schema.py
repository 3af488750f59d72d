"""Config schema and accessor."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Any

from loguru import logger

from ircbot.core import constants
from ircbot.core.errors import BotConfigurationError

# Env keys that override secrets from the YAML file (loaded once per reload)
_ENV_OVERRIDES = {
    "IRCBOT_IRC_PASSWORD": "irc.password",
    "IRCBOT_GITLAB_API_KEY": "gitlab.api_key",
    "IRCBOT_OPENWEATHERMAP_API_KEY": "openweathermap.api_key",
    "IRCBOT_WEBKNOX_API_KEY": "webknox.api_key",
}

_POSITIVE_KNOBS = (
    "max_inflight",
    "handler_timeout",
    "drain_timeout",
    "reconnect_backoff",
    "outbound_spacing",
    "outbound_ttl",
    "mail_ttl",
)


def _load_env_overrides() -> dict[str, str]:
    """Dotted config key -> env value, for every override that is set."""
    found: dict[str, str] = {}
    for env_key, path in _ENV_OVERRIDES.items():
        val = os.environ.get(env_key, "")
        if val:
            found[path] = val
    return found


@dataclass(frozen=True)
class ChannelConfig:
    """One auto-joined channel and its optional GitLab project."""

    name: str
    gitlab_project: str = ""
    gitlab_namespace: str = ""

    @property
    def has_gitlab(self) -> bool:
        return bool(self.gitlab_project and self.gitlab_namespace)


class Config:
    """Typed view over the loaded YAML mapping, with IRCBOT_* secrets layered on top."""

    def __init__(self, data: dict[str, Any] | None = None) -> None:
        self._data = data or {}
        self._env: dict[str, str] = _load_env_overrides()

    def reload(self, data: dict[str, Any], *, validate: bool = True) -> None:
        """Swap in freshly loaded data; on validation failure the old data stays."""
        previous, previous_env = self._data, self._env
        self._data = data or {}
        self._env = _load_env_overrides()
        if validate:
            try:
                self._validate()
            except BotConfigurationError:
                self._data, self._env = previous, previous_env
                raise
        logger.debug("Config reloaded: {} channels, {} admins", len(self.irc_channels), len(self.admins))

    def _validate(self) -> None:
        """Validate config structure; raise BotConfigurationError on failure."""
        for key in ("irc.server", "irc.name"):
            if not self.get(key):
                raise BotConfigurationError(
                    f"{key} is required",
                    code="missing_key",
                    details={"key": key},
                )
        channels = self.get("irc.channels")
        if channels is not None and not isinstance(channels, list):
            raise BotConfigurationError(
                "irc.channels must be a list",
                code="invalid_channels",
                details={"type": type(channels).__name__},
            )
        for i, item in enumerate(channels or []):
            name = item.get("name") if isinstance(item, dict) else item
            if not isinstance(name, str) or not name:
                raise BotConfigurationError(
                    f"irc.channels[{i}] missing name",
                    code="invalid_channel_item",
                    details={"index": i},
                )
        admins = self._data.get("admins")
        if admins is not None and not isinstance(admins, list):
            raise BotConfigurationError(
                "admins must be a list",
                code="invalid_admins",
                details={"type": type(admins).__name__},
            )
        if len(self.sigil) != 1:
            raise BotConfigurationError(
                "bot.sigil must be a single character",
                code="invalid_sigil",
                details={"sigil": self.sigil},
            )
        for knob in _POSITIVE_KNOBS:
            try:
                value = getattr(self, knob)
            except (TypeError, ValueError) as exc:
                raise BotConfigurationError(
                    f"bot.{knob} must be a number",
                    code="invalid_number",
                    details={"key": f"bot.{knob}"},
                    original_error=exc,
                ) from exc
            if value <= 0:
                raise BotConfigurationError(
                    f"bot.{knob} must be positive",
                    code="invalid_number",
                    details={"key": f"bot.{knob}", "value": value},
                )

    @property
    def raw(self) -> dict[str, Any]:
        return self._data

    def get(self, key: str, default: Any = None) -> Any:
        """Get value by dot-separated path. Env overrides win for secrets."""
        if key in self._env:
            return self._env[key]
        parts = key.split(".")
        obj: Any = self._data
        for part in parts:
            if isinstance(obj, dict) and part in obj:
                obj = obj[part]
            else:
                return default
        return obj

    # IRC connection

    @property
    def irc_server(self) -> str:
        return str(self.get("irc.server", ""))

    @property
    def irc_port(self) -> int:
        return int(self.get("irc.port", 6667))

    @property
    def irc_tls(self) -> bool:
        return bool(self.get("irc.tls", False))

    @property
    def irc_tls_verify(self) -> bool:
        return bool(self.get("irc.tls_verify", True))

    @property
    def irc_name(self) -> str:
        return str(self.get("irc.name", ""))

    @property
    def irc_password(self) -> str:
        return str(self.get("irc.password", "") or "")

    @property
    def irc_channels(self) -> list[ChannelConfig]:
        """Channels to auto-join, in config order."""
        raw = self.get("irc.channels")
        if not isinstance(raw, list):
            return []
        channels: list[ChannelConfig] = []
        for item in raw:
            if isinstance(item, str) and item:
                channels.append(ChannelConfig(name=item))
            elif isinstance(item, dict) and item.get("name"):
                gitlab = item.get("gitlab") if isinstance(item.get("gitlab"), dict) else {}
                channels.append(
                    ChannelConfig(
                        name=str(item["name"]),
                        gitlab_project=str(gitlab.get("project", "") or ""),
                        gitlab_namespace=str(gitlab.get("namespace", "") or ""),
                    )
                )
        return channels

    def channel_config(self, name: str) -> ChannelConfig | None:
        for channel in self.irc_channels:
            if channel.name.lower() == name.lower():
                return channel
        return None

    @property
    def admins(self) -> list[str]:
        val = self._data.get("admins")
        if isinstance(val, list):
            return [str(n) for n in val]
        return []

    def is_admin(self, nick: str) -> bool:
        return nick.lower() in {a.lower() for a in self.admins}

    # Integrations

    @property
    def gitlab_uri(self) -> str:
        return str(self.get("gitlab.uri", "") or "").rstrip("/")

    @property
    def gitlab_api_key(self) -> str:
        return str(self.get("gitlab.api_key", "") or "")

    @property
    def openweathermap_api_key(self) -> str:
        return str(self.get("openweathermap.api_key", "") or "")

    @property
    def webknox_api_key(self) -> str:
        return str(self.get("webknox.api_key", "") or "")

    # Runtime tuning

    @property
    def sigil(self) -> str:
        return str(self.get("bot.sigil", constants.DEFAULT_SIGIL))

    @property
    def max_inflight(self) -> int:
        return int(self.get("bot.max_inflight", constants.MAX_INFLIGHT))

    @property
    def handler_timeout(self) -> float:
        return float(self.get("bot.handler_timeout", constants.HANDLER_TIMEOUT))

    @property
    def drain_timeout(self) -> float:
        return float(self.get("bot.drain_timeout", constants.DRAIN_TIMEOUT))

    @property
    def reconnect_backoff(self) -> float:
        return float(self.get("bot.reconnect_backoff", constants.RECONNECT_BACKOFF))

    @property
    def outbound_spacing(self) -> float:
        return float(self.get("bot.outbound_spacing", constants.OUTBOUND_SPACING))

    @property
    def outbound_ttl(self) -> float:
        return float(self.get("bot.outbound_ttl", constants.OUTBOUND_TTL))

    @property
    def mail_ttl(self) -> float:
        return float(self.get("bot.mail_ttl", constants.MAIL_TTL))


cfg: Config = Config({})
