"""Read the bot's YAML config file and layer defaults under it."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv
from loguru import logger

from ircbot.core import constants

# Tuning knobs every loaded config carries, whatever the file sets
BOT_DEFAULTS: dict[str, Any] = {
    "bot": {
        "sigil": constants.DEFAULT_SIGIL,
        "max_inflight": constants.MAX_INFLIGHT,
        "handler_timeout": constants.HANDLER_TIMEOUT,
        "drain_timeout": constants.DRAIN_TIMEOUT,
        "reconnect_backoff": constants.RECONNECT_BACKOFF,
        "outbound_spacing": constants.OUTBOUND_SPACING,
        "outbound_ttl": constants.OUTBOUND_TTL,
        "mail_ttl": constants.MAIL_TTL,
    }
}


def _deep_update(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge ``override`` into a copy of ``base``; nested mappings merge key by key."""
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = _deep_update(current, value)
        else:
            merged[key] = value
    return merged


def load_config(path: str | Path) -> dict[str, Any]:
    """Parse ``path`` with the safe loader.

    A missing file or a document that is not a mapping gives ``{}``; a syntax
    error is logged and re-raised so the caller can refuse to start.
    """
    path = Path(path)
    if not path.is_file():
        logger.warning("No config file at {}", path)
        return {}
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        logger.error("Cannot parse {}: {}", path, exc)
        raise
    if not isinstance(data, dict):
        logger.warning("Ignoring {}: top level is {}, not a mapping", path, type(data).__name__)
        return {}
    return data


def load_config_with_env(path: str | Path) -> dict[str, Any]:
    """Populate the environment from ``.env``, then load ``path`` over BOT_DEFAULTS.

    The IRCBOT_* secret overrides are picked up by Config on reload.
    """
    load_dotenv()
    return _deep_update(BOT_DEFAULTS, load_config(path))
