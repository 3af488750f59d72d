"""Configuration: YAML + env overlay."""

from ircbot.config.loader import _deep_update, load_config, load_config_with_env
from ircbot.config.schema import ChannelConfig, Config, cfg

__all__ = ["ChannelConfig", "Config", "_deep_update", "cfg", "load_config", "load_config_with_env"]
