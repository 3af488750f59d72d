"""Reply formatting for IRC."""

from ircbot.formatting.split import split_reply

__all__ = ["split_reply"]
