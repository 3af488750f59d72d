"""Permission levels, principal sources and runtime defaults."""

from __future__ import annotations

from enum import Enum, IntEnum


class Permission(IntEnum):
    """Total order of caller privileges."""

    USER = 0
    ADMIN = 1
    CONSOLE = 2


class Source(str, Enum):
    """Where a command line came from."""

    CHANNEL = "channel"
    PRIVATE = "private"
    CONSOLE = "console"


DEFAULT_SIGIL = "."
MAX_INFLIGHT = 16
HANDLER_TIMEOUT = 15.0
DRAIN_TIMEOUT = 5.0
RECONNECT_BACKOFF = 30.0
OUTBOUND_SPACING = 0.5
OUTBOUND_TTL = 60.0
MAIL_TTL = 7 * 24 * 3600.0

# Replies
PERMISSION_REFUSED = "Tu n'as pas la permission !"
UNKNOWN_COMMAND = "Unknown command."
BUSY_REPLY = "Busy, try again later."
INTERNAL_ERROR = "Internal error."
FAREWELL = "Noooo, I died !! Good bye my friends !"
QUIT_MESSAGE = "Bye"
