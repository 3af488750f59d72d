"""Gateway: the Router bus that receives non-command IRC traffic."""

from ircbot.gateway.bus import Bus
from ircbot.gateway.journal import EventJournal

__all__ = ["Bus", "EventJournal"]
