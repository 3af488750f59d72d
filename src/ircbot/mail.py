"""In-memory mailbox: messages left for a nick, delivered when they next show up."""

from __future__ import annotations

import itertools
import time
from dataclasses import dataclass, field

from cachetools import TTLCache
from loguru import logger

from ircbot.commands.context import OutboundSink
from ircbot.core import constants
from ircbot.core.errors import InputError
from ircbot.events import Join, MessageIn


@dataclass(frozen=True)
class Mail:
    sender: str
    recipient: str
    text: str
    created_at: float = field(default_factory=time.time)


class MailBox:
    """Pending mails keyed by recipient (case-insensitive), expiring after ``ttl`` seconds.

    Registered on the Router bus: a Join or message from a recipient flushes
    their mails to them in private through the outbound sink.
    """

    def __init__(
        self,
        sink: OutboundSink,
        *,
        ttl: float = constants.MAIL_TTL,
        max_per_recipient: int = 20,
        maxsize: int = 4096,
    ) -> None:
        self._sink = sink
        self._max_per_recipient = max_per_recipient
        self._mails: TTLCache[tuple[str, int], Mail] = TTLCache(maxsize=maxsize, ttl=ttl)
        self._seq = itertools.count()

    def add(self, sender: str, recipient: str, text: str) -> Mail:
        if len(self.pending(recipient)) >= self._max_per_recipient:
            raise InputError(f"Mailbox of {recipient} is full", code="mailbox_full")
        mail = Mail(sender=sender, recipient=recipient, text=text)
        self._mails[(recipient.lower(), next(self._seq))] = mail
        logger.info("Mail from {} queued for {}", sender, recipient)
        return mail

    def pending(self, recipient: str) -> list[Mail]:
        """Unexpired mails for ``recipient``, oldest first."""
        who = recipient.lower()
        keys = sorted(k for k in list(self._mails.keys()) if k[0] == who)
        return [self._mails[k] for k in keys if k in self._mails]

    def take(self, recipient: str) -> list[Mail]:
        """Remove and return the pending mails of ``recipient``."""
        who = recipient.lower()
        keys = sorted(k for k in list(self._mails.keys()) if k[0] == who)
        return [m for m in (self._mails.pop(k, None) for k in keys) if m is not None]

    def accept_event(self, source: str, evt: object) -> bool:
        return isinstance(evt, (MessageIn, Join))

    def push_event(self, source: str, evt: object) -> None:
        if not isinstance(evt, (MessageIn, Join)):
            return
        mails = self.take(evt.nick)
        for mail in mails:
            self._sink.put(evt.nick, f"{mail.sender} left you a message: {mail.text}")
        if mails:
            logger.info("Delivered {} mail(s) to {}", len(mails), evt.nick)
