"""Tests for the mailbox."""

from __future__ import annotations

import time

import pytest

from ircbot.core.errors import InputError
from ircbot.events import join, message_in, part
from ircbot.gateway import Bus
from ircbot.mail import MailBox
from tests.mocks import RecordingSink


class TestMailBox:
    def test_pending_is_case_insensitive_and_ordered(self):
        # Arrange
        box = MailBox(RecordingSink())

        # Act
        box.add("bob", "Carol", "first")
        box.add("dave", "carol", "second")

        # Assert
        assert [m.text for m in box.pending("CAROL")] == ["first", "second"]

    def test_take_empties_the_box(self):
        box = MailBox(RecordingSink())
        box.add("bob", "carol", "hi")

        assert len(box.take("carol")) == 1
        assert box.take("carol") == []

    def test_full_mailbox(self):
        box = MailBox(RecordingSink(), max_per_recipient=2)
        box.add("bob", "carol", "1")
        box.add("bob", "carol", "2")

        with pytest.raises(InputError, match="Mailbox of carol is full"):
            box.add("bob", "carol", "3")

    def test_mails_expire(self):
        box = MailBox(RecordingSink(), ttl=0.01)
        box.add("bob", "carol", "hi")
        time.sleep(0.03)
        assert box.pending("carol") == []


class TestDelivery:
    def test_delivered_on_join(self):
        # Arrange
        sink = RecordingSink()
        box = MailBox(sink)
        bus = Bus()
        bus.register(box)
        box.add("bob", "carol", "see you at noon")

        # Act
        _, evt = join("#dev", "Carol")
        bus.publish("irc", evt)

        # Assert
        assert sink.sent == [("Carol", "bob left you a message: see you at noon")]
        assert box.pending("carol") == []

    def test_delivered_on_message(self):
        sink = RecordingSink()
        box = MailBox(sink)
        box.add("bob", "carol", "ping")

        _, evt = message_in("#dev", "carol", "hello")
        box.push_event("irc", evt)

        assert sink.texts("carol") == ["bob left you a message: ping"]

    def test_other_events_ignored(self):
        sink = RecordingSink()
        box = MailBox(sink)
        box.add("bob", "carol", "ping")

        _, evt = part("#dev", "carol")

        assert box.accept_event("irc", evt) is False
        assert sink.sent == []
