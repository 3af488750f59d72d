"""Router bus: where the IRC session publishes non-command traffic."""

from ircbot.events import Dispatcher, EventTarget

__all__ = ["Bus", "EventTarget"]


class Bus:
    """Publish/subscribe front for the Dispatcher.

    Publishers name themselves (``"irc"``, ``"main"``); targets decide from
    the source and the event type whether they care.
    """

    def __init__(self) -> None:
        self._dispatcher = Dispatcher()

    @property
    def targets(self) -> list[EventTarget]:
        return self._dispatcher.targets

    def register(self, target: EventTarget) -> None:
        self._dispatcher.register(target)

    def unregister(self, target: EventTarget) -> None:
        self._dispatcher.unregister(target)

    def publish(self, source: str, evt: object) -> None:
        self._dispatcher.dispatch(source, evt)
