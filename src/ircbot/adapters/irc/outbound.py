"""Outbound queue: per-target FIFO drained by one rate-limited writer task."""

from __future__ import annotations

import asyncio
import contextlib
import time
from collections import OrderedDict, deque
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from loguru import logger

from ircbot.core import constants
from ircbot.formatting import split_reply

Sender = Callable[[str, str], Awaitable[None]]


@dataclass
class PendingLine:
    target: str
    text: str
    enqueued_at: float


class MinInterval:
    """Flood control: a minimum delay between two consecutive sends."""

    def __init__(self, spacing: float, clock: Callable[[], float] = time.monotonic) -> None:
        self._spacing = spacing
        self._clock = clock
        self._last: float | None = None

    def acquire(self) -> float:
        """Return seconds to wait before the next send. 0 if allowed now."""
        if self._last is None:
            return 0.0
        return max(0.0, self._last + self._spacing - self._clock())

    def mark(self) -> None:
        self._last = self._clock()


class OutboundQueue:
    """Replies waiting to be written to IRC.

    Targets (channel or nick) are served round-robin, each in enqueue order.
    While no sender is attached (disconnected) lines stay queued; lines older
    than ``ttl`` are dropped instead of sent.
    """

    def __init__(
        self,
        *,
        spacing: float = constants.OUTBOUND_SPACING,
        ttl: float = constants.OUTBOUND_TTL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._queues: OrderedDict[str, deque[PendingLine]] = OrderedDict()
        self._throttle = MinInterval(spacing, clock)
        self._ttl = ttl
        self._clock = clock
        self._sender: Sender | None = None
        self._online = asyncio.Event()
        self._wakeup = asyncio.Event()
        self._idle = asyncio.Event()
        self._idle.set()
        self._task: asyncio.Task | None = None
        self.dropped = 0

    def __len__(self) -> int:
        return sum(len(q) for q in self._queues.values())

    def put(self, target: str, text: str) -> None:
        """Queue a reply; multi-line text becomes one PRIVMSG per line."""
        now = self._clock()
        lines = split_reply(text)
        if not lines:
            return
        queue = self._queues.setdefault(target, deque())
        for line in lines:
            queue.append(PendingLine(target=target, text=line, enqueued_at=now))
        self._idle.clear()
        self._wakeup.set()

    def attach(self, sender: Sender) -> None:
        """Start writing through ``sender`` (called once the session is registered)."""
        self._sender = sender
        self._online.set()

    def detach(self) -> None:
        """Pause writing; queued lines are kept for the next session."""
        self._online.clear()
        self._sender = None

    def start(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._writer())

    def _pop(self) -> PendingLine | None:
        while self._queues:
            target, queue = next(iter(self._queues.items()))
            if not queue:
                del self._queues[target]
                continue
            line = queue.popleft()
            if queue:
                self._queues.move_to_end(target)
            else:
                del self._queues[target]
            return line
        return None

    def _push_front(self, line: PendingLine) -> None:
        self._queues.setdefault(line.target, deque()).appendleft(line)
        self._queues.move_to_end(line.target, last=False)

    async def _writer(self) -> None:
        while True:
            await self._online.wait()
            line = self._pop()
            if line is None:
                self._idle.set()
                self._wakeup.clear()
                await self._wakeup.wait()
                continue
            if self._clock() - line.enqueued_at > self._ttl:
                self.dropped += 1
                logger.debug("Dropping stale reply to {}: {}", line.target, line.text)
                continue
            wait = self._throttle.acquire()
            if wait > 0:
                await asyncio.sleep(wait)
            sender = self._sender
            if sender is None:
                self._push_front(line)
                continue
            try:
                await sender(line.target, line.text)
            except OSError as exc:
                # Socket gone: keep the line for the next session
                logger.warning("IRC send to {} failed, requeued: {}", line.target, exc)
                self._push_front(line)
                if self._sender is sender:
                    self.detach()
            except Exception as exc:
                logger.warning("IRC send to {} failed: {}", line.target, exc)
            finally:
                self._throttle.mark()

    async def drain(self, timeout: float) -> bool:
        """Wait until everything queued is written. False if the timeout expired."""
        if self._idle.is_set():
            return True
        try:
            await asyncio.wait_for(self._idle.wait(), timeout)
        except asyncio.TimeoutError:
            logger.warning("Outbound drain timed out with {} line(s) pending", len(self))
            return False
        return True

    async def stop(self) -> None:
        if self._task:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
        self._task = None
