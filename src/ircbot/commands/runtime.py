"""Handler runtime: runs resolved commands as bounded, deadline-guarded tasks."""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Callable, Sequence

from loguru import logger

from ircbot.commands.context import CommandContext, OutboundSink, Services
from ircbot.commands.nodes import CommandNode, Leaf, Principal
from ircbot.commands.permissions import ensure_permitted
from ircbot.commands.resolver import Outcome, resolve
from ircbot.config import Config
from ircbot.core import constants
from ircbot.core.errors import InputError, PermissionDenied, UpstreamError


class CommandRuntime:
    """Spawns one task per accepted command line, at most ``max_inflight`` at a time.

    Replies go to the sink given at submit time (default: the outbound queue).
    When the cap is reached the line is refused with a busy reply instead of
    being queued.
    """

    def __init__(
        self,
        table: Sequence[CommandNode],
        config: Config,
        sink: OutboundSink,
        services: Services,
        request_shutdown: Callable[[], None],
        *,
        max_inflight: int | None = None,
        timeout: float | None = None,
    ) -> None:
        self._table = table
        self._config = config
        self._sink = sink
        self._services = services
        self._request_shutdown = request_shutdown
        self._max_inflight = max_inflight or config.max_inflight
        self._timeout = timeout or config.handler_timeout
        self._tasks: set[asyncio.Task] = set()
        self._accepting = True

    @property
    def inflight(self) -> int:
        return len(self._tasks)

    @property
    def table(self) -> Sequence[CommandNode]:
        return self._table

    def submit(
        self,
        line: str,
        principal: Principal,
        target: str,
        *,
        sink: OutboundSink | None = None,
    ) -> bool:
        """Start a dispatch task for ``line`` (sigil already stripped).

        Returns False when the line was refused (busy or shutting down).
        """
        out = sink or self._sink
        if not self._accepting:
            logger.debug("Dropping command from {} during shutdown", principal.nick)
            return False
        if len(self._tasks) >= self._max_inflight:
            logger.warning("Command from {} refused: {} tasks in flight", principal.nick, len(self._tasks))
            out.put(target, constants.BUSY_REPLY)
            return False
        task = asyncio.create_task(self._run(line, principal, target, out))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return True

    async def _run(self, line: str, principal: Principal, target: str, sink: OutboundSink) -> None:
        reply = await self.execute(line, principal, target, sink=sink)
        if reply:
            sink.put(target, reply)

    async def execute(
        self,
        line: str,
        principal: Principal,
        target: str,
        *,
        sink: OutboundSink | None = None,
    ) -> str | None:
        """Resolve, gate and run one command line; return the reply text."""
        res = resolve(self._table, line)
        if res.outcome is Outcome.UNKNOWN:
            return constants.UNKNOWN_COMMAND
        if res.outcome is Outcome.UNKNOWN_SUBCOMMAND:
            return res.node.help

        node = res.node
        try:
            ensure_permitted(node, principal)
        except PermissionDenied as exc:
            logger.info("{} denied for {} ({})", node.name, principal.nick, principal.permission.name)
            return str(exc)

        command = node.kind
        if not isinstance(command, Leaf) or command.handler is None:
            return constants.UNKNOWN_COMMAND
        ctx = CommandContext(
            principal=principal,
            target=target,
            sink=sink or self._sink,
            config=self._config,
            table=self._table,
            services=self._services,
            request_shutdown=self._request_shutdown,
        )
        source = command.source or node.name
        logger.debug("Running {} for {} in {}", node.name, principal.nick, target)
        try:
            return await asyncio.wait_for(command.handler(res.args, principal, ctx), timeout=self._timeout)
        except asyncio.TimeoutError:
            logger.warning("{} timed out after {}s", node.name, self._timeout)
            return f"timeout fetching {source}"
        except InputError as exc:
            return str(exc)
        except UpstreamError as exc:
            logger.warning("{} failed: {} ({})", node.name, exc, exc.code)
            return exc.reply
        except Exception as exc:
            logger.exception("Handler {} crashed: {}", node.name, exc)
            return constants.INTERNAL_ERROR

    async def shutdown(self, drain_timeout: float | None = None) -> None:
        """Stop accepting commands, wait for running tasks, then cancel leftovers."""
        self._accepting = False
        if not self._tasks:
            return
        timeout = self._config.drain_timeout if drain_timeout is None else drain_timeout
        current = asyncio.current_task()
        tasks = {t for t in self._tasks if t is not current}
        if not tasks:
            return
        _, pending = await asyncio.wait(tasks, timeout=timeout)
        if pending:
            logger.warning("Abandoning {} command task(s) after {}s", len(pending), timeout)
        for task in pending:
            task.cancel()
        for task in pending:
            with contextlib.suppress(asyncio.CancelledError):
                await task
