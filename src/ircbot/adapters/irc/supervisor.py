"""IRC session supervisor: one connection at a time, fixed-delay reconnect loop."""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Callable, Sequence

from loguru import logger

from ircbot.adapters.irc.client import IRCClient
from ircbot.adapters.irc.outbound import OutboundQueue
from ircbot.adapters.irc.session import SessionState
from ircbot.commands.context import Services
from ircbot.commands.nodes import CommandNode
from ircbot.commands.runtime import CommandRuntime
from ircbot.commands.table import COMMAND_TABLE
from ircbot.config import Config
from ircbot.core.constants import QUIT_MESSAGE
from ircbot.core.errors import FatalError, TransientConnectionError
from ircbot.gateway import Bus

ClientFactory = Callable[["IRCSupervisor"], IRCClient]


def _default_client(supervisor: IRCSupervisor) -> IRCClient:
    return IRCClient(
        supervisor.config.irc_name,
        config=supervisor.config,
        session=supervisor.session,
        bus=supervisor.bus,
        runtime=supervisor.runtime,
        outbound=supervisor.outbound,
    )


class IRCSupervisor:
    """Owns the IRC connection, the session state and the command runtime.

    Disconnected -> Connecting -> Registered -> Joined, until stop(). The
    first connection failure is fatal; later ones are retried every
    ``reconnect_backoff`` seconds.
    """

    def __init__(
        self,
        config: Config,
        bus: Bus,
        outbound: OutboundQueue,
        services: Services,
        *,
        table: Sequence[CommandNode] = COMMAND_TABLE,
        client_factory: ClientFactory = _default_client,
        session: SessionState | None = None,
    ) -> None:
        self.config = config
        self.bus = bus
        self.outbound = outbound
        self.session = session or SessionState()
        self.runtime = CommandRuntime(table, config, outbound, services, self.stop)
        self._client_factory = client_factory
        self._client: IRCClient | None = None
        self._stopping = asyncio.Event()

    @property
    def stopping(self) -> bool:
        return self._stopping.is_set()

    @property
    def client(self) -> IRCClient | None:
        return self._client

    def stop(self) -> None:
        """Ask the supervisor to unwind. Safe to call from handlers and signal handlers."""
        if not self._stopping.is_set():
            logger.info("Stop requested")
        self._stopping.set()

    def _server_password(self) -> str | None:
        password = self.config.irc_password
        if not password:
            return None
        return f"{self.config.irc_name}:{password}"

    async def _connect(self, client: IRCClient) -> None:
        server, port = self.config.irc_server, self.config.irc_port
        logger.info("Connecting to {}:{}", server, port)
        try:
            await client.connect(
                hostname=server,
                port=port,
                password=self._server_password(),
                tls=self.config.irc_tls,
                tls_verify=self.config.irc_tls_verify,
            )
        except Exception as exc:
            raise TransientConnectionError(
                f"Unable to connect to IRC server {server}: {exc}",
                code="connect_failed",
                details={"server": server, "port": port},
                original_error=exc,
            ) from exc

    async def _wait_closed_or_stopped(self, client: IRCClient) -> None:
        closed = asyncio.create_task(client.closed.wait())
        stopped = asyncio.create_task(self._stopping.wait())
        try:
            await asyncio.wait({closed, stopped}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (closed, stopped):
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task

    async def _backoff(self) -> None:
        """Sleep ``reconnect_backoff`` seconds, or less if stop() is called."""
        with contextlib.suppress(asyncio.TimeoutError):
            await asyncio.wait_for(self._stopping.wait(), timeout=self.config.reconnect_backoff)

    async def _teardown(self, client: IRCClient) -> None:
        self.outbound.detach()
        self.session.on_disconnected()
        if client.connected:
            await client.disconnect(expected=True)

    async def run(self) -> None:
        """Run until stop(). Raises FatalError if the first connection fails."""
        self.outbound.start()
        ever_connected = False
        try:
            while not self._stopping.is_set():
                client = self._client_factory(self)
                self._client = client
                try:
                    await self._connect(client)
                except TransientConnectionError as exc:
                    if not ever_connected:
                        logger.error("{}, aborting.", exc)
                        raise FatalError(str(exc), code="initial_connect", original_error=exc) from exc
                    logger.warning("{}, retrying in {}s", exc, self.config.reconnect_backoff)
                    await self._teardown(client)
                    await self._backoff()
                    continue

                ever_connected = True
                await self._wait_closed_or_stopped(client)
                if self._stopping.is_set():
                    break
                logger.warning(
                    "Connection IRC to {} lost, retrying in {}s",
                    self.config.irc_server,
                    self.config.reconnect_backoff,
                )
                await self._teardown(client)
                await self._backoff()
        finally:
            await self._shutdown()

    async def _shutdown(self) -> None:
        """Drain commands, then replies, then leave IRC."""
        drain = self.config.drain_timeout
        await self.runtime.shutdown(drain)
        await self.outbound.drain(drain)
        client = self._client
        if client is not None and client.connected:
            with contextlib.suppress(asyncio.TimeoutError):
                await asyncio.wait_for(client.quit(QUIT_MESSAGE), timeout=drain)
        await self.outbound.stop()
        self._client = None
        logger.info("IRC supervisor stopped")
