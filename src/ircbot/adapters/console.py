"""Console adapter: stdin lines run as commands with CONSOLE permission."""

from __future__ import annotations

import asyncio
import contextlib
import sys
from typing import TextIO

from loguru import logger

from ircbot.commands.nodes import Principal
from ircbot.commands.runtime import CommandRuntime
from ircbot.core.constants import Permission, Source
from ircbot.formatting import split_reply

CONSOLE_TARGET = "console"


class ConsoleAdapter:
    """Reads commands from stdin (or a given reader); replies go to the log."""

    def __init__(
        self,
        runtime: CommandRuntime,
        *,
        sigil: str = ".",
        reader: asyncio.StreamReader | None = None,
        stream: TextIO = sys.stdin,
    ) -> None:
        self._runtime = runtime
        self._sigil = sigil
        self._reader = reader
        self._stream = stream
        self._task: asyncio.Task | None = None
        self.principal = Principal(source=Source.CONSOLE, nick="console", permission=Permission.CONSOLE)

    def put(self, target: str, text: str) -> None:
        for line in split_reply(text):
            logger.info("[{}] {}", target, line)

    async def _open(self) -> asyncio.StreamReader:
        if self._reader is not None:
            return self._reader
        loop = asyncio.get_running_loop()
        reader = asyncio.StreamReader()
        await loop.connect_read_pipe(lambda: asyncio.StreamReaderProtocol(reader), self._stream)
        return reader

    async def _read(self) -> None:
        reader = await self._open()
        while True:
            raw = await reader.readline()
            if not raw:
                logger.info("Console input closed")
                return
            line = raw.decode("utf-8", errors="replace").rstrip("\r\n")
            if not line.strip():
                continue
            if line.startswith(self._sigil):
                line = line[len(self._sigil) :]
            self._runtime.submit(line, self.principal, CONSOLE_TARGET, sink=self)

    async def start(self) -> None:
        self._task = asyncio.create_task(self._read())

    async def stop(self) -> None:
        if self._task:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
        self._task = None
