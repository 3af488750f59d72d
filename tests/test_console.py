"""Tests for the console adapter."""

from __future__ import annotations

import asyncio
from unittest.mock import MagicMock

import pytest

from ircbot.adapters import ConsoleAdapter
from ircbot.commands.runtime import CommandRuntime
from ircbot.commands.table import COMMAND_TABLE
from ircbot.core.constants import Permission, Source
from tests.mocks import RecordingSink, make_config, make_services


def _reader(*lines: str) -> asyncio.StreamReader:
    reader = asyncio.StreamReader()
    for line in lines:
        reader.feed_data(line.encode() + b"\n")
    reader.feed_eof()
    return reader


class TestConsoleAdapter:
    @pytest.mark.asyncio
    async def test_lines_are_submitted_with_console_permission(self):
        # Arrange
        runtime = MagicMock()
        console = ConsoleAdapter(runtime, reader=_reader(".stop", "list", "   "))

        # Act
        await console.start()
        await asyncio.wait_for(console._task, timeout=1)

        # Assert
        calls = runtime.submit.call_args_list
        assert [c.args[0] for c in calls] == ["stop", "list"]
        principal = calls[0].args[1]
        assert principal.source is Source.CONSOLE
        assert principal.permission is Permission.CONSOLE
        assert calls[0].args[2] == "console"
        assert calls[0].kwargs["sink"] is console

    @pytest.mark.asyncio
    async def test_console_can_run_admin_commands(self):
        # Arrange
        config = make_config()
        sink = RecordingSink()
        shutdown = MagicMock()
        runtime = CommandRuntime(COMMAND_TABLE, config, sink, make_services(config, sink), shutdown)
        console = ConsoleAdapter(runtime)

        # Act
        reply = await runtime.execute("stop", console.principal, "console", sink=console)

        # Assert
        assert reply == "Server stop..."
        shutdown.assert_called_once_with()
        assert sink.sent == []

    @pytest.mark.asyncio
    async def test_stop_cancels_reader(self):
        reader = asyncio.StreamReader()
        console = ConsoleAdapter(MagicMock(), reader=reader)

        await console.start()
        await console.stop()

        assert console._task is None
