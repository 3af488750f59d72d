"""Bot entrypoint. Loads config, starts the IRC supervisor and exits with its status."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import signal
import sys
from pathlib import Path

import yaml
from loguru import logger

from ircbot import __version__
from ircbot.adapters import ConsoleAdapter, IRCSupervisor
from ircbot.adapters.irc import OutboundQueue
from ircbot.clients import GitlabClient, JsonClient
from ircbot.commands import Services
from ircbot.config import Config, cfg, load_config_with_env
from ircbot.core.errors import BotConfigurationError, FatalError
from ircbot.events import config_reload
from ircbot.gateway import Bus, EventJournal
from ircbot.mail import MailBox

LOG_FORMAT = "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan> | {message}"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

# stdlib loggers of our dependencies; their records are re-emitted through loguru
STDLIB_LOGGERS = ("pydle", "httpx", "httpcore")


class InterceptHandler(logging.Handler):
    """Forward stdlib log records to loguru, keeping the origin logger name."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        # Braces in library messages are not loguru format fields
        text = record.getMessage().replace("{", "{{").replace("}", "}}")
        origin = {"name": record.name, "function": record.funcName, "line": record.lineno}
        logger.patch(lambda r: r.update(origin)).opt(exception=record.exc_info).log(level, text)


def _log_level(verbose: bool) -> str:
    if verbose:
        return "DEBUG"
    wanted = os.environ.get("LOG_LEVEL", "").upper()
    return wanted if wanted in LOG_LEVELS else "INFO"


def _intercept_logging(level: str) -> None:
    handler = InterceptHandler()
    logging.basicConfig(handlers=[handler], level=0, force=True)
    for name in STDLIB_LOGGERS:
        stdlib_logger = logging.getLogger(name)
        stdlib_logger.handlers = [handler]
        stdlib_logger.propagate = False
        stdlib_logger.setLevel(level)


def setup_logging(verbose: bool = False) -> None:
    """Single stderr sink at DEBUG (``--verbose``), ``LOG_LEVEL`` or INFO."""
    level = _log_level(verbose)
    logger.remove()
    logger.add(sys.stderr, level=level, format=LOG_FORMAT)
    _intercept_logging(level)


def reload_config(config_path: Path) -> Config:
    """Re-read ``config_path`` into the process-wide ``cfg`` and return it."""
    cfg.reload(load_config_with_env(config_path))
    return cfg


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="ircbot", description="IRC command bot")
    parser.add_argument(
        "-c", "--config", type=Path, default=Path("config.yaml"), help="YAML config (default: %(default)s)"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="log at DEBUG level")
    parser.add_argument(
        "--console", action="store_true", help="also take commands from stdin, with console rights"
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    """Console script: exits 0 after a clean stop, 1 on bad config or fatal IRC failure."""
    args = _parse_args(argv)
    setup_logging(args.verbose)

    if not args.config.is_file():
        logger.error("Config file {} does not exist", args.config)
        sys.exit(1)
    try:
        config = reload_config(args.config)
    except (BotConfigurationError, yaml.YAMLError) as exc:
        logger.error("Refusing to start with {}: {}", args.config, exc)
        sys.exit(1)
    logger.info("Using config {}", args.config)

    sys.exit(asyncio.run(_run(config, args.config, console=args.console)))


def _install_signals(supervisor: IRCSupervisor, bus: Bus, config_path: Path) -> None:
    loop = asyncio.get_running_loop()

    def on_sighup() -> None:
        try:
            reload_config(config_path)
        except (BotConfigurationError, yaml.YAMLError) as exc:
            logger.error("Config reload failed, keeping previous config: {}", exc)
            return
        _, evt = config_reload()
        bus.publish("main", evt)
        logger.info("Config reloaded (SIGHUP)")

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, supervisor.stop)
    loop.add_signal_handler(signal.SIGHUP, on_sighup)


async def _run(config: Config, config_path: Path, *, console: bool = False) -> int:
    """Async run loop. Returns the process exit code."""
    bus = Bus()
    outbound = OutboundQueue(spacing=config.outbound_spacing, ttl=config.outbound_ttl)
    mailbox = MailBox(outbound, ttl=config.mail_ttl)
    bus.register(EventJournal())
    bus.register(mailbox)

    http = JsonClient()
    services = Services(http=http, gitlab=GitlabClient(http, config), mailbox=mailbox)
    supervisor = IRCSupervisor(config, bus, outbound, services)
    _install_signals(supervisor, bus, config_path)

    console_adapter: ConsoleAdapter | None = None
    if console:
        console_adapter = ConsoleAdapter(supervisor.runtime, sigil=config.sigil)
        await console_adapter.start()

    logger.info("Bot ready: {} on {}:{}", config.irc_name, config.irc_server, config.irc_port)
    try:
        await supervisor.run()
    except FatalError as exc:
        logger.error("Fatal: {}", exc)
        return 1
    finally:
        if console_adapter:
            await console_adapter.stop()
    logger.info("Bot stopped")
    return 0


if __name__ == "__main__":
    main()
