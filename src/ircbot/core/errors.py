"""Bot domain exceptions."""

from __future__ import annotations

from ircbot.core.constants import PERMISSION_REFUSED


class BotError(Exception):
    """Base for bot domain errors."""

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        details: dict[str, object] | None = None,
        original_error: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.details = details or {}
        self.original_error = original_error


class BotConfigurationError(BotError):
    """Config validation or load failure."""


class FatalError(BotError):
    """Unrecoverable session failure; the process exits non-zero."""


class TransientConnectionError(BotError):
    """IRC connect failure or lost connection; handled by the reconnect loop."""


class InputError(BotError):
    """Bad command input. The message is shown to the caller verbatim."""


class PermissionDenied(BotError):
    """Caller permission is below the command floor."""

    def __init__(self, message: str = PERMISSION_REFUSED, **kwargs) -> None:
        super().__init__(message, **kwargs)


class UpstreamError(BotError):
    """HTTP failure, unexpected API status or undecodable JSON."""

    def __init__(self, message: str, *, source: str, **kwargs) -> None:
        super().__init__(message, **kwargs)
        self.source = source

    @property
    def reply(self) -> str:
        return f"Unable to fetch {self.source}."
