"""Async JSON-over-HTTP client with tenacity retries for transient errors."""

from __future__ import annotations

from typing import Any

import httpx
from loguru import logger
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ircbot.core.errors import UpstreamError

# Handlers run under a deadline, so retries stay short: 3 attempts, 0.5-4s
DEFAULT_RETRY = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=0.5, min=0.5, max=4),
    retry=retry_if_exception_type(
        (
            httpx.ConnectError,
            httpx.ConnectTimeout,
            httpx.ReadTimeout,
            httpx.WriteTimeout,
            httpx.PoolTimeout,
            httpx.ReadError,
            httpx.WriteError,
        )
    ),
    reraise=True,
)


def json_path(data: Any, *path: str | int, source: str) -> Any:
    """Follow keys/indexes into decoded JSON; UpstreamError if the shape is wrong."""
    obj = data
    for part in path:
        try:
            obj = obj[part]
        except (KeyError, IndexError, TypeError) as exc:
            raise UpstreamError(
                f"Missing {'.'.join(str(p) for p in path)} in {source} response",
                source=source,
                code="bad_payload",
                original_error=exc,
            ) from exc
    return obj


class JsonClient:
    """GET JSON documents. One AsyncClient per request, like a short-lived handler."""

    def __init__(
        self,
        *,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._timeout = timeout
        self._transport = transport

    @DEFAULT_RETRY
    async def _get(
        self,
        url: str,
        params: dict[str, Any] | None,
        headers: dict[str, str] | None,
    ) -> httpx.Response:
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            return await client.get(url, params=params, headers=headers)

    async def get_json(
        self,
        url: str,
        *,
        source: str,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
        allow_missing: bool = False,
    ) -> Any:
        """GET ``url`` and decode JSON. Returns None on 404 when ``allow_missing``."""
        h = {"Accept": "application/json"}
        if headers:
            h.update(headers)
        try:
            resp = await self._get(url, params, h)
        except httpx.HTTPError as exc:
            raise UpstreamError(
                f"Request to {source} failed: {exc!r}",
                source=source,
                code="http_error",
                original_error=exc,
            ) from exc

        if allow_missing and resp.status_code == 404:
            return None
        if resp.is_error:
            raise UpstreamError(
                f"{source} answered HTTP {resp.status_code}",
                source=source,
                code="http_status",
                details={"status": resp.status_code, "url": str(resp.url)},
            )
        try:
            return resp.json()
        except ValueError as exc:
            logger.debug("Undecodable {} body: {!r}", source, resp.text[:200])
            raise UpstreamError(
                f"{source} returned invalid JSON",
                source=source,
                code="bad_json",
                original_error=exc,
            ) from exc
