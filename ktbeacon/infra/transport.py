"""Fire-and-forget HTTP transport for beacon requests."""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Callable
from typing import Any, Protocol

import httpx

from ktbeacon.core.errors import TransportError

logger = logging.getLogger(__name__)

CompletionCallback = Callable[[], Any]


class TransportPort(Protocol):
    """Interface the client uses to hand off finished beacon URLs."""

    def dispatch(self, url: str, on_complete: CompletionCallback | None = None) -> asyncio.Task[None]:
        ...

    async def drain(self) -> None:
        ...

    async def aclose(self) -> None:
        ...


async def invoke_callback(callback: Callable[..., Any] | None, *args: Any) -> None:
    """Run a sync or async user callback, logging anything it raises."""
    if callback is None:
        return
    try:
        result = callback(*args)
        if inspect.isawaitable(result):
            await result
    except Exception:
        logger.exception("beacon callback raised")


class HttpTransport:
    """
    Sends beacon GET requests on background tasks.

    The collector answers with an empty body, so a response and a network
    failure look the same to callers: ``on_complete`` runs exactly once either
    way and the returned task always finishes without an exception.
    """

    def __init__(self, timeout_s: float = 10.0, http: httpx.AsyncClient | None = None) -> None:
        self.timeout_s = timeout_s
        self._http = http
        self._owns_http = http is None
        self._pending: set[asyncio.Task[None]] = set()

    @property
    def http(self) -> httpx.AsyncClient:
        if self._http is None:
            self._http = httpx.AsyncClient(timeout=self.timeout_s)
            self._owns_http = True
        return self._http

    @property
    def pending(self) -> int:
        return len(self._pending)

    def dispatch(self, url: str, on_complete: CompletionCallback | None = None) -> asyncio.Task[None]:
        task = asyncio.create_task(self._fire(url, on_complete))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _fire(self, url: str, on_complete: CompletionCallback | None) -> None:
        try:
            await self._get(url)
        except TransportError as exc:
            logger.debug("beacon request failed: %s", exc, extra={"url": exc.url})
        finally:
            await invoke_callback(on_complete)

    async def _get(self, url: str) -> None:
        try:
            response = await self.http.get(url)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise TransportError(f"GET failed: {exc}", url=url) from exc
        logger.debug("beacon delivered status=%s", response.status_code, extra={"url": url})

    async def drain(self) -> None:
        """Wait for every in-flight beacon to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def aclose(self) -> None:
        await self.drain()
        if self._http is not None and self._owns_http:
            await self._http.aclose()
        self._http = None
