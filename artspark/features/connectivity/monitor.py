"""
Connectivity state with edge-triggered listeners.

Only transitions are announced. Listeners are awaited in registration order;
a failing listener is logged and does not stop the others.
"""
from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, List, Optional

import httpx

from artspark.core.logging import log_event

Listener = Callable[[bool, bool], Awaitable[None]]


class ConnectivityMonitor:
    def __init__(self, connected: bool = True):
        self._connected = connected
        self._listeners: List[Listener] = []

    @property
    def is_connected(self) -> bool:
        return self._connected

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener(previous, current)``; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    async def update(self, connected: bool) -> bool:
        """Record the latest reading. Returns True when it was a transition."""
        previous = self._connected
        if previous == connected:
            return False
        self._connected = connected
        log_event(
            "info",
            "connectivity.changed",
            event_type="connectivity.edge",
            extra={"previous": previous, "current": connected},
        )
        for listener in list(self._listeners):
            try:
                await listener(previous, connected)
            except Exception:
                log_event(
                    "error",
                    "connectivity.listener.failed",
                    event_type="connectivity.edge",
                    error_code="listener_failed",
                    exc_info=True,
                )
        return True


class HttpConnectivityProbe:
    """Polls a URL and feeds the monitor. Any response counts as connected."""

    def __init__(
        self,
        monitor: ConnectivityMonitor,
        url: str,
        interval_seconds: float = 15.0,
        *,
        timeout: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._monitor = monitor
        self._url = url
        self._interval = interval_seconds
        self._timeout = timeout
        self._transport = transport
        self._task: Optional[asyncio.Task] = None

    async def check_once(self) -> bool:
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                await client.head(self._url)
            connected = True
        except httpx.HTTPError:
            connected = False
        await self._monitor.update(connected)
        return connected

    async def _run(self) -> None:
        while True:
            await self.check_once()
            await asyncio.sleep(self._interval)

    def start(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
