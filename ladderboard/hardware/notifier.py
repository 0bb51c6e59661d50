"""
Best-effort notifications to the physical board controller.

API handlers call `notify()`, which only enqueues. A single background worker
owned by the application lifespan delivers each event with one HTTP POST.
Delivery failures are logged and dropped; they never reach the API caller.
"""

import asyncio
import enum
import logging
from dataclasses import dataclass
from os import getenv
from typing import Any, Optional

import httpx

from ladderboard.utils.logging import error_log

logger = logging.getLogger("Ladderboard.hardware")


class HardwareEvent(str, enum.Enum):
    """Board controller endpoints, by path."""
    GAME_SETUP = "game-setup"
    PLAY_AGAIN = "play-again"
    END_GAME = "end-game"


@dataclass
class Notification:
    event: HardwareEvent
    payload: dict[str, Any]


class HardwareNotifier:
    """Queue plus worker that forwards game events to the board controller."""
    
    def __init__(
        self,
        base_url: str,
        enabled: bool = True,
        timeout: float = 5.0,
        max_pending: int = 100,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.enabled = enabled
        self.timeout = timeout
        self.max_pending = max_pending
        self._transport = transport
        self._queue: Optional[asyncio.Queue[Optional[Notification]]] = None
        self._client: Optional[httpx.AsyncClient] = None
        self._worker: Optional[asyncio.Task] = None
    
    @classmethod
    def from_env(cls) -> "HardwareNotifier":
        return cls(
            base_url=getenv("HARDWARE_BASE_URL", "http://192.168.4.1"),
            enabled=getenv("HARDWARE_ENABLED", "true").lower() == "true",
            timeout=float(getenv("HARDWARE_TIMEOUT", "5")),
        )
    
    @property
    def is_running(self) -> bool:
        return self._worker is not None and not self._worker.done()
    
    async def start(self) -> None:
        """Start the delivery worker (application startup hook)."""
        if not self.enabled:
            logger.info("Hardware notifications disabled")
            return
        if self.is_running:
            return
        self._queue = asyncio.Queue(maxsize=self.max_pending)
        self._client = httpx.AsyncClient(timeout=self.timeout, transport=self._transport)
        self._worker = asyncio.create_task(self._run(self._queue), name="hardware-notifier")
        logger.info(f"Hardware notifier started for {self.base_url}")
    
    async def stop(self) -> None:
        """Let queued events go out, then shut the worker down (application shutdown hook)."""
        if self._worker is None or self._queue is None:
            return
        try:
            await asyncio.wait_for(self._queue.put(None), timeout=self.timeout)
            await asyncio.wait_for(self._worker, timeout=self.timeout + 1)
        except asyncio.TimeoutError:
            logger.warning("Hardware notifier did not drain in time, cancelling")
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
        finally:
            if self._client is not None:
                await self._client.aclose()
            self._worker = None
            self._client = None
            self._queue = None
            logger.info("Hardware notifier stopped")
    
    def notify(self, event: HardwareEvent, payload: dict[str, Any]) -> bool:
        """
        Queue an event for the board. Never blocks and never raises.
        
        Returns False when the event was dropped (disabled, not running, or
        the queue is full).
        """
        if not self.enabled:
            return False
        if self._queue is None or not self.is_running:
            logger.warning(f"Hardware notifier not running, dropping {event.value}")
            return False
        try:
            self._queue.put_nowait(Notification(event=event, payload=payload))
        except asyncio.QueueFull:
            logger.warning(f"Hardware queue full, dropping {event.value} for {payload.get('gameId')}")
            return False
        logger.debug(f"Queued {event.value} for {payload.get('gameId')}")
        return True
    
    async def _run(self, queue: asyncio.Queue) -> None:
        while True:
            notification = await queue.get()
            try:
                if notification is None:
                    return
                await self.send(notification.event, notification.payload)
            finally:
                queue.task_done()
    
    async def send(self, event: HardwareEvent, payload: dict[str, Any]) -> bool:
        """Deliver one event now. One attempt; failures are logged and reported as False."""
        url = f"{self.base_url}/{event.value}"
        client = self._client or httpx.AsyncClient(timeout=self.timeout, transport=self._transport)
        try:
            response = await client.post(url, json=payload)
            response.raise_for_status()
            logger.info(f"Board notified: {event.value} for game {payload.get('gameId')}")
            return True
        except httpx.HTTPStatusError as e:
            logger.error(f"Board rejected {event.value}: HTTP {e.response.status_code}")
        except httpx.TimeoutException:
            logger.error(f"Timeout sending {event.value} to {url}")
        except httpx.RequestError as e:
            error_log(
                f"Board transmission failed: {event.value}",
                exc=e,
                context={"url": url, "game_id": payload.get("gameId")},
            )
        finally:
            if client is not self._client:
                await client.aclose()
        return False


# Global notifier instance, started and stopped with the app
hardware_notifier = HardwareNotifier.from_env()
