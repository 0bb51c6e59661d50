"""
Polling client for a game's state.

Mirrors what the browser board does: fetch the state once a second, compare
it with the previous snapshot, and decide what to show. Two consecutive
snapshots are compared to spot resets made on the physical board. When the
server reports `reset_count`, a change in it is used instead of the
position heuristic.

This is polling, not push: a change can take up to one interval to show up.
"""

import asyncio
import enum
import logging
import time
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Optional

import httpx

logger = logging.getLogger("Ladderboard.client")

POLL_INTERVAL = 1.0
MAX_CONSECUTIVE_ERRORS = 3
RESET_COOLDOWN = 5.0
HARDWARE_RESET_MESSAGE = "Game reset by hardware device"


class ConnectionStatus(str, enum.Enum):
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    HARDWARE_RESET = "hardware_reset"


@dataclass(frozen=True)
class Snapshot:
    """The parts of a polled state the client reasons about."""
    player1_position: int
    player2_position: int
    winner: Optional[str]
    is_game_over: bool
    current_turn: str
    reset_count: Optional[int] = None
    last_reset_source: Optional[str] = None

    @classmethod
    def from_state(cls, state: dict[str, Any]) -> "Snapshot":
        return cls(
            player1_position=(state.get("player1") or {}).get("position") or 0,
            player2_position=(state.get("player2") or {}).get("position") or 0,
            winner=state.get("winner"),
            is_game_over=bool(state.get("is_game_over")),
            current_turn=state.get("current_turn", "player1"),
            reset_count=state.get("reset_count"),
            last_reset_source=state.get("last_reset_source"),
        )

    @property
    def in_progress(self) -> bool:
        return (self.player1_position > 1 or self.player2_position > 1) and not self.is_game_over

    @property
    def at_start(self) -> bool:
        return (
            self.player1_position == 1
            and self.player2_position == 1
            and self.winner is None
            and not self.is_game_over
        )


def is_hardware_reset(previous: Optional[Snapshot], current: Snapshot) -> bool:
    """
    Guess whether the game was reset from outside this client.

    Both snapshots must match: the previous one showed progress and was not
    over, the current one is back at the start. Two legitimate resets that
    produce the same pattern are indistinguishable from a board reset.
    """
    if previous is None:
        return False
    return previous.in_progress and current.at_start


def reset_detected(previous: Optional[Snapshot], current: Snapshot) -> bool:
    """Reset detection, using the server's reset counter when it has one."""
    if previous is None:
        return False
    if previous.reset_count is not None and current.reset_count is not None:
        return (
            current.reset_count > previous.reset_count
            and current.last_reset_source == "hardware"
        )
    return is_hardware_reset(previous, current)


@dataclass
class PollUpdate:
    """What the view should show after one poll."""
    status: ConnectionStatus
    state: Optional[dict[str, Any]] = None
    error: Optional[str] = None
    consecutive_errors: int = 0
    notification: Optional[str] = None
    hardware_reset: bool = False
    show_winner: bool = False


@dataclass
class _ViewState:
    previous: Optional[Snapshot] = None
    consecutive_errors: int = 0
    reset_until: Optional[float] = None
    winner_shown: bool = False
    notification: Optional[str] = None


class GamePoller:
    """Fixed-interval poller for one game."""

    def __init__(
        self,
        base_url: str,
        game_id: uuid.UUID | str,
        interval: float = POLL_INTERVAL,
        max_consecutive_errors: int = MAX_CONSECUTIVE_ERRORS,
        reset_cooldown: float = RESET_COOLDOWN,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.base_url = base_url.rstrip("/")
        self.game_id = str(game_id)
        self.interval = interval
        self.max_consecutive_errors = max_consecutive_errors
        self.reset_cooldown = reset_cooldown
        self._transport = transport
        self._clock = clock
        self._view = _ViewState()
        self._client: Optional[httpx.AsyncClient] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def state_url(self) -> str:
        return f"{self.base_url}/api/get-game-state/{self.game_id}"

    @property
    def in_reset_cooldown(self) -> bool:
        return self._view.reset_until is not None and self._clock() < self._view.reset_until

    async def __aenter__(self) -> "GamePoller":
        self._client = httpx.AsyncClient(transport=self._transport, timeout=self.interval * 5)
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.stop()
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def fetch_state(self) -> dict[str, Any]:
        if self._client is None:
            raise RuntimeError("GamePoller must be used as an async context manager")
        response = await self._client.get(self.state_url)
        response.raise_for_status()
        return response.json()

    async def tick(self) -> PollUpdate:
        """Poll once and work out what the view shows."""
        try:
            state = await self.fetch_state()
        except (httpx.HTTPError, ValueError) as e:
            return self._failure(e)
        return self._reconcile(state)

    async def retry(self) -> PollUpdate:
        """Manual reconnect after the poller gave up on the connection."""
        self._view.consecutive_errors = 0
        return await self.tick()

    def _failure(self, exc: Exception) -> PollUpdate:
        view = self._view
        view.consecutive_errors += 1
        message = str(exc) or type(exc).__name__
        if view.consecutive_errors >= self.max_consecutive_errors:
            logger.warning(f"Game {self.game_id}: connection lost after {view.consecutive_errors} failures")
            return PollUpdate(
                status=ConnectionStatus.DISCONNECTED,
                error=f"Connection lost: {message} ({view.consecutive_errors} consecutive failures)",
                consecutive_errors=view.consecutive_errors,
            )
        logger.debug(f"Game {self.game_id}: poll failed ({view.consecutive_errors}): {message}")
        return PollUpdate(
            status=ConnectionStatus.CONNECTED,
            error=f"{message} (Retry {view.consecutive_errors}/{self.max_consecutive_errors})",
            consecutive_errors=view.consecutive_errors,
        )

    def _reconcile(self, state: dict[str, Any]) -> PollUpdate:
        view = self._view
        current = Snapshot.from_state(state)
        view.consecutive_errors = 0

        if reset_detected(view.previous, current):
            logger.info(f"Game {self.game_id}: hardware reset detected")
            view.reset_until = self._clock() + self.reset_cooldown
            view.winner_shown = False
            view.notification = HARDWARE_RESET_MESSAGE
        elif view.reset_until is not None and not self.in_reset_cooldown:
            view.reset_until = None
            view.notification = None

        if view.previous is not None and view.previous.is_game_over and not current.is_game_over:
            view.winner_shown = False

        show_winner = False
        if current.is_game_over and current.winner and not view.winner_shown and not self.in_reset_cooldown:
            show_winner = True
            view.winner_shown = True

        view.previous = current
        return PollUpdate(
            status=ConnectionStatus.HARDWARE_RESET if self.in_reset_cooldown else ConnectionStatus.CONNECTED,
            state=state,
            notification=view.notification,
            hardware_reset=self.in_reset_cooldown,
            show_winner=show_winner,
        )

    async def run(self, on_update: Callable[[PollUpdate], Any]) -> None:
        """Poll until stopped, passing each update to `on_update`."""
        while True:
            update = await self.tick()
            on_update(update)
            await asyncio.sleep(self.interval)

    def start(self, on_update: Callable[[PollUpdate], Any]) -> asyncio.Task:
        self._task = asyncio.create_task(self.run(on_update), name=f"poll-{self.game_id}")
        return self._task

    async def stop(self) -> None:
        """Cancel the polling loop and any pending reset notification."""
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        self._view.reset_until = None
        self._view.notification = None
