"""Client-side helpers for following a game."""

from ladderboard.client.poller import (
    ConnectionStatus,
    GamePoller,
    PollUpdate,
    Snapshot,
    is_hardware_reset,
    reset_detected,
)

__all__ = [
    "ConnectionStatus",
    "GamePoller",
    "PollUpdate",
    "Snapshot",
    "is_hardware_reset",
    "reset_detected",
]
