"""Ladderboard API routes."""

from ladderboard.api.auth import AccountsController
from ladderboard.api.games import GameSessionController

__all__ = ["AccountsController", "GameSessionController"]
