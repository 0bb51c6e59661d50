"""Ladderboard database models."""

from ladderboard.models.base import Base
from ladderboard.models.game import Game, GameMode, ResetSource, Turn
from ladderboard.models.player import Player, PlayerSlot
from ladderboard.models.user import User

__all__ = [
    "Base",
    "Game",
    "GameMode",
    "ResetSource",
    "Turn",
    "Player",
    "PlayerSlot",
    "User",
]
