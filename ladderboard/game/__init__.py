"""Board rules and turn handling."""

from ladderboard.game.board import (
    FINISH,
    LADDERS,
    SNAKES,
    advance,
    apply_snakes_and_ladders,
    board_layout,
)
from ladderboard.game.turns import (
    COMPUTER_COLOR,
    COMPUTER_NAME,
    GameEndedError,
    GameOverError,
    MoveResult,
    NotYourTurnError,
    PlayersNotReadyError,
    TurnError,
    apply_move,
    reset_game,
    roll_die,
)

__all__ = [
    "FINISH",
    "LADDERS",
    "SNAKES",
    "advance",
    "apply_snakes_and_ladders",
    "board_layout",
    "COMPUTER_COLOR",
    "COMPUTER_NAME",
    "GameEndedError",
    "GameOverError",
    "MoveResult",
    "NotYourTurnError",
    "PlayersNotReadyError",
    "TurnError",
    "apply_move",
    "reset_game",
    "roll_die",
]
