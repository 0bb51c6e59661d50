"""Turn handling: whose move it is, applying moves, wins and resets."""

import secrets
from dataclasses import dataclass
from typing import Optional

from ladderboard.game.board import FINISH, advance
from ladderboard.models.game import Game, ResetSource, Turn
from ladderboard.models.player import PlayerSlot

START_SQUARE = 1

# Seat taken by the computer in single-player games
COMPUTER_NAME = "ROBUST"
COMPUTER_COLOR = "#f79a04ff"


class TurnError(Exception):
    """A move that the current game state does not allow."""


class GameOverError(TurnError):
    def __init__(self) -> None:
        super().__init__("Game is already over")


class GameEndedError(TurnError):
    def __init__(self) -> None:
        super().__init__("Game has been ended")


class PlayersNotReadyError(TurnError):
    def __init__(self) -> None:
        super().__init__("Player details have not been submitted")


class NotYourTurnError(TurnError):
    def __init__(self, slot: Turn) -> None:
        self.slot = slot
        super().__init__(f"It's not {slot.value}'s turn.")


@dataclass
class MoveResult:
    """Outcome of an accepted move."""
    position: int
    winner: Optional[str]
    current_turn: Turn


def roll_die() -> int:
    return secrets.randbelow(6) + 1


def apply_move(game: Game, slot: PlayerSlot, dice: int) -> MoveResult:
    """
    Move the piece in `slot` by `dice` squares.

    Raises a TurnError subclass, leaving the game untouched, when the game is
    finished or ended, has no players yet, or it is the other player's turn.
    Reaching the finish wins: the winner is recorded, the open-game handle is
    released and the turn stays with the winner. Any other move hands the
    turn to the other player.
    """
    if game.is_game_over:
        raise GameOverError()
    if game.ended_at is not None:
        raise GameEndedError()
    player = game.player(slot)
    if player is None or game.player(slot.other) is None:
        raise PlayersNotReadyError()
    if game.current_turn != slot:
        raise NotYourTurnError(slot)

    player.position = advance(player.position, dice)

    if player.position == FINISH:
        game.winner = player.name
        game.is_game_over = True
        game.active_user_id = None
    else:
        game.current_turn = game.current_turn.other

    return MoveResult(
        position=player.position,
        winner=game.winner,
        current_turn=game.current_turn,
    )


def reset_game(game: Game, source: ResetSource) -> None:
    """Put both pieces back on the start square and give player1 the first move."""
    for player in game.players:
        player.position = START_SQUARE
    game.winner = None
    game.is_game_over = False
    game.current_turn = Turn.PLAYER1
    game.ended_at = None
    game.active_user_id = game.user_id
    game.reset_count = (game.reset_count or 0) + 1
    game.last_reset_source = source
