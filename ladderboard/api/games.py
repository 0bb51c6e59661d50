"""Game session API endpoints."""

import logging
import uuid
from typing import Literal, Optional

from litestar import Controller, get, post
from litestar.di import Provide
from litestar.exceptions import NotFoundException, ValidationException
from litestar.status_codes import HTTP_200_OK
from pydantic import BaseModel, Field
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ladderboard.auth.accounts import provide_current_user
from ladderboard.game import (
    COMPUTER_COLOR,
    COMPUTER_NAME,
    FINISH,
    apply_move,
    board_layout,
    reset_game,
    roll_die,
)
from ladderboard.game.turns import START_SQUARE
from ladderboard.hardware import HardwareEvent, hardware_notifier
from ladderboard.models import (
    Game, GameMode, ResetSource, Turn,
    Player, PlayerSlot, User,
)
from ladderboard.models.base import utc_now
from ladderboard.utils.logging import debug_log, error_log

logger = logging.getLogger("Ladderboard.games")


# --- Request Schemas ---

class ModeSelectRequest(BaseModel):
    """Request to choose single or dual play."""
    mode: GameMode


class PlayerInfo(BaseModel):
    """Name and color of one player."""
    name: str = Field(min_length=1, max_length=50)
    color: str = Field(default="#EF4444", max_length=20)


class PlayerDetailsRequest(BaseModel):
    """Request to seat the players of the caller's open game."""
    player1: PlayerInfo
    player2: Optional[PlayerInfo] = None  # ignored in single mode


class UpdatePositionRequest(BaseModel):
    """A die roll for one player, from the web client or the board."""
    dice: int = Field(ge=1, le=6)
    player: Literal[1, 2]


# --- Response Schemas ---

class GameCreatedResponse(BaseModel):
    message: str
    game_id: uuid.UUID


class PlayerPosition(BaseModel):
    name: Optional[str] = None
    position: Optional[int] = None


class GameStateResponse(BaseModel):
    """What clients poll: names, positions, winner, over-flag and turn."""
    player1: PlayerPosition
    player2: PlayerPosition
    winner: Optional[str]
    is_game_over: bool
    current_turn: Turn
    reset_count: int
    last_reset_source: Optional[ResetSource]


class ActiveGameResponse(BaseModel):
    game_id: uuid.UUID
    mode: GameMode
    state: GameStateResponse


class MoveResponse(BaseModel):
    message: str
    position: int
    winner: Optional[str]
    current_turn: Turn
    dice: Optional[int] = None


class ResetResponse(BaseModel):
    message: str
    reset_source: ResetSource
    game_state: GameStateResponse


class MessageResponse(BaseModel):
    message: str


class BoardResponse(BaseModel):
    finish: int
    snakes: dict[int, int]
    ladders: dict[int, int]


# --- Helper Functions ---

async def get_game_by_id(session: AsyncSession, game_id: uuid.UUID) -> Game:
    """Fetch a game with its players loaded."""
    stmt = (
        select(Game)
        .where(Game.id == game_id)
        .options(selectinload(Game.players))
    )
    game = await session.scalar(stmt)
    if not game:
        raise NotFoundException(f"Game {game_id} not found")
    return game


async def get_open_game(session: AsyncSession, user_id: uuid.UUID) -> Optional[Game]:
    """The user's open game, if any."""
    stmt = (
        select(Game)
        .where(Game.active_user_id == user_id)
        .options(selectinload(Game.players))
    )
    return await session.scalar(stmt)


async def can_claim_handle(session: AsyncSession, game: Game) -> bool:
    """Whether a reset may make this game its owner's open game again."""
    if game.is_open:
        return True
    stmt = select(Game.id).where(
        Game.active_user_id == game.user_id,
        Game.id != game.id,
    )
    return await session.scalar(stmt) is None


def game_state(game: Game) -> GameStateResponse:
    """Project a game onto the polled view."""
    def position(slot: PlayerSlot) -> PlayerPosition:
        player = game.player(slot)
        if player is None:
            return PlayerPosition()
        return PlayerPosition(name=player.name, position=player.position)

    return GameStateResponse(
        player1=position(PlayerSlot.PLAYER1),
        player2=position(PlayerSlot.PLAYER2),
        winner=game.winner,
        is_game_over=game.is_game_over,
        current_turn=game.current_turn,
        reset_count=game.reset_count,
        last_reset_source=game.last_reset_source,
    )


def seat_player(game: Game, slot: PlayerSlot, name: str, color: str) -> None:
    """Create or overwrite the player in a slot, on the start square."""
    player = game.player(slot)
    if player is None:
        game.players.append(Player(slot=slot, name=name, color=color, position=START_SQUARE))
    else:
        player.name = name
        player.color = color
        player.position = START_SQUARE


async def commit(session: AsyncSession, action: str, context: dict) -> None:
    """Commit the request's changes, logging the failure with context before re-raising."""
    try:
        await session.commit()
    except Exception as e:
        error_log(f"Failed to {action}", exc=e, context=context)
        raise


async def move(
    session: AsyncSession,
    game: Game,
    slot: PlayerSlot,
    dice: int,
) -> MoveResponse:
    """Apply a die roll through the turn rules and persist the result."""
    game_id = game.id
    result = apply_move(game, slot, dice)

    if result.winner:
        logger.info(f"Game {game_id}: {result.winner} reached {FINISH} and wins")
    else:
        debug_log(f"Game {game_id}: {slot.value} rolled {dice}, now on {result.position}")

    response = MoveResponse(
        message="Position updated",
        position=result.position,
        winner=result.winner,
        current_turn=result.current_turn,
        dice=dice,
    )
    await commit(session, "update position", {"game_id": game_id, "player": slot.value, "dice": dice})
    return response


async def reset(session: AsyncSession, game: Game, source: ResetSource) -> GameStateResponse:
    """Reset a game to its starting state and persist it."""
    game_id = game.id
    claim = await can_claim_handle(session, game)
    if not claim:
        logger.info(f"Game {game_id} reset without reopening: owner has another open game")
    reset_game(game, source)
    if not claim:
        game.active_user_id = None

    state = game_state(game)
    await commit(session, "reset game", {"game_id": game_id, "source": source.value})
    logger.info(f"Game {game_id} reset ({source.value})")
    return state


# --- Controller ---

class GameSessionController(Controller):
    """API endpoints for playing a game."""

    path = "/api"
    tags = ["games"]
    dependencies = {"current_user": Provide(provide_current_user)}

    @post("/mode-select", status_code=HTTP_200_OK)
    async def select_mode(
        self,
        data: ModeSelectRequest,
        session: AsyncSession,
        current_user: User,
    ) -> GameCreatedResponse:
        """Open a game in the chosen mode, reusing the caller's open game if there is one."""
        user_id = current_user.id

        game = await get_open_game(session, user_id)
        if game is None:
            game = Game.create(user_id=user_id, mode=data.mode)
            session.add(game)
            try:
                await session.flush()
            except IntegrityError:
                # A concurrent request opened a game first; use that one
                await session.rollback()
                logger.warning(f"Open game for user {user_id} created concurrently, reusing it")
                game = await get_open_game(session, user_id)
                if game is None:
                    raise
            else:
                logger.info(f"Created {data.mode.value} game {game.id} for user {user_id}")

        game.mode = data.mode
        game.current_turn = Turn.PLAYER1
        game_id = game.id

        await commit(session, "select mode", {"user_id": user_id, "mode": data.mode.value})
        return GameCreatedResponse(message="Game mode selected", game_id=game_id)

    @post("/player-details", status_code=HTTP_200_OK)
    async def submit_player_details(
        self,
        data: PlayerDetailsRequest,
        session: AsyncSession,
        current_user: User,
    ) -> GameCreatedResponse:
        """Seat the players of the caller's open game and tell the board."""
        user_id = current_user.id
        game = await get_open_game(session, user_id)
        if not game:
            raise NotFoundException("No active game found")

        if game.mode == GameMode.DUAL:
            if data.player2 is None:
                raise ValidationException("Player 2 details are required in dual mode")
            player2 = data.player2
        else:
            player2 = PlayerInfo(name=COMPUTER_NAME, color=COMPUTER_COLOR)

        seat_player(game, PlayerSlot.PLAYER1, data.player1.name, data.player1.color)
        seat_player(game, PlayerSlot.PLAYER2, player2.name, player2.color)
        game.current_turn = Turn.PLAYER1
        game.winner = None
        game.is_game_over = False

        game_id = game.id
        payload = {
            "mode": game.mode.value,
            "gameId": str(game_id),
            "players": [
                {"name": data.player1.name, "color": data.player1.color},
                {"name": player2.name, "color": player2.color},
            ],
        }

        await commit(session, "save player details", {"game_id": game_id, "user_id": user_id})
        logger.info(f"Players seated in game {game_id}: {data.player1.name} vs {player2.name}")

        hardware_notifier.notify(HardwareEvent.GAME_SETUP, payload)
        return GameCreatedResponse(message="Player details saved & transmitted", game_id=game_id)

    @get("/active-game")
    async def get_active_game(
        self,
        session: AsyncSession,
        current_user: User,
    ) -> ActiveGameResponse:
        """The caller's open game."""
        game = await get_open_game(session, current_user.id)
        if not game:
            raise NotFoundException("No active game found")
        return ActiveGameResponse(game_id=game.id, mode=game.mode, state=game_state(game))

    @post("/update-position/{game_id:uuid}", status_code=HTTP_200_OK)
    async def update_position(
        self,
        game_id: uuid.UUID,
        data: UpdatePositionRequest,
        session: AsyncSession,
    ) -> MoveResponse:
        """Apply a die roll for player 1 or 2 (web client or board)."""
        game = await get_game_by_id(session, game_id)
        slot = PlayerSlot.PLAYER1 if data.player == 1 else PlayerSlot.PLAYER2
        return await move(session, game, slot, data.dice)

    @post("/computer-move/{game_id:uuid}", status_code=HTTP_200_OK)
    async def computer_move(
        self,
        game_id: uuid.UUID,
        session: AsyncSession,
    ) -> MoveResponse:
        """Roll for the computer player of a single-player game."""
        game = await get_game_by_id(session, game_id)
        if game.mode != GameMode.SINGLE:
            raise ValidationException("Computer moves are only available in single-player games")
        return await move(session, game, PlayerSlot.PLAYER2, roll_die())

    @get("/get-game-state/{game_id:uuid}")
    async def get_game_state(
        self,
        game_id: uuid.UUID,
        session: AsyncSession,
    ) -> GameStateResponse:
        """Current state, polled by clients every second."""
        game = await get_game_by_id(session, game_id)
        return game_state(game)

    @post("/reset-game/{game_id:uuid}", status_code=HTTP_200_OK)
    async def reset_game_state(
        self,
        game_id: uuid.UUID,
        session: AsyncSession,
    ) -> ResetResponse:
        """Put both players back on square 1."""
        game = await get_game_by_id(session, game_id)
        state = await reset(session, game, ResetSource.WEB)
        return ResetResponse(
            message="Game reset successfully",
            reset_source=ResetSource.WEB,
            game_state=state,
        )

    @post("/hardware-reset/{game_id:uuid}", status_code=HTTP_200_OK)
    async def hardware_reset(
        self,
        game_id: uuid.UUID,
        session: AsyncSession,
    ) -> ResetResponse:
        """Reset requested by the physical board."""
        logger.info(f"Hardware reset received for game {game_id}")
        game = await get_game_by_id(session, game_id)
        state = await reset(session, game, ResetSource.HARDWARE)
        return ResetResponse(
            message="Game reset by hardware successfully",
            reset_source=ResetSource.HARDWARE,
            game_state=state,
        )

    @post("/play-again/{game_id:uuid}", status_code=HTTP_200_OK)
    async def play_again(
        self,
        game_id: uuid.UUID,
        session: AsyncSession,
    ) -> ResetResponse:
        """Start the same match over and tell the board."""
        game = await get_game_by_id(session, game_id)
        state = await reset(session, game, ResetSource.WEB)
        hardware_notifier.notify(HardwareEvent.PLAY_AGAIN, {"gameId": str(game_id)})
        return ResetResponse(
            message="Play again command sent to board",
            reset_source=ResetSource.WEB,
            game_state=state,
        )

    @post("/end-game/{game_id:uuid}", status_code=HTTP_200_OK)
    async def end_game(
        self,
        game_id: uuid.UUID,
        session: AsyncSession,
    ) -> MessageResponse:
        """Close the game without a winner and tell the board."""
        game = await get_game_by_id(session, game_id)
        if game.ended_at is None:
            game.ended_at = utc_now()
        game.active_user_id = None

        await commit(session, "end game", {"game_id": game_id})
        logger.info(f"Game {game_id} ended by its owner")

        hardware_notifier.notify(HardwareEvent.END_GAME, {"gameId": str(game_id)})
        return MessageResponse(message="End game command sent to board")

    @get("/board", sync_to_thread=False)
    def get_board(self) -> BoardResponse:
        """Snake and ladder positions for drawing the board."""
        layout = board_layout()
        return BoardResponse(finish=FINISH, snakes=layout["snakes"], ladders=layout["ladders"])
