"""Game record model."""

import enum
import uuid
from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ladderboard.models.base import Base

if TYPE_CHECKING:
    from ladderboard.models.player import Player, PlayerSlot
    from ladderboard.models.user import User


class GameMode(str, enum.Enum):
    """How player2 is controlled."""
    SINGLE = "single"   # player2 is the computer
    DUAL = "dual"       # two humans


class Turn(str, enum.Enum):
    """Whose turn it is."""
    PLAYER1 = "player1"
    PLAYER2 = "player2"

    @property
    def other(self) -> "Turn":
        return Turn.PLAYER2 if self is Turn.PLAYER1 else Turn.PLAYER1


class ResetSource(str, enum.Enum):
    """Where the last reset came from."""
    WEB = "web"
    HARDWARE = "hardware"


class Game(Base):
    """A Snake & Ladder match owned by one account."""
    
    __tablename__ = "games"
    
    mode: Mapped[GameMode] = mapped_column(Enum(GameMode))
    
    # Owning account
    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        index=True,
    )
    
    # Open-game handle: equals user_id while this is the user's open game.
    # Unique, so a user can never hold two open games.
    active_user_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        unique=True,
        nullable=True,
    )
    
    # Turn tracking
    current_turn: Mapped[Turn] = mapped_column(Enum(Turn), default=Turn.PLAYER1)
    winner: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    is_game_over: Mapped[bool] = mapped_column(Boolean, default=False)
    
    # Set when the owner ends the game without a winner
    ended_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    
    # Explicit reset signal for pollers
    reset_count: Mapped[int] = mapped_column(Integer, default=0)
    last_reset_source: Mapped[Optional[ResetSource]] = mapped_column(
        Enum(ResetSource),
        nullable=True,
    )
    
    # Relationships
    user: Mapped["User"] = relationship(
        "User",
        back_populates="games",
        foreign_keys=[user_id],
    )
    players: Mapped[List["Player"]] = relationship(
        "Player",
        back_populates="game",
        cascade="all, delete-orphan",
        order_by="Player.slot",
    )
    
    @classmethod
    def create(cls, user_id: uuid.UUID, mode: GameMode) -> "Game":
        """New open game for a user, with every in-Python default applied."""
        return cls(
            user_id=user_id,
            active_user_id=user_id,
            mode=mode,
            current_turn=Turn.PLAYER1,
            winner=None,
            is_game_over=False,
            reset_count=0,
            players=[],
        )
    
    def player(self, slot: "PlayerSlot") -> Optional["Player"]:
        """The player seated in a slot, if details were submitted."""
        return next((p for p in self.players if p.slot == slot), None)
    
    @property
    def is_open(self) -> bool:
        return self.active_user_id is not None
    
    def __repr__(self) -> str:
        return f"<Game {self.id} ({self.mode.value}) - turn {self.current_turn.value}>"
