"""Player model."""

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import Enum, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ladderboard.models.base import Base
from ladderboard.models.game import Turn

if TYPE_CHECKING:
    from ladderboard.models.game import Game

# A seat on the board is named the same way as the turn that belongs to it
PlayerSlot = Turn


class Player(Base):
    """One of the two pieces on a game board."""
    
    __tablename__ = "players"
    __table_args__ = (UniqueConstraint("game_id", "slot"),)
    
    game_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("games.id", ondelete="CASCADE"),
        index=True,
    )
    slot: Mapped[PlayerSlot] = mapped_column(Enum(PlayerSlot))
    
    # Player identity
    name: Mapped[str] = mapped_column(String(50))
    color: Mapped[str] = mapped_column(String(20), default="#EF4444")
    
    # Square on the board, 0 before the game is set up
    position: Mapped[int] = mapped_column(Integer, default=0)
    
    game: Mapped["Game"] = relationship(
        "Game",
        back_populates="players",
    )
    
    def __repr__(self) -> str:
        return f"<Player {self.name} ({self.slot.value}) on {self.position}>"
