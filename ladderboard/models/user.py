"""Account model."""

from typing import TYPE_CHECKING, List

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ladderboard.models.base import Base

if TYPE_CHECKING:
    from ladderboard.models.game import Game


class User(Base):
    """A registered account that owns games."""
    
    __tablename__ = "users"
    
    username: Mapped[str] = mapped_column(String(50), unique=True, index=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(100))
    
    games: Mapped[List["Game"]] = relationship(
        "Game",
        back_populates="user",
        foreign_keys="Game.user_id",
        cascade="all, delete-orphan",
    )
    
    def __repr__(self) -> str:
        return f"<User {self.username}>"
