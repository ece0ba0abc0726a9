from __future__ import annotations

from datetime import datetime, timezone
from typing import List

from sqlalchemy import Column, DateTime, ForeignKey, String, Table
from sqlalchemy.orm import Mapped, mapped_column, relationship

from songsleuths.db.session import Base


# Players recorded as taking part in a game (any fetch or submission counts)
player_games = Table(
    "player_games",
    Base.metadata,
    Column("player_id", ForeignKey("players.id", ondelete="CASCADE"), primary_key=True),
    Column("game_id", ForeignKey("games.id", ondelete="CASCADE"), primary_key=True),
)


class Player(Base):
    __tablename__ = "players"

    # Stable id handed out by the authenticator
    id: Mapped[str] = mapped_column(String(128), primary_key=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    games: Mapped[List["Game"]] = relationship(secondary=player_games, back_populates="players")
    submissions: Mapped[List["Submission"]] = relationship(back_populates="player", cascade="all, delete-orphan", passive_deletes=True)
    rankings: Mapped[List["Ranking"]] = relationship(back_populates="player", cascade="all, delete-orphan", passive_deletes=True)
