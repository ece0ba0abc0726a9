from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import Boolean, DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from songsleuths.db.session import Base
from songsleuths.models.player import player_games


class Game(Base):
    __tablename__ = "games"

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    name: Mapped[str] = mapped_column(String(50))
    # Epoch seconds; immutable after creation
    deadline: Mapped[int] = mapped_column(Integer, index=True)
    n_songs: Mapped[int] = mapped_column(Integer)
    playlist: Mapped[str] = mapped_column(String(64))

    # Flipped false -> true once, by the reveal pipeline only
    revealed: Mapped[bool] = mapped_column(Boolean, default=False)
    # Reveal lease: whoever holds the claim is the only caller allowed to touch the playlist
    reveal_claim: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    reveal_claimed_at: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    players: Mapped[List["Player"]] = relationship(secondary=player_games, back_populates="games")
    tierlists: Mapped[List["Tierlist"]] = relationship(
        back_populates="game", cascade="all, delete-orphan", passive_deletes=True, order_by="Tierlist.id"
    )
    submissions: Mapped[List["Submission"]] = relationship(
        back_populates="game", cascade="all, delete-orphan", passive_deletes=True, order_by="Submission.id"
    )
    rankings: Mapped[List["Ranking"]] = relationship(back_populates="game", cascade="all, delete-orphan", passive_deletes=True)

    def is_locked(self, now: int) -> bool:
        return now >= self.deadline
