from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import DateTime, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from songsleuths.db.session import Base


class Submission(Base):
    __tablename__ = "submissions"
    __table_args__ = (
        UniqueConstraint("player_id", "game_id", name="uq_submission_player_game"),
        UniqueConstraint("game_id", "nickname", name="uq_submission_game_nickname"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    player_id: Mapped[str] = mapped_column(ForeignKey("players.id", ondelete="CASCADE"), index=True)
    game_id: Mapped[str] = mapped_column(ForeignKey("games.id", ondelete="CASCADE"), index=True)
    nickname: Mapped[str] = mapped_column(String(50))
    drawing: Mapped[str] = mapped_column(Text, default="")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    player: Mapped["Player"] = relationship(back_populates="submissions")
    game: Mapped["Game"] = relationship(back_populates="submissions")
    songs: Mapped[List["Song"]] = relationship(
        back_populates="submission", cascade="all, delete-orphan", passive_deletes=True, order_by="Song.position"
    )
    tier: Mapped[Optional["Tier"]] = relationship(back_populates="submission", cascade="all, delete-orphan", passive_deletes=True)
