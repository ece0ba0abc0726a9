from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from songsleuths.db.session import Base


class Ranking(Base):
    __tablename__ = "rankings"
    __table_args__ = (
        UniqueConstraint("player_id", "tierlist_id", name="uq_ranking_player_tierlist"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    player_id: Mapped[str] = mapped_column(ForeignKey("players.id", ondelete="CASCADE"), index=True)
    tierlist_id: Mapped[int] = mapped_column(ForeignKey("tierlists.id", ondelete="CASCADE"), index=True)
    game_id: Mapped[str] = mapped_column(ForeignKey("games.id", ondelete="CASCADE"), index=True)
    # JSON object: tier id -> ordered list of song ids
    ranking: Mapped[str] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    player: Mapped["Player"] = relationship(back_populates="rankings")
    tierlist: Mapped["Tierlist"] = relationship(back_populates="rankings")
    game: Mapped["Game"] = relationship(back_populates="rankings")
