from __future__ import annotations

from sqlalchemy import ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from songsleuths.db.session import Base


class Song(Base):
    __tablename__ = "songs"
    __table_args__ = (
        # No song may appear twice in one game, whoever submitted it
        UniqueConstraint("game_id", "catalog_id", name="uq_song_game_catalog"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    submission_id: Mapped[int] = mapped_column(ForeignKey("submissions.id", ondelete="CASCADE"), index=True)
    game_id: Mapped[str] = mapped_column(ForeignKey("games.id", ondelete="CASCADE"), index=True)
    catalog_id: Mapped[str] = mapped_column(String(22))
    position: Mapped[int] = mapped_column(Integer, default=0)
    # Filled in by the catalog, at submission (optional) or at reveal
    name: Mapped[str] = mapped_column(String(255), default="")
    cover_art: Mapped[str] = mapped_column(String(512), default="")

    submission: Mapped["Submission"] = relationship(back_populates="songs")
