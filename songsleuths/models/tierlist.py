from __future__ import annotations

from enum import Enum
from typing import List, Optional

from sqlalchemy import Enum as SAEnum, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from songsleuths.db.session import Base


class TierlistKind(str, Enum):
    GUESS = "guess"
    RANKING = "ranking"


# Fixed tiers of every ranking tierlist, best first
RANKING_TIERS = ("S", "A", "B", "C", "D")


class Tierlist(Base):
    __tablename__ = "tierlists"
    __table_args__ = (
        UniqueConstraint("game_id", "kind", name="uq_tierlist_game_kind"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    game_id: Mapped[str] = mapped_column(ForeignKey("games.id", ondelete="CASCADE"), index=True)
    kind: Mapped[TierlistKind] = mapped_column(SAEnum(TierlistKind))

    game: Mapped["Game"] = relationship(back_populates="tierlists")
    tiers: Mapped[List["Tier"]] = relationship(
        back_populates="tierlist", cascade="all, delete-orphan", passive_deletes=True, order_by="(Tier.rank, Tier.id)"
    )
    rankings: Mapped[List["Ranking"]] = relationship(back_populates="tierlist", cascade="all, delete-orphan", passive_deletes=True)


class Tier(Base):
    __tablename__ = "tiers"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(50))
    # Lower number = higher rank
    rank: Mapped[int] = mapped_column(Integer, default=0)
    tierlist_id: Mapped[int] = mapped_column(ForeignKey("tierlists.id", ondelete="CASCADE"), index=True)
    # Guess tiers belong to the submission they stand for
    submission_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("submissions.id", ondelete="CASCADE"), nullable=True, unique=True
    )

    tierlist: Mapped["Tierlist"] = relationship(back_populates="tiers")
    submission: Mapped[Optional["Submission"]] = relationship(back_populates="tier")
