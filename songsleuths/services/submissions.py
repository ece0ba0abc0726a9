from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from songsleuths.core.clock import Clock
from songsleuths.core.errors import NotFoundError, ValidationError
from songsleuths.models import Submission
from songsleuths.services import integrity
from songsleuths.services.catalog.base import CatalogService
from songsleuths.services.session_state import require_open

logger = logging.getLogger(__name__)


def get_own_submission(db: Session, game_id: str, player_id: str) -> Optional[Submission]:
    return (
        db.query(Submission)
        .filter(Submission.game_id == game_id, Submission.player_id == player_id)
        .first()
    )


def submit(
    db: Session,
    catalog: CatalogService,
    clock: Clock,
    game_id: str,
    player_id: str,
    nickname: str,
    songs: List[str],
    drawing: str,
    check_catalog: bool = False,
) -> Submission:
    """Create or update the player's submission while the game is open.

    With ``check_catalog`` the ids are looked up first: unknown ids are
    rejected and known ones get their name and cover art stored right away.
    """
    game = integrity.get_game(db, game_id)
    require_open(game, clock.now())
    integrity.validate_song_ids(songs, game.n_songs)

    metadata = None
    if check_catalog:
        metadata = {m.id: m for m in catalog.fetch_metadata(songs)}
        unknown = [sid for sid in songs if sid not in metadata]
        if unknown:
            raise ValidationError(f"unknown song id: {unknown[0]}")

    integrity.record_membership(db, game.id, player_id)
    submission = integrity.save_submission(db, game, player_id, nickname, drawing, songs, metadata)
    logger.info(
        "Submission saved",
        extra={"game_id": game.id, "player_id": player_id, "songs": len(songs)},
    )
    return submission


def withdraw(db: Session, clock: Clock, game_id: str, player_id: str) -> None:
    """Delete the player's submission, its songs and its guess tier."""
    game = integrity.get_game(db, game_id)
    require_open(game, clock.now())
    submission = get_own_submission(db, game.id, player_id)
    if submission is None:
        raise NotFoundError("no submission for this game")
    integrity.delete_submission(db, submission)
    logger.info("Submission withdrawn", extra={"game_id": game.id, "player_id": player_id})
