"""Lazy, at-most-once reveal of a game whose deadline has passed.

Every request runs on its own, possibly in another process, so "only the first
reader does the work" is decided by the database: one conditional UPDATE
takes a lease on the game row (``reveal_claim``/``reveal_claimed_at``) and at
most one caller sees ``rowcount == 1``. Only the lease holder calls the
catalog and the playlist service. Its last write flips ``revealed`` to true
and drops the lease in the same commit, guarded by the lease token, so the
flag can never flip for a caller that lost its lease.

A failure in either external call releases the lease and leaves ``revealed``
false; the next reader starts the reveal over.
"""

from __future__ import annotations

import logging
import secrets
import time
from typing import Callable, Optional

from sqlalchemy import or_, update
from sqlalchemy.orm import Session

from songsleuths.core.clock import Clock
from songsleuths.core.config import get_settings
from songsleuths.core.errors import NotFoundError, PhaseError, RevealPendingError
from songsleuths.models import Game, Song
from songsleuths.services.catalog.base import CatalogService, PlaylistService
from songsleuths.services.session_state import GamePhase, game_phase

logger = logging.getLogger(__name__)


class RevealPipeline:
    def __init__(
        self,
        catalog: CatalogService,
        playlists: PlaylistService,
        clock: Clock,
        lease_seconds: Optional[int] = None,
        wait_seconds: Optional[float] = None,
        poll_interval: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        settings = get_settings()
        self.catalog = catalog
        self.playlists = playlists
        self.clock = clock
        self.lease_seconds = settings.REVEAL_LEASE_SECONDS if lease_seconds is None else lease_seconds
        self.wait_seconds = settings.REVEAL_WAIT_SECONDS if wait_seconds is None else wait_seconds
        self.poll_interval = settings.REVEAL_POLL_INTERVAL_SECONDS if poll_interval is None else poll_interval
        self.sleep = sleep

    def ensure_revealed(self, db: Session, game_id: str) -> Game:
        """Return the game once revealed, revealing it here if nobody has yet.

        Raises ``PhaseError`` while the game is still open, ``UpstreamError``
        when this caller held the lease and an external call failed, and
        ``RevealPendingError`` when another caller holds the lease for longer
        than ``wait_seconds``.
        """
        give_up_at = time.monotonic() + self.wait_seconds
        while True:
            game = self._load(db, game_id)
            now = self.clock.now()
            phase = game_phase(game, now)
            if phase is GamePhase.REVEALED:
                return game
            if phase is GamePhase.OPEN:
                raise PhaseError("game is still open")

            token = self._claim(db, game_id, now)
            if token is not None:
                self._reveal(db, game_id, token)
                return self._load(db, game_id)

            if time.monotonic() >= give_up_at:
                logger.info("Reveal still held by another caller", extra={"game_id": game_id})
                raise RevealPendingError("game is being revealed, try again shortly")
            self.sleep(self.poll_interval)

    def _load(self, db: Session, game_id: str) -> Game:
        game = db.get(Game, game_id, populate_existing=True)
        if game is None:
            raise NotFoundError("game not found")
        return game

    def _claim(self, db: Session, game_id: str, now: int) -> Optional[str]:
        token = secrets.token_hex(16)
        stmt = (
            update(Game)
            .where(
                Game.id == game_id,
                Game.revealed == False,  # noqa: E712
                or_(Game.reveal_claim.is_(None), Game.reveal_claimed_at < now - self.lease_seconds),
            )
            .values(reveal_claim=token, reveal_claimed_at=now)
            .execution_options(synchronize_session=False)
        )
        result = db.execute(stmt)
        db.commit()
        if result.rowcount != 1:
            return None
        logger.info("Reveal claimed", extra={"game_id": game_id})
        return token

    def _reveal(self, db: Session, game_id: str, token: str) -> None:
        try:
            songs = (
                db.query(Song)
                .filter(Song.game_id == game_id)
                .order_by(Song.submission_id, Song.position)
                .all()
            )
            track_ids = [s.catalog_id for s in songs]

            found = {m.id: m for m in self.catalog.fetch_metadata(track_ids)}
            for s in songs:
                meta = found.get(s.catalog_id)
                if meta is None:
                    continue
                s.name = meta.name or s.name
                s.cover_art = meta.image or s.cover_art

            game = self._load(db, game_id)
            self.playlists.add_tracks(game.playlist, track_ids)

            result = db.execute(
                update(Game)
                .where(Game.id == game_id, Game.reveal_claim == token)
                .values(revealed=True, reveal_claim=None, reveal_claimed_at=None)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                db.rollback()
                logger.error("Reveal lease lost before commit", extra={"game_id": game_id})
                raise RevealPendingError("game is being revealed, try again shortly")
            db.commit()
        except Exception:
            self._release(db, game_id, token)
            raise
        logger.info("Game revealed", extra={"game_id": game_id, "songs": len(track_ids)})

    def _release(self, db: Session, game_id: str, token: str) -> None:
        db.rollback()
        try:
            db.execute(
                update(Game)
                .where(Game.id == game_id, Game.reveal_claim == token)
                .values(reveal_claim=None, reveal_claimed_at=None)
                .execution_options(synchronize_session=False)
            )
            db.commit()
        except Exception:
            db.rollback()
            logger.exception("Could not release reveal lease; it expires on its own", extra={"game_id": game_id})
        logger.warning("Reveal failed, lease released", extra={"game_id": game_id})
