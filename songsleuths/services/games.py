from __future__ import annotations

import logging
from typing import Optional, Union

from sqlalchemy.orm import Session

from songsleuths.core.clock import Clock
from songsleuths.models import Game, Submission, Tierlist, TierlistKind
from songsleuths.schemas.games import (
    OpenGameView,
    OwnSubmission,
    RevealedGameView,
    SongView,
    TierlistView,
    TierView,
)
from songsleuths.services import integrity
from songsleuths.services.catalog.base import PlaylistService
from songsleuths.services.reveal import RevealPipeline
from songsleuths.services.session_state import GamePhase, game_phase

logger = logging.getLogger(__name__)


def create_game(db: Session, playlists: PlaylistService, clock: Clock, name: str, deadline: int, n_songs: int) -> Game:
    """Validate, create the external playlist, then persist the game.

    Input is checked before the playlist is created so a rejected game does
    not leave an orphan playlist behind.
    """
    now = clock.now()
    name = integrity.validate_game(name, deadline, n_songs, now)
    playlist = playlists.create_playlist(name, f"Song Sleuths playlist for {name}")
    game = integrity.create_game(db, name, deadline, n_songs, playlist, now)
    logger.info("Game created", extra={"game_id": game.id, "deadline": deadline, "n_songs": n_songs})
    return game


def fetch_game(
    db: Session, pipeline: RevealPipeline, game_id: str, player_id: str
) -> Union[OpenGameView, RevealedGameView]:
    """The game as ``player_id`` may see it right now.

    Reading a game past its deadline reveals it first if nobody has.
    """
    game = integrity.get_game(db, game_id)
    integrity.record_membership(db, game.id, player_id)

    if game_phase(game, pipeline.clock.now()) is GamePhase.OPEN:
        own = (
            db.query(Submission)
            .filter(Submission.game_id == game.id, Submission.player_id == player_id)
            .first()
        )
        return open_view(game, own)

    game = pipeline.ensure_revealed(db, game.id)
    return revealed_view(db, game)


def open_view(game: Game, own: Optional[Submission]) -> OpenGameView:
    submission = None
    if own is not None:
        submission = OwnSubmission(
            nickname=own.nickname,
            songs=[s.catalog_id for s in own.songs],
            drawing=own.drawing,
        )
    return OpenGameView(id=game.id, name=game.name, deadline=game.deadline, n_songs=game.n_songs, submission=submission)


def _tierlist_view(tierlist: Tierlist) -> TierlistView:
    tiers = []
    for tier in tierlist.tiers:
        drawing = tier.submission.drawing if tier.submission is not None else None
        tiers.append(TierView(id=tier.id, name=tier.name, rank=tier.rank, drawing=drawing))
    return TierlistView(id=tierlist.id, type=tierlist.kind.value, tiers=tiers)


def revealed_view(db: Session, game: Game) -> RevealedGameView:
    songs = [
        SongView(id=s.id, spotify=s.catalog_id, name=s.name, album_art=s.cover_art)
        for sub in game.submissions
        for s in sub.songs
    ]
    guess = integrity.get_tierlist(db, game.id, TierlistKind.GUESS)
    ranking = integrity.get_tierlist(db, game.id, TierlistKind.RANKING)
    return RevealedGameView(
        id=game.id,
        name=game.name,
        deadline=game.deadline,
        n_songs=game.n_songs,
        songs=songs,
        guess_list=_tierlist_view(guess),
        ranking_list=_tierlist_view(ranking),
        playlist=game.playlist,
    )
