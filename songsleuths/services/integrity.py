"""Write-side rules for every persisted entity.

Each public write validates its input first, then commits one unit of work.
Uniqueness lives in the schema (see the ``UniqueConstraint`` declarations on
the models); the application-level lookups here only exist to give a clearer
message. A racing writer that slips past them is still stopped by the
database, and its ``IntegrityError`` comes back out as ``ConflictError``.
"""

from __future__ import annotations

import json
import logging
import re
import secrets
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional

from sqlalchemy import func, insert, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from songsleuths.core.errors import ConflictError, NotFoundError, ValidationError
from songsleuths.models import (
    Game,
    Player,
    Ranking,
    RANKING_TIERS,
    Song,
    Submission,
    Tier,
    Tierlist,
    TierlistKind,
    player_games,
)
from songsleuths.services.catalog.base import TrackMetadata

logger = logging.getLogger(__name__)

SONG_ID_RE = re.compile(r"[A-Za-z0-9]{22}")
NAME_MIN, NAME_MAX = 1, 50
NICKNAME_MIN, NICKNAME_MAX = 1, 50
SONGS_MIN, SONGS_MAX = 1, 5
GAME_ID_BYTES = 16

# Constraint name or column list (as reported by SQLite) -> message
_CONFLICT_MESSAGES = (
    (("uq_submission_player_game", "submissions.player_id, submissions.game_id"), "player already submitted to this game"),
    (("uq_submission_game_nickname", "submissions.game_id, submissions.nickname"), "nickname is already taken in this game"),
    (("uq_song_game_catalog", "songs.game_id, songs.catalog_id"), "this song has already been submitted to this game"),
    (("uq_ranking_player_tierlist", "rankings.player_id, rankings.tierlist_id"), "ranking already submitted for this tierlist"),
    (("uq_tierlist_game_kind", "tierlists.game_id, tierlists.kind"), "game already has this tierlist"),
)


def conflict_message(exc: IntegrityError) -> str:
    text = str(getattr(exc, "orig", exc))
    for needles, message in _CONFLICT_MESSAGES:
        if any(n in text for n in needles):
            return message
    return "conflicting write"


def commit_or_conflict(db: Session) -> None:
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        message = conflict_message(e)
        logger.info("Write rejected by constraint: %s", message, extra={"detail": str(e.orig)})
        raise ConflictError(message) from e


# --- validation ---------------------------------------------------------------


def validate_game(name: str, deadline: int, n_songs: int, now: int) -> str:
    name = (name or "").strip()
    if deadline <= now:
        raise ValidationError("deadline must be in the future")
    if not NAME_MIN <= len(name) <= NAME_MAX:
        raise ValidationError(f"name must be between {NAME_MIN} and {NAME_MAX} characters")
    if not SONGS_MIN <= n_songs <= SONGS_MAX:
        raise ValidationError(f"number of songs must be between {SONGS_MIN} and {SONGS_MAX}")
    return name


def validate_nickname(nickname: str) -> str:
    nickname = (nickname or "").strip()
    if not NICKNAME_MIN <= len(nickname) <= NICKNAME_MAX:
        raise ValidationError(f"nickname must be between {NICKNAME_MIN} and {NICKNAME_MAX} characters")
    return nickname


def validate_song_ids(song_ids: List[str], n_songs: int) -> List[str]:
    if len(song_ids) != n_songs:
        raise ValidationError(f"number of songs should be {n_songs}")
    for sid in song_ids:
        if not isinstance(sid, str) or not SONG_ID_RE.fullmatch(sid):
            raise ValidationError(f"invalid song id: {sid!r}")
    if len(set(song_ids)) != len(song_ids):
        raise ConflictError("the same song appears twice in this submission")
    return list(song_ids)


def new_game_id() -> str:
    return secrets.token_urlsafe(GAME_ID_BYTES)


# --- players and membership ---------------------------------------------------


def ensure_player(db: Session, player_id: str) -> Player:
    player = db.get(Player, player_id)
    if player is not None:
        return player
    db.add(Player(id=player_id))
    try:
        db.commit()
    except IntegrityError:
        # Another request registered the same player first
        db.rollback()
    return db.get(Player, player_id)


def is_member(db: Session, game_id: str, player_id: str) -> bool:
    row = db.execute(
        select(player_games.c.player_id).where(
            player_games.c.game_id == game_id, player_games.c.player_id == player_id
        )
    ).first()
    return row is not None


def record_membership(db: Session, game_id: str, player_id: str) -> None:
    if is_member(db, game_id, player_id):
        return
    try:
        db.execute(insert(player_games).values(game_id=game_id, player_id=player_id))
        db.commit()
    except IntegrityError:
        # Recorded by a concurrent request
        db.rollback()


def is_participant(db: Session, game_id: str, player_id: str) -> bool:
    if is_member(db, game_id, player_id):
        return True
    return (
        db.query(Submission.id)
        .filter(Submission.game_id == game_id, Submission.player_id == player_id)
        .first()
        is not None
    )


# --- games and tierlists ------------------------------------------------------


def get_game(db: Session, game_id: str) -> Game:
    game = db.get(Game, game_id)
    if game is None:
        raise NotFoundError("game not found")
    return game


def get_tierlist(db: Session, game_id: str, kind: TierlistKind) -> Tierlist:
    tierlist = db.query(Tierlist).filter(Tierlist.game_id == game_id, Tierlist.kind == kind).first()
    if tierlist is None:
        raise NotFoundError(f"{kind.value} tierlist not found")
    return tierlist


def create_game(db: Session, name: str, deadline: int, n_songs: int, playlist: str, now: int) -> Game:
    """Insert a game together with its empty guess tierlist and seeded ranking tierlist."""
    name = validate_game(name, deadline, n_songs, now)
    game = Game(
        id=new_game_id(),
        name=name,
        deadline=deadline,
        n_songs=n_songs,
        playlist=playlist,
        revealed=False,
    )
    ranking = Tierlist(kind=TierlistKind.RANKING)
    ranking.tiers = [Tier(name=tier, rank=i) for i, tier in enumerate(RANKING_TIERS)]
    game.tierlists = [Tierlist(kind=TierlistKind.GUESS), ranking]
    db.add(game)
    commit_or_conflict(db)
    return game


# --- submissions --------------------------------------------------------------


def _check_song_owners(db: Session, game_id: str, player_id: str, song_ids: Iterable[str]) -> None:
    taken = (
        db.query(Song.catalog_id)
        .join(Submission, Song.submission_id == Submission.id)
        .filter(Song.game_id == game_id, Song.catalog_id.in_(list(song_ids)), Submission.player_id != player_id)
        .first()
    )
    if taken:
        raise ConflictError("this song has already been submitted to this game")


def _check_nickname(db: Session, game_id: str, player_id: str, nickname: str) -> None:
    clash = (
        db.query(Submission.id)
        .filter(Submission.game_id == game_id, Submission.nickname == nickname, Submission.player_id != player_id)
        .first()
    )
    if clash:
        raise ConflictError("nickname is already taken in this game")


def _next_guess_rank(db: Session, tierlist_id: int) -> int:
    current = db.query(func.max(Tier.rank)).filter(Tier.tierlist_id == tierlist_id).scalar()
    return 0 if current is None else current + 1


def save_submission(
    db: Session,
    game: Game,
    player_id: str,
    nickname: str,
    drawing: str,
    song_ids: List[str],
    metadata: Optional[Dict[str, TrackMetadata]] = None,
) -> Submission:
    """Create or replace a player's submission to ``game``.

    A new submission also gets its tier appended to the game's guess
    tierlist. On update, songs the player keeps retain their rows; the rest
    are deleted and the new ones inserted in the same commit.
    """
    nickname = validate_nickname(nickname)
    song_ids = validate_song_ids(song_ids, game.n_songs)
    metadata = metadata or {}
    _check_nickname(db, game.id, player_id, nickname)
    _check_song_owners(db, game.id, player_id, song_ids)

    submission = (
        db.query(Submission).filter(Submission.player_id == player_id, Submission.game_id == game.id).first()
    )
    if submission is None:
        guess = get_tierlist(db, game.id, TierlistKind.GUESS)
        submission = Submission(player_id=player_id, game_id=game.id, nickname=nickname, drawing=drawing or "")
        submission.tier = Tier(name=nickname, rank=_next_guess_rank(db, guess.id), tierlist_id=guess.id)
        existing: Dict[str, Song] = {}
        db.add(submission)
    else:
        submission.drawing = drawing or ""
        submission.updated_at = datetime.now(timezone.utc)
        if submission.nickname != nickname:
            submission.nickname = nickname
            if submission.tier is not None:
                submission.tier.name = nickname
        existing = {s.catalog_id: s for s in submission.songs}

    songs: List[Song] = []
    for position, cid in enumerate(song_ids):
        song = existing.pop(cid, None)
        if song is None:
            meta = metadata.get(cid)
            song = Song(
                game_id=game.id,
                catalog_id=cid,
                name=meta.name if meta else "",
                cover_art=meta.image if meta else "",
            )
        song.position = position
        songs.append(song)
    submission.songs = songs

    commit_or_conflict(db)
    return submission


def delete_submission(db: Session, submission: Submission) -> None:
    db.delete(submission)
    commit_or_conflict(db)


# --- rankings -----------------------------------------------------------------


def create_ranking(db: Session, player_id: str, tierlist: Tierlist, game_id: str, assignment: dict) -> Ranking:
    if tierlist.game_id != game_id:
        raise ValidationError("tierlist does not belong to game")
    if not is_participant(db, game_id, player_id):
        raise ValidationError("player is not part of this game")
    already = (
        db.query(Ranking.id).filter(Ranking.player_id == player_id, Ranking.tierlist_id == tierlist.id).first()
    )
    if already:
        raise ConflictError("ranking already submitted for this tierlist")
    ranking = Ranking(
        player_id=player_id,
        tierlist_id=tierlist.id,
        game_id=game_id,
        ranking=json.dumps(assignment, separators=(",", ":")),
    )
    db.add(ranking)
    commit_or_conflict(db)
    return ranking
