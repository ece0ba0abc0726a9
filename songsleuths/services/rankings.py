"""Guess and ranking verdicts.

A ranking is a JSON object mapping tier ids to the ordered song ids the
player put in that tier, e.g. ``{"12": ["3", "7"], "13": ["5"]}``. Songs may
be left out. On the guess tierlist a song placed in a tier is a claim that
the tier's player submitted it.

Rankings are written once per player and tierlist; a second attempt is a
conflict, never an overwrite. The ranking tierlist only opens to a player
after they have guessed.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Dict, List

from sqlalchemy.orm import Session

from songsleuths.core.clock import Clock
from songsleuths.core.errors import NotFoundError, PrecedenceError, ValidationError
from songsleuths.models import Ranking, Song, Tierlist, TierlistKind
from songsleuths.services import integrity
from songsleuths.services.session_state import require_revealed

logger = logging.getLogger(__name__)


@dataclass
class Answer:
    tier_id: int
    nickname: str
    songs: List[int] = field(default_factory=list)


@dataclass
class GuessResult:
    eligible: bool
    ranking_submitted: bool
    correct: int
    total: int
    answers: List[Answer]


def parse_assignment(raw: str, tierlist: Tierlist, song_ids: set[int]) -> Dict[str, List[str]]:
    try:
        data = json.loads(raw)
    except (TypeError, ValueError):
        raise ValidationError("ranking must be a JSON object")
    if not isinstance(data, dict):
        raise ValidationError("ranking must be a JSON object")

    tier_ids = {str(t.id) for t in tierlist.tiers}
    seen: set[str] = set()
    out: Dict[str, List[str]] = {}
    for tier_id, items in data.items():
        if tier_id not in tier_ids:
            raise ValidationError(f"tier {tier_id} is not part of this tierlist")
        if not isinstance(items, list):
            raise ValidationError("each tier must hold a list of song ids")
        placed: List[str] = []
        for item in items:
            key = str(item)
            if not (key.isascii() and key.isdigit()) or int(key) not in song_ids:
                raise ValidationError(f"song {key} is not part of this game")
            if key in seen:
                raise ValidationError(f"song {key} is placed twice")
            seen.add(key)
            placed.append(key)
        out[tier_id] = placed
    return out


def guess_count(db: Session, game_id: str, player_id: str) -> int:
    guess = integrity.get_tierlist(db, game_id, TierlistKind.GUESS)
    return db.query(Ranking).filter(Ranking.player_id == player_id, Ranking.tierlist_id == guess.id).count()


def require_guessed(db: Session, game_id: str, player_id: str) -> None:
    if guess_count(db, game_id, player_id) == 0:
        raise PrecedenceError("must submit guesses first")


def submit_ranking(
    db: Session, clock: Clock, game_id: str, player_id: str, tierlist_id: int, raw: str
) -> Ranking:
    game = integrity.get_game(db, game_id)
    tierlist = db.get(Tierlist, tierlist_id)
    if tierlist is None:
        raise NotFoundError("tierlist not found")
    if tierlist.game_id != game.id:
        raise ValidationError("tierlist does not belong to game")
    require_revealed(game, clock.now())
    if tierlist.kind is TierlistKind.RANKING:
        require_guessed(db, game.id, player_id)

    song_ids = {sid for (sid,) in db.query(Song.id).filter(Song.game_id == game.id).all()}
    assignment = parse_assignment(raw, tierlist, song_ids)
    ranking = integrity.create_ranking(db, player_id, tierlist, game.id, assignment)
    logger.info(
        "Ranking recorded",
        extra={"game_id": game.id, "player_id": player_id, "tierlist": tierlist.kind.value},
    )
    return ranking


def get_result(db: Session, game_id: str, player_id: str) -> GuessResult:
    """Score the player's guesses and give the answer key.

    Players who have not guessed yet get an ineligible result without the
    answer key.
    """
    game = integrity.get_game(db, game_id)
    guess = integrity.get_tierlist(db, game.id, TierlistKind.GUESS)
    mine = db.query(Ranking).filter(Ranking.player_id == player_id, Ranking.tierlist_id == guess.id).first()
    if mine is None:
        return GuessResult(eligible=False, ranking_submitted=False, correct=0, total=0, answers=[])

    ranking_list = integrity.get_tierlist(db, game.id, TierlistKind.RANKING)
    ranked = (
        db.query(Ranking.id)
        .filter(Ranking.player_id == player_id, Ranking.tierlist_id == ranking_list.id)
        .first()
        is not None
    )

    songs = db.query(Song).filter(Song.game_id == game.id).order_by(Song.submission_id, Song.position).all()
    author_of = {s.id: s.submission_id for s in songs}
    tier_owner = {t.id: t.submission_id for t in guess.tiers}

    correct = 0
    for tier_id, items in json.loads(mine.ranking).items():
        owner = tier_owner.get(int(tier_id))
        correct += sum(1 for item in items if owner is not None and author_of.get(int(item)) == owner)

    answers = []
    for tier in guess.tiers:
        answers.append(
            Answer(
                tier_id=tier.id,
                nickname=tier.name,
                songs=[s.id for s in songs if s.submission_id == tier.submission_id],
            )
        )
    return GuessResult(eligible=True, ranking_submitted=ranked, correct=correct, total=len(songs), answers=answers)
