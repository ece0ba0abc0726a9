import json

import pytest

from songsleuths.core.errors import ConflictError, NotFoundError, PhaseError, PrecedenceError, ValidationError
from songsleuths.models import Ranking, Song, Submission, TierlistKind
from songsleuths.services import integrity
from songsleuths.services import rankings as ranking_service
from songsleuths.services import submissions as submission_service

from conftest import song_id


@pytest.fixture
def game(db, provider, clock, new_game):
    game = new_game(n_songs=2)
    for n, (pid, nick) in enumerate([("a", "Ace"), ("b", "Bee")]):
        integrity.ensure_player(db, pid)
        submission_service.submit(db, provider, clock, game.id, pid, nick, [song_id(2 * n + 1), song_id(2 * n + 2)], "")
    return game


@pytest.fixture
def revealed(db, pipeline, clock, game):
    clock.set(game.deadline)
    pipeline.ensure_revealed(db, game.id)
    return game


def _lists(db, game):
    return (
        integrity.get_tierlist(db, game.id, TierlistKind.GUESS),
        integrity.get_tierlist(db, game.id, TierlistKind.RANKING),
    )


def _songs_of(db, game, player_id):
    return [
        s.id
        for s in db.query(Song)
        .join(Submission, Song.submission_id == Submission.id)
        .filter(Song.game_id == game.id, Submission.player_id == player_id)
        .order_by(Song.position)
    ]


def _tier_of(guess, nickname):
    return next(t.id for t in guess.tiers if t.name == nickname)


def _rank(db, clock, game, player_id, tierlist, assignment):
    raw = assignment if isinstance(assignment, str) else json.dumps(assignment)
    return ranking_service.submit_ranking(db, clock, game.id, player_id, tierlist.id, raw)


def test_ranking_before_deadline_is_a_phase_error(db, clock, game):
    guess, _ = _lists(db, game)
    with pytest.raises(PhaseError):
        _rank(db, clock, game, "a", guess, {})


def test_ranking_while_locked_is_a_phase_error(db, clock, game):
    clock.set(game.deadline)
    guess, _ = _lists(db, game)
    with pytest.raises(PhaseError):
        _rank(db, clock, game, "a", guess, {})


def test_ranking_tierlist_requires_guesses_first(db, clock, revealed):
    guess, ranking = _lists(db, revealed)
    with pytest.raises(PrecedenceError):
        _rank(db, clock, revealed, "a", ranking, {})
    assert db.query(Ranking).count() == 0

    _rank(db, clock, revealed, "a", guess, {})
    _rank(db, clock, revealed, "a", ranking, {str(ranking.tiers[0].id): [_songs_of(db, revealed, "b")[0]]})
    assert db.query(Ranking).count() == 2


def test_second_ranking_is_a_conflict(db, clock, revealed):
    guess, _ = _lists(db, revealed)
    _rank(db, clock, revealed, "a", guess, {})
    with pytest.raises(ConflictError):
        _rank(db, clock, revealed, "a", guess, {_tier_of(guess, "Bee"): _songs_of(db, revealed, "b")})

    stored = db.query(Ranking).one()
    assert json.loads(stored.ranking) == {}


def test_tierlist_of_another_game_is_rejected(db, clock, revealed, new_game):
    other = new_game(name="Other")
    other_guess = integrity.get_tierlist(db, other.id, TierlistKind.GUESS)

    with pytest.raises(ValidationError):
        _rank(db, clock, revealed, "a", other_guess, {})


def test_unknown_tierlist(db, clock, revealed):
    with pytest.raises(NotFoundError):
        ranking_service.submit_ranking(db, clock, revealed.id, "a", 999_999, "{}")


def test_non_participant_cannot_rank(db, clock, revealed):
    integrity.ensure_player(db, "stranger")
    guess, _ = _lists(db, revealed)
    with pytest.raises(ValidationError):
        _rank(db, clock, revealed, "stranger", guess, {})


def test_member_without_submission_can_rank(db, clock, revealed):
    integrity.ensure_player(db, "c")
    integrity.record_membership(db, revealed.id, "c")
    guess, _ = _lists(db, revealed)
    _rank(db, clock, revealed, "c", guess, {})
    assert db.query(Ranking).filter(Ranking.player_id == "c").count() == 1


@pytest.mark.parametrize("raw", ["not json", "[]", '"text"', "null"])
def test_ranking_must_be_a_json_object(db, clock, revealed, raw):
    guess, _ = _lists(db, revealed)
    with pytest.raises(ValidationError):
        _rank(db, clock, revealed, "a", guess, raw)


def test_ranking_rejects_bad_placements(db, clock, revealed):
    guess, ranking = _lists(db, revealed)
    ace, bee = _tier_of(guess, "Ace"), _tier_of(guess, "Bee")
    a_songs = _songs_of(db, revealed, "a")

    bad = [
        {str(ranking.tiers[0].id): a_songs},  # tier of the other tierlist
        {"999999": a_songs},
        {str(ace): ["999999"]},
        {str(ace): ["abc"]},
        {str(ace): ["\u00b2"]},  # superscript two, a unicode digit
        {str(ace): ["\u0663"]},  # arabic-indic three
        {str(ace): a_songs[0]},
        {str(ace): [a_songs[0]], str(bee): [a_songs[0]]},
    ]
    for assignment in bad:
        with pytest.raises(ValidationError):
            _rank(db, clock, revealed, "a", guess, assignment)
    assert db.query(Ranking).count() == 0


def test_ranking_is_stored_normalized(db, clock, revealed):
    guess, _ = _lists(db, revealed)
    ace = _tier_of(guess, "Ace")
    a_songs = _songs_of(db, revealed, "a")

    stored = _rank(db, clock, revealed, "b", guess, {str(ace): a_songs})
    assert json.loads(stored.ranking) == {str(ace): [str(i) for i in a_songs]}


def test_result_before_guessing_is_not_eligible(db, revealed):
    result = ranking_service.get_result(db, revealed.id, "a")
    assert result.eligible is False
    assert result.ranking_submitted is False
    assert (result.correct, result.total) == (0, 0)
    # No answer key before guessing
    assert result.answers == []


def test_result_scores_guesses(db, clock, revealed):
    guess, ranking = _lists(db, revealed)
    ace, bee = _tier_of(guess, "Ace"), _tier_of(guess, "Bee")
    a_songs, b_songs = _songs_of(db, revealed, "a"), _songs_of(db, revealed, "b")

    # One right, one swapped, one left out
    _rank(db, clock, revealed, "a", guess, {str(ace): [a_songs[0], b_songs[0]], str(bee): [a_songs[1]]})

    result = ranking_service.get_result(db, revealed.id, "a")
    assert result.eligible is True
    assert result.ranking_submitted is False
    assert result.correct == 1
    assert result.total == 4
    assert [(ans.nickname, ans.songs) for ans in result.answers] == [("Ace", a_songs), ("Bee", b_songs)]

    _rank(db, clock, revealed, "a", ranking, {})
    assert ranking_service.get_result(db, revealed.id, "a").ranking_submitted is True
