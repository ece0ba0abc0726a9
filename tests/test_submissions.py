import pytest

from songsleuths.core.errors import NotFoundError, PhaseError, UpstreamError, ValidationError
from songsleuths.models import Song, Submission, Tier
from songsleuths.services import integrity
from songsleuths.services import submissions as submission_service

from conftest import song_id


@pytest.fixture
def game(new_game, db):
    for pid in ("a", "b"):
        integrity.ensure_player(db, pid)
    return new_game(n_songs=2)


def _submit(db, provider, clock, game, player, nickname, songs, **kw):
    return submission_service.submit(db, provider, clock, game.id, player, nickname, songs, "drawing", **kw)


def test_create_game_makes_a_playlist(game, provider):
    assert provider.playlists == ["Party"]
    assert game.playlist == "playlist1"


def test_create_game_validates_before_calling_playlist_service(db, provider, clock):
    from songsleuths.services import games as game_service

    with pytest.raises(ValidationError):
        game_service.create_game(db, provider, clock, "Late", clock.now() - 1, 2)
    assert provider.playlists == []


def test_submit_then_read_own(db, provider, clock, game):
    _submit(db, provider, clock, game, "a", "Ace", [song_id(1), song_id(2)])

    own = submission_service.get_own_submission(db, game.id, "a")
    assert own.nickname == "Ace"
    assert [s.catalog_id for s in own.songs] == [song_id(1), song_id(2)]
    assert integrity.is_member(db, game.id, "a")
    assert submission_service.get_own_submission(db, game.id, "b") is None


def test_submit_after_deadline_is_rejected(db, provider, clock, game):
    _submit(db, provider, clock, game, "a", "Ace", [song_id(1), song_id(2)])
    clock.set(game.deadline)

    with pytest.raises(PhaseError):
        _submit(db, provider, clock, game, "b", "Bee", [song_id(3), song_id(4)])
    with pytest.raises(PhaseError):
        _submit(db, provider, clock, game, "a", "Ace", [song_id(5), song_id(6)])

    assert db.query(Submission).count() == 1
    assert sorted(c for (c,) in db.query(Song.catalog_id).all()) == [song_id(1), song_id(2)]
    db.refresh(game)
    assert game.revealed is False


def test_submit_unknown_game(db, provider, clock):
    with pytest.raises(NotFoundError):
        submission_service.submit(db, provider, clock, "missing", "a", "Ace", [song_id(1)], "")


def test_catalog_check_rejects_unknown_ids(db, provider, clock, game):
    provider.unknown.add(song_id(2))
    with pytest.raises(ValidationError):
        _submit(db, provider, clock, game, "a", "Ace", [song_id(1), song_id(2)], check_catalog=True)
    assert db.query(Submission).count() == 0


def test_catalog_check_stores_metadata(db, provider, clock, game):
    sub = _submit(db, provider, clock, game, "a", "Ace", [song_id(1), song_id(2)], check_catalog=True)
    assert sub.songs[0].name == f"Name of {song_id(1)}"
    assert sub.songs[0].cover_art.endswith(".jpg")


def test_catalog_failure_blocks_checked_submission(db, provider, clock, game):
    provider.fail_metadata = True
    with pytest.raises(UpstreamError):
        _submit(db, provider, clock, game, "a", "Ace", [song_id(1), song_id(2)], check_catalog=True)
    assert db.query(Submission).count() == 0


def test_malformed_ids_are_rejected_before_catalog_lookup(db, provider, clock, game):
    with pytest.raises(ValidationError):
        _submit(db, provider, clock, game, "a", "Ace", [song_id(1), "bad"], check_catalog=True)
    assert provider.metadata_calls == []


def test_withdraw(db, provider, clock, game):
    _submit(db, provider, clock, game, "a", "Ace", [song_id(1), song_id(2)])
    submission_service.withdraw(db, clock, game.id, "a")

    assert db.query(Submission).count() == 0
    assert db.query(Song).count() == 0
    assert db.query(Tier).filter(Tier.submission_id.isnot(None)).count() == 0

    # Songs and nickname are free again
    _submit(db, provider, clock, game, "b", "Ace", [song_id(1), song_id(2)])


def test_withdraw_without_submission(db, clock, game):
    with pytest.raises(NotFoundError):
        submission_service.withdraw(db, clock, game.id, "a")


def test_withdraw_after_deadline(db, provider, clock, game):
    _submit(db, provider, clock, game, "a", "Ace", [song_id(1), song_id(2)])
    clock.set(game.deadline + 1)
    with pytest.raises(PhaseError):
        submission_service.withdraw(db, clock, game.id, "a")
    assert db.query(Submission).count() == 1


def test_song_id_with_trailing_newline_is_rejected(db, provider, clock, game):
    with pytest.raises(ValidationError):
        _submit(db, provider, clock, game, "a", "Ace", [song_id(1), song_id(2) + "\n"])
    assert db.query(Song).count() == 0
