"""Shared fixtures.

Every test gets its own SQLite file under ``tmp_path`` so several sessions
(and threads) can look at the same data the way independent requests do.
External services are replaced by ``FakeProvider``, which records calls.
"""

import os

# Configure before anything imports the settings
os.environ.setdefault("SONGSLEUTHS_ENV", "test")
os.environ.setdefault("SONGSLEUTHS_DATABASE_URL", "sqlite://")
os.environ.setdefault("SONGSLEUTHS_CATALOG_PROVIDER", "local")
os.environ.setdefault("SONGSLEUTHS_SECRET_KEY", "test-secret")

import threading
import time

import pytest
from fastapi.testclient import TestClient

from songsleuths.core.clock import FixedClock, get_clock
from songsleuths.core.errors import UpstreamError
from songsleuths.core.security import SignedTokenAuthenticator, get_authenticator
from songsleuths.db.session import Base, get_db, make_engine, make_session_factory
from songsleuths.deps.services import get_reveal_pipeline
from songsleuths.main import app
from songsleuths.services import games as game_service
from songsleuths.services.catalog.base import CatalogService, CatalogTrack, PlaylistService, TrackMetadata
from songsleuths.services.catalog.factory import get_catalog, get_playlists
from songsleuths.services.reveal import RevealPipeline

NOW = 1_700_000_000


def song_id(n) -> str:
    """A well-formed 22 character catalog id."""
    return f"track{n}".ljust(22, "x")


class FakeProvider(CatalogService, PlaylistService):
    def __init__(self) -> None:
        self.metadata_calls = []
        self.add_calls = []
        self.playlists = []
        self.fail_metadata = False
        self.fail_add = False
        self.add_delay = 0.0
        self.unknown = set()
        self.on_add = None
        self._lock = threading.Lock()

    def name(self) -> str:
        return "fake"

    def search(self, query, limit=10):
        return [CatalogTrack(id=song_id(1), name=f"{query} song", album="Album", artists=["Artist"], image="img")][:limit]

    def fetch_metadata(self, ids):
        ids = list(ids)
        with self._lock:
            self.metadata_calls.append(ids)
        if self.fail_metadata:
            raise UpstreamError("catalog down")
        return [TrackMetadata(id=i, name=f"Name of {i}", image=f"https://img.test/{i}.jpg") for i in ids if i not in self.unknown]

    def create_playlist(self, name, description=""):
        with self._lock:
            self.playlists.append(name)
            return f"playlist{len(self.playlists)}"

    def add_tracks(self, playlist_id, track_ids):
        with self._lock:
            self.add_calls.append((playlist_id, list(track_ids)))
        if self.add_delay:
            time.sleep(self.add_delay)
        if self.on_add is not None:
            self.on_add()
        if self.fail_add:
            raise UpstreamError("playlist service down")


@pytest.fixture
def engine(tmp_path):
    eng = make_engine(f"sqlite:///{(tmp_path / 'test.db').as_posix()}")
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def clock():
    return FixedClock(NOW)


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def pipeline(provider, clock):
    return RevealPipeline(provider, provider, clock, wait_seconds=0, poll_interval=0)


@pytest.fixture
def authenticator():
    return SignedTokenAuthenticator(secret_key="test-secret", max_age=3600)


@pytest.fixture
def new_game(db, provider, clock):
    def _new_game(name="Party", n_songs=2, deadline_in=3600):
        return game_service.create_game(db, provider, clock, name, clock.now() + deadline_in, n_songs)

    return _new_game


@pytest.fixture
def client(session_factory, clock, provider, authenticator):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_catalog] = lambda: provider
    app.dependency_overrides[get_playlists] = lambda: provider
    app.dependency_overrides[get_authenticator] = lambda: authenticator
    app.dependency_overrides[get_reveal_pipeline] = lambda: RevealPipeline(provider, provider, clock, wait_seconds=0)

    yield TestClient(app)

    app.dependency_overrides.clear()


@pytest.fixture
def auth(authenticator):
    def _auth(player_id):
        return {"Authorization": f"Bearer {authenticator.issue(player_id)}"}

    return _auth
