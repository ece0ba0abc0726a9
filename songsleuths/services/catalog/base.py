from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List


@dataclass
class CatalogTrack:
    id: str
    name: str
    album: str = ""
    artists: List[str] = field(default_factory=list)
    image: str = ""  # cover art URL, empty when the catalog has none


@dataclass
class TrackMetadata:
    id: str
    name: str
    image: str = ""


class CatalogService:
    """Read-only access to the music catalog."""

    def name(self) -> str:
        raise NotImplementedError

    def search(self, query: str, limit: int = 10) -> List[CatalogTrack]:
        raise NotImplementedError

    def fetch_metadata(self, ids: Iterable[str]) -> List[TrackMetadata]:
        """Return metadata for the known ids among ``ids``.

        Idempotent and safe to retry. Unknown ids are left out of the result.
        """
        raise NotImplementedError


class PlaylistService:
    """Writes to the external playlist owned by the application account."""

    def create_playlist(self, name: str, description: str = "") -> str:
        """Create a private playlist and return its reference."""
        raise NotImplementedError

    def add_tracks(self, playlist_id: str, track_ids: List[str]) -> None:
        """Append tracks to a playlist. Side-effecting: callers must not repeat it."""
        raise NotImplementedError
