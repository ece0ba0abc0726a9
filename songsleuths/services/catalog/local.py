from __future__ import annotations

import secrets
from typing import Dict, Iterable, List

from .base import CatalogService, CatalogTrack, PlaylistService, TrackMetadata


class LocalCatalogProvider(CatalogService, PlaylistService):
    """Offline catalog and playlist store kept in process memory.

    Meant for development without catalog credentials: a small fixed track
    list is searchable, and playlists only live as long as the process.
    """

    def __init__(self) -> None:
        tracks: List[CatalogTrack] = [
            CatalogTrack("4uLU6hMCjMI75M1A2tKUQC", "Never Gonna Give You Up", "Whenever You Need Somebody", ["Rick Astley"]),
            CatalogTrack("7GhIk7Il098yCjg4BQjzvb", "Never Gonna Give You Up - 7\" Mix", "The Best of Me", ["Rick Astley"]),
            CatalogTrack("3n3Ppam7vgaVa1iaRUc9Lp", "Mr. Brightside", "Hot Fuss", ["The Killers"]),
            CatalogTrack("0VjIjW4GlUZAMYd2vXMi3b", "Blinding Lights", "After Hours", ["The Weeknd"]),
            CatalogTrack("7qiZfU4dY1lWllzX7mPBI3", "Shape of You", "Divide", ["Ed Sheeran"]),
            CatalogTrack("5ghIJDpPoe3CfHMGu71E6T", "Smells Like Teen Spirit", "Nevermind", ["Nirvana"]),
            CatalogTrack("2takcwOaAZWiXQijPHIx7B", "Time to Pretend", "Oracular Spectacular", ["MGMT"]),
            CatalogTrack("6habFhsOp2NvshLv26DqMb", "Despacito", "Vida", ["Luis Fonsi", "Daddy Yankee"]),
            CatalogTrack("1z6WtY7X4HQJvzxC4UgkSf", "Love Story", "Fearless", ["Taylor Swift"]),
            CatalogTrack("3AJwUDP919kvQ9QcozQPxg", "Yellow", "Parachutes", ["Coldplay"]),
        ]
        self._tracks: Dict[str, CatalogTrack] = {t.id: t for t in tracks}
        self._playlists: Dict[str, List[str]] = {}

    def name(self) -> str:
        return "local"

    def search(self, query: str, limit: int = 10) -> List[CatalogTrack]:
        q = (query or "").strip().lower()
        if not q:
            return []
        hits = [
            t
            for t in self._tracks.values()
            if q in t.name.lower() or q in t.album.lower() or any(q in a.lower() for a in t.artists)
        ]
        return hits[:limit]

    def fetch_metadata(self, ids: Iterable[str]) -> List[TrackMetadata]:
        out: List[TrackMetadata] = []
        for tid in ids:
            t = self._tracks.get(tid)
            if t:
                out.append(TrackMetadata(id=t.id, name=t.name, image=t.image))
        return out

    def create_playlist(self, name: str, description: str = "") -> str:
        playlist_id = secrets.token_hex(11)
        self._playlists[playlist_id] = []
        return playlist_id

    def add_tracks(self, playlist_id: str, track_ids: List[str]) -> None:
        self._playlists.setdefault(playlist_id, []).extend(track_ids)

    def playlist_tracks(self, playlist_id: str) -> List[str]:
        return list(self._playlists.get(playlist_id, []))
