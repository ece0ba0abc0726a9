from __future__ import annotations

import logging
from typing import Iterable, List, Optional

import httpx

from songsleuths.core.config import get_settings
from songsleuths.core.errors import UpstreamError
from .base import CatalogService, CatalogTrack, PlaylistService, TrackMetadata

logger = logging.getLogger(__name__)

# Web API limits per request
MAX_TRACK_IDS = 50
MAX_PLAYLIST_ADD = 100


class SpotifyProvider(CatalogService, PlaylistService):
    """Spotify Web API backed catalog and playlist service.

    - Catalog reads use an app token (client credentials).
    - Playlist writes act as the owning account through its refresh token.
    """

    def __init__(self, transport: Optional[httpx.BaseTransport] = None) -> None:
        settings = get_settings()
        self._api = settings.SPOTIFY_API_BASE.rstrip("/")
        self._accounts = settings.SPOTIFY_ACCOUNTS_BASE.rstrip("/")
        self._client_id = settings.SPOTIFY_CLIENT_ID or ""
        self._client_secret = settings.SPOTIFY_CLIENT_SECRET or ""
        self._refresh_token = settings.SPOTIFY_REFRESH_TOKEN or ""
        self._user_id = settings.SPOTIFY_USER_ID or ""
        self._timeout = settings.HTTP_TIMEOUT_SECONDS
        self._transport = transport

    def name(self) -> str:
        return "spotify"

    def _client(self) -> httpx.Client:
        return httpx.Client(timeout=self._timeout, transport=self._transport)

    def _token(self, client: httpx.Client, form: dict) -> str:
        try:
            resp = client.post(
                f"{self._accounts}/token",
                data=form,
                auth=(self._client_id, self._client_secret),
            )
            resp.raise_for_status()
            token = _json_object(resp).get("access_token")
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Spotify token request failed: %s", e)
            raise UpstreamError("Spotify rejected token request") from e
        if not token:
            raise UpstreamError("Spotify returned no access token")
        return token

    def _app_token(self, client: httpx.Client) -> str:
        return self._token(client, {"grant_type": "client_credentials"})

    def _user_token(self, client: httpx.Client) -> str:
        return self._token(client, {"grant_type": "refresh_token", "refresh_token": self._refresh_token})

    def search(self, query: str, limit: int = 10) -> List[CatalogTrack]:
        tracks: List[CatalogTrack] = []
        with self._client() as client:
            token = self._app_token(client)
            try:
                resp = client.get(
                    f"{self._api}/search",
                    params={"q": query, "type": "track", "limit": str(limit)},
                    headers={"Authorization": f"Bearer {token}"},
                )
                resp.raise_for_status()
                data = _json_object(resp)
            except (httpx.HTTPError, ValueError) as e:
                logger.warning("Spotify search failed query=%r: %s", query, e)
                raise UpstreamError("Spotify rejected search request") from e

        for item in ((data.get("tracks") or {}).get("items") or []):
            if not isinstance(item, dict) or not item.get("id"):
                continue
            album = item.get("album") or {}
            tracks.append(
                CatalogTrack(
                    id=item["id"],
                    name=item.get("name") or "",
                    album=album.get("name") or "",
                    artists=[a.get("name") or "" for a in (item.get("artists") or [])],
                    image=_first_image(album),
                )
            )
        return tracks

    def fetch_metadata(self, ids: Iterable[str]) -> List[TrackMetadata]:
        wanted = list(dict.fromkeys(i for i in ids if i))
        out: List[TrackMetadata] = []
        if not wanted:
            return out
        with self._client() as client:
            token = self._app_token(client)
            for start in range(0, len(wanted), MAX_TRACK_IDS):
                chunk = wanted[start : start + MAX_TRACK_IDS]
                try:
                    resp = client.get(
                        f"{self._api}/tracks",
                        params={"ids": ",".join(chunk)},
                        headers={"Authorization": f"Bearer {token}"},
                    )
                    resp.raise_for_status()
                    data = _json_object(resp)
                except (httpx.HTTPError, ValueError) as e:
                    logger.warning("Spotify track lookup failed for %d ids: %s", len(chunk), e)
                    raise UpstreamError("Spotify rejected track lookup") from e
                # Unknown ids come back as null entries
                for t in data.get("tracks") or []:
                    if not t or not t.get("id"):
                        continue
                    out.append(TrackMetadata(id=t["id"], name=t.get("name") or "", image=_first_image(t.get("album") or {})))
        return out

    def create_playlist(self, name: str, description: str = "") -> str:
        with self._client() as client:
            token = self._user_token(client)
            try:
                resp = client.post(
                    f"{self._api}/users/{self._user_id}/playlists",
                    json={"name": name, "description": description, "public": False},
                    headers={"Authorization": f"Bearer {token}"},
                )
                resp.raise_for_status()
                playlist_id = _json_object(resp).get("id")
            except (httpx.HTTPError, ValueError) as e:
                logger.warning("Spotify playlist creation failed: %s", e)
                raise UpstreamError("Spotify rejected playlist creation request") from e
        if not playlist_id:
            raise UpstreamError("Spotify returned no playlist id")
        return playlist_id

    def add_tracks(self, playlist_id: str, track_ids: List[str]) -> None:
        if not track_ids:
            return
        uris = [f"spotify:track:{tid}" for tid in track_ids]
        with self._client() as client:
            token = self._user_token(client)
            for start in range(0, len(uris), MAX_PLAYLIST_ADD):
                try:
                    resp = client.post(
                        f"{self._api}/playlists/{playlist_id}/tracks",
                        json={"uris": uris[start : start + MAX_PLAYLIST_ADD]},
                        headers={"Authorization": f"Bearer {token}"},
                    )
                    resp.raise_for_status()
                except httpx.HTTPError as e:
                    logger.warning("Spotify playlist add failed playlist=%s: %s", playlist_id, e)
                    raise UpstreamError("Spotify rejected playlist update") from e


def _first_image(album: dict) -> str:
    images = album.get("images") or []
    if isinstance(images, list) and images and isinstance(images[0], dict):
        return images[0].get("url") or ""
    return ""


def _json_object(resp: httpx.Response) -> dict:
    # A 200 with an HTML or empty body is an upstream failure too
    data = resp.json()
    if not isinstance(data, dict):
        raise ValueError(f"expected a JSON object, got {type(data).__name__}")
    return data
