from __future__ import annotations

from functools import lru_cache

from songsleuths.core.config import get_settings
from .base import CatalogService, PlaylistService
from .local import LocalCatalogProvider
from .spotify import SpotifyProvider


@lru_cache
def get_provider() -> LocalCatalogProvider | SpotifyProvider:
    """The configured provider; it serves both catalog reads and playlist writes."""
    settings = get_settings()
    key = (settings.CATALOG_PROVIDER or "local").lower()
    if key == "spotify":
        return SpotifyProvider()
    return LocalCatalogProvider()


def get_catalog() -> CatalogService:
    return get_provider()


def get_playlists() -> PlaylistService:
    return get_provider()
