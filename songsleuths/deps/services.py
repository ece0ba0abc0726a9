from __future__ import annotations

from fastapi import Depends

from songsleuths.core.clock import Clock, get_clock
from songsleuths.services.catalog.base import CatalogService, PlaylistService
from songsleuths.services.catalog.factory import get_catalog, get_playlists
from songsleuths.services.reveal import RevealPipeline


def get_reveal_pipeline(
    catalog: CatalogService = Depends(get_catalog),
    playlists: PlaylistService = Depends(get_playlists),
    clock: Clock = Depends(get_clock),
) -> RevealPipeline:
    return RevealPipeline(catalog, playlists, clock)
