from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Query

from songsleuths.core.config import get_settings
from songsleuths.core.errors import ValidationError
from songsleuths.schemas.games import SearchResult
from songsleuths.services.catalog.base import CatalogService
from songsleuths.services.catalog.factory import get_catalog

router = APIRouter(prefix="/api/spotify", tags=["catalog"])


@router.get("/search", response_model=List[SearchResult])
def search(q: str = Query(default=""), catalog: CatalogService = Depends(get_catalog)):
    if not q.strip():
        raise ValidationError("search query is required")
    tracks = catalog.search(q, get_settings().SEARCH_LIMIT)
    return [SearchResult(id=t.id, name=t.name, album=t.album, artists=t.artists, image=t.image) for t in tracks]
