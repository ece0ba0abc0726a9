from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from songsleuths.core.clock import Clock, get_clock
from songsleuths.core.config import get_settings
from songsleuths.db.session import get_db
from songsleuths.deps.auth import get_current_player
from songsleuths.schemas.games import OwnSubmission, SubmissionIn
from songsleuths.services import submissions as submission_service
from songsleuths.services.catalog.base import CatalogService
from songsleuths.services.catalog.factory import get_catalog

router = APIRouter(prefix="/api/submit", tags=["submissions"])


@router.post("/{game_id}", response_model=OwnSubmission, status_code=status.HTTP_201_CREATED)
def submit(
    game_id: str,
    body: SubmissionIn,
    player_id: str = Depends(get_current_player),
    db: Session = Depends(get_db),
    catalog: CatalogService = Depends(get_catalog),
    clock: Clock = Depends(get_clock),
):
    sub = submission_service.submit(
        db,
        catalog,
        clock,
        game_id,
        player_id,
        body.nickname,
        body.songs,
        body.drawing,
        check_catalog=get_settings().VALIDATE_SONGS_ON_SUBMIT,
    )
    return OwnSubmission(nickname=sub.nickname, songs=[s.catalog_id for s in sub.songs], drawing=sub.drawing)


@router.delete("/{game_id}", status_code=status.HTTP_204_NO_CONTENT)
def withdraw(
    game_id: str,
    player_id: str = Depends(get_current_player),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    submission_service.withdraw(db, clock, game_id, player_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
