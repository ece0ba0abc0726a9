from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from songsleuths.core.clock import Clock, get_clock
from songsleuths.db.session import get_db
from songsleuths.deps.auth import get_current_player
from songsleuths.schemas.games import RankingIn, ResultView
from songsleuths.services import rankings as ranking_service

router = APIRouter(prefix="/api", tags=["rankings"])


@router.post("/rank/{game_id}", status_code=status.HTTP_201_CREATED)
def submit_ranking(
    game_id: str,
    body: RankingIn,
    player_id: str = Depends(get_current_player),
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    ranking_service.submit_ranking(db, clock, game_id, player_id, body.tierlist_id, body.ranking)
    return Response(status_code=status.HTTP_201_CREATED)


@router.get("/result/{game_id}", response_model=ResultView)
def get_result(
    game_id: str,
    player_id: str = Depends(get_current_player),
    db: Session = Depends(get_db),
):
    return ResultView(**asdict(ranking_service.get_result(db, game_id, player_id)))
