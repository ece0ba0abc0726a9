from __future__ import annotations

from typing import Union

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from songsleuths.core.clock import Clock, get_clock
from songsleuths.db.session import get_db
from songsleuths.deps.auth import get_current_player
from songsleuths.deps.services import get_reveal_pipeline
from songsleuths.schemas.games import GameCreate, GameCreated, GameView, OpenGameView, RevealedGameView
from songsleuths.services import games as game_service
from songsleuths.services.catalog.base import PlaylistService
from songsleuths.services.catalog.factory import get_playlists
from songsleuths.services.reveal import RevealPipeline

router = APIRouter(prefix="/api/games", tags=["games"])


@router.post("", response_model=GameCreated, status_code=status.HTTP_201_CREATED)
def create_game(
    body: GameCreate,
    player_id: str = Depends(get_current_player),
    db: Session = Depends(get_db),
    playlists: PlaylistService = Depends(get_playlists),
    clock: Clock = Depends(get_clock),
):
    game = game_service.create_game(db, playlists, clock, body.name, body.deadline, body.n_songs)
    return GameCreated(id=game.id, name=game.name, deadline=game.deadline, n_songs=game.n_songs)


@router.get("/{game_id}", response_model=GameView)
def get_game(
    game_id: str,
    player_id: str = Depends(get_current_player),
    db: Session = Depends(get_db),
    pipeline: RevealPipeline = Depends(get_reveal_pipeline),
) -> Union[OpenGameView, RevealedGameView]:
    return game_service.fetch_game(db, pipeline, game_id, player_id)
