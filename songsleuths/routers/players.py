from __future__ import annotations

from fastapi import APIRouter, Depends, Response, status

from songsleuths.deps.auth import get_current_player

router = APIRouter(prefix="/api", tags=["players"])


@router.post("/signup", status_code=status.HTTP_201_CREATED)
def signup(player_id: str = Depends(get_current_player)):
    # Registration happens in the dependency
    return Response(status_code=status.HTTP_201_CREATED)
