from __future__ import annotations

from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from songsleuths.core.security import Authenticator, get_authenticator, parse_bearer
from songsleuths.db.session import get_db
from songsleuths.services import integrity


def get_current_player(
    authorization: Optional[str] = Header(default=None),
    db: Session = Depends(get_db),
    authenticator: Authenticator = Depends(get_authenticator),
) -> str:
    """Verified player id of the request; first use registers the player."""
    player_id = authenticator.verify(parse_bearer(authorization))
    integrity.ensure_player(db, player_id)
    return player_id
