"""Game phase, derived on every read from the deadline and the reveal flag.

open      now < deadline
locked    now >= deadline, not yet revealed
revealed  now >= deadline, reveal pipeline finished

Open -> Locked is pure wall-clock time and is never stored. Locked -> Revealed
is the reveal pipeline's single write of ``Game.revealed``. Nothing goes back.
"""

from __future__ import annotations

from enum import Enum

from songsleuths.core.errors import PhaseError
from songsleuths.models import Game


class GamePhase(str, Enum):
    OPEN = "open"
    LOCKED = "locked"
    REVEALED = "revealed"


def compute_phase(deadline: int, revealed: bool, now: int) -> GamePhase:
    if now < deadline:
        return GamePhase.OPEN
    if revealed:
        return GamePhase.REVEALED
    return GamePhase.LOCKED


def game_phase(game: Game, now: int) -> GamePhase:
    return compute_phase(game.deadline, bool(game.revealed), now)


def require_open(game: Game, now: int) -> None:
    if game.is_locked(now):
        raise PhaseError("deadline has passed")


def require_revealed(game: Game, now: int) -> None:
    phase = game_phase(game, now)
    if phase is GamePhase.OPEN:
        raise PhaseError("cannot rank before deadline")
    if phase is GamePhase.LOCKED:
        raise PhaseError("game has not been revealed yet")
