from .player import Player, player_games
from .game import Game
from .tierlist import Tierlist, TierlistKind, Tier, RANKING_TIERS
from .submission import Submission
from .song import Song
from .ranking import Ranking

__all__ = [
    "Player",
    "player_games",
    "Game",
    "Tierlist",
    "TierlistKind",
    "Tier",
    "RANKING_TIERS",
    "Submission",
    "Song",
    "Ranking",
]
