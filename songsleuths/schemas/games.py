"""Request bodies and responses of the game API.

A fetched game is one of two views, tagged by ``phase``: players only ever
see their own submission while the game is open, and only see everyone's
songs and the tierlists once it has been revealed.
"""

from __future__ import annotations

from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field


class GameCreate(BaseModel):
    name: str
    deadline: int = Field(description="Epoch seconds")
    n_songs: int


class GameCreated(BaseModel):
    id: str
    name: str
    deadline: int
    n_songs: int


class SubmissionIn(BaseModel):
    nickname: str
    songs: List[str]
    drawing: str = ""


class OwnSubmission(BaseModel):
    nickname: str
    songs: List[str]
    drawing: str


class SongView(BaseModel):
    id: int
    spotify: str
    name: str
    album_art: str


class TierView(BaseModel):
    id: int
    name: str
    rank: int
    drawing: Optional[str] = None


class TierlistView(BaseModel):
    id: int
    type: Literal["guess", "ranking"]
    tiers: List[TierView]


class OpenGameView(BaseModel):
    phase: Literal["open"] = "open"
    id: str
    name: str
    deadline: int
    n_songs: int
    submission: Optional[OwnSubmission] = None


class RevealedGameView(BaseModel):
    phase: Literal["revealed"] = "revealed"
    id: str
    name: str
    deadline: int
    n_songs: int
    songs: List[SongView]
    guess_list: TierlistView
    ranking_list: TierlistView
    playlist: str


GameView = Annotated[Union[OpenGameView, RevealedGameView], Field(discriminator="phase")]


class RankingIn(BaseModel):
    tierlist_id: int
    # JSON object: tier id -> ordered list of song ids
    ranking: str


class AnswerView(BaseModel):
    tier_id: int
    nickname: str
    songs: List[int]


class ResultView(BaseModel):
    eligible: bool
    ranking_submitted: bool
    correct: int
    total: int
    answers: List[AnswerView]


class SearchResult(BaseModel):
    id: str
    name: str
    album: str
    artists: List[str]
    image: str
