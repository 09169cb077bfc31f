from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .time_utils import require_utc


class DeckCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    decklistUrl: str = Field(default="", max_length=500)

    model_config = ConfigDict(extra="forbid")

    @field_validator("name", mode="before")
    @classmethod
    def _validate_name(cls, value: str) -> str:
        if not isinstance(value, str):
            raise TypeError("name must be a string")
        trimmed = value.strip()
        if not trimmed:
            raise ValueError("name must not be empty")
        return trimmed

    @field_validator("decklistUrl", mode="before")
    @classmethod
    def _validate_decklist_url(cls, value: Optional[str]) -> str:
        if value is None:
            return ""
        if not isinstance(value, str):
            raise TypeError("decklistUrl must be a string")
        trimmed = value.strip()
        if trimmed and not trimmed.lower().startswith(("http://", "https://")):
            raise ValueError("decklistUrl must be an http(s) URL")
        return trimmed


class DeckOut(BaseModel):
    id: str
    name: str
    decklistUrl: str = ""


class PlayerCreate(BaseModel):
    email: str = Field(..., min_length=3, max_length=320)
    alias: str = Field(default="", max_length=50)
    first_name: str = Field(default="", max_length=50)

    @field_validator("email", mode="before")
    @classmethod
    def _normalize_email(cls, value: str) -> str:
        if not isinstance(value, str):
            raise TypeError("email must be a string")
        trimmed = value.strip().lower()
        if "@" not in trimmed or trimmed.startswith("@") or trimmed.endswith("@"):
            raise ValueError("email must be a valid address")
        return trimmed

    @field_validator("alias", "first_name", mode="before")
    @classmethod
    def _strip(cls, value: Optional[str]) -> str:
        if value is None:
            return ""
        if not isinstance(value, str):
            raise TypeError("value must be a string")
        return value.strip()


class PlayerUpdate(BaseModel):
    alias: Optional[str] = Field(default=None, max_length=50)
    first_name: Optional[str] = Field(default=None, max_length=50)

    model_config = ConfigDict(extra="forbid")

    @field_validator("alias", "first_name", mode="before")
    @classmethod
    def _strip(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        if not isinstance(value, str):
            raise TypeError("value must be a string")
        return value.strip()


class PlayerOut(BaseModel):
    id: str
    email: str
    alias: str
    first_name: str
    display_name: str
    rating: int
    wins: int
    losses: int
    decks: List[DeckOut] = Field(default_factory=list)


class LadderEntryOut(BaseModel):
    rank: int
    playerId: str
    playerName: str
    rating: int
    wins: int
    losses: int


class LadderOut(BaseModel):
    players: List[LadderEntryOut]
    total: int


class PeriodIn(BaseModel):
    weekday: int = Field(..., ge=0, le=6)
    hour: int = Field(..., ge=0, le=23)
    minute: int = Field(..., ge=0, le=59)
    matchesPerPlayer: int = Field(default=3, ge=1, le=100)

    model_config = ConfigDict(extra="forbid")


class PeriodOut(BaseModel):
    id: str
    weekday: int
    hour: int
    minute: int
    matchesPerPlayer: int
    label: str
    shortLabel: str


class CurrentPeriodOut(BaseModel):
    current: Optional[PeriodOut] = None
    next: Optional[PeriodOut] = None


class MatchCountOut(BaseModel):
    playerId: str
    periodId: str
    periodLimit: int
    matchesLogged: int
    matchesRemaining: int


class PendingMatchCreate(BaseModel):
    opponentId: str = Field(..., min_length=1)
    deckId: Optional[str] = None
    opponentDeckId: Optional[str] = None
    wins: int
    opponentWins: int
    playedAt: Optional[datetime] = None

    @field_validator("playedAt")
    def _normalize_played_at(cls, v: datetime | None) -> datetime | None:
        return require_utc(v, field_name="playedAt")


class PendingMatchUpdate(BaseModel):
    player1DeckId: Optional[str] = None
    player2DeckId: Optional[str] = None
    player1Wins: Optional[int] = None
    player2Wins: Optional[int] = None

    model_config = ConfigDict(extra="forbid")


class PendingMatchOut(BaseModel):
    id: str
    periodId: Optional[str] = None
    player1Id: str
    player1DeckId: Optional[str] = None
    player1Wins: int
    player1Approved: bool
    player2Id: str
    player2DeckId: Optional[str] = None
    player2Wins: int
    player2Approved: bool
    createdAt: datetime


class MatchOut(BaseModel):
    id: str
    periodId: Optional[str] = None
    player1Id: str
    player1DeckName: str
    player1Wins: int
    player1RatingChange: int
    player2Id: str
    player2DeckName: str
    player2Wins: int
    player2RatingChange: int
    createdAt: datetime
    approvedAt: datetime


class MatchListOut(BaseModel):
    items: List[MatchOut] = Field(default_factory=list)
    limit: int
    offset: int
    hasMore: bool = False
