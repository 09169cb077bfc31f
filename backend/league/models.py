from sqlalchemy.orm import relationship
from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
)
from sqlalchemy.sql import func

from .config import DEFAULT_RATING
from .db import Base


class Player(Base):
    __tablename__ = "player"
    id = Column(String, primary_key=True)
    email = Column(String, nullable=False, unique=True)
    alias = Column(String, nullable=False, default="")
    first_name = Column(String, nullable=False, default="")
    rating = Column(Integer, nullable=False, default=DEFAULT_RATING)
    wins = Column(Integer, nullable=False, default=0)
    losses = Column(Integer, nullable=False, default=0)
    is_admin = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime, server_default=func.now(), onupdate=func.now(), nullable=False
    )

    decks = relationship(
        "Deck",
        cascade="all, delete-orphan",
        order_by="Deck.name",
        back_populates="player",
    )

    @property
    def display_name(self) -> str:
        return self.alias or self.first_name or self.email


class Deck(Base):
    __tablename__ = "deck"
    id = Column(String, primary_key=True)
    player_id = Column(String, ForeignKey("player.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(200), nullable=False)
    decklist_url = Column(String(500), nullable=False, default="")

    player = relationship("Player", back_populates="decks")


class Period(Base):
    """Recurring weekly window that caps how many matches a player may log."""

    __tablename__ = "period"
    id = Column(String, primary_key=True)
    weekday = Column(Integer, nullable=False)  # 0=Sunday .. 6=Saturday
    hour = Column(Integer, nullable=False)  # 0-23, MST
    minute = Column(Integer, nullable=False)
    matches_per_player = Column(Integer, nullable=False, default=3)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime, server_default=func.now(), onupdate=func.now(), nullable=False
    )

    __table_args__ = (
        CheckConstraint("weekday BETWEEN 0 AND 6", name="ck_period_weekday"),
        CheckConstraint("hour BETWEEN 0 AND 23", name="ck_period_hour"),
        CheckConstraint("minute BETWEEN 0 AND 59", name="ck_period_minute"),
    )


class PendingMatch(Base):
    """A logged match waiting for the other player's approval."""

    __tablename__ = "pending_match"
    id = Column(String, primary_key=True)
    period_id = Column(String, nullable=True)
    player1_id = Column(String, ForeignKey("player.id"), nullable=False)
    player1_deck_id = Column(String, nullable=True)
    player1_wins = Column(Integer, nullable=False)
    player1_approved = Column(Boolean, nullable=False, default=False)
    player2_id = Column(String, ForeignKey("player.id"), nullable=False)
    player2_deck_id = Column(String, nullable=True)
    player2_wins = Column(Integer, nullable=False)
    player2_approved = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False)


class Match(Base):
    """An approved match. Rating changes are stored as applied."""

    __tablename__ = "match"
    id = Column(String, primary_key=True)
    # Not a foreign key: periods can be deleted while their matches remain.
    period_id = Column(String, nullable=True)
    player1_id = Column(String, ForeignKey("player.id"), nullable=False)
    player1_deck_name = Column(String, nullable=False)
    player1_wins = Column(Integer, nullable=False)
    player1_rating_change = Column(Integer, nullable=False)
    player2_id = Column(String, ForeignKey("player.id"), nullable=False)
    player2_deck_name = Column(String, nullable=False)
    player2_wins = Column(Integer, nullable=False)
    player2_rating_change = Column(Integer, nullable=False)
    created_at = Column(DateTime, nullable=False)
    approved_at = Column(DateTime, nullable=False)

    __table_args__ = (
        Index("ix_match_period_player1", "period_id", "player1_id"),
        Index("ix_match_period_player2", "period_id", "player2_id"),
    )
