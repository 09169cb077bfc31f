"""Two-party match logging.

A match is logged by one player and only counts once the opponent approves it.
Either player may revise the pending result, which hands approval back to the
other player. Ratings and win/loss records change only on approval.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..exceptions import (
    ApprovalNotExpected,
    InvalidMatch,
    MatchLimitReached,
    NotMatchParticipant,
    PlayerNotFound,
)
from ..models import Deck, Match, PendingMatch, Period, Player
from ..time_utils import coerce_utc, utcnow
from .match_counter import MatchRecordLookup, match_count
from .periods import current_period
from .rating import compute_rating_update
from .validation import validate_best_of_three

logger = logging.getLogger(__name__)

UNKNOWN_DECK = "Unknown Deck"


def _naive_utc(value: datetime | None) -> datetime:
    # Timestamps are stored as naive UTC.
    return coerce_utc(value or utcnow()).replace(tzinfo=None)


async def load_current_period(
    session: AsyncSession, now: datetime | None = None
) -> Period | None:
    periods = (await session.execute(select(Period))).scalars().all()
    return current_period(periods, now)


async def _owned_deck(
    session: AsyncSession, deck_id: str | None, player_id: str
) -> Deck | None:
    if not deck_id:
        return None
    deck = await session.get(Deck, deck_id)
    if deck is None or deck.player_id != player_id:
        return None
    return deck


async def _check_deck(session: AsyncSession, deck_id: str | None, player_id: str) -> None:
    if deck_id and await _owned_deck(session, deck_id, player_id) is None:
        raise InvalidMatch(f"Deck '{deck_id}' is not one of player '{player_id}' decks.")


async def _ensure_quota(
    lookup: MatchRecordLookup, period: Period, player: Player, *, own: bool
) -> None:
    count = await match_count(lookup, player.id, period.id, period.matches_per_player)
    if count.matches_remaining == 0:
        raise MatchLimitReached(player.display_name, own=own)


async def submit_match(
    session: AsyncSession,
    lookup: MatchRecordLookup,
    *,
    submitter: Player,
    opponent: Player,
    submitter_deck_id: str | None,
    opponent_deck_id: str | None,
    submitter_wins: int,
    opponent_wins: int,
    played_at: datetime | None = None,
    now: datetime | None = None,
) -> PendingMatch:
    """Log a match on behalf of ``submitter``; it waits for ``opponent``.

    The quota is checked against the period current at ``now`` (server time by
    default). ``played_at`` is only recorded as the match timestamp.
    """

    wins1, wins2 = validate_best_of_three(submitter_wins, opponent_wins)
    if submitter.id == opponent.id:
        raise InvalidMatch("You cannot log a match against yourself.")
    await _check_deck(session, submitter_deck_id, submitter.id)
    await _check_deck(session, opponent_deck_id, opponent.id)

    now = now or utcnow()
    period = await load_current_period(session, now)
    if period is not None:
        await _ensure_quota(lookup, period, submitter, own=True)
        await _ensure_quota(lookup, period, opponent, own=False)

    pending = PendingMatch(
        id=uuid.uuid4().hex,
        period_id=period.id if period is not None else None,
        player1_id=submitter.id,
        player1_deck_id=submitter_deck_id,
        player1_wins=wins1,
        player1_approved=True,
        player2_id=opponent.id,
        player2_deck_id=opponent_deck_id,
        player2_wins=wins2,
        player2_approved=False,
        created_at=_naive_utc(played_at or now),
    )
    session.add(pending)
    await session.commit()
    logger.info(
        "Pending match %s logged by %s against %s", pending.id, submitter.id, opponent.id
    )
    return pending


def _require_participant(pending: PendingMatch, actor: Player) -> bool:
    """Return ``True`` when ``actor`` is player 1 of ``pending``."""

    if actor.id == pending.player1_id:
        return True
    if actor.id == pending.player2_id:
        return False
    raise NotMatchParticipant(actor.id)


async def revise_pending_match(
    session: AsyncSession,
    pending: PendingMatch,
    *,
    actor: Player,
    player1_deck_id: str | None = None,
    player2_deck_id: str | None = None,
    player1_wins: int | None = None,
    player2_wins: int | None = None,
) -> PendingMatch:
    """Change a pending result; the other player has to approve it again."""

    is_player1 = _require_participant(pending, actor)

    wins1, wins2 = validate_best_of_three(
        pending.player1_wins if player1_wins is None else player1_wins,
        pending.player2_wins if player2_wins is None else player2_wins,
    )
    await _check_deck(session, player1_deck_id, pending.player1_id)
    await _check_deck(session, player2_deck_id, pending.player2_id)

    pending.player1_wins = wins1
    pending.player2_wins = wins2
    if player1_deck_id is not None:
        pending.player1_deck_id = player1_deck_id
    if player2_deck_id is not None:
        pending.player2_deck_id = player2_deck_id

    pending.player1_approved = is_player1
    pending.player2_approved = not is_player1
    await session.commit()
    return pending


async def _deck_name(session: AsyncSession, deck_id: str | None, player_id: str) -> str:
    # Decks deleted or reassigned since submission are recorded as unknown.
    deck = await _owned_deck(session, deck_id, player_id)
    return deck.name if deck is not None else UNKNOWN_DECK


async def approve_pending_match(
    session: AsyncSession,
    pending: PendingMatch,
    *,
    actor: Player,
    now: datetime | None = None,
) -> Match:
    """Approve ``pending`` as the player whose approval is outstanding.

    The new ratings, both players' win/loss counters and the approved match
    record are written in a single commit, and the pending row is removed.
    The record is tagged with the period that is current at approval time.
    """

    is_player1 = _require_participant(pending, actor)
    already_approved = pending.player1_approved if is_player1 else pending.player2_approved
    if already_approved:
        raise ApprovalNotExpected(actor.id)

    wins1, wins2 = validate_best_of_three(pending.player1_wins, pending.player2_wins)

    player1 = await session.get(Player, pending.player1_id)
    if player1 is None:
        raise PlayerNotFound(pending.player1_id)
    player2 = await session.get(Player, pending.player2_id)
    if player2 is None:
        raise PlayerNotFound(pending.player2_id)

    update = compute_rating_update(player1.rating, player2.rating, wins1, wins2)
    player1_won = wins1 > wins2

    player1.rating = update.new_rating_a
    player2.rating = update.new_rating_b
    player1.wins += 1 if player1_won else 0
    player1.losses += 0 if player1_won else 1
    player2.wins += 0 if player1_won else 1
    player2.losses += 1 if player1_won else 0

    now = now or utcnow()
    period = await load_current_period(session, now)
    match = Match(
        id=uuid.uuid4().hex,
        period_id=period.id if period is not None else pending.period_id,
        player1_id=player1.id,
        player1_deck_name=await _deck_name(session, pending.player1_deck_id, player1.id),
        player1_wins=wins1,
        player1_rating_change=update.delta_a,
        player2_id=player2.id,
        player2_deck_name=await _deck_name(session, pending.player2_deck_id, player2.id),
        player2_wins=wins2,
        player2_rating_change=update.delta_b,
        created_at=pending.created_at,
        approved_at=_naive_utc(now),
    )
    session.add(match)
    await session.delete(pending)
    await session.commit()

    logger.info(
        "Match %s approved: %s %+d, %s %+d",
        match.id,
        player1.id,
        update.delta_a,
        player2.id,
        update.delta_b,
    )
    return match


async def discard_pending_match(
    session: AsyncSession, pending: PendingMatch, *, actor: Player
) -> None:
    """Delete a pending match; either participant may do so."""

    _require_participant(pending, actor)
    await session.delete(pending)
    await session.commit()
    logger.info("Pending match %s discarded by %s", pending.id, actor.id)
