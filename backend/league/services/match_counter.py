"""Count how many matches a player has logged against a period's quota."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Iterable, Protocol, Sequence

import sentry_sdk
from sqlalchemy import select
from sqlalchemy.orm import sessionmaker

from ..models import Match

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MatchCount:
    player_id: str
    period_id: str
    period_limit: int
    matches_logged: int
    matches_remaining: int


class MatchRecordLookup(Protocol):
    """Source of approved match records for a period."""

    async def find_by_period_and_slot_a(
        self, period_id: str, player_id: str
    ) -> Sequence[object]: ...

    async def find_by_period_and_slot_b(
        self, period_id: str, player_id: str
    ) -> Sequence[object]: ...


class SqlMatchRecordLookup:
    """:class:`MatchRecordLookup` backed by the ``match`` table.

    Each lookup runs in its own session so both slots can be queried
    concurrently.
    """

    def __init__(self, session_factory: sessionmaker) -> None:
        self._session_factory = session_factory

    async def _find(self, period_id: str, column, player_id: str) -> list[Match]:
        async with self._session_factory() as session:
            rows = await session.execute(
                select(Match).where(Match.period_id == period_id, column == player_id)
            )
            return list(rows.scalars().all())

    async def find_by_period_and_slot_a(self, period_id: str, player_id: str) -> list[Match]:
        return await self._find(period_id, Match.player1_id, player_id)

    async def find_by_period_and_slot_b(self, period_id: str, player_id: str) -> list[Match]:
        return await self._find(period_id, Match.player2_id, player_id)


def _build_count(
    player_id: str, period_id: str, period_limit: int, matches_logged: int
) -> MatchCount:
    return MatchCount(
        player_id=player_id,
        period_id=period_id,
        period_limit=period_limit,
        matches_logged=matches_logged,
        matches_remaining=max(0, period_limit - matches_logged),
    )


async def match_count(
    lookup: MatchRecordLookup,
    player_id: str,
    period_id: str,
    period_limit: int,
) -> MatchCount:
    """Return the matches ``player_id`` has logged in ``period_id``.

    The player is looked up in both slots of the match record and the two
    results are added together. If the lookup fails the error is logged and
    reported to Sentry, and a count of zero is returned so a store outage does
    not stop players from logging matches. Such a result does not reflect the
    stored state.
    """

    try:
        as_player1, as_player2 = await asyncio.gather(
            lookup.find_by_period_and_slot_a(period_id, player_id),
            lookup.find_by_period_and_slot_b(period_id, player_id),
        )
    except Exception as exc:
        logger.exception(
            "Error counting matches for player %s in period %s", player_id, period_id
        )
        sentry_sdk.capture_exception(exc)
        return _build_count(player_id, period_id, period_limit, 0)

    return _build_count(
        player_id, period_id, period_limit, len(as_player1) + len(as_player2)
    )


async def match_counts(
    lookup: MatchRecordLookup,
    player_ids: Iterable[str],
    period_id: str,
    period_limit: int,
) -> dict[str, MatchCount]:
    """Count matches for several players at once, keyed by player id."""

    unique_ids = list(dict.fromkeys(player_ids))
    counts = await asyncio.gather(
        *(match_count(lookup, pid, period_id, period_limit) for pid in unique_ids)
    )
    return {count.player_id: count for count in counts}
