import logging
import uuid
from typing import List

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..db import get_session
from ..exceptions import PeriodNotFound, ProblemDetail
from ..models import Period, Player
from ..schemas import CurrentPeriodOut, MatchCountOut, PeriodIn, PeriodOut
from ..services.match_counter import MatchCount, MatchRecordLookup, match_counts
from ..services.periods import (
    current_period,
    format_period,
    format_period_short,
    next_period,
    sort_periods,
)
from .deps import get_match_lookup, require_admin

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/periods",
    tags=["periods"],
    responses={404: {"model": ProblemDetail}},
)


def period_out(period: Period) -> PeriodOut:
    return PeriodOut(
        id=period.id,
        weekday=period.weekday,
        hour=period.hour,
        minute=period.minute,
        matchesPerPlayer=period.matches_per_player,
        label=format_period(period),
        shortLabel=format_period_short(period),
    )


def match_count_out(count: MatchCount) -> MatchCountOut:
    return MatchCountOut(
        playerId=count.player_id,
        periodId=count.period_id,
        periodLimit=count.period_limit,
        matchesLogged=count.matches_logged,
        matchesRemaining=count.matches_remaining,
    )


async def _all_periods(session: AsyncSession) -> list[Period]:
    return list((await session.execute(select(Period))).scalars().all())


async def _get_period(session: AsyncSession, period_id: str) -> Period:
    period = await session.get(Period, period_id)
    if period is None:
        raise PeriodNotFound(period_id)
    return period


# GET /api/v0/periods
@router.get("", response_model=List[PeriodOut])
async def list_periods(session: AsyncSession = Depends(get_session)) -> list[PeriodOut]:
    return [period_out(p) for p in sort_periods(await _all_periods(session))]


# GET /api/v0/periods/current
@router.get("/current", response_model=CurrentPeriodOut)
async def get_current_period(
    session: AsyncSession = Depends(get_session),
) -> CurrentPeriodOut:
    periods = await _all_periods(session)
    current = current_period(periods)
    upcoming = next_period(periods)
    return CurrentPeriodOut(
        current=period_out(current) if current is not None else None,
        next=period_out(upcoming) if upcoming is not None else None,
    )


# POST /api/v0/periods
@router.post("", response_model=PeriodOut)
async def create_period(
    body: PeriodIn,
    session: AsyncSession = Depends(get_session),
    admin: Player = Depends(require_admin),
) -> PeriodOut:
    period = Period(
        id=uuid.uuid4().hex,
        weekday=body.weekday,
        hour=body.hour,
        minute=body.minute,
        matches_per_player=body.matchesPerPlayer,
    )
    session.add(period)
    await session.commit()
    logger.info("Period %s created by %s: %s", period.id, admin.id, format_period(period))
    return period_out(period)


# PUT /api/v0/periods/{period_id}
@router.put("/{period_id}", response_model=PeriodOut)
async def update_period(
    period_id: str,
    body: PeriodIn,
    session: AsyncSession = Depends(get_session),
    admin: Player = Depends(require_admin),
) -> PeriodOut:
    period = await _get_period(session, period_id)
    period.weekday = body.weekday
    period.hour = body.hour
    period.minute = body.minute
    period.matches_per_player = body.matchesPerPlayer
    await session.commit()
    logger.info("Period %s updated by %s", period.id, admin.id)
    return period_out(period)


# DELETE /api/v0/periods/{period_id}
@router.delete("/{period_id}", status_code=204)
async def delete_period(
    period_id: str,
    session: AsyncSession = Depends(get_session),
    admin: Player = Depends(require_admin),
) -> Response:
    period = await _get_period(session, period_id)
    await session.delete(period)
    await session.commit()
    logger.info("Period %s deleted by %s", period_id, admin.id)
    return Response(status_code=204)


# GET /api/v0/periods/{period_id}/match-counts?playerId=a&playerId=b
@router.get("/{period_id}/match-counts", response_model=List[MatchCountOut])
async def get_match_counts(
    period_id: str,
    player_ids: List[str] = Query(..., alias="playerId"),
    session: AsyncSession = Depends(get_session),
    lookup: MatchRecordLookup = Depends(get_match_lookup),
) -> list[MatchCountOut]:
    period = await _get_period(session, period_id)
    counts = await match_counts(lookup, player_ids, period.id, period.matches_per_player)
    return [match_count_out(c) for c in counts.values()]
