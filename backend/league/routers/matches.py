from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import PENDING_MATCH_RATE_LIMIT
from ..db import get_session
from ..exceptions import (
    PendingMatchNotFound,
    PlayerNotFound,
    ProblemDetail,
    http_problem,
)
from ..models import Match, PendingMatch, Player
from ..rate_limit import limiter
from ..schemas import (
    MatchCountOut,
    MatchListOut,
    MatchOut,
    PendingMatchCreate,
    PendingMatchOut,
    PendingMatchUpdate,
)
from ..services.match_counter import MatchRecordLookup, match_count
from ..services.match_workflow import (
    approve_pending_match,
    discard_pending_match,
    load_current_period,
    revise_pending_match,
    submit_match,
)
from ..services.validation import ValidationError
from .deps import get_acting_player, get_match_lookup
from .periods import match_count_out

# Resource-only prefix; versioning is added in main.py
router = APIRouter(
    prefix="/matches",
    tags=["matches"],
    responses={404: {"model": ProblemDetail}, 422: {"model": ProblemDetail}},
)


def _pending_out(pending: PendingMatch) -> PendingMatchOut:
    return PendingMatchOut(
        id=pending.id,
        periodId=pending.period_id,
        player1Id=pending.player1_id,
        player1DeckId=pending.player1_deck_id,
        player1Wins=pending.player1_wins,
        player1Approved=pending.player1_approved,
        player2Id=pending.player2_id,
        player2DeckId=pending.player2_deck_id,
        player2Wins=pending.player2_wins,
        player2Approved=pending.player2_approved,
        createdAt=pending.created_at,
    )


def _match_out(match: Match) -> MatchOut:
    return MatchOut(
        id=match.id,
        periodId=match.period_id,
        player1Id=match.player1_id,
        player1DeckName=match.player1_deck_name,
        player1Wins=match.player1_wins,
        player1RatingChange=match.player1_rating_change,
        player2Id=match.player2_id,
        player2DeckName=match.player2_deck_name,
        player2Wins=match.player2_wins,
        player2RatingChange=match.player2_rating_change,
        createdAt=match.created_at,
        approvedAt=match.approved_at,
    )


def _invalid_score(exc: ValidationError):
    return http_problem(
        status_code=422,
        detail=exc.detail,
        code="match_invalid_score",
    )


async def _get_pending(session: AsyncSession, pending_id: str) -> PendingMatch:
    pending = await session.get(PendingMatch, pending_id)
    if pending is None:
        raise PendingMatchNotFound(pending_id)
    return pending


# GET /api/v0/matches
@router.get("", response_model=MatchListOut)
async def list_matches(
    limit: int = 50,
    offset: int = 0,
    playerId: str | None = None,
    session: AsyncSession = Depends(get_session),
) -> MatchListOut:
    limit = max(1, min(limit, 200))
    offset = max(0, offset)
    stmt = select(Match).order_by(Match.approved_at.desc(), Match.id)
    if playerId:
        stmt = stmt.where(or_(Match.player1_id == playerId, Match.player2_id == playerId))
    rows = (await session.execute(stmt.offset(offset).limit(limit + 1))).scalars().all()
    return MatchListOut(
        items=[_match_out(m) for m in rows[:limit]],
        limit=limit,
        offset=offset,
        hasMore=len(rows) > limit,
    )


# GET /api/v0/matches/count
@router.get("/count", response_model=MatchCountOut | None)
async def my_match_count(
    session: AsyncSession = Depends(get_session),
    actor: Player = Depends(get_acting_player),
    lookup: MatchRecordLookup = Depends(get_match_lookup),
) -> MatchCountOut | None:
    period = await load_current_period(session)
    if period is None:
        return None
    count = await match_count(lookup, actor.id, period.id, period.matches_per_player)
    return match_count_out(count)


# GET /api/v0/matches/pending
@router.get("/pending", response_model=list[PendingMatchOut])
async def list_pending(
    session: AsyncSession = Depends(get_session),
    actor: Player = Depends(get_acting_player),
) -> list[PendingMatchOut]:
    rows = (
        await session.execute(
            select(PendingMatch)
            .where(
                or_(
                    PendingMatch.player1_id == actor.id,
                    PendingMatch.player2_id == actor.id,
                )
            )
            .order_by(PendingMatch.created_at)
        )
    ).scalars().all()
    return [_pending_out(p) for p in rows]


# POST /api/v0/matches/pending
@router.post("/pending", response_model=PendingMatchOut)
@limiter.limit(PENDING_MATCH_RATE_LIMIT)
async def create_pending(
    request: Request,
    body: PendingMatchCreate,
    session: AsyncSession = Depends(get_session),
    actor: Player = Depends(get_acting_player),
    lookup: MatchRecordLookup = Depends(get_match_lookup),
) -> PendingMatchOut:
    opponent = await session.get(Player, body.opponentId)
    if opponent is None:
        raise PlayerNotFound(body.opponentId)
    try:
        pending = await submit_match(
            session,
            lookup,
            submitter=actor,
            opponent=opponent,
            submitter_deck_id=body.deckId,
            opponent_deck_id=body.opponentDeckId,
            submitter_wins=body.wins,
            opponent_wins=body.opponentWins,
            played_at=body.playedAt,
        )
    except ValidationError as exc:
        raise _invalid_score(exc)
    return _pending_out(pending)


# PATCH /api/v0/matches/pending/{pending_id}
@router.patch("/pending/{pending_id}", response_model=PendingMatchOut)
async def update_pending(
    pending_id: str,
    body: PendingMatchUpdate,
    session: AsyncSession = Depends(get_session),
    actor: Player = Depends(get_acting_player),
) -> PendingMatchOut:
    pending = await _get_pending(session, pending_id)
    try:
        pending = await revise_pending_match(
            session,
            pending,
            actor=actor,
            player1_deck_id=body.player1DeckId,
            player2_deck_id=body.player2DeckId,
            player1_wins=body.player1Wins,
            player2_wins=body.player2Wins,
        )
    except ValidationError as exc:
        raise _invalid_score(exc)
    return _pending_out(pending)


# POST /api/v0/matches/pending/{pending_id}/approve
@router.post("/pending/{pending_id}/approve", response_model=MatchOut)
async def approve_pending(
    pending_id: str,
    session: AsyncSession = Depends(get_session),
    actor: Player = Depends(get_acting_player),
) -> MatchOut:
    pending = await _get_pending(session, pending_id)
    try:
        match = await approve_pending_match(session, pending, actor=actor)
    except ValidationError as exc:
        raise _invalid_score(exc)
    return _match_out(match)


# DELETE /api/v0/matches/pending/{pending_id}
@router.delete("/pending/{pending_id}", status_code=204)
async def delete_pending(
    pending_id: str,
    session: AsyncSession = Depends(get_session),
    actor: Player = Depends(get_acting_player),
) -> Response:
    pending = await _get_pending(session, pending_id)
    await discard_pending_match(session, pending, actor=actor)
    return Response(status_code=204)
