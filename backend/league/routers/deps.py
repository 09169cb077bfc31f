"""Shared router dependencies."""

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from ..db import get_session, get_sessionmaker
from ..exceptions import AdminRequired, PlayerNotFound, http_problem
from ..models import Player
from ..services.match_counter import MatchRecordLookup, SqlMatchRecordLookup


async def get_acting_player(
    x_player_id: str | None = Header(default=None, alias="X-Player-Id"),
    session: AsyncSession = Depends(get_session),
) -> Player:
    """Resolve the player a request acts for from the ``X-Player-Id`` header."""

    if not x_player_id or not x_player_id.strip():
        raise http_problem(
            status_code=401,
            detail="X-Player-Id header is required",
            code="player_identity_required",
        )
    player = await session.get(Player, x_player_id.strip())
    if player is None:
        raise PlayerNotFound(x_player_id.strip())
    return player


async def require_admin(player: Player = Depends(get_acting_player)) -> Player:
    if not player.is_admin:
        raise AdminRequired()
    return player


def get_match_lookup() -> MatchRecordLookup:
    return SqlMatchRecordLookup(get_sessionmaker())
