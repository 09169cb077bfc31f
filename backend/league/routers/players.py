import uuid

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..config import DEFAULT_RATING
from ..db import get_session
from ..exceptions import (
    DeckNotFound,
    PlayerAlreadyExists,
    PlayerNotFound,
    ProblemDetail,
    http_problem,
)
from ..models import Deck, Player
from ..schemas import (
    DeckCreate,
    DeckOut,
    LadderEntryOut,
    LadderOut,
    PlayerCreate,
    PlayerOut,
    PlayerUpdate,
)
from .deps import get_acting_player

router = APIRouter(
    prefix="/players",
    tags=["players"],
    responses={400: {"model": ProblemDetail}, 404: {"model": ProblemDetail}},
)


def _deck_out(deck: Deck) -> DeckOut:
    return DeckOut(id=deck.id, name=deck.name, decklistUrl=deck.decklist_url or "")


def _player_out(player: Player) -> PlayerOut:
    return PlayerOut(
        id=player.id,
        email=player.email,
        alias=player.alias,
        first_name=player.first_name,
        display_name=player.display_name,
        rating=player.rating,
        wins=player.wins,
        losses=player.losses,
        decks=[_deck_out(d) for d in player.decks],
    )


async def _load_player(session: AsyncSession, player_id: str) -> Player:
    player = (
        await session.execute(
            select(Player)
            .where(Player.id == player_id)
            .options(selectinload(Player.decks))
            .execution_options(populate_existing=True)
        )
    ).scalar_one_or_none()
    if player is None:
        raise PlayerNotFound(player_id)
    return player


# POST /api/v0/players
@router.post("", response_model=PlayerOut)
async def create_player(
    body: PlayerCreate, session: AsyncSession = Depends(get_session)
) -> PlayerOut:
    exists = (
        await session.execute(
            select(Player.id).where(func.lower(Player.email) == body.email)
        )
    ).scalar_one_or_none()
    if exists:
        raise PlayerAlreadyExists(body.email)

    player = Player(
        id=uuid.uuid4().hex,
        email=body.email,
        alias=body.alias,
        first_name=body.first_name,
        rating=DEFAULT_RATING,
        wins=0,
        losses=0,
    )
    session.add(player)
    await session.commit()
    return _player_out(await _load_player(session, player.id))


# GET /api/v0/players/ladder
@router.get("/ladder", response_model=LadderOut)
async def ladder(
    search: str | None = Query(None, description="Match alias, first name or email"),
    session: AsyncSession = Depends(get_session),
) -> LadderOut:
    stmt = select(Player).order_by(Player.rating.desc(), Player.created_at, Player.id)
    rows = (await session.execute(stmt)).scalars().all()

    # Ranks are taken before filtering so a search keeps ladder positions.
    ranked = list(enumerate(rows, start=1))
    term = (search or "").strip().lower()
    if term:
        ranked = [
            (rank, p)
            for rank, p in ranked
            if term in p.alias.lower()
            or term in p.first_name.lower()
            or term in p.email.lower()
        ]

    entries = [
        LadderEntryOut(
            rank=rank,
            playerId=p.id,
            playerName=p.display_name,
            rating=p.rating,
            wins=p.wins,
            losses=p.losses,
        )
        for rank, p in ranked
    ]
    return LadderOut(players=entries, total=len(entries))


# GET /api/v0/players/{player_id}
@router.get("/{player_id}", response_model=PlayerOut)
async def get_player(
    player_id: str, session: AsyncSession = Depends(get_session)
) -> PlayerOut:
    return _player_out(await _load_player(session, player_id))


def _require_owner(actor: Player, player_id: str) -> None:
    if actor.id != player_id:
        raise http_problem(
            status_code=403,
            detail="profiles and decks can only be changed by their owner",
            code="profile_forbidden",
        )


async def _owned_deck(session: AsyncSession, player_id: str, deck_id: str) -> Deck:
    deck = await session.get(Deck, deck_id)
    if deck is None or deck.player_id != player_id:
        raise DeckNotFound(deck_id)
    return deck


# PATCH /api/v0/players/{player_id}
@router.patch("/{player_id}", response_model=PlayerOut)
async def update_player(
    player_id: str,
    body: PlayerUpdate,
    session: AsyncSession = Depends(get_session),
    actor: Player = Depends(get_acting_player),
) -> PlayerOut:
    _require_owner(actor, player_id)
    if body.alias is not None:
        actor.alias = body.alias
    if body.first_name is not None:
        actor.first_name = body.first_name
    await session.commit()
    return _player_out(await _load_player(session, player_id))


# POST /api/v0/players/{player_id}/decks
@router.post("/{player_id}/decks", response_model=DeckOut)
async def add_deck(
    player_id: str,
    body: DeckCreate,
    session: AsyncSession = Depends(get_session),
    actor: Player = Depends(get_acting_player),
) -> DeckOut:
    _require_owner(actor, player_id)
    deck = Deck(
        id=uuid.uuid4().hex,
        player_id=player_id,
        name=body.name,
        decklist_url=body.decklistUrl,
    )
    session.add(deck)
    await session.commit()
    return _deck_out(deck)


# PUT /api/v0/players/{player_id}/decks/{deck_id}
@router.put("/{player_id}/decks/{deck_id}", response_model=DeckOut)
async def update_deck(
    player_id: str,
    deck_id: str,
    body: DeckCreate,
    session: AsyncSession = Depends(get_session),
    actor: Player = Depends(get_acting_player),
) -> DeckOut:
    _require_owner(actor, player_id)
    deck = await _owned_deck(session, player_id, deck_id)
    deck.name = body.name
    deck.decklist_url = body.decklistUrl
    await session.commit()
    return _deck_out(deck)


# DELETE /api/v0/players/{player_id}/decks/{deck_id}
@router.delete("/{player_id}/decks/{deck_id}", status_code=204)
async def delete_deck(
    player_id: str,
    deck_id: str,
    session: AsyncSession = Depends(get_session),
    actor: Player = Depends(get_acting_player),
) -> Response:
    _require_owner(actor, player_id)
    deck = await _owned_deck(session, player_id, deck_id)
    await session.delete(deck)
    await session.commit()
    return Response(status_code=204)
