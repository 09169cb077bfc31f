from datetime import datetime, timezone

import pytest
from sqlalchemy import select

from conftest import FakeMatchLookup, create_schema, make_engine, make_sessionmaker
from league.exceptions import (
    ApprovalNotExpected,
    InvalidMatch,
    MatchLimitReached,
    NotMatchParticipant,
)
from league.models import Deck, Match, PendingMatch, Period, Player
from league.services import match_counter
from league.services.match_workflow import (
    UNKNOWN_DECK,
    approve_pending_match,
    discard_pending_match,
    revise_pending_match,
    submit_match,
)
from league.services.validation import ValidationError

# Wednesday 2024-01-10 19:00 MST, inside the Tuesday period.
WEDNESDAY_EVENING = datetime(2024, 1, 11, 2, 0, tzinfo=timezone.utc)
# Saturday 2024-01-13 12:00 MST, inside the Friday period.
SATURDAY_NOON = datetime(2024, 1, 13, 19, 0, tzinfo=timezone.utc)


@pytest.fixture
async def session():
    engine = make_engine()
    await create_schema(engine)
    session_maker = make_sessionmaker(engine)
    async with session_maker() as s:
        s.add_all([
            Player(id="alice", email="alice@example.com", alias="Ace", rating=1000),
            Player(id="bob", email="bob@example.com", first_name="Bob", rating=1000),
            Player(id="carol", email="carol@example.com", rating=1200),
            Deck(id="d-alice", player_id="alice", name="Mono Red"),
            Deck(id="d-bob", player_id="bob", name="Azorius Control"),
            Period(id="tue", weekday=2, hour=17, minute=0, matches_per_player=2),
            Period(id="fri", weekday=5, hour=20, minute=0, matches_per_player=3),
        ])
        await s.commit()
        yield s
    await engine.dispose()


async def _players(session, *ids):
    return [await session.get(Player, pid) for pid in ids]


async def _submit(session, lookup, submitter, opponent, wins=(2, 0), **kwargs):
    return await submit_match(
        session,
        lookup,
        submitter=submitter,
        opponent=opponent,
        submitter_deck_id=kwargs.pop("submitter_deck_id", None),
        opponent_deck_id=kwargs.pop("opponent_deck_id", None),
        submitter_wins=wins[0],
        opponent_wins=wins[1],
        now=kwargs.pop("now", WEDNESDAY_EVENING),
    )


@pytest.mark.anyio
async def test_submit_creates_pending_match_in_current_period(session):
    alice, bob = await _players(session, "alice", "bob")
    lookup = FakeMatchLookup()

    pending = await _submit(
        session,
        lookup,
        alice,
        bob,
        wins=(2, 1),
        submitter_deck_id="d-alice",
        opponent_deck_id="d-bob",
    )

    stored = await session.get(PendingMatch, pending.id)
    assert stored.period_id == "tue"
    assert stored.player1_id == "alice" and stored.player2_id == "bob"
    assert (stored.player1_wins, stored.player2_wins) == (2, 1)
    assert stored.player1_approved is True
    assert stored.player2_approved is False
    assert {(slot, player) for slot, _, player in lookup.calls} == {
        ("a", "alice"),
        ("b", "alice"),
        ("a", "bob"),
        ("b", "bob"),
    }


@pytest.mark.anyio
async def test_submit_rejects_invalid_score(session):
    alice, bob = await _players(session, "alice", "bob")

    with pytest.raises(ValidationError):
        await _submit(session, FakeMatchLookup(), alice, bob, wins=(1, 1))


@pytest.mark.anyio
async def test_submit_rejects_playing_yourself(session):
    (alice,) = await _players(session, "alice")

    with pytest.raises(InvalidMatch):
        await _submit(session, FakeMatchLookup(), alice, alice)


@pytest.mark.anyio
async def test_submit_blocks_when_submitter_quota_used(session):
    alice, bob = await _players(session, "alice", "bob")
    lookup = FakeMatchLookup(slot_a={("tue", "alice"): 1}, slot_b={("tue", "alice"): 1})

    with pytest.raises(MatchLimitReached) as exc:
        await _submit(session, lookup, alice, bob)

    assert exc.value.detail == "You have reached your match limit for this period"
    assert (await session.execute(select(PendingMatch))).scalars().all() == []


@pytest.mark.anyio
async def test_submit_blocks_when_opponent_quota_used(session):
    alice, bob = await _players(session, "alice", "bob")
    lookup = FakeMatchLookup(slot_b={("tue", "bob"): 2})

    with pytest.raises(MatchLimitReached) as exc:
        await _submit(session, lookup, alice, bob)

    assert exc.value.detail == "Bob has reached their match limit for this period"


@pytest.mark.anyio
async def test_submit_allows_when_lookup_is_down(session, monkeypatch):
    monkeypatch.setattr(match_counter.sentry_sdk, "capture_exception", lambda exc: None)
    alice, bob = await _players(session, "alice", "bob")
    lookup = FakeMatchLookup(slot_a={("tue", "alice"): 5}, failing=["alice", "bob"])

    pending = await _submit(session, lookup, alice, bob)

    assert pending.period_id == "tue"


@pytest.mark.anyio
async def test_submit_without_periods_skips_quota(session):
    for period in (await session.execute(select(Period))).scalars().all():
        await session.delete(period)
    await session.commit()
    alice, bob = await _players(session, "alice", "bob")
    lookup = FakeMatchLookup()

    pending = await _submit(session, lookup, alice, bob)

    assert pending.period_id is None
    assert lookup.calls == []


@pytest.mark.anyio
async def test_approve_applies_ratings_and_records_match(session):
    alice, bob = await _players(session, "alice", "bob")
    pending = await _submit(
        session,
        FakeMatchLookup(),
        alice,
        bob,
        wins=(2, 0),
        submitter_deck_id="d-alice",
        opponent_deck_id="d-bob",
    )

    match = await approve_pending_match(session, pending, actor=bob, now=SATURDAY_NOON)

    assert alice.rating == 1016 and bob.rating == 984
    assert (alice.wins, alice.losses) == (1, 0)
    assert (bob.wins, bob.losses) == (0, 1)
    stored = await session.get(Match, match.id)
    assert stored.player1_rating_change == 16
    assert stored.player2_rating_change == -16
    assert stored.player1_deck_name == "Mono Red"
    assert stored.player2_deck_name == "Azorius Control"
    # Tagged with the period active when the match was approved.
    assert stored.period_id == "fri"
    assert stored.created_at == pending.created_at
    assert (await session.execute(select(PendingMatch))).scalars().all() == []


@pytest.mark.anyio
async def test_approve_upset_uses_current_ratings(session):
    bob, carol = await _players(session, "bob", "carol")
    pending = await _submit(session, FakeMatchLookup(), carol, bob, wins=(1, 2))

    match = await approve_pending_match(session, pending, actor=bob, now=WEDNESDAY_EVENING)

    assert carol.rating == 1176
    assert bob.rating == 1024
    assert match.player1_rating_change == -24
    assert match.player2_rating_change == 24
    assert match.player1_deck_name == UNKNOWN_DECK
    assert (bob.wins, carol.losses) == (1, 1)


@pytest.mark.anyio
async def test_submitter_cannot_approve_own_match(session):
    alice, bob = await _players(session, "alice", "bob")
    pending = await _submit(session, FakeMatchLookup(), alice, bob)

    with pytest.raises(ApprovalNotExpected):
        await approve_pending_match(session, pending, actor=alice)


@pytest.mark.anyio
async def test_outsider_cannot_touch_pending_match(session):
    alice, bob, carol = await _players(session, "alice", "bob", "carol")
    pending = await _submit(session, FakeMatchLookup(), alice, bob)

    with pytest.raises(NotMatchParticipant):
        await approve_pending_match(session, pending, actor=carol)
    with pytest.raises(NotMatchParticipant):
        await revise_pending_match(session, pending, actor=carol, player1_wins=1)
    with pytest.raises(NotMatchParticipant):
        await discard_pending_match(session, pending, actor=carol)


@pytest.mark.anyio
async def test_revision_hands_approval_to_other_player(session):
    alice, bob = await _players(session, "alice", "bob")
    pending = await _submit(session, FakeMatchLookup(), alice, bob, wins=(2, 0))

    await revise_pending_match(session, pending, actor=bob, player1_wins=1, player2_wins=2)

    assert (pending.player1_wins, pending.player2_wins) == (1, 2)
    assert pending.player1_approved is False
    assert pending.player2_approved is True

    with pytest.raises(ApprovalNotExpected):
        await approve_pending_match(session, pending, actor=bob)

    match = await approve_pending_match(session, pending, actor=alice, now=WEDNESDAY_EVENING)
    assert match.player2_rating_change == 16
    assert alice.rating == 984


@pytest.mark.anyio
async def test_revision_rejects_invalid_score(session):
    alice, bob = await _players(session, "alice", "bob")
    pending = await _submit(session, FakeMatchLookup(), alice, bob, wins=(2, 0))

    with pytest.raises(ValidationError):
        await revise_pending_match(session, pending, actor=bob, player2_wins=2)


@pytest.mark.anyio
async def test_discard_removes_pending_match(session):
    alice, bob = await _players(session, "alice", "bob")
    pending = await _submit(session, FakeMatchLookup(), alice, bob)

    await discard_pending_match(session, pending, actor=bob)

    assert await session.get(PendingMatch, pending.id) is None
    assert alice.rating == 1000 and bob.rating == 1000


@pytest.mark.anyio
async def test_submit_rejects_deck_owned_by_someone_else(session):
    alice, bob = await _players(session, "alice", "bob")

    with pytest.raises(InvalidMatch):
        await _submit(session, FakeMatchLookup(), alice, bob, submitter_deck_id="d-bob")
    with pytest.raises(InvalidMatch):
        await _submit(session, FakeMatchLookup(), alice, bob, opponent_deck_id="d-alice")
    with pytest.raises(InvalidMatch):
        await _submit(session, FakeMatchLookup(), alice, bob, submitter_deck_id="missing")

    assert (await session.execute(select(PendingMatch))).scalars().all() == []


@pytest.mark.anyio
async def test_revision_rejects_deck_owned_by_someone_else(session):
    alice, bob = await _players(session, "alice", "bob")
    pending = await _submit(session, FakeMatchLookup(), alice, bob, submitter_deck_id="d-alice")

    with pytest.raises(InvalidMatch):
        await revise_pending_match(session, pending, actor=bob, player1_deck_id="d-bob")

    assert pending.player1_deck_id == "d-alice"
    assert pending.player2_approved is False

    await revise_pending_match(session, pending, actor=bob, player2_deck_id="d-bob")
    assert pending.player2_deck_id == "d-bob"


@pytest.mark.anyio
async def test_approval_ignores_deck_that_changed_owner(session):
    alice, bob = await _players(session, "alice", "bob")
    pending = await _submit(
        session,
        FakeMatchLookup(),
        alice,
        bob,
        submitter_deck_id="d-alice",
        opponent_deck_id="d-bob",
    )
    deck = await session.get(Deck, "d-alice")
    deck.player_id = "carol"
    await session.commit()

    match = await approve_pending_match(session, pending, actor=bob, now=WEDNESDAY_EVENING)

    assert match.player1_deck_name == UNKNOWN_DECK
    assert match.player2_deck_name == "Azorius Control"


@pytest.mark.anyio
async def test_played_at_is_only_the_timestamp(session):
    alice, bob = await _players(session, "alice", "bob")
    lookup = FakeMatchLookup(slot_a={("tue", "alice"): 2})

    with pytest.raises(MatchLimitReached):
        await submit_match(
            session,
            lookup,
            submitter=alice,
            opponent=bob,
            submitter_deck_id=None,
            opponent_deck_id=None,
            submitter_wins=2,
            opponent_wins=0,
            played_at=SATURDAY_NOON,
            now=WEDNESDAY_EVENING,
        )

    pending = await submit_match(
        session,
        FakeMatchLookup(),
        submitter=alice,
        opponent=bob,
        submitter_deck_id=None,
        opponent_deck_id=None,
        submitter_wins=2,
        opponent_wins=0,
        played_at=SATURDAY_NOON,
        now=WEDNESDAY_EVENING,
    )
    assert pending.period_id == "tue"
    assert pending.created_at == datetime(2024, 1, 13, 19, 0)
