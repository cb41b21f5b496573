"""Tests for the table assignment engine"""

import pytest
from itertools import combinations
from uuid import uuid4

from sqlalchemy import select

from resto_booking.context import RequestContext
from resto_booking.errors import InvalidTransitionError
from resto_booking.models.audit import AuditLog
from resto_booking.models.reservation import Reservation, ReservationStatus, ServiceType
from resto_booking.models.schedule import Block
from resto_booking.models.table import Table, TableZone
from resto_booking.services.assignment import (
    INSUFFICIENT_CAPACITY,
    TABLE_BLOCKED,
    AssignmentReason,
    TableAssignmentEngine,
    select_tables,
)
from resto_booking.services.availability import AvailabilityCalculator

from conftest import booking_day, create_restaurant, make_reservation

RANKS = {"salle": 0, "terrasse": 1, "salon_prive": 2}


def table(capacity, zone=TableZone.SALLE, joinable=False, table_id=None):
    return Table(id=table_id or uuid4(), capacity=capacity, zone=zone, is_joinable=joinable, is_active=True)


class TestSelectTables:
    def test_prefers_smallest_single_table(self):
        small, medium, large = table(2), table(4), table(10)
        assert select_tables([large, medium, small], 3, RANKS) == [medium]

    def test_tie_breaks_on_zone_priority(self):
        terrace = table(4, TableZone.TERRASSE)
        salle = table(4, TableZone.SALLE)
        assert select_tables([terrace, salle], 4, RANKS) == [salle]

    def test_preferred_zone_wins_ties(self):
        terrace = table(4, TableZone.TERRASSE)
        salle = table(4, TableZone.SALLE)
        ranks = {"terrasse": 0, "salle": 1, "salon_prive": 2}
        assert select_tables([salle, terrace], 4, ranks) == [terrace]

    def test_tie_breaks_on_table_id_last(self):
        first = table(4, table_id=uuid4())
        second = table(4, table_id=uuid4())
        expected = min([first, second], key=lambda t: str(t.id))
        assert select_tables([first, second], 4, RANKS) == [expected]
        assert select_tables([second, first], 4, RANKS) == [expected]

    def test_no_fit_without_joining(self):
        assert select_tables([table(2, joinable=True), table(4, joinable=True)], 5, RANKS) is None

    def test_joins_smallest_combination(self):
        two = table(2, joinable=True)
        four_terrace = table(4, TableZone.TERRASSE, joinable=True)
        four_salle = table(4, TableZone.SALLE, joinable=True)
        chosen = select_tables(
            [two, four_terrace, four_salle], 6, RANKS, joining_enabled=True, max_tables=3
        )
        assert set(t.id for t in chosen) == {two.id, four_salle.id}

    def test_single_table_beats_combination(self):
        big = table(8)
        pieces = [table(4, joinable=True), table(4, joinable=True)]
        assert select_tables(pieces + [big], 7, RANKS, joining_enabled=True) == [big]

    def test_only_joinable_tables_are_combined(self):
        tables = [table(4, joinable=True), table(4, joinable=False)]
        assert select_tables(tables, 8, RANKS, joining_enabled=True) is None

    def test_respects_max_tables(self):
        tables = [table(2, joinable=True) for _ in range(4)]
        assert select_tables(tables, 8, RANKS, joining_enabled=True, max_tables=3) is None
        assert len(select_tables(tables, 6, RANKS, joining_enabled=True, max_tables=3)) == 3

    def test_capacity_is_never_short(self):
        tables = [table(2, joinable=True), table(3, joinable=True), table(4, joinable=True), table(6)]
        for guests in range(1, 16):
            chosen = select_tables(tables, guests, RANKS, joining_enabled=True)
            if chosen is not None:
                assert sum(t.capacity for t in chosen) >= guests


@pytest.mark.asyncio
async def test_scenario_single_table_accepts_and_assigns(test_db, store, ctx):
    """One four-top, four guests at lunch: bookable and assigned to that table"""
    restaurant = await create_restaurant(test_db, name="One Table")
    only = await store.create(Table, restaurant_id=restaurant.id, name="T1", capacity=4, zone=TableZone.SALLE)
    day = booking_day()

    decision = await AvailabilityCalculator(store).is_bookable(restaurant.id, day, ServiceType.MIDI, 4)
    assert decision.accepted

    engine = TableAssignmentEngine(store)
    proposal = await engine.propose(restaurant, day, ServiceType.MIDI, 4, candidate_tables=[only])
    assert proposal.ok
    assert proposal.table_ids == [only.id]

    reservation = await make_reservation(
        store, restaurant, day, ServiceType.MIDI, guests_count=4, status=ReservationStatus.PENDING
    )
    result = await engine.assign(ctx, reservation)
    assert result.ok
    assert reservation.table_ids == [str(only.id)]


@pytest.mark.asyncio
async def test_scenario_second_booking_gets_no_table(test_db, store, ctx):
    restaurant = await create_restaurant(test_db, name="One Table")
    only = await store.create(Table, restaurant_id=restaurant.id, name="T1", capacity=4, zone=TableZone.SALLE)
    day = booking_day()
    await make_reservation(store, restaurant, day, ServiceType.MIDI, guests_count=4, table_ids=[only.id])

    second = await make_reservation(
        store, restaurant, day, ServiceType.MIDI, guests_count=2, status=ReservationStatus.PENDING
    )
    result = await TableAssignmentEngine(store).assign(ctx, second)

    assert not result.ok
    assert result.reason == AssignmentReason.NO_TABLE_AVAILABLE
    assert result.message
    # The reservation itself is kept, just unassigned
    refreshed = await store.get(Reservation, second.id)
    assert refreshed.status == ReservationStatus.PENDING
    assert refreshed.table_ids == []


@pytest.mark.asyncio
async def test_assign_picks_best_fit_and_zone(store, ctx, test_restaurant, test_tables):
    t1, t2, t3, p1 = test_tables
    day = booking_day()
    engine = TableAssignmentEngine(store)

    couple = await make_reservation(store, test_restaurant, day, guests_count=2, status=ReservationStatus.PENDING)
    assert (await engine.assign(ctx, couple)).table_ids == [t1.id]

    four = await make_reservation(store, test_restaurant, day, guests_count=3, status=ReservationStatus.PENDING)
    assert (await engine.assign(ctx, four)).table_ids == [t2.id]

    # Salle is taken; the terrace four-top is next
    another = await make_reservation(store, test_restaurant, day, guests_count=4, status=ReservationStatus.PENDING)
    assert (await engine.assign(ctx, another)).table_ids == [t3.id]


@pytest.mark.asyncio
async def test_assign_honours_zone_preference(store, ctx, test_restaurant, test_tables):
    t1, t2, t3, p1 = test_tables
    reservation = await make_reservation(
        store, test_restaurant, booking_day(), guests_count=4, status=ReservationStatus.PENDING
    )
    await store.update(reservation, {"zone_preference": "terrasse"})

    result = await TableAssignmentEngine(store).assign(ctx, reservation)
    assert result.table_ids == [t3.id]


@pytest.mark.asyncio
async def test_assign_skips_blocked_tables(store, ctx, test_restaurant, test_tables):
    t1, t2, t3, p1 = test_tables
    day = booking_day()
    await store.create(Block, restaurant_id=test_restaurant.id, date=day, table_id=t1.id, reason="Repair")

    reservation = await make_reservation(store, test_restaurant, day, guests_count=2, status=ReservationStatus.PENDING)
    result = await TableAssignmentEngine(store).assign(ctx, reservation)
    assert result.table_ids == [t2.id]


@pytest.mark.asyncio
async def test_assign_joins_tables_when_enabled(test_db, store, ctx):
    restaurant = await create_restaurant(test_db, name="Joined", table_joining_enabled=True)
    a = await store.create(Table, restaurant_id=restaurant.id, name="A", capacity=4, zone=TableZone.SALLE, is_joinable=True)
    b = await store.create(Table, restaurant_id=restaurant.id, name="B", capacity=4, zone=TableZone.SALLE, is_joinable=True)
    reservation = await make_reservation(
        store, restaurant, booking_day(), guests_count=7, status=ReservationStatus.PENDING
    )

    result = await TableAssignmentEngine(store).assign(
        RequestContext(restaurant_id=restaurant.id, actor_name="Test Staff"), reservation
    )
    assert result.ok
    assert set(result.table_ids) == {a.id, b.id}
    assert result.total_capacity == 8


@pytest.mark.asyncio
async def test_canceled_reservations_do_not_hold_tables(store, ctx, test_restaurant, test_tables):
    t1 = test_tables[0]
    day = booking_day()
    await make_reservation(
        store, test_restaurant, day, guests_count=2, status=ReservationStatus.CANCELED, table_ids=[t1.id]
    )

    engine = TableAssignmentEngine(store)
    assert await engine.find_conflicts(test_restaurant, day, ServiceType.SOIR, [t1.id]) == []


@pytest.mark.asyncio
async def test_same_table_free_in_other_service(store, ctx, test_restaurant, test_tables):
    t1 = test_tables[0]
    day = booking_day()
    await make_reservation(store, test_restaurant, day, ServiceType.MIDI, guests_count=2, table_ids=[t1.id])
    evening = await make_reservation(
        store, test_restaurant, day, ServiceType.SOIR, guests_count=2, status=ReservationStatus.PENDING
    )

    result = await TableAssignmentEngine(store).reassign(ctx, evening.id, [t1.id])
    assert result.ok


@pytest.mark.asyncio
async def test_no_double_booking_across_assignments(store, ctx, test_restaurant, test_tables):
    day = booking_day()
    engine = TableAssignmentEngine(store)
    for guests in (2, 4, 4, 2, 6, 3):
        reservation = await make_reservation(
            store, test_restaurant, day, guests_count=guests, status=ReservationStatus.PENDING
        )
        result = await engine.assign(ctx, reservation)
        if result.ok:
            assert result.total_capacity >= guests

    reservations = await store.list(Reservation, restaurant_id=test_restaurant.id)
    for first, second in combinations(reservations, 2):
        assert not set(first.table_ids) & set(second.table_ids)


class TestReassign:
    @pytest.mark.asyncio
    async def test_table_of_other_restaurant_is_invalid(self, test_db, store, ctx, test_restaurant, test_tables):
        other = await create_restaurant(test_db, name="Elsewhere")
        foreign = await store.create(Table, restaurant_id=other.id, name="X1", capacity=4, zone=TableZone.SALLE)
        reservation = await make_reservation(store, test_restaurant, booking_day(), table_ids=[test_tables[0].id])

        result = await TableAssignmentEngine(store).reassign(ctx, reservation.id, [foreign.id])

        assert not result.ok
        assert result.reason == AssignmentReason.INVALID_TABLE
        assert (await store.get(Reservation, reservation.id)).table_ids == [str(test_tables[0].id)]

    @pytest.mark.asyncio
    async def test_inactive_table_is_invalid(self, store, ctx, test_restaurant, test_tables):
        t2 = test_tables[1]
        await store.update(t2, {"is_active": False})
        reservation = await make_reservation(store, test_restaurant, booking_day())

        result = await TableAssignmentEngine(store).reassign(ctx, reservation.id, [t2.id])
        assert result.reason == AssignmentReason.INVALID_TABLE

    @pytest.mark.asyncio
    async def test_busy_table_is_a_conflict(self, store, ctx, test_restaurant, test_tables):
        t2 = test_tables[1]
        day = booking_day()
        await make_reservation(store, test_restaurant, day, guests_count=4, table_ids=[t2.id])
        reservation = await make_reservation(store, test_restaurant, day, guests_count=2)

        result = await TableAssignmentEngine(store).reassign(ctx, reservation.id, [t2.id])

        assert not result.ok
        assert result.reason == AssignmentReason.CONFLICT
        assert result.conflicting_table_ids == [t2.id]

    @pytest.mark.asyncio
    async def test_under_capacity_is_saved_with_warning(self, test_db, store, ctx, test_restaurant, test_tables):
        t1 = test_tables[0]
        reservation = await make_reservation(store, test_restaurant, booking_day(), guests_count=5)

        result = await TableAssignmentEngine(store).reassign(ctx, reservation.id, [t1.id])

        assert result.ok
        assert result.warnings == [INSUFFICIENT_CAPACITY]
        assert (await store.get(Reservation, reservation.id)).table_ids == [str(t1.id)]

        audit = await test_db.execute(select(AuditLog).where(AuditLog.resource_id == reservation.id))
        assert [entry.action for entry in audit.scalars().all()] == ["move"]

    @pytest.mark.asyncio
    async def test_blocked_table_is_saved_with_warning(self, store, ctx, test_restaurant, test_tables):
        t2 = test_tables[1]
        day = booking_day()
        await store.create(Block, restaurant_id=test_restaurant.id, date=day, table_id=t2.id, reason="Repair")
        reservation = await make_reservation(store, test_restaurant, day, guests_count=4)

        result = await TableAssignmentEngine(store).reassign(ctx, reservation.id, [t2.id])

        assert result.ok
        assert result.warnings == [TABLE_BLOCKED]
        assert (await store.get(Reservation, reservation.id)).table_ids == [str(t2.id)]

    @pytest.mark.asyncio
    async def test_empty_selection_clears_tables(self, store, ctx, test_restaurant, test_tables):
        reservation = await make_reservation(store, test_restaurant, booking_day(), table_ids=[test_tables[0].id])

        result = await TableAssignmentEngine(store).reassign(ctx, reservation.id, [])

        assert result.ok
        assert result.warnings == []
        assert (await store.get(Reservation, reservation.id)).table_ids == []

    @pytest.mark.asyncio
    async def test_outdated_version_is_stale(self, store, ctx, test_restaurant, test_tables):
        reservation = await make_reservation(store, test_restaurant, booking_day())
        read_version = reservation.version
        await store.update(reservation, {"comment": "Window seat please"})

        result = await TableAssignmentEngine(store).reassign(
            ctx, reservation.id, [test_tables[0].id], expected_version=read_version
        )

        assert not result.ok
        assert result.reason == AssignmentReason.STALE_WRITE
        assert (await store.get(Reservation, reservation.id)).table_ids == []

    @pytest.mark.asyncio
    async def test_closed_reservation_cannot_move(self, store, ctx, test_restaurant, test_tables):
        reservation = await make_reservation(
            store, test_restaurant, booking_day(), status=ReservationStatus.COMPLETED
        )
        with pytest.raises(InvalidTransitionError):
            await TableAssignmentEngine(store).reassign(ctx, reservation.id, [test_tables[0].id])
