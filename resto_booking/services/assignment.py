"""Table assignment engine

Maps a reservation onto physical tables. Automatic assignment is best-fit:
the smallest single table that seats the party, otherwise (when table joining
is enabled) the smallest combination of joinable tables. Ties break on
capacity, zone priority and table id so the outcome is deterministic.

Conflict rule: two non-canceled reservations of the same restaurant, local
date and service may not share a table. The scan reads the store on every call.
Read-then-write is not atomic across reservations; two near-simultaneous
assignments of the same table can still race (last write wins on different
reservation rows). Per-row races are caught by the reservation version column.
"""

import enum
from dataclasses import dataclass, field
from datetime import date
from itertools import combinations
from typing import Dict, Iterable, List, Optional, Sequence, Set
from uuid import UUID

import structlog

from resto_booking.config import settings
from resto_booking.context import RequestContext
from resto_booking.errors import InvalidTransitionError, StaleWriteError
from resto_booking.models.reservation import Reservation, ReservationStatus, ServiceType
from resto_booking.models.restaurant import Restaurant
from resto_booking.models.table import Table
from resto_booking.services import audit
from resto_booking.services.clock import local_date
from resto_booking.services.slots import (
    active_reservations_for_slot,
    allocated_table_ids,
    blocks_for_slot,
)
from resto_booking.store import EntityStore

logger = structlog.get_logger()


class AssignmentReason(str, enum.Enum):
    NO_TABLE_AVAILABLE = "no_table_available"
    INVALID_TABLE = "invalid_table"
    CONFLICT = "conflict"
    STALE_WRITE = "stale_write"


ASSIGNMENT_MESSAGES = {
    AssignmentReason.NO_TABLE_AVAILABLE: "No table available for this party. Assign tables manually or confirm without a table.",
    AssignmentReason.INVALID_TABLE: "One of the selected tables does not belong to this restaurant or is inactive.",
    AssignmentReason.CONFLICT: "One of the selected tables is already taken for this service.",
    AssignmentReason.STALE_WRITE: "This reservation was changed by someone else. Reload it and try again.",
}

INSUFFICIENT_CAPACITY = "insufficient_capacity"
TABLE_BLOCKED = "table_blocked"


@dataclass
class AssignmentResult:
    """Outcome of an assignment or reassignment"""
    ok: bool
    table_ids: List[UUID] = field(default_factory=list)
    reason: Optional[AssignmentReason] = None
    total_capacity: int = 0
    warnings: List[str] = field(default_factory=list)
    conflicting_table_ids: List[UUID] = field(default_factory=list)

    @property
    def message(self) -> Optional[str]:
        return ASSIGNMENT_MESSAGES.get(self.reason) if self.reason else None


def _zone_value(zone) -> str:
    return zone.value if isinstance(zone, enum.Enum) else str(zone)


def zone_order(restaurant: Restaurant, preferred_zone: Optional[str] = None) -> Dict[str, int]:
    """Rank of each zone, lowest first; a preferred zone jumps the queue"""
    order = list(restaurant.zone_priority or settings.zone_priority_list)
    if preferred_zone:
        order = [preferred_zone] + [zone for zone in order if zone != preferred_zone]
    return {zone: rank for rank, zone in enumerate(order)}


def select_tables(
    candidates: Iterable[Table],
    guests_count: int,
    zone_ranks: Dict[str, int],
    joining_enabled: bool = False,
    max_tables: int = 3,
) -> Optional[List[Table]]:
    """Pick the best-fit table set from free candidates, or None"""
    unranked = len(zone_ranks)

    def rank(table: Table) -> int:
        return zone_ranks.get(_zone_value(table.zone), unranked)

    ordered = sorted(candidates, key=lambda t: (t.capacity, rank(t), str(t.id)))

    for table in ordered:
        if table.capacity >= guests_count:
            return [table]

    if not joining_enabled:
        return None

    joinable = [table for table in ordered if table.is_joinable]
    for size in range(2, max_tables + 1):
        fitting = [
            combo for combo in combinations(joinable, size)
            if sum(t.capacity for t in combo) >= guests_count
        ]
        if fitting:
            best = min(
                fitting,
                key=lambda combo: (
                    sum(t.capacity for t in combo),
                    tuple(sorted(rank(t) for t in combo)),
                    tuple(sorted(str(t.id) for t in combo)),
                ),
            )
            return list(best)

    return None


def _unique(ids: Sequence) -> List[UUID]:
    seen = []
    for table_id in ids:
        table_uuid = table_id if isinstance(table_id, UUID) else UUID(str(table_id))
        if table_uuid not in seen:
            seen.append(table_uuid)
    return seen


class TableAssignmentEngine:
    """Automatic assignment, conflict scan and manual reassignment"""

    def __init__(self, store: EntityStore):
        self.store = store

    async def free_tables(
        self,
        restaurant: Restaurant,
        day: date,
        service_type: ServiceType,
        exclude_reservation_id: Optional[UUID] = None,
    ) -> List[Table]:
        """Active, unblocked tables not allocated to another reservation of the slot"""
        tables = await self.store.list(Table, restaurant_id=restaurant.id, is_active=True)
        reservations = await active_reservations_for_slot(
            self.store, restaurant, day, service_type, exclude_reservation_id
        )
        taken = allocated_table_ids(reservations)
        taken.update(await self.blocked_table_ids(restaurant, day, service_type))
        return [table for table in tables if str(table.id) not in taken]

    async def blocked_table_ids(self, restaurant: Restaurant, day: date, service_type: ServiceType) -> Set[str]:
        """Tables taken out of the slot by a per-table block"""
        blocks = await blocks_for_slot(self.store, restaurant.id, day, service_type)
        return {str(block.table_id) for block in blocks if block.table_id is not None}

    async def usable_table(self, restaurant: Restaurant, table_id) -> Optional[Table]:
        """The table if it exists, belongs to the restaurant and is active"""
        if not isinstance(table_id, UUID):
            table_id = UUID(str(table_id))
        table = await self.store.db.get(Table, table_id)
        if table is None or table.restaurant_id != restaurant.id or not table.is_active:
            return None
        return table

    async def find_conflicts(
        self,
        restaurant: Restaurant,
        day: date,
        service_type: ServiceType,
        table_ids: Sequence,
        exclude_reservation_id: Optional[UUID] = None,
    ) -> List[UUID]:
        """Table ids already held by another non-canceled reservation of the slot"""
        if not table_ids:
            return []
        reservations = await active_reservations_for_slot(
            self.store, restaurant, day, service_type, exclude_reservation_id
        )
        taken = allocated_table_ids(reservations)
        return [table_id for table_id in _unique(table_ids) if str(table_id) in taken]

    async def propose(
        self,
        restaurant: Restaurant,
        day: date,
        service_type: ServiceType,
        guests_count: int,
        zone_preference: Optional[str] = None,
        exclude_reservation_id: Optional[UUID] = None,
        candidate_tables: Optional[List[Table]] = None,
    ) -> AssignmentResult:
        """Compute a best-fit allocation without writing anything"""
        if candidate_tables is None:
            candidate_tables = await self.free_tables(
                restaurant, day, service_type, exclude_reservation_id
            )

        chosen = select_tables(
            candidate_tables,
            guests_count,
            zone_order(restaurant, zone_preference),
            joining_enabled=restaurant.table_joining_enabled,
            max_tables=restaurant.max_tables_per_group,
        )
        if not chosen:
            return AssignmentResult(ok=False, reason=AssignmentReason.NO_TABLE_AVAILABLE)

        return AssignmentResult(
            ok=True,
            table_ids=[table.id for table in chosen],
            total_capacity=sum(table.capacity for table in chosen),
        )

    async def assign(
        self,
        ctx: RequestContext,
        reservation: Reservation,
        expected_version: Optional[int] = None,
    ) -> AssignmentResult:
        """Run automatic assignment for a stored reservation and save the result

        A failed assignment leaves the reservation untouched; it is never
        rejected because no table fits.
        """
        if reservation.status not in (ReservationStatus.PENDING, ReservationStatus.CONFIRMED):
            raise InvalidTransitionError(
                f"Cannot assign tables to a {reservation.status.value} reservation"
            )

        restaurant = await self.store.get(Restaurant, reservation.restaurant_id)
        day = local_date(reservation.date_time_start, restaurant.timezone)
        result = await self.propose(
            restaurant,
            day,
            reservation.service_type,
            reservation.guests_count,
            zone_preference=reservation.zone_preference,
            exclude_reservation_id=reservation.id,
        )
        if not result.ok:
            logger.info(
                "No table available",
                restaurant_id=str(restaurant.id),
                reservation_id=str(reservation.id),
                guests_count=reservation.guests_count,
            )
            return result

        return await self._save_tables(ctx, reservation, result, expected_version, action="assign")

    async def reassign(
        self,
        ctx: RequestContext,
        reservation_id: UUID,
        new_table_ids: Sequence,
        expected_version: Optional[int] = None,
    ) -> AssignmentResult:
        """Staff override of a reservation's tables

        Under-capacity selections and tables blocked for the slot are saved with
        a warning. Foreign or inactive
        tables fail with ``invalid_table``; tables held by another reservation
        of the same slot fail with ``conflict``.
        """
        reservation = await self.store.get(Reservation, reservation_id, ctx.restaurant_id)
        if reservation.status not in (ReservationStatus.PENDING, ReservationStatus.CONFIRMED):
            raise InvalidTransitionError(
                f"Cannot move tables of a {reservation.status.value} reservation"
            )

        restaurant = await self.store.get(Restaurant, reservation.restaurant_id)
        requested = _unique(new_table_ids)

        tables = []
        for table_id in requested:
            table = await self.usable_table(restaurant, table_id)
            if table is None:
                logger.info(
                    "Rejected reassignment to invalid table",
                    restaurant_id=str(restaurant.id),
                    reservation_id=str(reservation.id),
                    table_id=str(table_id),
                )
                return AssignmentResult(
                    ok=False,
                    table_ids=requested,
                    reason=AssignmentReason.INVALID_TABLE,
                )
            tables.append(table)

        day = local_date(reservation.date_time_start, restaurant.timezone)
        conflicts = await self.find_conflicts(
            restaurant, day, reservation.service_type, requested, exclude_reservation_id=reservation.id
        )
        if conflicts:
            logger.info(
                "Rejected reassignment to busy table",
                restaurant_id=str(restaurant.id),
                reservation_id=str(reservation.id),
                conflicting_table_ids=[str(t) for t in conflicts],
            )
            return AssignmentResult(
                ok=False,
                table_ids=requested,
                reason=AssignmentReason.CONFLICT,
                conflicting_table_ids=conflicts,
            )

        result = AssignmentResult(
            ok=True,
            table_ids=requested,
            total_capacity=sum(table.capacity for table in tables),
        )
        if requested and result.total_capacity < reservation.guests_count:
            result.warnings.append(INSUFFICIENT_CAPACITY)
        blocked = await self.blocked_table_ids(restaurant, day, reservation.service_type)
        if any(str(table_id) in blocked for table_id in requested):
            result.warnings.append(TABLE_BLOCKED)

        return await self._save_tables(ctx, reservation, result, expected_version, action="move")

    async def _save_tables(
        self,
        ctx: RequestContext,
        reservation: Reservation,
        result: AssignmentResult,
        expected_version: Optional[int],
        action: str,
    ) -> AssignmentResult:
        previous = list(reservation.table_ids or [])
        try:
            await self.store.update(
                reservation,
                {"table_ids": [str(table_id) for table_id in result.table_ids]},
                expected_version=expected_version,
            )
        except StaleWriteError:
            return AssignmentResult(
                ok=False,
                table_ids=result.table_ids,
                reason=AssignmentReason.STALE_WRITE,
            )

        await audit.record(
            self.store,
            ctx,
            action,
            reservation.id,
            before={"table_ids": previous},
            after={"table_ids": list(reservation.table_ids)},
        )
        logger.info(
            "Tables assigned",
            restaurant_id=str(reservation.restaurant_id),
            reservation_id=str(reservation.id),
            table_ids=list(reservation.table_ids),
            total_capacity=result.total_capacity,
            warnings=result.warnings,
        )
        return result
