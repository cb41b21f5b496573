"""Guards on table edits that would strand upcoming reservations"""

from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID

import structlog

from resto_booking.errors import ConflictError
from resto_booking.models.reservation import Reservation, ReservationStatus
from resto_booking.models.table import Table
from resto_booking.services.clock import utcnow
from resto_booking.store import EntityStore

logger = structlog.get_logger()


async def upcoming_reservations_holding(
    store: EntityStore,
    table: Table,
    now: Optional[datetime] = None,
) -> List[Reservation]:
    """Pending or confirmed reservations not yet over that hold ``table``"""
    reservations = await store.filter(
        Reservation,
        Reservation.restaurant_id == table.restaurant_id,
        Reservation.status.in_([ReservationStatus.PENDING, ReservationStatus.CONFIRMED]),
        Reservation.date_time_end >= (now or utcnow()),
        order_by=Reservation.date_time_start,
    )
    table_key = str(table.id)
    return [r for r in reservations if table_key in {str(t) for t in r.table_ids or []}]


async def check_table_change(
    store: EntityStore,
    table: Table,
    changes: Dict,
    now: Optional[datetime] = None,
) -> None:
    """Refuse a capacity cut or deactivation that breaks an upcoming allocation"""
    new_capacity = changes.get("capacity")
    deactivating = changes.get("is_active") is False and table.is_active
    shrinking = new_capacity is not None and new_capacity < table.capacity
    if not (deactivating or shrinking):
        return

    holders = await upcoming_reservations_holding(store, table, now)
    if not holders:
        return

    if deactivating:
        _refuse("Table is assigned to upcoming reservations", table, holders)

    capacities = {
        str(t.id): t.capacity
        for t in await store.list(Table, restaurant_id=table.restaurant_id)
    }
    capacities[str(table.id)] = new_capacity
    broken = [
        r for r in holders
        if sum(capacities.get(str(t), 0) for t in r.table_ids) < r.guests_count
    ]
    if broken:
        _refuse("Upcoming reservations on this table would no longer fit", table, broken)


async def check_table_delete(store: EntityStore, table: Table, now: Optional[datetime] = None) -> None:
    holders = await upcoming_reservations_holding(store, table, now)
    if holders:
        _refuse("Table is assigned to upcoming reservations", table, holders)


def _refuse(message: str, table: Table, reservations: List[Reservation]) -> None:
    reservation_ids: List[UUID] = [r.id for r in reservations]
    logger.info(
        "Table change refused",
        restaurant_id=str(table.restaurant_id),
        table_id=str(table.id),
        reservation_ids=[str(r) for r in reservation_ids],
    )
    raise ConflictError(
        message,
        {"table_id": str(table.id), "reservation_ids": [str(r) for r in reservation_ids]},
    )
