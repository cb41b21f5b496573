"""Reads shared by availability and table assignment for one date + service"""

from datetime import date
from typing import List, Optional, Set
from uuid import UUID

from sqlalchemy import or_

from resto_booking.models.reservation import Reservation, ReservationStatus, ServiceType
from resto_booking.models.restaurant import Restaurant
from resto_booking.models.schedule import Block
from resto_booking.services.clock import local_day_bounds
from resto_booking.store import EntityStore


async def active_reservations_for_slot(
    store: EntityStore,
    restaurant: Restaurant,
    day: date,
    service_type: ServiceType,
    exclude_reservation_id: Optional[UUID] = None,
) -> List[Reservation]:
    """Non-canceled reservations of a restaurant-local date and service, read fresh"""
    start, end = local_day_bounds(day, restaurant.timezone)
    criteria = [
        Reservation.restaurant_id == restaurant.id,
        Reservation.service_type == service_type,
        Reservation.date_time_start >= start,
        Reservation.date_time_start < end,
        Reservation.status != ReservationStatus.CANCELED,
    ]
    if exclude_reservation_id is not None:
        criteria.append(Reservation.id != exclude_reservation_id)
    return await store.filter(Reservation, *criteria, order_by=Reservation.date_time_start)


def allocated_table_ids(reservations: List[Reservation]) -> Set[str]:
    allocated: Set[str] = set()
    for reservation in reservations:
        allocated.update(str(table_id) for table_id in reservation.table_ids or [])
    return allocated


async def blocks_for_slot(
    store: EntityStore,
    restaurant_id: UUID,
    day: date,
    service_type: ServiceType,
) -> List[Block]:
    """Blocks covering the date and either this service or the whole day"""
    return await store.filter(
        Block,
        Block.restaurant_id == restaurant_id,
        Block.date == day,
        or_(Block.service_type.is_(None), Block.service_type == service_type),
    )
