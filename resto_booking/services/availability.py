"""Availability calculator

Read-only decision on whether a restaurant can take one more booking for a
date and service. Rejections come back as a ``BookingDecision`` with a reason;
only malformed input raises.
"""

import enum
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import List, Optional, Union
from uuid import UUID

import structlog

from resto_booking.errors import ValidationError
from resto_booking.models.reservation import ReservationStatus, ServiceType
from resto_booking.models.restaurant import Restaurant
from resto_booking.models.schedule import Schedule
from resto_booking.models.table import Table
from resto_booking.services.assignment import TableAssignmentEngine
from resto_booking.services.clock import local_today, to_local, utcnow
from resto_booking.services.slots import active_reservations_for_slot, blocks_for_slot
from resto_booking.store import EntityStore

logger = structlog.get_logger()


class AvailabilityReason(str, enum.Enum):
    PAST_DATE = "past_date"
    OUTSIDE_BOOKING_WINDOW = "outside_booking_window"
    PARTY_TOO_LARGE = "party_too_large"
    CLOSED = "closed"
    NO_SERVICE = "no_service"
    FULL = "full"


REJECTION_MESSAGES = {
    AvailabilityReason.PAST_DATE: "This date is in the past.",
    AvailabilityReason.OUTSIDE_BOOKING_WINDOW: "Bookings are not open this far ahead yet.",
    AvailabilityReason.PARTY_TOO_LARGE: "Party too large for online booking. Please call the restaurant.",
    AvailabilityReason.CLOSED: "The restaurant is closed for this service.",
    AvailabilityReason.NO_SERVICE: "There is no service at this time on this day.",
    AvailabilityReason.FULL: "Fully booked for this service.",
}

LOAD_STATUSES = (ReservationStatus.PENDING, ReservationStatus.CONFIRMED)


@dataclass
class BookingDecision:
    """Outcome of an availability check"""
    accepted: bool
    reason: Optional[AvailabilityReason] = None
    booked_covers: int = 0
    booked_reservations: int = 0
    remaining_seats: Optional[int] = None
    remaining_reservations: Optional[int] = None
    free_tables: int = 0
    free_seats: int = 0

    @property
    def message(self) -> Optional[str]:
        return REJECTION_MESSAGES.get(self.reason) if self.reason else None


def coerce_service_type(value: Union[str, ServiceType]) -> ServiceType:
    try:
        return ServiceType(value)
    except ValueError:
        raise ValidationError(f"Unknown service type: {value}")


def validate_guests_count(guests_count: int) -> None:
    if guests_count is None or int(guests_count) < 1:
        raise ValidationError("guests_count must be at least 1")


class AvailabilityCalculator:
    """isBookable plus the time slots offered to diners"""

    def __init__(self, store: EntityStore):
        self.store = store

    async def is_bookable(
        self,
        restaurant_id: UUID,
        day: date,
        service_type: Union[str, ServiceType],
        guests_count: int,
        now: Optional[datetime] = None,
    ) -> BookingDecision:
        service_type = coerce_service_type(service_type)
        validate_guests_count(guests_count)
        restaurant = await self.store.get(Restaurant, restaurant_id)

        decision = await self._decide(restaurant, day, service_type, guests_count, now)
        if not decision.accepted:
            logger.info(
                "Booking rejected",
                restaurant_id=str(restaurant.id),
                date=day.isoformat(),
                service_type=service_type.value,
                guests_count=guests_count,
                reason=decision.reason.value,
            )
        return decision

    async def _decide(
        self,
        restaurant: Restaurant,
        day: date,
        service_type: ServiceType,
        guests_count: int,
        now: Optional[datetime],
    ) -> BookingDecision:
        today = local_today(restaurant.timezone, now)
        if day < today:
            return BookingDecision(accepted=False, reason=AvailabilityReason.PAST_DATE)
        if day > today + timedelta(days=restaurant.booking_window_days):
            return BookingDecision(accepted=False, reason=AvailabilityReason.OUTSIDE_BOOKING_WINDOW)
        if restaurant.max_party_size and guests_count > restaurant.max_party_size:
            return BookingDecision(accepted=False, reason=AvailabilityReason.PARTY_TOO_LARGE)

        blocks = await blocks_for_slot(self.store, restaurant.id, day, service_type)
        if any(block.table_id is None for block in blocks):
            return BookingDecision(accepted=False, reason=AvailabilityReason.CLOSED)

        schedule = await self.open_schedule(restaurant.id, day, service_type)
        if schedule is None:
            return BookingDecision(accepted=False, reason=AvailabilityReason.NO_SERVICE)

        reservations = await active_reservations_for_slot(self.store, restaurant, day, service_type)
        load = [r for r in reservations if r.status in LOAD_STATUSES]
        booked_covers = sum(r.guests_count for r in load)
        booked_reservations = len(load)

        free = await TableAssignmentEngine(self.store).free_tables(restaurant, day, service_type)
        decision = BookingDecision(
            accepted=True,
            booked_covers=booked_covers,
            booked_reservations=booked_reservations,
            free_tables=len(free),
            free_seats=sum(table.capacity for table in free),
        )

        if schedule.max_covers is not None or schedule.max_reservations is not None:
            if schedule.max_covers is not None:
                decision.remaining_seats = max(schedule.max_covers - booked_covers, 0)
                if booked_covers + guests_count > schedule.max_covers:
                    decision.accepted = False
            if schedule.max_reservations is not None:
                decision.remaining_reservations = max(schedule.max_reservations - booked_reservations, 0)
                if booked_reservations + 1 > schedule.max_reservations:
                    decision.accepted = False
        else:
            seat_capacity = await self._table_seat_capacity(restaurant, blocks)
            decision.remaining_seats = max(seat_capacity - booked_covers, 0)
            if booked_covers + guests_count > seat_capacity:
                decision.accepted = False

        if not decision.accepted:
            decision.reason = AvailabilityReason.FULL
        return decision

    async def open_schedule(
        self,
        restaurant_id: UUID,
        day: date,
        service_type: ServiceType,
    ) -> Optional[Schedule]:
        schedules = await self.store.list(
            Schedule,
            restaurant_id=restaurant_id,
            day_of_week=day.weekday(),
            service_type=service_type,
        )
        for schedule in schedules:
            if schedule.is_open and schedule.start_time and schedule.end_time:
                return schedule
        return None

    async def _table_seat_capacity(self, restaurant: Restaurant, blocks) -> int:
        blocked = {block.table_id for block in blocks if block.table_id is not None}
        tables = await self.store.list(Table, restaurant_id=restaurant.id, is_active=True)
        return sum(table.capacity for table in tables if table.id not in blocked)

    async def list_time_slots(
        self,
        restaurant_id: UUID,
        day: date,
        service_type: Union[str, ServiceType],
        now: Optional[datetime] = None,
    ) -> List[time]:
        """Start times offered for a date and service

        Every ``slot_interval_minutes`` from the schedule's start (inclusive)
        to its end (exclusive); on the current day, slots not later than
        ``now + min_advance_minutes`` are dropped.
        """
        service_type = coerce_service_type(service_type)
        restaurant = await self.store.get(Restaurant, restaurant_id)
        now = now or utcnow()
        if day < local_today(restaurant.timezone, now):
            return []

        blocks = await blocks_for_slot(self.store, restaurant.id, day, service_type)
        if any(block.table_id is None for block in blocks):
            return []

        schedule = await self.open_schedule(restaurant.id, day, service_type)
        if schedule is None:
            return []

        earliest = None
        local_now = to_local(now, restaurant.timezone)
        if day == local_now.date():
            earliest = (local_now + timedelta(minutes=restaurant.min_advance_minutes)).replace(tzinfo=None)

        interval = timedelta(minutes=max(restaurant.slot_interval_minutes, 1))
        cursor = datetime.combine(day, schedule.start_time)
        end = datetime.combine(day, schedule.end_time)
        slots = []
        while cursor < end:
            if earliest is None or cursor > earliest:
                slots.append(cursor.time())
            cursor += interval
        return slots
