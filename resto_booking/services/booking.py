"""Booking flow: turn a guest or staff request into a stored reservation"""

import time as _time
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional
from uuid import UUID

import structlog

from resto_booking.context import RequestContext
from resto_booking.errors import ConflictError, InvalidTableError, ValidationError
from resto_booking.models.reservation import Reservation, ReservationStatus
from resto_booking.models.restaurant import Restaurant
from resto_booking.models.table import Table
from resto_booking.services import audit
from resto_booking.services.assignment import AssignmentResult, TableAssignmentEngine
from resto_booking.services.availability import (
    AvailabilityCalculator,
    BookingDecision,
    coerce_service_type,
    validate_guests_count,
)
from resto_booking.services.clock import local_date, to_local, to_utc_naive
from resto_booking.store import EntityStore

logger = structlog.get_logger()

_BASE36 = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"

GUEST_FIELDS = ("first_name", "last_name", "phone", "email", "comment", "zone_preference")


def _base36(number: int) -> str:
    digits = ""
    while True:
        number, remainder = divmod(number, 36)
        digits = _BASE36[remainder] + digits
        if number == 0:
            return digits


def online_reference(epoch_ms: Optional[int] = None) -> str:
    """Guest-facing booking code, e.g. RES-LZ3K8Q2A"""
    return f"RES-{_base36(epoch_ms if epoch_ms is not None else int(_time.time() * 1000))}"


def manual_reference(epoch_ms: Optional[int] = None) -> str:
    """Booking code for reservations entered by staff, e.g. M12345678"""
    return f"M{str(epoch_ms if epoch_ms is not None else int(_time.time() * 1000))[-8:]}"


def initial_status(restaurant: Restaurant, guests_count: int, assigned: bool) -> ReservationStatus:
    """Auto-confirm only small parties that got a table"""
    if (
        restaurant.auto_confirm_enabled
        and guests_count < restaurant.group_pending_threshold
        and assigned
    ):
        return ReservationStatus.CONFIRMED
    return ReservationStatus.PENDING


@dataclass
class BookingOutcome:
    decision: BookingDecision
    reservation: Optional[Reservation] = None
    assignment: Optional[AssignmentResult] = None

    @property
    def accepted(self) -> bool:
        return self.reservation is not None


class BookingService:
    def __init__(self, store: EntityStore):
        self.store = store
        self.availability = AvailabilityCalculator(store)
        self.engine = TableAssignmentEngine(store)

    async def book_online(
        self,
        ctx: RequestContext,
        data: Dict[str, Any],
        now: Optional[datetime] = None,
    ) -> BookingOutcome:
        """Diner booking: availability check, slot check, best-fit tables

        A booking that gets no table is still stored, as ``pending``, for
        staff to place manually.
        """
        restaurant = await self.store.get(Restaurant, ctx.restaurant_id)
        service_type = coerce_service_type(data["service_type"])
        guests_count = data["guests_count"]
        validate_guests_count(guests_count)

        start = to_utc_naive(data["date_time_start"], restaurant.timezone)
        day = local_date(start, restaurant.timezone)

        decision = await self.availability.is_bookable(restaurant.id, day, service_type, guests_count, now=now)
        if not decision.accepted:
            return BookingOutcome(decision=decision)

        slots = await self.availability.list_time_slots(restaurant.id, day, service_type, now=now)
        local_start = to_local(start, restaurant.timezone).time().replace(tzinfo=None)
        if local_start not in slots:
            raise ValidationError(
                "Requested time is not an available slot for this service",
                {"available_slots": [slot.strftime("%H:%M") for slot in slots]},
            )

        assignment = await self.engine.propose(
            restaurant, day, service_type, guests_count,
            zone_preference=data.get("zone_preference"),
        )
        status = initial_status(restaurant, guests_count, assignment.ok)

        reservation = await self.store.create(
            Reservation,
            restaurant_id=restaurant.id,
            reference=online_reference(),
            guests_count=guests_count,
            service_type=service_type,
            date_time_start=start,
            date_time_end=start + timedelta(minutes=restaurant.meal_duration_minutes),
            status=status,
            table_ids=[str(table_id) for table_id in assignment.table_ids],
            released_table_ids=[],
            source="online",
            **{field: data.get(field) for field in GUEST_FIELDS},
        )
        await audit.record(
            self.store, ctx, "create", reservation.id,
            after={"status": status.value, "table_ids": list(reservation.table_ids), "source": "online"},
        )
        logger.info(
            "Online booking created",
            restaurant_id=str(restaurant.id),
            reservation_id=str(reservation.id),
            reference=reservation.reference,
            status=status.value,
            assigned=assignment.ok,
        )
        return BookingOutcome(decision=decision, reservation=reservation, assignment=assignment)

    async def create_manual(
        self,
        ctx: RequestContext,
        data: Dict[str, Any],
        auto_assign: bool = False,
    ) -> Reservation:
        """Staff-entered reservation; staff pick the status and optionally the tables"""
        restaurant = await self.store.get(Restaurant, ctx.restaurant_id)
        service_type = coerce_service_type(data["service_type"])
        guests_count = data["guests_count"]
        validate_guests_count(guests_count)

        status = ReservationStatus(data.get("status") or ReservationStatus.CONFIRMED)
        if status not in (ReservationStatus.PENDING, ReservationStatus.CONFIRMED):
            raise ValidationError("New reservations start as pending or confirmed")

        start = to_utc_naive(data["date_time_start"], restaurant.timezone)
        day = local_date(start, restaurant.timezone)

        table_ids: List[UUID] = list(data.get("table_ids") or [])
        if table_ids:
            await self._check_tables(restaurant, table_ids)
            conflicts = await self.engine.find_conflicts(restaurant, day, service_type, table_ids)
            if conflicts:
                raise ConflictError(
                    "Selected tables are already taken for this service",
                    {"conflicting_table_ids": [str(t) for t in conflicts]},
                )
        elif auto_assign:
            proposal = await self.engine.propose(
                restaurant, day, service_type, guests_count,
                zone_preference=data.get("zone_preference"),
            )
            table_ids = proposal.table_ids

        reservation = await self.store.create(
            Reservation,
            restaurant_id=restaurant.id,
            reference=manual_reference(),
            guests_count=guests_count,
            service_type=service_type,
            date_time_start=start,
            date_time_end=start + timedelta(minutes=restaurant.meal_duration_minutes),
            status=status,
            table_ids=[str(table_id) for table_id in table_ids],
            released_table_ids=[],
            source="manual",
            **{field: data.get(field) for field in GUEST_FIELDS},
        )
        await audit.record(
            self.store, ctx, "create", reservation.id,
            after={"status": status.value, "table_ids": list(reservation.table_ids), "manual": True},
        )
        logger.info(
            "Manual reservation created",
            restaurant_id=str(restaurant.id),
            reservation_id=str(reservation.id),
            status=status.value,
        )
        return reservation

    async def _check_tables(self, restaurant: Restaurant, table_ids: List[UUID]) -> None:
        for table_id in table_ids:
            table = await self.store.db.get(Table, table_id)
            if table is None or table.restaurant_id != restaurant.id or not table.is_active:
                raise InvalidTableError(
                    "Table does not belong to this restaurant or is inactive",
                    {"table_id": str(table_id)},
                )
