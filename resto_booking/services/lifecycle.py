"""Reservation state machine

    pending   --confirm-->  confirmed
    pending   --refuse-->   canceled   (tables released)
    confirmed --no_show-->  no_show    (tables released)
    confirmed --cancel-->   canceled   (tables released)
    confirmed --complete--> completed
    canceled  --restore-->  confirmed  (released tables re-claimed if still free)

completed and no_show are terminal. Released tables are remembered in
``released_table_ids`` so a restore can put the guests back on them.
"""

import enum
from datetime import datetime, timedelta
from typing import Dict, Optional, Tuple
from uuid import UUID

import structlog

from resto_booking.context import RequestContext
from resto_booking.errors import ConflictError, InvalidTableError, InvalidTransitionError, ValidationError
from resto_booking.models.reservation import Reservation, ReservationStatus, ServiceType
from resto_booking.models.restaurant import Restaurant
from resto_booking.services import audit
from resto_booking.services.assignment import TableAssignmentEngine
from resto_booking.services.clock import local_date, to_utc_naive
from resto_booking.store import EntityStore

logger = structlog.get_logger()


class ReservationEvent(str, enum.Enum):
    """Staff actions driving the lifecycle"""
    CONFIRM = "confirm"
    REFUSE = "refuse"
    CANCEL = "cancel"
    MARK_NO_SHOW = "no_show"
    COMPLETE = "complete"
    RESTORE = "restore"


TRANSITIONS: Dict[Tuple[ReservationStatus, ReservationEvent], ReservationStatus] = {
    (ReservationStatus.PENDING, ReservationEvent.CONFIRM): ReservationStatus.CONFIRMED,
    (ReservationStatus.PENDING, ReservationEvent.REFUSE): ReservationStatus.CANCELED,
    (ReservationStatus.CONFIRMED, ReservationEvent.MARK_NO_SHOW): ReservationStatus.NO_SHOW,
    (ReservationStatus.CONFIRMED, ReservationEvent.CANCEL): ReservationStatus.CANCELED,
    (ReservationStatus.CONFIRMED, ReservationEvent.COMPLETE): ReservationStatus.COMPLETED,
    (ReservationStatus.CANCELED, ReservationEvent.RESTORE): ReservationStatus.CONFIRMED,
}

RELEASING_EVENTS = {ReservationEvent.REFUSE, ReservationEvent.CANCEL, ReservationEvent.MARK_NO_SHOW}

EDITABLE_STATUSES = {ReservationStatus.PENDING, ReservationStatus.CONFIRMED}


def next_status(current: ReservationStatus, event: ReservationEvent) -> ReservationStatus:
    try:
        return TRANSITIONS[(current, event)]
    except KeyError:
        raise InvalidTransitionError(
            f"Cannot {event.value} a {current.value} reservation",
            {"status": current.value, "event": event.value},
        )


def event_for(current: ReservationStatus, target: ReservationStatus) -> ReservationEvent:
    """Resolve the event that moves ``current`` to ``target``"""
    for (source, event), destination in TRANSITIONS.items():
        if source == current and destination == target:
            return event
    raise InvalidTransitionError(
        f"Cannot move a {current.value} reservation to {target.value}",
        {"status": current.value, "target": target.value},
    )


class ReservationLifecycle:
    """Applies transitions and their side effects through the entity store"""

    def __init__(self, store: EntityStore):
        self.store = store
        self.engine = TableAssignmentEngine(store)

    async def apply(
        self,
        ctx: RequestContext,
        reservation_id: UUID,
        event: ReservationEvent,
        expected_version: Optional[int] = None,
        auto_assign: bool = False,
    ) -> Reservation:
        reservation = await self.store.get(Reservation, reservation_id, ctx.restaurant_id)
        previous_status = reservation.status
        target = next_status(previous_status, event)
        patch = {"status": target}

        if event == ReservationEvent.CONFIRM:
            patch.update(await self._confirm_tables(reservation, auto_assign))
        elif event in RELEASING_EVENTS:
            if reservation.table_ids:
                patch["released_table_ids"] = list(reservation.table_ids)
            patch["table_ids"] = []
        elif event == ReservationEvent.RESTORE:
            patch.update(await self._restore_tables(reservation))

        previous_tables = list(reservation.table_ids or [])
        await self.store.update(reservation, patch, expected_version=expected_version)

        await audit.record(
            self.store,
            ctx,
            event.value,
            reservation.id,
            before={"status": previous_status.value, "table_ids": previous_tables},
            after={"status": reservation.status.value, "table_ids": list(reservation.table_ids)},
        )
        logger.info(
            "Reservation status changed",
            restaurant_id=str(reservation.restaurant_id),
            reservation_id=str(reservation.id),
            transition=event.value,
            previous_status=previous_status.value,
            status=reservation.status.value,
        )
        return reservation

    async def transition_to(
        self,
        ctx: RequestContext,
        reservation_id: UUID,
        target: ReservationStatus,
        expected_version: Optional[int] = None,
        auto_assign: bool = False,
    ) -> Reservation:
        reservation = await self.store.get(Reservation, reservation_id, ctx.restaurant_id)
        event = event_for(reservation.status, target)
        return await self.apply(ctx, reservation_id, event, expected_version, auto_assign)

    async def confirm(self, ctx, reservation_id, expected_version=None, auto_assign=False):
        return await self.apply(ctx, reservation_id, ReservationEvent.CONFIRM, expected_version, auto_assign)

    async def refuse(self, ctx, reservation_id, expected_version=None):
        return await self.apply(ctx, reservation_id, ReservationEvent.REFUSE, expected_version)

    async def cancel(self, ctx, reservation_id, expected_version=None):
        return await self.apply(ctx, reservation_id, ReservationEvent.CANCEL, expected_version)

    async def mark_no_show(self, ctx, reservation_id, expected_version=None):
        return await self.apply(ctx, reservation_id, ReservationEvent.MARK_NO_SHOW, expected_version)

    async def complete(self, ctx, reservation_id, expected_version=None):
        return await self.apply(ctx, reservation_id, ReservationEvent.COMPLETE, expected_version)

    async def restore(self, ctx, reservation_id, expected_version=None):
        return await self.apply(ctx, reservation_id, ReservationEvent.RESTORE, expected_version)

    async def delete(self, ctx: RequestContext, reservation_id: UUID) -> None:
        """Hard delete; irreversible and allowed from any state"""
        reservation = await self.store.get(Reservation, reservation_id, ctx.restaurant_id)
        snapshot = {
            "reference": reservation.reference,
            "status": reservation.status.value,
            "table_ids": list(reservation.table_ids or []),
        }
        await self.store.delete(Reservation, reservation_id, ctx.restaurant_id)
        await audit.record(self.store, ctx, "delete", reservation_id, before=snapshot)
        logger.info(
            "Reservation deleted",
            restaurant_id=str(ctx.restaurant_id),
            reservation_id=str(reservation_id),
        )

    async def edit(
        self,
        ctx: RequestContext,
        reservation_id: UUID,
        changes: Dict,
        expected_version: Optional[int] = None,
    ) -> Reservation:
        """Edit guest or booking details of an active reservation

        Moving the reservation to another date or service re-validates its
        current tables against the target slot.
        """
        reservation = await self.store.get(Reservation, reservation_id, ctx.restaurant_id)
        if reservation.status not in EDITABLE_STATUSES:
            raise InvalidTransitionError(
                f"Cannot edit a {reservation.status.value} reservation",
                {"status": reservation.status.value},
            )
        if "status" in changes or "table_ids" in changes:
            raise ValidationError("Use the status and tables endpoints to change status or tables")

        restaurant = await self.store.get(Restaurant, reservation.restaurant_id)
        patch = dict(changes)

        if patch.get("guests_count") is not None and patch["guests_count"] < 1:
            raise ValidationError("guests_count must be at least 1")
        if patch.get("date_time_start") is not None:
            start = to_utc_naive(patch["date_time_start"], restaurant.timezone)
            patch["date_time_start"] = start
            patch["date_time_end"] = _end_of_meal(start, restaurant)
        if patch.get("service_type") is not None:
            patch["service_type"] = ServiceType(patch["service_type"])

        start = patch.get("date_time_start", reservation.date_time_start)
        service_type = patch.get("service_type", reservation.service_type)
        slot_changed = (
            local_date(start, restaurant.timezone) != local_date(reservation.date_time_start, restaurant.timezone)
            or service_type != reservation.service_type
        )
        if slot_changed and reservation.table_ids:
            conflicts = await self.engine.find_conflicts(
                restaurant,
                local_date(start, restaurant.timezone),
                service_type,
                reservation.table_ids,
                exclude_reservation_id=reservation.id,
            )
            if conflicts:
                raise ConflictError(
                    "Assigned tables are already taken for the new date or service",
                    {"conflicting_table_ids": [str(t) for t in conflicts]},
                )

        before = {field: _jsonable(getattr(reservation, field)) for field in patch}
        await self.store.update(reservation, patch, expected_version=expected_version)
        await audit.record(
            self.store,
            ctx,
            "update",
            reservation.id,
            before=before,
            after={field: _jsonable(getattr(reservation, field)) for field in patch},
        )
        return reservation

    async def _confirm_tables(self, reservation: Reservation, auto_assign: bool) -> Dict:
        """Re-verify held tables; optionally auto-assign when none are held"""
        restaurant = await self.store.get(Restaurant, reservation.restaurant_id)
        day = local_date(reservation.date_time_start, restaurant.timezone)

        if reservation.table_ids:
            conflicts = await self.engine.find_conflicts(
                restaurant, day, reservation.service_type, reservation.table_ids,
                exclude_reservation_id=reservation.id,
            )
            if conflicts:
                raise ConflictError(
                    "Assigned tables are no longer free for this service",
                    {"conflicting_table_ids": [str(t) for t in conflicts]},
                )
            return {}

        if auto_assign:
            proposal = await self.engine.propose(
                restaurant, day, reservation.service_type, reservation.guests_count,
                zone_preference=reservation.zone_preference,
                exclude_reservation_id=reservation.id,
            )
            if proposal.ok:
                return {"table_ids": [str(t) for t in proposal.table_ids]}
        return {}

    async def _restore_tables(self, reservation: Reservation) -> Dict:
        """Re-claim released tables that still exist, are active and free for the slot"""
        released = list(reservation.released_table_ids or [])
        if not released:
            return {}

        restaurant = await self.store.get(Restaurant, reservation.restaurant_id)
        for table_id in released:
            if await self.engine.usable_table(restaurant, table_id) is None:
                raise InvalidTableError(
                    "A table of this reservation was removed or deactivated after it was released",
                    {"table_id": str(table_id)},
                )

        day = local_date(reservation.date_time_start, restaurant.timezone)
        conflicts = await self.engine.find_conflicts(
            restaurant, day, reservation.service_type, released,
            exclude_reservation_id=reservation.id,
        )
        blocked = await self.engine.blocked_table_ids(restaurant, day, reservation.service_type)
        taken = [t for t in released if t in conflicts or str(t) in blocked]
        if taken:
            raise ConflictError(
                "Tables of this reservation have been given to another booking or blocked",
                {"conflicting_table_ids": [str(t) for t in taken]},
            )
        return {"table_ids": released, "released_table_ids": []}


def _end_of_meal(start: datetime, restaurant: Restaurant) -> datetime:
    return start + timedelta(minutes=restaurant.meal_duration_minutes)


def _jsonable(value):
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    return value
