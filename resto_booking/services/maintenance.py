"""Maintenance sweeps run by the Celery beat schedule"""

from datetime import datetime, timedelta
from typing import Optional

import structlog
from sqlalchemy import delete, select

from resto_booking.context import RequestContext
from resto_booking.errors import BookingError
from resto_booking.models.reservation import Reservation, ReservationStatus
from resto_booking.services.lifecycle import ReservationLifecycle
from resto_booking.store import EntityStore

logger = structlog.get_logger()


async def purge_canceled(db, retention_days: int, now: Optional[datetime] = None) -> int:
    """Hard-delete canceled reservations created before the retention window"""
    cutoff = (now or datetime.utcnow()) - timedelta(days=retention_days)
    result = await db.execute(
        delete(Reservation).where(
            Reservation.status == ReservationStatus.CANCELED,
            Reservation.created_at < cutoff,
        )
    )
    await db.commit()
    deleted_count = result.rowcount or 0
    logger.info("Purged canceled reservations", deleted_count=deleted_count, cutoff=cutoff.isoformat())
    return deleted_count


async def complete_past(db, now: Optional[datetime] = None) -> int:
    """Mark confirmed reservations whose meal has ended as completed"""
    now = now or datetime.utcnow()
    result = await db.execute(
        select(Reservation).where(
            Reservation.status == ReservationStatus.CONFIRMED,
            Reservation.date_time_end < now,
        )
    )
    reservations = result.scalars().all()

    lifecycle = ReservationLifecycle(EntityStore(db))
    completed = 0
    for reservation in reservations:
        try:
            await lifecycle.complete(RequestContext.system(reservation.restaurant_id), reservation.id)
            completed += 1
        except BookingError as exc:
            # Reservation changed or disappeared since the read
            logger.warning(
                "Skipped reservation completion",
                reservation_id=str(reservation.id),
                error=exc.code,
            )
    logger.info("Completed past reservations", completed_count=completed)
    return completed
