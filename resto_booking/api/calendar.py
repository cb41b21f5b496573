"""Calendar and back-office availability endpoints"""

import calendar as calendar_module
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from resto_booking.config import settings
from resto_booking.context import RequestContext
from resto_booking.database import get_db
from resto_booking.models.reservation import Reservation, ReservationStatus, ServiceType
from resto_booking.models.restaurant import Restaurant
from resto_booking.models.table import Table
from resto_booking.schemas.availability import (
    AvailabilityResponse,
    CalendarResponse,
    DayCountsResponse,
    DayDetailResponse,
)
from resto_booking.services.availability import AvailabilityCalculator
from resto_booking.services.calendar import aggregate_by_day, export_csv, reservations_for_day
from resto_booking.services.clock import local_day_bounds, local_today
from resto_booking.store import EntityStore
from resto_booking.api.auth import restaurant_context

router = APIRouter()


async def _reservations_between(store: EntityStore, restaurant: Restaurant, first: date, last: date):
    start, _ = local_day_bounds(first, restaurant.timezone)
    _, end = local_day_bounds(last, restaurant.timezone)
    return await store.filter(
        Reservation,
        Reservation.restaurant_id == restaurant.id,
        Reservation.date_time_start >= start,
        Reservation.date_time_start < end,
        order_by=Reservation.date_time_start,
    )


@router.get("/calendar", response_model=CalendarResponse)
async def month_calendar(
    year: Optional[int] = Query(None, ge=2000, le=2100),
    month: Optional[int] = Query(None, ge=1, le=12),
    include_canceled: Optional[bool] = None,
    ctx: RequestContext = Depends(restaurant_context()),
    db: AsyncSession = Depends(get_db),
):
    """Reservation counts per day and service for one month"""
    store = EntityStore(db)
    restaurant = await store.get(Restaurant, ctx.restaurant_id)
    today = local_today(restaurant.timezone)
    year = year or today.year
    month = month or today.month
    if include_canceled is None:
        include_canceled = settings.calendar_include_canceled

    last_day = calendar_module.monthrange(year, month)[1]
    reservations = await _reservations_between(store, restaurant, date(year, month, 1), date(year, month, last_day))
    counts = aggregate_by_day(reservations, (year, month), restaurant.timezone, include_canceled)

    return CalendarResponse(
        year=year,
        month=month,
        include_canceled=include_canceled,
        days={
            day: DayCountsResponse(midi=c.midi, soir=c.soir, total=c.total)
            for day, c in counts.items()
        },
    )


@router.get("/calendar/day", response_model=DayDetailResponse)
async def day_detail(
    day: date = Query(..., alias="date"),
    service_type: Optional[ServiceType] = None,
    status: Optional[ReservationStatus] = None,
    search: Optional[str] = None,
    ctx: RequestContext = Depends(restaurant_context()),
    db: AsyncSession = Depends(get_db),
):
    """Reservations of one day with the back-office filters"""
    store = EntityStore(db)
    restaurant = await store.get(Restaurant, ctx.restaurant_id)
    reservations = await _reservations_between(store, restaurant, day, day)
    selected = reservations_for_day(reservations, day, restaurant.timezone, service_type, status, search)

    return DayDetailResponse(
        date=day.isoformat(),
        items=selected,
        total_guests=sum(r.guests_count for r in selected if r.status != ReservationStatus.CANCELED),
    )


@router.get("/calendar/day/export")
async def export_day(
    day: date = Query(..., alias="date"),
    service_type: Optional[ServiceType] = None,
    status: Optional[ReservationStatus] = None,
    search: Optional[str] = None,
    ctx: RequestContext = Depends(restaurant_context()),
    db: AsyncSession = Depends(get_db),
):
    """CSV of one day's reservations"""
    store = EntityStore(db)
    restaurant = await store.get(Restaurant, ctx.restaurant_id)
    reservations = await _reservations_between(store, restaurant, day, day)
    selected = reservations_for_day(reservations, day, restaurant.timezone, service_type, status, search)
    tables = await store.list(Table, restaurant_id=restaurant.id)

    content = export_csv(selected, {t.id: t.name for t in tables}, restaurant.timezone)
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="reservations_{day.isoformat()}.csv"'},
    )


@router.get("/availability", response_model=AvailabilityResponse)
async def check_availability(
    day: date = Query(..., alias="date"),
    service_type: ServiceType = Query(...),
    guests_count: int = Query(..., ge=1),
    ctx: RequestContext = Depends(restaurant_context()),
    db: AsyncSession = Depends(get_db),
):
    """Bookability of a date and service, with remaining seats and tables"""
    decision = await AvailabilityCalculator(EntityStore(db)).is_bookable(
        ctx.restaurant_id, day, service_type, guests_count
    )
    return AvailabilityResponse(
        date=day.isoformat(),
        service_type=service_type.value,
        guests_count=guests_count,
        accepted=decision.accepted,
        reason=decision.reason.value if decision.reason else None,
        message=decision.message,
        remaining_seats=decision.remaining_seats,
        remaining_reservations=decision.remaining_reservations,
        free_tables=decision.free_tables,
        free_seats=decision.free_seats,
    )
