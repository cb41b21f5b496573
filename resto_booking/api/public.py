"""Public booking endpoints used by the diner-facing widget (no authentication)"""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from resto_booking.context import RequestContext
from resto_booking.database import get_db
from resto_booking.errors import NotFoundError
from resto_booking.models.reservation import ServiceType
from resto_booking.models.restaurant import Restaurant
from resto_booking.schemas.availability import AvailabilityResponse, SlotsResponse
from resto_booking.schemas.reservation import PublicBookingCreate, PublicBookingResponse
from resto_booking.services.availability import AvailabilityCalculator
from resto_booking.services.booking import BookingService
from resto_booking.store import EntityStore

router = APIRouter()


async def _open_restaurant(store: EntityStore, restaurant_id: UUID) -> Restaurant:
    restaurant = await store.get(Restaurant, restaurant_id)
    if not restaurant.is_active:
        raise NotFoundError(f"Restaurant {restaurant_id} not found")
    return restaurant


@router.get("/{restaurant_id}/availability", response_model=AvailabilityResponse)
async def public_availability(
    restaurant_id: UUID,
    day: date = Query(..., alias="date"),
    service_type: ServiceType = Query(...),
    guests_count: int = Query(..., ge=1),
    db: AsyncSession = Depends(get_db),
):
    """Can the restaurant take this party? Counts stay private"""
    store = EntityStore(db)
    await _open_restaurant(store, restaurant_id)
    decision = await AvailabilityCalculator(store).is_bookable(restaurant_id, day, service_type, guests_count)
    return AvailabilityResponse(
        date=day.isoformat(),
        service_type=service_type.value,
        guests_count=guests_count,
        accepted=decision.accepted,
        reason=decision.reason.value if decision.reason else None,
        message=decision.message,
    )


@router.get("/{restaurant_id}/slots", response_model=SlotsResponse)
async def public_slots(
    restaurant_id: UUID,
    day: date = Query(..., alias="date"),
    service_type: ServiceType = Query(...),
    db: AsyncSession = Depends(get_db),
):
    """Start times offered for a date and service"""
    store = EntityStore(db)
    await _open_restaurant(store, restaurant_id)
    slots = await AvailabilityCalculator(store).list_time_slots(restaurant_id, day, service_type)
    return SlotsResponse(
        date=day.isoformat(),
        service_type=service_type.value,
        slots=[slot.strftime("%H:%M") for slot in slots],
    )


@router.post(
    "/{restaurant_id}/reservations",
    response_model=PublicBookingResponse,
    status_code=status.HTTP_201_CREATED,
)
async def public_booking(
    restaurant_id: UUID,
    booking_data: PublicBookingCreate,
    db: AsyncSession = Depends(get_db),
):
    """Book a table online"""
    store = EntityStore(db)
    await _open_restaurant(store, restaurant_id)
    ctx = RequestContext(
        restaurant_id=restaurant_id,
        actor_name=f"{booking_data.first_name} {booking_data.last_name}",
    )

    outcome = await BookingService(store).book_online(ctx, booking_data.model_dump())
    if not outcome.accepted:
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content={"error": outcome.decision.reason.value, "detail": outcome.decision.message},
        )

    reservation = outcome.reservation
    return PublicBookingResponse(
        reference=reservation.reference,
        status=reservation.status,
        date_time_start=reservation.date_time_start,
        service_type=reservation.service_type,
        guests_count=reservation.guests_count,
        table_assigned=bool(reservation.table_ids),
    )
