"""Reservation management API endpoints"""

from datetime import date
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy import select, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from resto_booking.context import RequestContext
from resto_booking.database import get_db
from resto_booking.models.reservation import Reservation, ReservationStatus, ServiceType
from resto_booking.models.restaurant import Restaurant
from resto_booking.models.user import UserRole
from resto_booking.schemas.reservation import (
    AssignmentResponse,
    AutoAssignRequest,
    ReservationCreate,
    ReservationUpdate,
    ReservationResponse,
    ReservationListResponse,
    StatusChange,
    TableReassignment,
)
from resto_booking.services.assignment import (
    AssignmentReason,
    AssignmentResult,
    TableAssignmentEngine,
)
from resto_booking.services.booking import BookingService
from resto_booking.services.clock import local_day_bounds
from resto_booking.services.lifecycle import ReservationLifecycle
from resto_booking.store import EntityStore
from resto_booking.api.auth import restaurant_context

router = APIRouter()

ASSIGNMENT_STATUS_CODES = {
    AssignmentReason.INVALID_TABLE: 422,
    AssignmentReason.CONFLICT: 409,
    AssignmentReason.STALE_WRITE: 409,
}


def assignment_response(
    result: AssignmentResult,
    reservation: Reservation,
    response: Response,
) -> AssignmentResponse:
    """Structured assignment outcome; hard failures also set the HTTP status"""
    if result.reason in ASSIGNMENT_STATUS_CODES:
        response.status_code = ASSIGNMENT_STATUS_CODES[result.reason]
    return AssignmentResponse(
        ok=result.ok,
        table_ids=result.table_ids,
        reason=result.reason.value if result.reason else None,
        message=result.message,
        total_capacity=result.total_capacity,
        warnings=result.warnings,
        conflicting_table_ids=result.conflicting_table_ids,
        reservation=ReservationResponse.model_validate(reservation),
    )


@router.get("", response_model=ReservationListResponse)
async def list_reservations(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    status: Optional[ReservationStatus] = None,
    service_type: Optional[ServiceType] = None,
    from_date: Optional[date] = None,
    to_date: Optional[date] = None,
    search: Optional[str] = None,
    ctx: RequestContext = Depends(restaurant_context()),
    db: AsyncSession = Depends(get_db),
):
    """List reservations for a restaurant with pagination"""
    restaurant = await EntityStore(db).get(Restaurant, ctx.restaurant_id)
    conditions = [Reservation.restaurant_id == ctx.restaurant_id]

    if status:
        conditions.append(Reservation.status == status)

    if service_type:
        conditions.append(Reservation.service_type == service_type)

    if from_date:
        conditions.append(Reservation.date_time_start >= local_day_bounds(from_date, restaurant.timezone)[0])

    if to_date:
        conditions.append(Reservation.date_time_start < local_day_bounds(to_date, restaurant.timezone)[1])

    if search:
        pattern = f"%{search.strip()}%"
        conditions.append(or_(
            Reservation.first_name.ilike(pattern),
            Reservation.last_name.ilike(pattern),
            Reservation.phone.ilike(pattern),
            Reservation.email.ilike(pattern),
            Reservation.reference.ilike(pattern),
        ))

    # Get total
    total_result = await db.execute(select(func.count(Reservation.id)).where(*conditions))
    total = total_result.scalar()

    # Get paginated results
    offset = (page - 1) * page_size
    result = await db.execute(
        select(Reservation)
        .where(*conditions)
        .order_by(Reservation.date_time_start.desc())
        .offset(offset)
        .limit(page_size)
    )
    reservations = result.scalars().all()

    return ReservationListResponse(
        items=reservations,
        total=total,
        page=page,
        page_size=page_size,
    )


@router.post("", response_model=ReservationResponse, status_code=201)
async def create_reservation(
    reservation_data: ReservationCreate,
    ctx: RequestContext = Depends(restaurant_context()),
    db: AsyncSession = Depends(get_db),
):
    """Create a reservation from the back-office (phone, walk-in)"""
    data = reservation_data.model_dump(exclude={"auto_assign"})
    return await BookingService(EntityStore(db)).create_manual(
        ctx, data, auto_assign=reservation_data.auto_assign
    )


@router.get("/{reservation_id}", response_model=ReservationResponse)
async def get_reservation(
    reservation_id: UUID,
    ctx: RequestContext = Depends(restaurant_context()),
    db: AsyncSession = Depends(get_db),
):
    """Get reservation details"""
    return await EntityStore(db).get(Reservation, reservation_id, ctx.restaurant_id)


@router.put("/{reservation_id}", response_model=ReservationResponse)
async def update_reservation(
    reservation_id: UUID,
    reservation_data: ReservationUpdate,
    ctx: RequestContext = Depends(restaurant_context()),
    db: AsyncSession = Depends(get_db),
):
    """Edit guest or booking details"""
    changes = reservation_data.model_dump(exclude_unset=True, exclude={"version"})
    return await ReservationLifecycle(EntityStore(db)).edit(
        ctx, reservation_id, changes, expected_version=reservation_data.version
    )


@router.delete("/{reservation_id}", status_code=204)
async def delete_reservation(
    reservation_id: UUID,
    ctx: RequestContext = Depends(restaurant_context(UserRole.RESTAURANT_ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    """Delete a reservation permanently"""
    await ReservationLifecycle(EntityStore(db)).delete(ctx, reservation_id)


@router.post("/{reservation_id}/status", response_model=ReservationResponse)
async def change_status(
    reservation_id: UUID,
    status_data: StatusChange,
    ctx: RequestContext = Depends(restaurant_context()),
    db: AsyncSession = Depends(get_db),
):
    """Move a reservation through its lifecycle"""
    return await ReservationLifecycle(EntityStore(db)).transition_to(
        ctx,
        reservation_id,
        status_data.status,
        expected_version=status_data.version,
        auto_assign=status_data.auto_assign,
    )


@router.post("/{reservation_id}/assign", response_model=AssignmentResponse)
async def auto_assign_tables(
    reservation_id: UUID,
    response: Response,
    assign_data: Optional[AutoAssignRequest] = None,
    ctx: RequestContext = Depends(restaurant_context()),
    db: AsyncSession = Depends(get_db),
):
    """Run best-fit table assignment for a reservation"""
    store = EntityStore(db)
    reservation = await store.get(Reservation, reservation_id, ctx.restaurant_id)
    result = await TableAssignmentEngine(store).assign(
        ctx, reservation, expected_version=assign_data.version if assign_data else None
    )
    return assignment_response(result, reservation, response)


@router.put("/{reservation_id}/tables", response_model=AssignmentResponse)
async def reassign_tables(
    reservation_id: UUID,
    table_data: TableReassignment,
    response: Response,
    ctx: RequestContext = Depends(restaurant_context()),
    db: AsyncSession = Depends(get_db),
):
    """Manually set the tables of a reservation"""
    store = EntityStore(db)
    result = await TableAssignmentEngine(store).reassign(
        ctx, reservation_id, table_data.table_ids, expected_version=table_data.version
    )
    reservation = await store.get(Reservation, reservation_id, ctx.restaurant_id)
    return assignment_response(result, reservation, response)
