"""Restaurant management API endpoints"""

from datetime import time
from typing import List
from uuid import UUID
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from resto_booking.config import settings
from resto_booking.database import get_db
from resto_booking.errors import ValidationError
from resto_booking.models.reservation import ServiceType
from resto_booking.models.restaurant import Restaurant
from resto_booking.models.schedule import Schedule
from resto_booking.models.user import User, UserRole
from resto_booking.schemas.restaurant import (
    RestaurantCreate,
    RestaurantUpdate,
    RestaurantResponse,
)
from resto_booking.api.auth import get_current_user, require_role, verify_restaurant_access

router = APIRouter()

DEFAULT_SERVICE_HOURS = {
    ServiceType.MIDI: (time(12, 0), time(14, 30)),
    ServiceType.SOIR: (time(19, 0), time(22, 30)),
}

NULLABLE_POLICY_FIELDS = {"max_party_size", "zone_priority"}


def _check_timezone(tz_name: str) -> None:
    try:
        ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValidationError(f"Unknown timezone: {tz_name}")


@router.get("", response_model=List[RestaurantResponse])
async def list_restaurants(
    skip: int = 0,
    limit: int = 100,
    current_user: User = Depends(require_role(UserRole.SUPER_ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    """List all restaurants (SuperAdmin only)"""
    result = await db.execute(
        select(Restaurant)
        .where(Restaurant.is_active == True)
        .order_by(Restaurant.name)
        .offset(skip)
        .limit(limit)
    )
    return result.scalars().all()


@router.post("", response_model=RestaurantResponse, status_code=status.HTTP_201_CREATED)
async def create_restaurant(
    restaurant_data: RestaurantCreate,
    current_user: User = Depends(require_role(UserRole.SUPER_ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    """Create a new restaurant with a default weekly schedule (SuperAdmin only)"""
    tz_name = restaurant_data.timezone or settings.default_timezone
    _check_timezone(tz_name)

    restaurant = Restaurant(name=restaurant_data.name, timezone=tz_name)
    db.add(restaurant)
    await db.flush()

    # Lunch and dinner open every day until the owner edits the schedule
    for day_of_week in range(7):
        for service_type, (start_time, end_time) in DEFAULT_SERVICE_HOURS.items():
            db.add(Schedule(
                restaurant_id=restaurant.id,
                day_of_week=day_of_week,
                service_type=service_type,
                is_open=True,
                start_time=start_time,
                end_time=end_time,
            ))
    await db.commit()
    await db.refresh(restaurant)

    return restaurant


@router.get("/{restaurant_id}", response_model=RestaurantResponse)
async def get_restaurant(
    restaurant_id: UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Get restaurant details and booking policy"""
    await verify_restaurant_access(restaurant_id, current_user)

    restaurant = await db.get(Restaurant, restaurant_id)
    if not restaurant:
        raise HTTPException(status_code=404, detail="Restaurant not found")

    return restaurant


@router.put("/{restaurant_id}", response_model=RestaurantResponse)
async def update_restaurant(
    restaurant_id: UUID,
    restaurant_data: RestaurantUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Update restaurant and booking policy"""
    await verify_restaurant_access(restaurant_id, current_user)

    if not current_user.has_permission(UserRole.RESTAURANT_ADMIN):
        raise HTTPException(status_code=403, detail="Insufficient permissions")

    restaurant = await db.get(Restaurant, restaurant_id)
    if not restaurant:
        raise HTTPException(status_code=404, detail="Restaurant not found")

    changes = {
        field: value
        for field, value in restaurant_data.model_dump(exclude_unset=True).items()
        if value is not None or field in NULLABLE_POLICY_FIELDS
    }
    if changes.get("timezone"):
        _check_timezone(changes["timezone"])

    for field, value in changes.items():
        setattr(restaurant, field, value)

    await db.commit()
    await db.refresh(restaurant)

    return restaurant
