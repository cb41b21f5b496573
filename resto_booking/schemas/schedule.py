"""Schedule and block schemas"""

from datetime import date as DateType, datetime, time
from typing import Optional, List
from uuid import UUID
from pydantic import BaseModel, Field

from resto_booking.models.reservation import ServiceType


class ScheduleEntry(BaseModel):
    """One weekday + service of the weekly schedule"""
    day_of_week: int = Field(..., ge=0, le=6)  # 0 = Monday
    service_type: ServiceType
    is_open: bool = False
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    max_covers: Optional[int] = Field(None, ge=1)
    max_reservations: Optional[int] = Field(None, ge=1)


class ScheduleBulkUpdate(BaseModel):
    """Upsert of several schedule entries"""
    entries: List[ScheduleEntry]


class ScheduleResponse(ScheduleEntry):
    id: UUID
    restaurant_id: UUID

    class Config:
        from_attributes = True


class BlockCreate(BaseModel):
    """Create block request"""
    date: DateType
    service_type: Optional[ServiceType] = None
    table_id: Optional[UUID] = None
    reason: Optional[str] = None


class BlockResponse(BaseModel):
    """Block response"""
    id: UUID
    restaurant_id: UUID
    date: DateType
    service_type: Optional[ServiceType]
    table_id: Optional[UUID]
    reason: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True
