"""Reservation schemas"""

from datetime import datetime
from typing import Optional, List
from uuid import UUID
from pydantic import BaseModel, EmailStr, Field

from resto_booking.models.reservation import ReservationStatus, ServiceType


class GuestDetails(BaseModel):
    """Guest identity shared by booking requests"""
    first_name: str = Field(..., min_length=1)
    last_name: str = Field(..., min_length=1)
    phone: str = Field(..., min_length=4)
    email: Optional[EmailStr] = None
    comment: Optional[str] = None


class PublicBookingCreate(GuestDetails):
    """Diner booking request"""
    date_time_start: datetime
    service_type: ServiceType
    guests_count: int = Field(..., ge=1)
    zone_preference: Optional[str] = None


class ReservationCreate(GuestDetails):
    """Staff-entered reservation"""
    date_time_start: datetime
    service_type: ServiceType
    guests_count: int = Field(..., ge=1)
    status: ReservationStatus = ReservationStatus.CONFIRMED
    table_ids: List[UUID] = []
    zone_preference: Optional[str] = None
    auto_assign: bool = False


class ReservationUpdate(BaseModel):
    """Edit guest or booking details"""
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    comment: Optional[str] = None
    guests_count: Optional[int] = Field(None, ge=1)
    date_time_start: Optional[datetime] = None
    service_type: Optional[ServiceType] = None
    zone_preference: Optional[str] = None
    version: Optional[int] = None


class StatusChange(BaseModel):
    """Lifecycle transition request"""
    status: ReservationStatus
    version: Optional[int] = None
    auto_assign: bool = False


class TableReassignment(BaseModel):
    """Manual table override"""
    table_ids: List[UUID]
    version: Optional[int] = None


class AutoAssignRequest(BaseModel):
    version: Optional[int] = None


class ReservationResponse(BaseModel):
    """Reservation response"""
    id: UUID
    restaurant_id: UUID
    reference: str
    first_name: str
    last_name: str
    phone: str
    email: Optional[str]
    guests_count: int
    date_time_start: datetime
    date_time_end: datetime
    service_type: ServiceType
    status: ReservationStatus
    table_ids: List[UUID]
    released_table_ids: List[UUID] = []
    zone_preference: Optional[str]
    comment: Optional[str]
    source: Optional[str]
    version: int
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ReservationListResponse(BaseModel):
    """Paginated reservation list"""
    items: List[ReservationResponse]
    total: int
    page: int
    page_size: int


class AssignmentResponse(BaseModel):
    """Outcome of an assignment or reassignment"""
    ok: bool
    table_ids: List[UUID] = []
    reason: Optional[str] = None
    message: Optional[str] = None
    total_capacity: int = 0
    warnings: List[str] = []
    conflicting_table_ids: List[UUID] = []
    reservation: Optional[ReservationResponse] = None


class PublicBookingResponse(BaseModel):
    """Booking confirmation shown to the diner"""
    reference: str
    status: ReservationStatus
    date_time_start: datetime
    service_type: ServiceType
    guests_count: int
    table_assigned: bool
