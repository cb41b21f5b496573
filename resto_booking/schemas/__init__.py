"""Pydantic schemas for request/response validation"""

from resto_booking.schemas.auth import (
    Token,
    RefreshRequest,
    UserCreate,
    UserResponse,
)
from resto_booking.schemas.restaurant import (
    RestaurantCreate,
    RestaurantUpdate,
    RestaurantResponse,
)
from resto_booking.schemas.table import (
    TableCreate,
    TableUpdate,
    TableResponse,
)
from resto_booking.schemas.schedule import (
    ScheduleEntry,
    ScheduleBulkUpdate,
    ScheduleResponse,
    BlockCreate,
    BlockResponse,
)
from resto_booking.schemas.reservation import (
    PublicBookingCreate,
    PublicBookingResponse,
    ReservationCreate,
    ReservationUpdate,
    ReservationResponse,
    ReservationListResponse,
    StatusChange,
    TableReassignment,
    AutoAssignRequest,
    AssignmentResponse,
)
from resto_booking.schemas.availability import (
    AvailabilityResponse,
    SlotsResponse,
    CalendarResponse,
    DayCountsResponse,
    DayDetailResponse,
)

__all__ = [
    "Token",
    "RefreshRequest",
    "UserCreate",
    "UserResponse",
    "RestaurantCreate",
    "RestaurantUpdate",
    "RestaurantResponse",
    "TableCreate",
    "TableUpdate",
    "TableResponse",
    "ScheduleEntry",
    "ScheduleBulkUpdate",
    "ScheduleResponse",
    "BlockCreate",
    "BlockResponse",
    "PublicBookingCreate",
    "PublicBookingResponse",
    "ReservationCreate",
    "ReservationUpdate",
    "ReservationResponse",
    "ReservationListResponse",
    "StatusChange",
    "TableReassignment",
    "AutoAssignRequest",
    "AssignmentResponse",
    "AvailabilityResponse",
    "SlotsResponse",
    "CalendarResponse",
    "DayCountsResponse",
    "DayDetailResponse",
]
