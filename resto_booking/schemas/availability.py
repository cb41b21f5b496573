"""Availability and calendar schemas"""

from typing import Optional, List, Dict
from pydantic import BaseModel

from resto_booking.schemas.reservation import ReservationResponse


class AvailabilityResponse(BaseModel):
    """isBookable result"""
    date: str
    service_type: str
    guests_count: int
    accepted: bool
    reason: Optional[str] = None
    message: Optional[str] = None
    remaining_seats: Optional[int] = None
    remaining_reservations: Optional[int] = None
    free_tables: int = 0
    free_seats: int = 0


class SlotsResponse(BaseModel):
    """Start times offered to diners"""
    date: str
    service_type: str
    slots: List[str] = []


class DayCountsResponse(BaseModel):
    midi: int = 0
    soir: int = 0
    total: int = 0


class CalendarResponse(BaseModel):
    """Reservation counts per day and service for one month"""
    year: int
    month: int
    include_canceled: bool
    days: Dict[str, DayCountsResponse]


class DayDetailResponse(BaseModel):
    """Reservations of one day"""
    date: str
    items: List[ReservationResponse]
    total_guests: int
