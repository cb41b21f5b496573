"""Database models"""

from resto_booking.models.restaurant import Restaurant
from resto_booking.models.reservation import Reservation, ReservationStatus, ServiceType
from resto_booking.models.table import Table, TableZone
from resto_booking.models.schedule import Schedule, Block
from resto_booking.models.audit import AuditLog
from resto_booking.models.user import User, UserRole

__all__ = [
    "Restaurant",
    "Reservation",
    "ReservationStatus",
    "ServiceType",
    "Table",
    "TableZone",
    "Schedule",
    "Block",
    "AuditLog",
    "User",
    "UserRole",
]
