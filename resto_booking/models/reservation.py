"""Reservation model"""

import enum
import uuid
from datetime import datetime
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Text, Enum, JSON
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from resto_booking.database import Base


class ServiceType(str, enum.Enum):
    """Daily seating windows"""
    MIDI = "MIDI"
    SOIR = "SOIR"


class ReservationStatus(str, enum.Enum):
    """Reservation lifecycle states"""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELED = "canceled"
    NO_SHOW = "no_show"


class Reservation(Base):
    """Table reservations"""
    __tablename__ = "reservations"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    restaurant_id = Column(UUID(as_uuid=True), ForeignKey("restaurants.id"), nullable=False, index=True)
    reference = Column(String(32), nullable=False, index=True)

    # Guest information
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    phone = Column(String(30), nullable=False)
    email = Column(String(255))

    # Booking details
    guests_count = Column(Integer, nullable=False)
    date_time_start = Column(DateTime, nullable=False, index=True)  # UTC
    date_time_end = Column(DateTime, nullable=False)  # UTC
    service_type = Column(Enum(ServiceType), nullable=False)
    zone_preference = Column(String(50))
    comment = Column(Text)
    source = Column(String(20), default="online")  # online, manual

    # Lifecycle
    status = Column(Enum(ReservationStatus), default=ReservationStatus.PENDING, nullable=False)

    # Allocation: ordered list of table id strings
    table_ids = Column(JSON, default=list, nullable=False)
    released_table_ids = Column(JSON, default=list, nullable=False)

    # Optimistic concurrency token
    version = Column(Integer, nullable=False)

    # Metadata
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    restaurant = relationship("Restaurant", back_populates="reservations")

    __mapper_args__ = {"version_id_col": version}

    @property
    def is_active(self) -> bool:
        return self.status != ReservationStatus.CANCELED
