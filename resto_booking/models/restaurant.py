"""Restaurant model and booking policy"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, Boolean, DateTime, Integer, JSON
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from resto_booking.database import Base


class Restaurant(Base):
    """Restaurant tenant with its booking policy"""
    __tablename__ = "restaurants"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    timezone = Column(String(50), default="Europe/Paris", nullable=False)
    is_active = Column(Boolean, default=True)

    # Booking policy
    auto_confirm_enabled = Column(Boolean, default=True, nullable=False)
    group_pending_threshold = Column(Integer, default=8, nullable=False)
    meal_duration_minutes = Column(Integer, default=90, nullable=False)
    slot_interval_minutes = Column(Integer, default=15, nullable=False)
    min_advance_minutes = Column(Integer, default=60, nullable=False)
    booking_window_days = Column(Integer, default=60, nullable=False)
    max_party_size = Column(Integer)  # None means no upper bound

    # Table allocation
    table_joining_enabled = Column(Boolean, default=False, nullable=False)
    max_tables_per_group = Column(Integer, default=3, nullable=False)
    zone_priority = Column(JSON)  # ["salle", "terrasse", "salon_prive"]; None uses the global default

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    tables = relationship("Table", back_populates="restaurant")
    schedules = relationship("Schedule", back_populates="restaurant")
    blocks = relationship("Block", back_populates="restaurant")
    reservations = relationship("Reservation", back_populates="restaurant")
    users = relationship("User", back_populates="restaurant")
