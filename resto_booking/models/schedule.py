"""Weekly service schedule and closure blocks"""

import uuid
from datetime import datetime
from sqlalchemy import (
    Column, String, Integer, Boolean, Date, DateTime, Time, ForeignKey, Enum, UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from resto_booking.database import Base
from resto_booking.models.reservation import ServiceType


class Schedule(Base):
    """Opening hours and capacity ceilings for one weekday and service"""
    __tablename__ = "schedules"
    __table_args__ = (
        UniqueConstraint("restaurant_id", "day_of_week", "service_type", name="uq_schedule_slot"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    restaurant_id = Column(UUID(as_uuid=True), ForeignKey("restaurants.id"), nullable=False, index=True)
    day_of_week = Column(Integer, nullable=False)  # 0 = Monday ... 6 = Sunday
    service_type = Column(Enum(ServiceType), nullable=False)
    is_open = Column(Boolean, default=False, nullable=False)
    start_time = Column(Time)
    end_time = Column(Time)

    # Capacity ceilings; both None falls back to the seats of available tables
    max_covers = Column(Integer)
    max_reservations = Column(Integer)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    restaurant = relationship("Restaurant", back_populates="schedules")


class Block(Base):
    """Closure overriding the weekly schedule

    Without a table the whole service (or day, when service_type is None) is
    closed. With a table only that table is taken out of allocation.
    """
    __tablename__ = "blocks"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    restaurant_id = Column(UUID(as_uuid=True), ForeignKey("restaurants.id"), nullable=False, index=True)
    date = Column(Date, nullable=False, index=True)
    service_type = Column(Enum(ServiceType))
    table_id = Column(UUID(as_uuid=True), ForeignKey("tables.id"))
    reason = Column(String(255))
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    restaurant = relationship("Restaurant", back_populates="blocks")
