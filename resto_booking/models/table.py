"""Dining table model"""

import enum
import uuid
from datetime import datetime
from sqlalchemy import Column, String, Integer, Boolean, DateTime, ForeignKey, Enum
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from resto_booking.database import Base


class TableZone(str, enum.Enum):
    """Physical area of the dining room"""
    SALLE = "salle"
    TERRASSE = "terrasse"
    SALON_PRIVE = "salon_prive"


class Table(Base):
    """A physical table that reservations are allocated to"""
    __tablename__ = "tables"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    restaurant_id = Column(UUID(as_uuid=True), ForeignKey("restaurants.id"), nullable=False, index=True)
    name = Column(String(50), nullable=False)
    capacity = Column(Integer, nullable=False)
    zone = Column(Enum(TableZone), default=TableZone.SALLE, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    is_joinable = Column(Boolean, default=False, nullable=False)  # may be combined with other tables
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    restaurant = relationship("Restaurant", back_populates="tables")
