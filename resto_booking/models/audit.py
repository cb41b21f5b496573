"""Audit log model"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, ForeignKey, JSON, Index
from sqlalchemy.dialects.postgresql import UUID

from resto_booking.database import Base


class AuditLog(Base):
    """One back-office action on a reservation, table, schedule or block"""
    __tablename__ = "audit_logs"
    __table_args__ = (
        Index("ix_audit_logs_resource", "resource_type", "resource_id"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    restaurant_id = Column(UUID(as_uuid=True), ForeignKey("restaurants.id"), index=True)

    # Who acted: a staff user, a diner booking online, or a scheduled job
    actor_id = Column(UUID(as_uuid=True))
    actor_type = Column(String(50))  # user, public, system
    actor_name = Column(String(255))

    action = Column(String(100), nullable=False)  # create, confirm, cancel, move, delete...
    resource_type = Column(String(50), default="reservation")
    resource_id = Column(UUID(as_uuid=True))

    data_json = Column(JSON)  # {"before": {...}, "after": {...}}

    created_at = Column(DateTime, default=datetime.utcnow)

    @property
    def before(self) -> dict:
        return (self.data_json or {}).get("before", {})

    @property
    def after(self) -> dict:
        return (self.data_json or {}).get("after", {})
