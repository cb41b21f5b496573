"""Back-office accounts: super admins, restaurant owners and floor staff"""

import uuid
from datetime import datetime
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Enum
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
import enum

from resto_booking.database import Base


class UserRole(str, enum.Enum):
    SUPER_ADMIN = "super_admin"
    RESTAURANT_ADMIN = "restaurant_admin"
    STAFF = "staff"


ROLE_LEVELS = {
    UserRole.STAFF: 1,
    UserRole.RESTAURANT_ADMIN: 2,
    UserRole.SUPER_ADMIN: 3,
}


class User(Base):
    """A login attached to one restaurant (none for super admins)"""
    __tablename__ = "users"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    restaurant_id = Column(UUID(as_uuid=True), ForeignKey("restaurants.id"))

    email = Column(String(255), unique=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    full_name = Column(String(255))
    phone = Column(String(20))

    role = Column(Enum(UserRole), default=UserRole.STAFF)
    is_active = Column(Boolean, default=True)
    is_verified = Column(Boolean, default=False)

    # Maintained by the billing provider
    subscription_status = Column(String(20))  # active, past_due, canceled
    subscription_end_date = Column(DateTime)

    refresh_token = Column(String(500))
    last_login = Column(DateTime)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    restaurant = relationship("Restaurant", back_populates="users")

    @property
    def display_name(self) -> str:
        """Name written to the audit trail"""
        return self.full_name or self.email

    def has_permission(self, required_role: UserRole) -> bool:
        return ROLE_LEVELS.get(self.role, 0) >= ROLE_LEVELS.get(required_role, 0)

    def can_access(self, restaurant_id) -> bool:
        """Super admins see every restaurant, everyone else only their own"""
        return self.role == UserRole.SUPER_ADMIN or self.restaurant_id == restaurant_id
