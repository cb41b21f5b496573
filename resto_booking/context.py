"""Explicit per-request context passed into booking operations"""

from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from resto_booking.models.user import UserRole


@dataclass(frozen=True)
class RequestContext:
    """Who is acting, and on which restaurant"""
    restaurant_id: UUID
    user_id: Optional[UUID] = None
    role: Optional[UserRole] = None
    actor_name: Optional[str] = None

    @property
    def actor_type(self) -> str:
        if self.user_id:
            return "user"
        return "system" if self.actor_name == "system" else "public"

    @classmethod
    def system(cls, restaurant_id: UUID) -> "RequestContext":
        return cls(restaurant_id=restaurant_id, actor_name="system")
