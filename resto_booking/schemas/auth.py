"""Authentication and back-office user schemas"""

from datetime import datetime
from typing import Optional
from uuid import UUID
from pydantic import BaseModel, EmailStr, Field

from resto_booking.models.user import UserRole


class Token(BaseModel):
    """JWT pair returned by login and refresh"""
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int


class RefreshRequest(BaseModel):
    refresh_token: str


class UserCreate(BaseModel):
    """New back-office login; restaurant admins may only add staff to their own restaurant"""
    email: EmailStr
    password: str = Field(..., min_length=8)
    full_name: str = Field(..., min_length=1)
    phone: Optional[str] = None
    role: UserRole = UserRole.STAFF
    restaurant_id: Optional[UUID] = None


class UserResponse(BaseModel):
    id: UUID
    email: str
    full_name: Optional[str]
    phone: Optional[str]
    role: UserRole
    restaurant_id: Optional[UUID]
    is_active: bool
    created_at: datetime
    last_login: Optional[datetime]
    subscription_status: Optional[str] = None
    subscription_end_date: Optional[datetime] = None
    entitled: bool = False

    class Config:
        from_attributes = True
