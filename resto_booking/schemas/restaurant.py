"""Restaurant schemas"""

from datetime import datetime
from typing import Optional, List
from uuid import UUID
from pydantic import BaseModel, Field


class RestaurantCreate(BaseModel):
    """Create restaurant request"""
    name: str
    timezone: Optional[str] = None


class RestaurantUpdate(BaseModel):
    """Update restaurant and booking policy"""
    name: Optional[str] = None
    timezone: Optional[str] = None
    is_active: Optional[bool] = None
    auto_confirm_enabled: Optional[bool] = None
    group_pending_threshold: Optional[int] = Field(None, ge=1)
    meal_duration_minutes: Optional[int] = Field(None, ge=15)
    slot_interval_minutes: Optional[int] = Field(None, ge=5)
    min_advance_minutes: Optional[int] = Field(None, ge=0)
    booking_window_days: Optional[int] = Field(None, ge=0)
    max_party_size: Optional[int] = Field(None, ge=1)
    table_joining_enabled: Optional[bool] = None
    max_tables_per_group: Optional[int] = Field(None, ge=2, le=4)
    zone_priority: Optional[List[str]] = None


class RestaurantResponse(BaseModel):
    """Restaurant response"""
    id: UUID
    name: str
    timezone: str
    is_active: bool
    auto_confirm_enabled: bool
    group_pending_threshold: int
    meal_duration_minutes: int
    slot_interval_minutes: int
    min_advance_minutes: int
    booking_window_days: int
    max_party_size: Optional[int]
    table_joining_enabled: bool
    max_tables_per_group: int
    zone_priority: Optional[List[str]]
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
