"""Table schemas"""

from datetime import datetime
from typing import Optional
from uuid import UUID
from pydantic import BaseModel, Field

from resto_booking.models.table import TableZone


class TableCreate(BaseModel):
    """Create table request"""
    name: str
    capacity: int = Field(..., ge=1)
    zone: TableZone = TableZone.SALLE
    is_active: bool = True
    is_joinable: bool = False


class TableUpdate(BaseModel):
    """Update table request"""
    name: Optional[str] = None
    capacity: Optional[int] = Field(None, ge=1)
    zone: Optional[TableZone] = None
    is_active: Optional[bool] = None
    is_joinable: Optional[bool] = None


class TableResponse(BaseModel):
    """Table response"""
    id: UUID
    restaurant_id: UUID
    name: str
    capacity: int
    zone: TableZone
    is_active: bool
    is_joinable: bool
    created_at: datetime

    class Config:
        from_attributes = True
