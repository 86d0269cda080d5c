from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class RoomCreate(BaseModel):
    room_no: int = Field(..., ge=1, le=99)
    monthly_rate: int = Field(..., ge=0)


class RoomUpdate(BaseModel):
    monthly_rate: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None


class BulkRateUpdate(BaseModel):
    monthly_rate: int = Field(..., gt=0)


class RoomOut(BaseModel):
    id: str
    property_id: str
    room_no: int
    monthly_rate: int
    is_active: bool
    tenant_id: Optional[str] = None  # current active tenant, if any
    tenant_name: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
