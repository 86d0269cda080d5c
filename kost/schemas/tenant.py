from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from kost.schemas.expense import CalendarDate


class TenantCreate(BaseModel):
    room_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=100)
    wa_number: Optional[str] = Field(None, max_length=20)
    move_in_date: CalendarDate
    deposit_amount: int = Field(0, ge=0)


class TenantUpdate(BaseModel):
    room_id: Optional[str] = Field(None, min_length=1)
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    wa_number: Optional[str] = Field(None, max_length=20)
    move_in_date: Optional[CalendarDate] = None
    deposit_amount: Optional[int] = Field(None, ge=0)
    is_active: Optional[bool] = None


class TenantOut(BaseModel):
    id: str
    property_id: str
    room_id: str
    room_no: Optional[int] = None
    name: str
    wa_number: Optional[str] = None
    move_in_date: str
    deposit_amount: int
    is_active: bool
    move_out_date: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
