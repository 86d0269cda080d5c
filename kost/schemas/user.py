from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, EmailStr, Field


class UserCreate(BaseModel):
    email: EmailStr
    name: Optional[str] = None
    password: str = Field(..., min_length=6)
    # admin_utama accounts are never created through the API
    role: Literal["admin", "petugas"]


class UserOut(BaseModel):
    id: str
    email: str
    name: Optional[str] = None
    role: str
    is_active: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
