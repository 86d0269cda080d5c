from typing import Literal

from pydantic import BaseModel, Field


class PresignRequest(BaseModel):
    type: Literal["payment_proof", "receipt"]
    period: str = Field(..., pattern=r"^\d{4}-(0[1-9]|1[0-2])$")
    content_type: Literal["image/jpeg", "image/png", "application/pdf"]


class PresignOut(BaseModel):
    object_key: str
    upload_url: str
    method: str
    expires_in: int


class UploadOut(BaseModel):
    object_key: str
    size: int


class DriveUploadOut(BaseModel):
    url: str
