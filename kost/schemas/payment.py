from typing import Literal, Optional

from pydantic import BaseModel, Field


class PaymentCreate(BaseModel):
    invoice_id: str = Field(..., min_length=1)
    amount: int = Field(..., ge=1)
    method: Literal["transfer", "cash", "other"]
    proof_key: Optional[str] = None
    notes: Optional[str] = Field(None, max_length=500)
    paid_at: Optional[str] = None  # ISO timestamp; defaults to now


class PaymentOut(BaseModel):
    payment_id: str
    invoice_id: str
    status: str
    paid_at: str
    warning: Optional[str] = None
