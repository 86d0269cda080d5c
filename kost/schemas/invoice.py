from typing import List, Optional

from pydantic import BaseModel


class InvoiceOut(BaseModel):
    id: str
    tenant_id: str
    room_id: str
    tenant_name: Optional[str] = None
    move_in_date: Optional[str] = None
    room_no: Optional[int] = None
    period: str
    invoice_no: str
    amount: int
    status: str
    paid_at: Optional[str] = None


class InvoiceListOut(BaseModel):
    period: str
    invoices: List[InvoiceOut]


class GeneratedInvoice(BaseModel):
    id: str
    invoice_no: str
    tenant_id: str
    tenant_name: str
    room_no: int
    amount: int


class GenerateInvoicesOut(BaseModel):
    period: str
    created_count: int
    invoices: List[GeneratedInvoice]


class ReminderLine(BaseModel):
    tenant_id: str
    name: str
    room_no: int
    amount: int


class RemindersOut(BaseModel):
    period: str
    planned_reminders: int
    tenants: List[ReminderLine]
