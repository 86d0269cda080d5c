from datetime import datetime
from typing import Annotated, List, Literal, Optional

from pydantic import AfterValidator, BaseModel, Field

from kost.core.period import is_valid_date
from kost.core.transactions import ReceiptItem

Category = Literal["listrik", "air", "wifi", "kebersihan", "perbaikan", "gaji", "modal", "lainnya"]
Method = Literal["transfer", "cash", "other"]
EntryType = Literal["income", "expense"]

DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"


def _calendar_day(value: str) -> str:
    if not is_valid_date(value):
        raise ValueError("Not a calendar date")
    return value


CalendarDate = Annotated[str, Field(pattern=DATE_PATTERN), AfterValidator(_calendar_day)]


class ExpenseCreate(BaseModel):
    expense_date: CalendarDate
    category: Category
    amount: int = Field(..., ge=1)
    method: Method
    receipt_key: Optional[str] = None
    notes: Optional[str] = Field(None, max_length=500)
    status: Literal["draft", "confirmed"] = "confirmed"
    type: EntryType = "expense"


class ExpenseUpdate(BaseModel):
    """Field overrides, used both by PATCH and by confirm."""
    category: Optional[Category] = None
    amount: Optional[int] = Field(None, ge=1)
    method: Optional[Method] = None
    expense_date: Optional[CalendarDate] = None
    notes: Optional[str] = Field(None, max_length=500)
    type: Optional[EntryType] = None


class ExpenseOut(BaseModel):
    id: str
    property_id: str
    expense_date: str
    category: str
    amount: int
    method: str
    status: str
    type: str
    receipt_key: Optional[str] = None
    notes: Optional[str] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    warning: Optional[str] = None

    class Config:
        from_attributes = True


class ExpenseListOut(BaseModel):
    period: str
    total_expense: int
    total_income: int
    expenses: List[ExpenseOut]


class ScanResultOut(BaseModel):
    type: EntryType
    category: Category
    amount: int
    store: Optional[str] = None
    date: Optional[str] = None
    items: List[ReceiptItem] = []
    notes: str = ""
    confidence: str = "low"


class OcrReceiptRequest(BaseModel):
    receipt_key: str = Field(..., min_length=1)
    expense_date: Optional[CalendarDate] = None


class OcrReceiptOut(BaseModel):
    expense_id: str
    status: str
    expense_date: str
    category: str
    amount: int
    merchant_name: Optional[str] = None
    confidence: str
    notes: Optional[str] = None
