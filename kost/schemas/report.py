from typing import Dict, List, Optional

from pydantic import BaseModel


class CategoryTotal(BaseModel):
    category: str
    total: int


class UnpaidTenant(BaseModel):
    tenant_id: str
    name: str
    room_no: int
    invoice_id: str
    amount: int


class PaidTenant(UnpaidTenant):
    paid_at: Optional[str] = None


class ArrearsTenant(BaseModel):
    tenant_id: str
    name: str
    room_no: int
    oldest_period: str
    total_owed: int


class DashboardOut(BaseModel):
    period: str
    income_total: int
    expense_total: int
    net_total: int
    expense_breakdown: List[CategoryTotal]
    unpaid_tenants: List[UnpaidTenant]
    paid_tenants: List[PaidTenant]
    nunggak_tenants: List[ArrearsTenant]


class ReportRow(BaseModel):
    period: str
    total: int
    categories: Dict[str, int]


class ReportOut(BaseModel):
    data: List[ReportRow]
    categories: List[str]
