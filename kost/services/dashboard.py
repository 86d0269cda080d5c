"""
Period rollups over invoices and the cash ledger.

Only ``confirmed`` ledger rows count toward any total. A ledger row belongs to a
period when its ``expense_date`` starts with ``YYYY-MM``.
"""
from typing import Dict, List, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from kost.core.period import validate_period
from kost.models.expense import Expense
from kost.models.invoice import Invoice
from kost.models.room import Room
from kost.models.tenant import Tenant


def _confirmed_in_period(property_id: str, period: str):
    return (
        Expense.property_id == property_id,
        Expense.expense_date.like(f"{period}%"),
        Expense.status == "confirmed",
    )


def cash_totals(db: Session, property_id: str, period: str) -> Tuple[int, int]:
    """(income_total, expense_total) of confirmed ledger rows in the period."""
    rows = (
        db.query(Expense.type, func.coalesce(func.sum(Expense.amount), 0))
        .filter(*_confirmed_in_period(property_id, period))
        .group_by(Expense.type)
        .all()
    )
    totals = {entry_type: int(total) for entry_type, total in rows}
    return totals.get("income", 0), totals.get("expense", 0)


def expense_breakdown(db: Session, property_id: str, period: str) -> List[dict]:
    total = func.sum(Expense.amount).label("total")
    rows = (
        db.query(Expense.category, total)
        .filter(*_confirmed_in_period(property_id, period), Expense.type == "expense")
        .group_by(Expense.category)
        .order_by(total.desc(), Expense.category)
        .all()
    )
    return [{"category": category, "total": int(amount)} for category, amount in rows]


def ledger_breakdown(db: Session, property_id: str, period: str) -> List[dict]:
    """Per (type, category) totals and counts; used by the bot's monthly report."""
    total = func.sum(Expense.amount).label("total")
    rows = (
        db.query(Expense.type, Expense.category, total, func.count(Expense.id))
        .filter(*_confirmed_in_period(property_id, period))
        .group_by(Expense.type, Expense.category)
        .order_by(Expense.type, total.desc())
        .all()
    )
    return [
        {"type": entry_type, "category": category, "total": int(amount), "count": count}
        for entry_type, category, amount, count in rows
    ]


def _tenant_invoices(db: Session, property_id: str, period: str, status: str) -> List[dict]:
    rows = (
        db.query(Invoice, Tenant.name, Room.room_no)
        .join(Tenant, Tenant.id == Invoice.tenant_id)
        .join(Room, Room.id == Invoice.room_id)
        .filter(Invoice.property_id == property_id, Invoice.period == period, Invoice.status == status)
        .order_by(Room.room_no)
        .all()
    )
    result = []
    for invoice, name, room_no in rows:
        line = {
            "tenant_id": invoice.tenant_id,
            "name": name,
            "room_no": room_no,
            "invoice_id": invoice.id,
            "amount": invoice.amount,
        }
        if status == "paid":
            line["paid_at"] = invoice.paid_at
        result.append(line)
    return result


def arrears(db: Session, property_id: str, period: str) -> List[dict]:
    """
    Tenants with unpaid invoices strictly before ``period``.

    Relative to the viewed period, not to today: viewing an old month shows the
    arrears as they stood then (minus anything paid since).
    """
    oldest = func.min(Invoice.period).label("oldest_period")
    rows = (
        db.query(
            Invoice.tenant_id,
            Tenant.name,
            Room.room_no,
            oldest,
            func.sum(Invoice.amount).label("total_owed"),
        )
        .join(Tenant, Tenant.id == Invoice.tenant_id)
        .join(Room, Room.id == Tenant.room_id)
        .filter(
            Invoice.property_id == property_id,
            Invoice.period < period,
            Invoice.status == "unpaid",
        )
        .group_by(Invoice.tenant_id, Tenant.name, Room.room_no)
        .order_by(oldest, Room.room_no)
        .all()
    )
    return [
        {
            "tenant_id": tenant_id,
            "name": name,
            "room_no": room_no,
            "oldest_period": oldest_period,
            "total_owed": int(total_owed),
        }
        for tenant_id, name, room_no, oldest_period, total_owed in rows
    ]


def build_dashboard(db: Session, property_id: str, period: str) -> dict:
    validate_period(period)
    income_total, expense_total = cash_totals(db, property_id, period)
    return {
        "period": period,
        "income_total": income_total,
        "expense_total": expense_total,
        "net_total": income_total - expense_total,
        "expense_breakdown": expense_breakdown(db, property_id, period),
        "unpaid_tenants": _tenant_invoices(db, property_id, period, "unpaid"),
        "paid_tenants": _tenant_invoices(db, property_id, period, "paid"),
        "nunggak_tenants": arrears(db, property_id, period),
    }


def expense_report(db: Session, property_id: str, periods: List[str]) -> dict:
    """Confirmed expense totals per period, split by category, for the given periods."""
    if not periods:
        return {"data": [], "categories": []}

    month = func.substr(Expense.expense_date, 1, 7)
    rows = (
        db.query(month.label("period"), Expense.category, func.sum(Expense.amount))
        .filter(
            Expense.property_id == property_id,
            Expense.status == "confirmed",
            Expense.type == "expense",
            month.in_(periods),
        )
        .group_by(month, Expense.category)
        .order_by(month, Expense.category)
        .all()
    )

    by_period: Dict[str, Dict[str, int]] = {}
    categories: List[str] = []
    for row_period, category, amount in rows:
        by_period.setdefault(row_period, {})[category] = int(amount)
        if category not in categories:
            categories.append(category)

    data = []
    for p in periods:
        cats = by_period.get(p, {})
        data.append({"period": p, "total": sum(cats.values()), "categories": cats})
    return {"data": data, "categories": categories}
