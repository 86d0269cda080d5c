"""
Cash ledger (the ``expenses`` table, which holds inflows and outflows).

Confirmed rows are mirrored to the cash sheet after the database commit; a
mirror failure is returned as a warning and never undoes the write.
"""
import logging
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from kost.core.errors import Conflict, NotFound, ValidationFailed
from kost.core.google_sheets import cash_label, mirror_cashflow
from kost.core.period import validate_period
from kost.core.utils import generate_id
from kost.models.expense import Expense
from kost.services.property_settings import sheets_config_for

logger = logging.getLogger(__name__)


def get_expense(db: Session, property_id: str, expense_id: str) -> Expense:
    expense = (
        db.query(Expense)
        .filter(Expense.id == expense_id, Expense.property_id == property_id)
        .first()
    )
    if expense is None:
        raise NotFound("Expense not found")
    return expense


def list_expenses(db: Session, property_id: str, period: str) -> Tuple[List[Expense], int, int]:
    """Rows of the period newest first, plus confirmed (total_expense, total_income)."""
    validate_period(period)
    rows = (
        db.query(Expense)
        .filter(Expense.property_id == property_id, Expense.expense_date.like(f"{period}%"))
        .order_by(Expense.expense_date.desc(), Expense.created_at.desc())
        .all()
    )
    total_expense = sum(e.amount for e in rows if e.status == "confirmed" and e.type == "expense")
    total_income = sum(e.amount for e in rows if e.status == "confirmed" and e.type == "income")
    return rows, total_expense, total_income


def mirror_expense(
    db: Session,
    expense: Expense,
    created_by: str,
    receipt_url_base: Optional[str] = None,
    description_prefix: str = "Cash",
) -> Optional[str]:
    config = sheets_config_for(db, expense.property_id)
    if config is None:
        return None
    receipt_url = f"{receipt_url_base}{expense.receipt_key}" if receipt_url_base and expense.receipt_key else None
    return mirror_cashflow(
        config,
        date=expense.expense_date,
        type=cash_label(expense.type),
        description=f"{description_prefix}: {expense.category} - {expense.notes or ''}".strip(),
        amount=expense.amount,
        method=expense.method,
        status="confirmed",
        created_by=created_by,
        notes=expense.notes or "",
        receipt_url=receipt_url,
    )


def create_expense(db: Session, property_id: str, *, created_by: str, **fields) -> Expense:
    if fields.get("amount", 0) <= 0:
        raise ValidationFailed("Invalid input", {"amount": "Must be a positive integer"})
    expense = Expense(id=generate_id("exp"), property_id=property_id, created_by=created_by, **fields)
    db.add(expense)
    db.commit()
    db.refresh(expense)
    logger.info("Ledger %s %s %s (%s)", expense.type, expense.category, expense.amount, expense.status)
    return expense


def update_expense(db: Session, property_id: str, expense_id: str, changes: dict) -> Expense:
    expense = get_expense(db, property_id, expense_id)
    if not changes:
        raise ValidationFailed("Nothing to update")
    for key, value in changes.items():
        setattr(expense, key, value)
    db.commit()
    db.refresh(expense)
    return expense


def confirm_expense(db: Session, property_id: str, expense_id: str, overrides: dict) -> Expense:
    """
    Move a draft row to confirmed, applying optional field overrides.

    Raises:
        NotFound: unknown id
        Conflict: the row is already confirmed
    """
    expense = get_expense(db, property_id, expense_id)
    if expense.status == "confirmed":
        raise Conflict("Expense already confirmed")

    for key, value in overrides.items():
        setattr(expense, key, value)
    if expense.amount is None or expense.amount <= 0:
        raise ValidationFailed("Invalid input", {"amount": "Must be a positive integer"})
    expense.status = "confirmed"
    db.commit()
    db.refresh(expense)
    return expense


def delete_expense(db: Session, property_id: str, expense_id: str) -> None:
    expense = get_expense(db, property_id, expense_id)
    db.delete(expense)
    db.commit()
