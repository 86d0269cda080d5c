"""
Cash ledger endpoints.

- any role: list, create, confirm a draft, scan a receipt photo (no persistence)
- admin_utama/admin: edit, delete
"""
import mimetypes
from typing import Optional

from fastapi import APIRouter, Body, Depends, File, Query, Request, UploadFile
from sqlalchemy.orm import Session

from kost.api.deps import get_db, get_property_id
from kost.core.ai_scan import ALLOWED_IMAGE_TYPES, resolve_groq_key, scan_receipt_image
from kost.core.audit import log_audit
from kost.core.auth import ELEVATED_ROLES, User, get_current_user, require_role
from kost.core.config import settings
from kost.core.errors import ValidationFailed
from kost.core.period import current_period, validate_period
from kost.schemas.expense import ExpenseCreate, ExpenseListOut, ExpenseOut, ExpenseUpdate, ScanResultOut
from kost.services import ledger
from kost.services.property_settings import get_property_settings

router = APIRouter(prefix="/expenses", tags=["expenses"])


def _receipt_url_base(request: Request) -> str:
    return f"{str(request.base_url).rstrip('/')}/api/uploads/"


@router.get("", response_model=ExpenseListOut)
def list_expenses(
    period: Optional[str] = Query(None, description="YYYY-MM; defaults to the current month"),
    db: Session = Depends(get_db),
    property_id: str = Depends(get_property_id),
    current_user: User = Depends(get_current_user),
):
    period = validate_period(period or current_period())
    rows, total_expense, total_income = ledger.list_expenses(db, property_id, period)
    return {"period": period, "total_expense": total_expense, "total_income": total_income, "expenses": rows}


@router.post("", response_model=ExpenseOut, status_code=201)
def create_expense(
    payload: ExpenseCreate,
    request: Request,
    db: Session = Depends(get_db),
    property_id: str = Depends(get_property_id),
    current_user: User = Depends(get_current_user),
):
    expense = ledger.create_expense(db, property_id, created_by=current_user.id, **payload.model_dump())
    log_audit(
        db,
        actor=current_user,
        action="created",
        entity_type="expense",
        entity_id=expense.id,
        property_id=property_id,
        description=f"{expense.type} {expense.category} {expense.amount} ({expense.status})",
    )

    warning = None
    if expense.status == "confirmed":
        warning = ledger.mirror_expense(db, expense, current_user.email, _receipt_url_base(request))
    return ExpenseOut.model_validate(expense).model_copy(update={"warning": warning})


@router.post("/scan-ai", response_model=ScanResultOut)
async def scan_receipt(
    file: UploadFile = File(..., description="Receipt photo (JPEG, PNG, WebP)"),
    db: Session = Depends(get_db),
    property_id: str = Depends(get_property_id),
    current_user: User = Depends(get_current_user),
):
    """Read a receipt photo into a suggested transaction. Nothing is saved."""
    content_type = file.content_type or ""
    if not content_type and file.filename:
        content_type = mimetypes.guess_type(file.filename)[0] or ""
    if content_type not in ALLOWED_IMAGE_TYPES:
        raise ValidationFailed(
            f"Invalid file type: {content_type or 'unknown'}",
            {"allowed": sorted(ALLOWED_IMAGE_TYPES)},
        )

    data = await file.read()
    if not data:
        raise ValidationFailed("File kosong")
    size_mb = len(data) / (1024 * 1024)
    if size_mb > settings.MAX_UPLOAD_SIZE_MB:
        raise ValidationFailed(f"Image too large: {size_mb:.1f} MB. Max size: {settings.MAX_UPLOAD_SIZE_MB} MB.")

    api_key = resolve_groq_key(get_property_settings(db, property_id))
    tx = scan_receipt_image(data, content_type, api_key)
    return tx.model_dump()


@router.post("/confirm/{expense_id}", response_model=ExpenseOut)
def confirm_expense(
    expense_id: str,
    request: Request,
    payload: Optional[ExpenseUpdate] = Body(None),
    db: Session = Depends(get_db),
    property_id: str = Depends(get_property_id),
    current_user: User = Depends(get_current_user),
):
    overrides = payload.model_dump(exclude_unset=True, exclude_none=True) if payload else {}
    expense = ledger.confirm_expense(db, property_id, expense_id, overrides)
    log_audit(
        db,
        actor=current_user,
        action="confirmed",
        entity_type="expense",
        entity_id=expense.id,
        property_id=property_id,
        description=f"{expense.type} {expense.category} {expense.amount} confirmed",
    )
    warning = ledger.mirror_expense(db, expense, current_user.email, _receipt_url_base(request))
    return ExpenseOut.model_validate(expense).model_copy(update={"warning": warning})


@router.patch("/{expense_id}", response_model=ExpenseOut)
def update_expense(
    expense_id: str,
    payload: ExpenseUpdate,
    db: Session = Depends(get_db),
    property_id: str = Depends(get_property_id),
    current_user: User = Depends(require_role(*ELEVATED_ROLES)),
):
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    expense = ledger.update_expense(db, property_id, expense_id, changes)
    log_audit(
        db,
        actor=current_user,
        action="updated",
        entity_type="expense",
        entity_id=expense.id,
        property_id=property_id,
        description=f"Expense updated: {', '.join(sorted(changes))}",
    )
    return expense


@router.delete("/{expense_id}")
def delete_expense(
    expense_id: str,
    db: Session = Depends(get_db),
    property_id: str = Depends(get_property_id),
    current_user: User = Depends(require_role(*ELEVATED_ROLES)),
):
    ledger.delete_expense(db, property_id, expense_id)
    log_audit(
        db,
        actor=current_user,
        action="deleted",
        entity_type="expense",
        entity_id=expense_id,
        property_id=property_id,
        description="Expense deleted",
    )
    return {"ok": True}
