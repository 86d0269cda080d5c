from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from kost.api.deps import get_db, get_property_id
from kost.core.audit import log_audit
from kost.core.auth import User, get_current_user
from kost.core.period import current_period, validate_period
from kost.schemas.invoice import GenerateInvoicesOut, InvoiceListOut
from kost.services.invoicing import generate_invoices, list_invoices

router = APIRouter(prefix="/invoices", tags=["invoices"])


@router.get("", response_model=InvoiceListOut)
def get_invoices(
    period: Optional[str] = Query(None, description="YYYY-MM; defaults to the current month"),
    db: Session = Depends(get_db),
    property_id: str = Depends(get_property_id),
    current_user: User = Depends(get_current_user),
):
    period = validate_period(period or current_period())
    return {"period": period, "invoices": list_invoices(db, property_id, period)}


@router.post("/generate", response_model=GenerateInvoicesOut, status_code=201)
def generate(
    period: Optional[str] = Query(None, description="YYYY-MM; defaults to the current month"),
    db: Session = Depends(get_db),
    property_id: str = Depends(get_property_id),
    current_user: User = Depends(get_current_user),
):
    """
    Ensure every active tenant has an invoice for the period.
    Safe to repeat: tenants already invoiced are skipped.
    """
    period = validate_period(period or current_period())
    created = generate_invoices(db, property_id, period)
    if created:
        log_audit(
            db,
            actor=current_user,
            action="generated",
            entity_type="invoice",
            entity_id=period,
            property_id=property_id,
            description=f"{len(created)} invoices generated for {period}",
        )
    return {"period": period, "created_count": len(created), "invoices": created}
