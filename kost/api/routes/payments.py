from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from kost.api.deps import get_db, get_property_id
from kost.core.audit import log_audit
from kost.core.auth import User, get_current_user
from kost.core.google_sheets import CASH_IN, mirror_payment
from kost.schemas.payment import PaymentCreate, PaymentOut
from kost.services.invoicing import record_payment
from kost.services.property_settings import sheets_config_for

router = APIRouter(prefix="/payments", tags=["payments"])


@router.post("", response_model=PaymentOut, response_model_exclude_none=True, status_code=201)
def create_payment(
    payload: PaymentCreate,
    db: Session = Depends(get_db),
    property_id: str = Depends(get_property_id),
    current_user: User = Depends(get_current_user),
):
    """
    Mark an unpaid invoice as paid.
    404 if the invoice is unknown, 409 if it is already paid. A Sheets mirror
    failure is reported in ``warning``; the payment stays recorded.
    """
    payment, invoice = record_payment(
        db,
        property_id,
        invoice_id=payload.invoice_id,
        amount=payload.amount,
        method=payload.method,
        created_by=current_user.id,
        proof_key=payload.proof_key,
        notes=payload.notes,
        paid_at=payload.paid_at,
    )
    log_audit(
        db,
        actor=current_user,
        action="paid",
        entity_type="invoice",
        entity_id=invoice.id,
        property_id=property_id,
        description=f"{invoice.invoice_no} paid {payment.amount} via {payment.method}",
    )

    warning = None
    config = sheets_config_for(db, property_id)
    if config is not None:
        tenant_name = invoice.tenant.name if invoice.tenant else ""
        room_no = invoice.room.room_no if invoice.room else 0
        warning = mirror_payment(
            config,
            payment_row={
                "date_paid": invoice.paid_at,
                "period": invoice.period,
                "invoice_no": invoice.invoice_no,
                "tenant_name": tenant_name,
                "room_no": room_no,
                "amount": payment.amount,
                "method": payment.method,
                "notes": payment.notes or "",
                "created_by": current_user.email,
            },
            cash_row={
                "date": invoice.paid_at,
                "type": CASH_IN,
                "description": f"Pembayaran Kost: {tenant_name or 'Unknown'} (Kamar {room_no or '?'}) {invoice.period}",
                "amount": payment.amount,
                "method": payment.method,
                "status": "paid",
                "created_by": current_user.email,
                "notes": payment.notes or "",
            },
        )

    return {
        "payment_id": payment.id,
        "invoice_id": invoice.id,
        "status": invoice.status,
        "paid_at": invoice.paid_at,
        "warning": warning,
    }
