"""
Monthly rent invoicing.

generate_invoices is idempotent per (tenant, period): tenants that already hold
an invoice for the period are skipped, so a repeat call only tops up tenants who
became active since. The whole batch is written in one transaction.

record_payment is the single state transition of an invoice (unpaid -> paid).
The status flip is a conditional UPDATE, so of two concurrent payments for the
same invoice exactly one succeeds.
"""
import logging
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from kost.core.errors import Conflict, NotFound
from kost.core.period import invoice_number, invoice_sequence, validate_period
from kost.core.utils import generate_id
from kost.models.invoice import Invoice
from kost.models.payment import Payment
from kost.models.room import Room
from kost.models.tenant import Tenant

logger = logging.getLogger(__name__)


def generate_invoices(db: Session, property_id: str, period: str) -> List[dict]:
    """
    Create the missing invoices for ``period`` and return them.

    Raises:
        ValidationFailed: if the period is malformed
        Conflict: if a concurrent generation claimed the same tenant or number first
    """
    validate_period(period)

    active = (
        db.query(Tenant, Room)
        .join(Room, Room.id == Tenant.room_id)
        .filter(Tenant.property_id == property_id, Tenant.is_active.is_(True))
        .order_by(Room.room_no, Tenant.id)
        .all()
    )

    existing_rows = (
        db.query(Invoice.tenant_id, Invoice.invoice_no)
        .filter(Invoice.property_id == property_id, Invoice.period == period)
        .all()
    )
    already_invoiced = {row.tenant_id for row in existing_rows}
    # continue after the highest number ever issued, gaps included
    seq = max((invoice_sequence(row.invoice_no) for row in existing_rows), default=0) + 1

    created: List[dict] = []
    for tenant, room in active:
        if tenant.id in already_invoiced:
            continue
        invoice = Invoice(
            id=generate_id("inv"),
            property_id=property_id,
            tenant_id=tenant.id,
            room_id=room.id,
            period=period,
            invoice_no=invoice_number(period, seq),
            amount=room.monthly_rate,
            status="unpaid",
        )
        seq += 1
        db.add(invoice)
        created.append({
            "id": invoice.id,
            "invoice_no": invoice.invoice_no,
            "tenant_id": tenant.id,
            "tenant_name": tenant.name,
            "room_no": room.room_no,
            "amount": invoice.amount,
        })

    if not created:
        return created

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning("Concurrent invoice generation for %s/%s; batch rolled back", property_id, period)
        raise Conflict("Invoices for this period are being generated by another request; retry")

    logger.info("Generated %s invoices for %s/%s", len(created), property_id, period)
    return created


def _invoice_rows(db: Session, property_id: str, *filters):
    return (
        db.query(Invoice, Tenant, Room)
        .join(Tenant, Tenant.id == Invoice.tenant_id)
        .join(Room, Room.id == Invoice.room_id)
        .filter(Invoice.property_id == property_id, *filters)
        .order_by(Room.room_no)
        .all()
    )


def list_invoices(db: Session, property_id: str, period: str) -> List[dict]:
    validate_period(period)
    return [
        {
            "id": inv.id,
            "tenant_id": inv.tenant_id,
            "room_id": inv.room_id,
            "tenant_name": tenant.name,
            "move_in_date": tenant.move_in_date,
            "room_no": room.room_no,
            "period": inv.period,
            "invoice_no": inv.invoice_no,
            "amount": inv.amount,
            "status": inv.status,
            "paid_at": inv.paid_at,
        }
        for inv, tenant, room in _invoice_rows(db, property_id, Invoice.period == period)
    ]


def unpaid_for_period(db: Session, property_id: str, period: str) -> List[dict]:
    rows = _invoice_rows(db, property_id, Invoice.period == period, Invoice.status == "unpaid")
    return [
        {"tenant_id": inv.tenant_id, "name": tenant.name, "room_no": room.room_no, "amount": inv.amount}
        for inv, tenant, room in rows
    ]


def record_payment(
    db: Session,
    property_id: str,
    *,
    invoice_id: str,
    amount: int,
    method: str,
    created_by: str,
    proof_key: Optional[str] = None,
    notes: Optional[str] = None,
    paid_at: Optional[str] = None,
) -> Tuple[Payment, Invoice]:
    """
    Record the payment of an unpaid invoice.

    Raises:
        NotFound: if the invoice does not exist in this property
        Conflict: if the invoice is already paid
    """
    invoice = (
        db.query(Invoice)
        .filter(Invoice.id == invoice_id, Invoice.property_id == property_id)
        .first()
    )
    if invoice is None:
        raise NotFound("Invoice not found")
    if invoice.status == "paid":
        raise Conflict("Invoice already paid")

    paid_at = paid_at or datetime.now(timezone.utc).isoformat()

    flipped = (
        db.query(Invoice)
        .filter(Invoice.id == invoice_id, Invoice.status == "unpaid")
        .update({"status": "paid", "paid_at": paid_at}, synchronize_session=False)
    )
    if flipped != 1:
        db.rollback()
        raise Conflict("Invoice already paid")

    payment = Payment(
        id=generate_id("pay"),
        invoice_id=invoice_id,
        amount=amount,
        method=method,
        proof_key=proof_key,
        notes=notes,
        created_by=created_by,
    )
    db.add(payment)
    db.commit()
    db.refresh(invoice)
    db.refresh(payment)
    logger.info("Invoice %s paid (%s %s)", invoice.invoice_no, method, amount)
    return payment, invoice
