import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from kost.api.deps import get_db, get_property_id
from kost.core.ai_scan import resolve_groq_key, scan_receipt_image
from kost.core.audit import log_audit
from kost.core.auth import User, get_current_user
from kost.core.errors import ValidationFailed
from kost.core.period import today_iso
from kost.core.storage import get_object
from kost.schemas.expense import OcrReceiptOut, OcrReceiptRequest
from kost.services import ledger
from kost.services.property_settings import get_property_settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/ocr", tags=["ocr"])


@router.post("/receipt", response_model=OcrReceiptOut, status_code=201)
def ocr_receipt(
    payload: OcrReceiptRequest,
    db: Session = Depends(get_db),
    property_id: str = Depends(get_property_id),
    current_user: User = Depends(get_current_user),
):
    """
    Read an uploaded receipt and save it as a draft expense for review.

    The model's category is coerced into the known set; a missing or
    non-positive amount is rejected before anything is written.
    """
    api_key = resolve_groq_key(get_property_settings(db, property_id))
    image, content_type = get_object(payload.receipt_key)
    tx = scan_receipt_image(image, content_type, api_key)

    if tx.amount <= 0:
        logger.info("OCR of %s returned no usable amount", payload.receipt_key)
        raise ValidationFailed("Jumlah tidak terbaca dari nota", {"amount": tx.amount})

    notes = tx.notes or f"OCR confidence: {tx.confidence}"
    expense = ledger.create_expense(
        db,
        property_id,
        created_by=current_user.id,
        expense_date=payload.expense_date or tx.date or today_iso(),
        category=tx.category,
        amount=tx.amount,
        method="other",
        receipt_key=payload.receipt_key,
        status="draft",
        type=tx.type,
        ocr_json=tx.model_dump_json(),
        notes=notes[:500],
    )
    log_audit(
        db,
        actor=current_user,
        action="created",
        entity_type="expense",
        entity_id=expense.id,
        source="ocr",
        property_id=property_id,
        description=f"Draft from receipt {payload.receipt_key}: {tx.category} {tx.amount}",
    )
    return {
        "expense_id": expense.id,
        "status": expense.status,
        "expense_date": expense.expense_date,
        "category": expense.category,
        "amount": expense.amount,
        "merchant_name": tx.store,
        "confidence": tx.confidence,
        "notes": expense.notes,
    }
