import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from kost.api.deps import get_db, get_property_id
from kost.core.auth import ELEVATED_ROLES, User, require_role
from kost.core.period import current_period
from kost.schemas.invoice import RemindersOut
from kost.services.invoicing import unpaid_for_period

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cron", tags=["cron"])


@router.get("/reminders", response_model=RemindersOut)
def plan_reminders(
    db: Session = Depends(get_db),
    property_id: str = Depends(get_property_id),
    current_user: User = Depends(require_role(*ELEVATED_ROLES)),
):
    """Lists who would be reminded for the current month. Nothing is sent yet."""
    period = current_period()
    unpaid = unpaid_for_period(db, property_id, period)
    logger.info("[CRON] %s unpaid invoices for %s", len(unpaid), period)
    return {"period": period, "planned_reminders": len(unpaid), "tenants": unpaid}
