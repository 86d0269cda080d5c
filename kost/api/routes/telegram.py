from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from kost.api.deps import get_db, get_property_id
from kost.core.auth import ROLE_OWNER, User, require_role
from kost.core.config import settings
from kost.core.telegram import TelegramClient
from kost.services.telegram_bot import KostBot

router = APIRouter(prefix="/telegram", tags=["telegram"])


@router.post("/webhook")
async def telegram_webhook(
    request: Request,
    db: Session = Depends(get_db),
    property_id: str = Depends(get_property_id),
):
    """Webhook target (no auth). Always answers ok so Telegram does not redeliver."""
    if not settings.TELEGRAM_BOT_TOKEN:
        return {"ok": True}
    try:
        update = await request.json()
    except ValueError:
        return {"ok": True}
    KostBot(db, TelegramClient(settings.TELEGRAM_BOT_TOKEN), property_id).handle_update(update)
    return {"ok": True}


@router.post("/setup")
def telegram_setup(
    request: Request,
    current_user: User = Depends(require_role(ROLE_OWNER)),
):
    client = TelegramClient(settings.TELEGRAM_BOT_TOKEN)
    webhook_url = f"{str(request.base_url).rstrip('/')}/api/telegram/webhook"
    return {"webhook_url": webhook_url, "telegram_response": client.set_webhook(webhook_url)}
