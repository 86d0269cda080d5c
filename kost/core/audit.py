from typing import Optional

from sqlalchemy.orm import Session

from kost.core.auth import User
from kost.models.audit_log import AuditLog

# Actor recorded for writes that arrive without a logged-in user
BOT_ACTOR = User(user_id="telegram_bot", email="telegram_bot", role="bot")


def log_audit(
    db: Session,
    *,
    actor: User,
    action: str,
    entity_type: str,
    entity_id: str,
    source: str = "api",
    property_id: Optional[str] = None,
    description: Optional[str] = None,
) -> AuditLog:
    log = AuditLog(
        actor_id=actor.id,
        actor_email=actor.email,
        actor_role=actor.role,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        source=source,
        property_id=property_id,
        description=description,
    )
    db.add(log)
    db.commit()
    db.refresh(log)
    return log
