import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from kost.api.deps import get_db, get_property_id
from kost.core.audit import log_audit
from kost.core.auth import ELEVATED_ROLES, ROLE_OWNER, User, get_current_user, require_role
from kost.core.errors import ConfigError, UpstreamError, ValidationFailed
from kost.core.google_sheets import get_sheets_config, setup_sheet_headers
from kost.schemas.settings import SettingsFullOut, SettingsOut, SettingsUpdate
from kost.services.property_settings import get_property_settings, masked_settings

logger = logging.getLogger(__name__)

router = APIRouter(tags=["settings"])


@router.get("/settings", response_model=SettingsOut)
def get_settings(
    db: Session = Depends(get_db),
    property_id: str = Depends(get_property_id),
    current_user: User = Depends(get_current_user),
):
    """API keys masked to their first 8 characters; the service account only as a flag."""
    return masked_settings(get_property_settings(db, property_id))


@router.get("/settings/full", response_model=SettingsFullOut)
def get_settings_full(
    db: Session = Depends(get_db),
    property_id: str = Depends(get_property_id),
    current_user: User = Depends(require_role(ROLE_OWNER)),
):
    return get_property_settings(db, property_id)


@router.patch("/settings", response_model=SettingsOut)
def update_settings(
    payload: SettingsUpdate,
    db: Session = Depends(get_db),
    property_id: str = Depends(get_property_id),
    current_user: User = Depends(require_role(*ELEVATED_ROLES)),
):
    # explicit nulls are kept so a credential can be cleared
    data = payload.model_dump(exclude_unset=True)
    for key in ("default_monthly_rate", "default_deposit"):
        if data.get(key, 0) is None:
            del data[key]
    if not data:
        raise ValidationFailed("Nothing to update")

    row = get_property_settings(db, property_id)
    for k, v in data.items():
        setattr(row, k, v)
    db.commit()
    db.refresh(row)
    log_audit(
        db,
        actor=current_user,
        action="updated",
        entity_type="settings",
        entity_id=property_id,
        property_id=property_id,
        description=f"Settings updated: {', '.join(sorted(data))}",
    )
    return masked_settings(row)


@router.post("/sheets/setup-headers")
def sheets_setup_headers(
    db: Session = Depends(get_db),
    property_id: str = Depends(get_property_id),
    current_user: User = Depends(require_role(*ELEVATED_ROLES)),
):
    config = get_sheets_config(get_property_settings(db, property_id))
    if config is None:
        raise ConfigError("Google Sheets belum dikonfigurasi")
    try:
        setup_sheet_headers(config)
    except Exception as e:
        logger.exception("Sheet header setup failed")
        raise UpstreamError(f"Gagal setup header: {e}")
    return {"ok": True, "message": "Header berhasil diterapkan ke spreadsheet"}
