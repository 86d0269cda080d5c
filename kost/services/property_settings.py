"""Per-property singleton settings and the integration configs derived from them."""
from typing import Optional

from sqlalchemy.orm import Session

from kost.core.google_sheets import SheetsConfig, get_sheets_config
from kost.models.property import Property
from kost.models.settings import PropertySettings

DEFAULT_PROPERTY_NAME = "Kost Annisa"


def ensure_property(db: Session, property_id: str) -> Property:
    prop = db.query(Property).filter(Property.id == property_id).first()
    if prop is None:
        prop = Property(id=property_id, name=DEFAULT_PROPERTY_NAME)
        db.add(prop)
        db.commit()
        db.refresh(prop)
    return prop


def get_property_settings(db: Session, property_id: str) -> PropertySettings:
    """Return the settings row, creating it (and the property) with defaults on first access."""
    row = db.query(PropertySettings).filter(PropertySettings.property_id == property_id).first()
    if row is None:
        ensure_property(db, property_id)
        row = PropertySettings(property_id=property_id, default_monthly_rate=0, default_deposit=0)
        db.add(row)
        db.commit()
        db.refresh(row)
    return row


def mask_key(value: Optional[str]) -> Optional[str]:
    if not value:
        return value
    return value[:8] + "..."


def masked_settings(row: PropertySettings) -> dict:
    return {
        "property_id": row.property_id,
        "default_monthly_rate": row.default_monthly_rate,
        "default_deposit": row.default_deposit,
        "reminder_rules": row.reminder_rules,
        "sheets_config": row.sheets_config,
        "gemini_api_key": mask_key(row.gemini_api_key),
        "groq_api_key": mask_key(row.groq_api_key),
        "has_service_account": bool(row.google_service_account_json),
        "sheets_spreadsheet_id": row.sheets_spreadsheet_id,
        "sheets_income_sheet_name": row.sheets_income_sheet_name,
        "sheets_expense_sheet_name": row.sheets_expense_sheet_name,
        "updated_at": row.updated_at,
    }


def sheets_config_for(db: Session, property_id: str) -> Optional[SheetsConfig]:
    return get_sheets_config(get_property_settings(db, property_id))
