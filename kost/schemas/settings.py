from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class SettingsUpdate(BaseModel):
    default_monthly_rate: Optional[int] = Field(None, ge=0)
    default_deposit: Optional[int] = Field(None, ge=0)
    reminder_rules: Optional[str] = None
    sheets_config: Optional[str] = None
    gemini_api_key: Optional[str] = None
    groq_api_key: Optional[str] = None
    google_service_account_json: Optional[str] = None
    sheets_spreadsheet_id: Optional[str] = None
    sheets_income_sheet_name: Optional[str] = None
    sheets_expense_sheet_name: Optional[str] = None


class SettingsFullOut(BaseModel):
    property_id: str
    default_monthly_rate: int
    default_deposit: int
    reminder_rules: Optional[str] = None
    sheets_config: Optional[str] = None
    gemini_api_key: Optional[str] = None
    groq_api_key: Optional[str] = None
    google_service_account_json: Optional[str] = None
    sheets_spreadsheet_id: Optional[str] = None
    sheets_income_sheet_name: Optional[str] = None
    sheets_expense_sheet_name: Optional[str] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SettingsOut(BaseModel):
    """Client-safe view: keys masked, service-account JSON reduced to a flag."""
    property_id: str
    default_monthly_rate: int
    default_deposit: int
    reminder_rules: Optional[str] = None
    sheets_config: Optional[str] = None
    gemini_api_key: Optional[str] = None
    groq_api_key: Optional[str] = None
    has_service_account: bool
    sheets_spreadsheet_id: Optional[str] = None
    sheets_income_sheet_name: Optional[str] = None
    sheets_expense_sheet_name: Optional[str] = None
    updated_at: Optional[datetime] = None
