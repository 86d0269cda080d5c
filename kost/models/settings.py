from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from kost.core.database import Base


class PropertySettings(Base):
    __tablename__ = "settings"

    # One row per property
    property_id = Column(String, ForeignKey("properties.id", ondelete="CASCADE"), primary_key=True)
    property = relationship("Property", back_populates="settings")

    default_monthly_rate = Column(Integer, nullable=False, default=0)
    default_deposit = Column(Integer, nullable=False, default=0)
    reminder_rules = Column(Text, nullable=True)
    sheets_config = Column(Text, nullable=True)

    # Integration credentials; override the environment when set
    gemini_api_key = Column(String, nullable=True)
    groq_api_key = Column(String, nullable=True)
    google_service_account_json = Column(Text, nullable=True)
    sheets_spreadsheet_id = Column(String, nullable=True)
    sheets_income_sheet_name = Column(String, nullable=True)
    sheets_expense_sheet_name = Column(String, nullable=True)

    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), server_default=func.now(), nullable=False)
