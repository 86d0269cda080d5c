from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Text
from sqlalchemy.sql import func
from kost.core.database import Base


class Expense(Base):
    """Cash-ledger row. Despite the name it holds both inflows (type=income) and outflows."""
    __tablename__ = "expenses"

    id = Column(String, primary_key=True, index=True)

    property_id = Column(String, ForeignKey("properties.id"), nullable=False, index=True)

    expense_date = Column(String(10), nullable=False, index=True)  # YYYY-MM-DD, prefix-matched by period
    category = Column(String, nullable=False)  # listrik/air/wifi/kebersihan/perbaikan/gaji/modal/lainnya
    amount = Column(Integer, nullable=False)
    method = Column(String, nullable=False, default="cash")  # transfer / cash / other
    status = Column(String, nullable=False, default="confirmed", index=True)  # draft / confirmed
    type = Column(String, nullable=False, default="expense", index=True)  # income / expense
    receipt_key = Column(String, nullable=True)
    ocr_json = Column(Text, nullable=True)
    notes = Column(String(500), nullable=True)
    created_by = Column(String, nullable=True)  # user id or "telegram_bot"

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), server_default=func.now(), nullable=False)
