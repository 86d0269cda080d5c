from sqlalchemy import Column, String, DateTime, Text
from sqlalchemy.sql import func
from kost.core.database import Base


class PendingTransaction(Base):
    """A bot-parsed transaction waiting for the user to press Save or Cancel."""
    __tablename__ = "pending_transactions"

    id = Column(String, primary_key=True, index=True)  # pending_<chat>_<ts>
    chat_id = Column(String, nullable=False, index=True)
    payload = Column(Text, nullable=False)  # JSON of the parsed transaction
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
