from sqlalchemy import Column, String, Integer, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from kost.core.database import Base


class Payment(Base):
    __tablename__ = "payments"

    id = Column(String, primary_key=True, index=True)

    invoice_id = Column(String, ForeignKey("invoices.id", ondelete="CASCADE"), nullable=False, index=True)
    invoice = relationship("Invoice", back_populates="payments")

    amount = Column(Integer, nullable=False)
    method = Column(String, nullable=False)  # transfer / cash / other
    proof_key = Column(String, nullable=True)
    notes = Column(String(500), nullable=True)
    created_by = Column(String, nullable=True)  # user id

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
