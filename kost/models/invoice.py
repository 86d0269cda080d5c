from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from kost.core.database import Base


class Invoice(Base):
    __tablename__ = "invoices"
    __table_args__ = (
        # one invoice per tenant per month; generation relies on this as the final guard
        UniqueConstraint("tenant_id", "period", name="uq_invoices_tenant_period"),
        UniqueConstraint("property_id", "invoice_no", name="uq_invoices_property_invoice_no"),
    )

    id = Column(String, primary_key=True, index=True)

    property_id = Column(String, ForeignKey("properties.id"), nullable=False, index=True)
    tenant_id = Column(String, ForeignKey("tenants.id"), nullable=False, index=True)
    room_id = Column(String, ForeignKey("rooms.id"), nullable=False, index=True)
    tenant = relationship("Tenant", back_populates="invoices")
    room = relationship("Room")
    payments = relationship("Payment", back_populates="invoice", cascade="all, delete-orphan")

    period = Column(String(7), nullable=False, index=True)  # YYYY-MM
    invoice_no = Column(String, nullable=False)  # INV-YYYYMM-NNNN
    amount = Column(Integer, nullable=False)  # room rate at generation time
    status = Column(String, nullable=False, default="unpaid", index=True)  # unpaid / paid
    paid_at = Column(String, nullable=True)  # ISO timestamp

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
