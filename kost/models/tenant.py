from sqlalchemy import Column, String, Integer, DateTime, Boolean, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from kost.core.database import Base


class Tenant(Base):
    __tablename__ = "tenants"

    id = Column(String, primary_key=True, index=True)

    property_id = Column(String, ForeignKey("properties.id"), nullable=False, index=True)
    room_id = Column(String, ForeignKey("rooms.id"), nullable=False, index=True)
    room = relationship("Room", back_populates="tenants")
    invoices = relationship("Invoice", back_populates="tenant")

    name = Column(String(100), nullable=False)
    wa_number = Column(String(20), nullable=True)
    move_in_date = Column(String(10), nullable=False)  # YYYY-MM-DD
    deposit_amount = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    move_out_date = Column(String(10), nullable=True)  # set on deactivation

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
