from sqlalchemy import Column, String, Integer, DateTime, Boolean, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from kost.core.database import Base


class Room(Base):
    __tablename__ = "rooms"
    __table_args__ = (UniqueConstraint("property_id", "room_no", name="uq_rooms_property_room_no"),)

    id = Column(String, primary_key=True, index=True)

    property_id = Column(String, ForeignKey("properties.id"), nullable=False, index=True)
    property = relationship("Property", back_populates="rooms")
    tenants = relationship("Tenant", back_populates="room")

    room_no = Column(Integer, nullable=False)
    monthly_rate = Column(Integer, nullable=False, default=0)  # whole rupiah
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), server_default=func.now(), nullable=False)
