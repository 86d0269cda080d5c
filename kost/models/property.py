from sqlalchemy import Column, String, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from kost.core.database import Base


class Property(Base):
    __tablename__ = "properties"

    # e.g. "prop_kostannisa"; every other table is scoped by this id
    id = Column(String, primary_key=True, index=True)
    name = Column(String, nullable=False)
    address = Column(String, nullable=True)

    rooms = relationship("Room", back_populates="property", cascade="all, delete-orphan")
    settings = relationship("PropertySettings", back_populates="property", uselist=False, cascade="all, delete-orphan")

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
