from sqlalchemy import Column, String, DateTime, Boolean
from sqlalchemy.sql import func
from kost.core.database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True, index=True)
    email = Column(String, nullable=False, unique=True, index=True)
    name = Column(String, nullable=True)
    role = Column(String, nullable=False, default="petugas")  # admin_utama / admin / petugas
    is_active = Column(Boolean, nullable=False, default=True)
    password_hash = Column(String, nullable=True)

    reset_token = Column(String, nullable=True, index=True)
    reset_token_expires = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
