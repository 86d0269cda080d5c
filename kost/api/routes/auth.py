"""
Login and password reset (no auth required).
"""
import logging
import secrets
from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from kost.api.deps import get_db
from kost.core.auth import User, create_access_token, get_current_user, hash_password, verify_password
from kost.core.config import settings
from kost.core.email import send_reset_password_email
from kost.core.errors import Forbidden, Unauthorized, ValidationFailed
from kost.models.user import User as UserRow
from kost.schemas.auth import ForgotPasswordRequest, LoginRequest, LoginResponse, MeOut, ResetPasswordRequest

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])

RESET_SENT_MESSAGE = "Jika email terdaftar, link reset sudah dikirim."


@router.post("/login", response_model=LoginResponse)
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    row = db.query(UserRow).filter(UserRow.email == payload.email.lower()).first()
    if row is None:
        raise Unauthorized("Email atau password salah")
    if not row.is_active:
        raise Forbidden("Akun dinonaktifkan")
    if not row.password_hash:
        raise Unauthorized("Password belum diatur. Hubungi Admin.")
    if not verify_password(payload.password, row.password_hash):
        raise Unauthorized("Email atau password salah")

    return {"token": create_access_token(row.id, row.role), "role": row.role}


@router.post("/forgot-password")
def forgot_password(payload: ForgotPasswordRequest, db: Session = Depends(get_db)):
    """Same answer whether or not the e-mail exists."""
    row = db.query(UserRow).filter(UserRow.email == payload.email.lower()).first()
    if row is None or not row.is_active:
        return {"ok": True, "message": RESET_SENT_MESSAGE}

    row.reset_token = secrets.token_urlsafe(32)
    row.reset_token_expires = datetime.now(timezone.utc) + timedelta(minutes=settings.RESET_TOKEN_EXPIRE_MINUTES)
    db.commit()

    origin = settings.origins[0] if settings.origins else "http://localhost:3000"
    reset_link = f"{origin}/reset-password?token={row.reset_token}"
    try:
        send_reset_password_email(row.email, reset_link, row.name)
    except Exception:
        logger.exception("Could not send reset e-mail to %s", row.email)

    return {"ok": True, "message": RESET_SENT_MESSAGE}


@router.post("/reset-password")
def reset_password(payload: ResetPasswordRequest, db: Session = Depends(get_db)):
    row = (
        db.query(UserRow)
        .filter(UserRow.reset_token == payload.token, UserRow.is_active.is_(True))
        .first()
    )
    if row is None or row.reset_token_expires is None:
        raise ValidationFailed("Link reset tidak valid atau sudah kedaluwarsa")

    expires = row.reset_token_expires
    if expires.tzinfo is None:
        expires = expires.replace(tzinfo=timezone.utc)
    if expires < datetime.now(timezone.utc):
        raise ValidationFailed("Link reset sudah kedaluwarsa. Silakan minta ulang.")

    row.password_hash = hash_password(payload.password)
    row.reset_token = None
    row.reset_token_expires = None
    db.commit()
    return {"ok": True, "message": "Password berhasil direset. Silakan login."}


@router.get("/me", response_model=MeOut)
def me(current_user: User = Depends(get_current_user)):
    return {"email": current_user.email, "role": current_user.role, "name": current_user.name}
