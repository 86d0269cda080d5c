"""
Authentication: bcrypt password hashes, HS256 JWT bearer tokens, role guards.

Login issues a token carrying the user id. On every request the token is
verified and the user row is re-read, so a deactivated account or a changed
role takes effect immediately; the role in the token is never trusted alone.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from sqlalchemy.orm import Session

from kost.api.deps import get_db
from kost.core.config import settings
from kost.core.errors import Forbidden, Unauthorized
from kost.models.user import User as UserRow

ROLE_OWNER = "admin_utama"
ROLE_ADMIN = "admin"
ELEVATED_ROLES = (ROLE_OWNER, ROLE_ADMIN)

# auto_error=False so a missing header is reported through our own error body
security = HTTPBearer(auto_error=False)


class User:
    """Authenticated caller, as loaded from the users table."""
    def __init__(self, user_id: str, email: str, role: str, name: Optional[str] = None):
        self.id = user_id
        self.email = email
        self.role = role
        self.name = name


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: Optional[str]) -> bool:
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # stored value is not a bcrypt hash
        return False


def create_access_token(user_id: str, role: str) -> str:
    expires = datetime.now(timezone.utc) + timedelta(days=settings.ACCESS_TOKEN_EXPIRE_DAYS)
    payload = {"sub": user_id, "role": role, "exp": expires}
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def verify_token(token: str) -> dict:
    """
    Decode and verify a bearer token.

    Raises:
        Unauthorized: if the token is malformed, badly signed or expired
    """
    try:
        return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise Unauthorized("Token has expired")
    except JWTError:
        raise Unauthorized("Token is invalid or expired")


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """
    FastAPI dependency returning the caller.

    Usage in route:
        @router.get("/me")
        def me(current_user: User = Depends(get_current_user)):
            ...
    """
    if credentials is None or not credentials.credentials:
        raise Unauthorized("Missing or invalid authentication header")

    payload = verify_token(credentials.credentials)
    user_id = payload.get("sub")
    if not user_id:
        raise Unauthorized("Could not validate user")

    row = db.query(UserRow).filter(UserRow.id == user_id).first()
    if row is None or not row.is_active:
        raise Forbidden("User account is inactive or not found")

    return User(user_id=row.id, email=row.email, role=row.role, name=row.name)


def require_role(*roles: str):
    """
    Dependency factory for role-based access control.

    Usage:
        @router.delete("/expenses/{id}")
        def delete_expense(current_user: User = Depends(require_role("admin_utama", "admin"))):
            ...
    """
    def role_checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in roles:
            raise Forbidden(f"Requires role: {' or '.join(roles)}")
        return current_user
    return role_checker
