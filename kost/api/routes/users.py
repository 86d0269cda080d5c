"""User management (admin_utama only)."""
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from kost.api.deps import get_db
from kost.core.audit import log_audit
from kost.core.auth import ROLE_OWNER, User, hash_password, require_role
from kost.core.errors import Conflict, Forbidden, NotFound
from kost.core.utils import generate_id
from kost.models.user import User as UserRow
from kost.schemas.user import UserCreate, UserOut

router = APIRouter(prefix="/users", tags=["users"])


def _get_manageable_user(db: Session, user_id: str, verb: str) -> UserRow:
    target = db.query(UserRow).filter(UserRow.id == user_id).first()
    if target is None:
        raise NotFound("User not found")
    if target.role == ROLE_OWNER:
        raise Forbidden(f"Cannot {verb} admin utama")
    return target


@router.get("", response_model=List[UserOut])
def list_users(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role(ROLE_OWNER)),
):
    return db.query(UserRow).order_by(UserRow.created_at.desc()).all()


@router.post("", response_model=UserOut, status_code=201)
def create_user(
    payload: UserCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role(ROLE_OWNER)),
):
    email = payload.email.lower()
    if db.query(UserRow).filter(UserRow.email == email).first():
        raise Conflict("Email sudah terdaftar")

    user = UserRow(
        id=generate_id("usr"),
        email=email,
        name=payload.name,
        role=payload.role,
        is_active=True,
        password_hash=hash_password(payload.password),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    log_audit(
        db,
        actor=current_user,
        action="created",
        entity_type="user",
        entity_id=user.id,
        description=f"User created: {user.email} ({user.role})",
    )
    return user


@router.patch("/{user_id}/deactivate")
def deactivate_user(
    user_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role(ROLE_OWNER)),
):
    target = _get_manageable_user(db, user_id, "deactivate")
    target.is_active = False
    db.commit()
    log_audit(
        db,
        actor=current_user,
        action="deactivated",
        entity_type="user",
        entity_id=target.id,
        description=f"User deactivated: {target.email}",
    )
    return {"ok": True}


@router.delete("/{user_id}")
def delete_user(
    user_id: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role(ROLE_OWNER)),
):
    target = _get_manageable_user(db, user_id, "delete")
    email = target.email
    db.delete(target)
    db.commit()
    log_audit(
        db,
        actor=current_user,
        action="deleted",
        entity_type="user",
        entity_id=user_id,
        description=f"User deleted: {email}",
    )
    return {"ok": True}
