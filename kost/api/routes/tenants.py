from typing import List, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from kost.api.deps import get_db, get_property_id
from kost.core.audit import log_audit
from kost.core.auth import ELEVATED_ROLES, User, get_current_user, require_role
from kost.core.errors import Conflict, NotFound, ValidationFailed
from kost.core.period import today_iso
from kost.core.utils import generate_id
from kost.models.invoice import Invoice
from kost.models.room import Room
from kost.models.tenant import Tenant
from kost.schemas.tenant import TenantCreate, TenantOut, TenantUpdate

router = APIRouter(prefix="/tenants", tags=["tenants"])


def _tenant_out(tenant: Tenant, room_no: Optional[int]) -> TenantOut:
    return TenantOut.model_validate(tenant).model_copy(update={"room_no": room_no})


def _get_tenant(db: Session, property_id: str, tenant_id: str) -> Tenant:
    tenant = db.query(Tenant).filter(Tenant.id == tenant_id, Tenant.property_id == property_id).first()
    if not tenant:
        raise NotFound("Tenant not found")
    return tenant


def _get_room(db: Session, property_id: str, room_id: str) -> Room:
    room = db.query(Room).filter(Room.id == room_id, Room.property_id == property_id).first()
    if not room:
        raise NotFound("Room not found")
    return room


def _ensure_room_free(db: Session, room: Room, exclude_tenant_id: Optional[str] = None) -> None:
    """At most one active tenant per room."""
    q = db.query(Tenant).filter(Tenant.room_id == room.id, Tenant.is_active.is_(True))
    if exclude_tenant_id:
        q = q.filter(Tenant.id != exclude_tenant_id)
    if q.first():
        raise Conflict(f"Kamar {room.room_no} sudah terisi")


@router.get("", response_model=List[TenantOut])
def list_tenants(
    db: Session = Depends(get_db),
    property_id: str = Depends(get_property_id),
    current_user: User = Depends(get_current_user),
):
    rows = (
        db.query(Tenant, Room.room_no)
        .join(Room, Room.id == Tenant.room_id)
        .filter(Tenant.property_id == property_id)
        .order_by(Tenant.name)
        .all()
    )
    return [_tenant_out(tenant, room_no) for tenant, room_no in rows]


@router.post("", response_model=TenantOut, status_code=201)
def create_tenant(
    payload: TenantCreate,
    db: Session = Depends(get_db),
    property_id: str = Depends(get_property_id),
    current_user: User = Depends(require_role(*ELEVATED_ROLES)),
):
    room = _get_room(db, property_id, payload.room_id)
    _ensure_room_free(db, room)

    tenant = Tenant(id=generate_id("ten"), property_id=property_id, is_active=True, **payload.model_dump())
    db.add(tenant)
    db.commit()
    db.refresh(tenant)
    log_audit(
        db,
        actor=current_user,
        action="created",
        entity_type="tenant",
        entity_id=tenant.id,
        property_id=property_id,
        description=f"Tenant {tenant.name} moved into room {room.room_no}",
    )
    return _tenant_out(tenant, room.room_no)


@router.patch("/{tenant_id}", response_model=TenantOut)
def update_tenant(
    tenant_id: str,
    payload: TenantUpdate,
    db: Session = Depends(get_db),
    property_id: str = Depends(get_property_id),
    current_user: User = Depends(require_role(*ELEVATED_ROLES)),
):
    tenant = _get_tenant(db, property_id, tenant_id)
    data = payload.model_dump(exclude_unset=True, exclude_none=True)
    if not data:
        raise ValidationFailed("Nothing to update")

    room = _get_room(db, property_id, data.get("room_id", tenant.room_id))
    becomes_active = data.get("is_active", tenant.is_active)
    if becomes_active and (room.id != tenant.room_id or not tenant.is_active):
        _ensure_room_free(db, room, exclude_tenant_id=tenant.id)

    for k, v in data.items():
        setattr(tenant, k, v)
    db.commit()
    db.refresh(tenant)
    log_audit(
        db,
        actor=current_user,
        action="updated",
        entity_type="tenant",
        entity_id=tenant.id,
        property_id=property_id,
        description=f"Tenant {tenant.name} updated: {', '.join(sorted(data))}",
    )
    return _tenant_out(tenant, room.room_no)


@router.post("/{tenant_id}/deactivate")
def deactivate_tenant(
    tenant_id: str,
    db: Session = Depends(get_db),
    property_id: str = Depends(get_property_id),
    current_user: User = Depends(require_role(*ELEVATED_ROLES)),
):
    """Move-out: the tenant is kept for history and the room becomes free."""
    tenant = _get_tenant(db, property_id, tenant_id)
    tenant.is_active = False
    tenant.move_out_date = today_iso()
    db.commit()
    log_audit(
        db,
        actor=current_user,
        action="deactivated",
        entity_type="tenant",
        entity_id=tenant.id,
        property_id=property_id,
        description=f"Tenant {tenant.name} moved out on {tenant.move_out_date}",
    )
    return {"ok": True, "move_out_date": tenant.move_out_date}


@router.delete("/{tenant_id}")
def delete_tenant(
    tenant_id: str,
    db: Session = Depends(get_db),
    property_id: str = Depends(get_property_id),
    current_user: User = Depends(require_role(*ELEVATED_ROLES)),
):
    """Only for tenants entered by mistake; billed tenants move out instead."""
    tenant = _get_tenant(db, property_id, tenant_id)
    if db.query(Invoice.id).filter(Invoice.tenant_id == tenant.id).first():
        raise Conflict(f"Penghuni {tenant.name} sudah punya tagihan; gunakan pindah keluar (deactivate)")
    name = tenant.name
    db.delete(tenant)
    db.commit()
    log_audit(
        db,
        actor=current_user,
        action="deleted",
        entity_type="tenant",
        entity_id=tenant_id,
        property_id=property_id,
        description=f"Tenant deleted: {name}",
    )
    return {"ok": True}
