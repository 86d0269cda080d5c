from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy import and_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from kost.api.deps import get_db, get_property_id
from kost.core.audit import log_audit
from kost.core.auth import ELEVATED_ROLES, User, get_current_user, require_role
from kost.core.errors import Conflict, NotFound, ValidationFailed
from kost.core.utils import generate_id
from kost.models.room import Room
from kost.models.tenant import Tenant
from kost.schemas.room import BulkRateUpdate, RoomCreate, RoomOut, RoomUpdate
from kost.services.property_settings import ensure_property

router = APIRouter(prefix="/rooms", tags=["rooms"])


@router.get("", response_model=List[RoomOut])
def list_rooms(
    db: Session = Depends(get_db),
    property_id: str = Depends(get_property_id),
    current_user: User = Depends(get_current_user),
):
    """Rooms by number, each with its current active tenant (if any)."""
    rows = (
        db.query(Room, Tenant.id, Tenant.name)
        .outerjoin(Tenant, and_(Tenant.room_id == Room.id, Tenant.is_active.is_(True)))
        .filter(Room.property_id == property_id)
        .order_by(Room.room_no)
        .all()
    )
    return [
        RoomOut.model_validate(room).model_copy(update={"tenant_id": tenant_id, "tenant_name": tenant_name})
        for room, tenant_id, tenant_name in rows
    ]


@router.post("", response_model=RoomOut, status_code=201)
def create_room(
    payload: RoomCreate,
    db: Session = Depends(get_db),
    property_id: str = Depends(get_property_id),
    current_user: User = Depends(require_role(*ELEVATED_ROLES)),
):
    ensure_property(db, property_id)
    exists = db.query(Room).filter(Room.property_id == property_id, Room.room_no == payload.room_no).first()
    if exists:
        raise Conflict(f"Kamar {payload.room_no} sudah ada")

    room = Room(id=generate_id("room"), property_id=property_id, is_active=True, **payload.model_dump())
    db.add(room)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise Conflict(f"Kamar {payload.room_no} sudah ada")
    db.refresh(room)
    log_audit(
        db,
        actor=current_user,
        action="created",
        entity_type="room",
        entity_id=room.id,
        property_id=property_id,
        description=f"Room {room.room_no} created at {room.monthly_rate}",
    )
    return room


@router.patch("/{room_id}", response_model=RoomOut)
def update_room(
    room_id: str,
    payload: RoomUpdate,
    db: Session = Depends(get_db),
    property_id: str = Depends(get_property_id),
    current_user: User = Depends(require_role(*ELEVATED_ROLES)),
):
    room = db.query(Room).filter(Room.id == room_id, Room.property_id == property_id).first()
    if not room:
        raise NotFound("Room not found")

    data = payload.model_dump(exclude_unset=True, exclude_none=True)
    if not data:
        raise ValidationFailed("Nothing to update")
    for k, v in data.items():
        setattr(room, k, v)
    db.commit()
    db.refresh(room)
    log_audit(
        db,
        actor=current_user,
        action="updated",
        entity_type="room",
        entity_id=room.id,
        property_id=property_id,
        description=f"Room {room.room_no} updated: {', '.join(sorted(data))}",
    )
    return room


@router.post("/bulk-rate")
def bulk_update_rate(
    payload: BulkRateUpdate,
    db: Session = Depends(get_db),
    property_id: str = Depends(get_property_id),
    current_user: User = Depends(require_role(*ELEVATED_ROLES)),
):
    """Set one monthly rate on every room. Existing invoices keep the amount they were issued with."""
    updated = (
        db.query(Room)
        .filter(Room.property_id == property_id)
        .update({"monthly_rate": payload.monthly_rate}, synchronize_session=False)
    )
    db.commit()
    log_audit(
        db,
        actor=current_user,
        action="updated",
        entity_type="room",
        entity_id="*",
        property_id=property_id,
        description=f"Bulk rate {payload.monthly_rate} applied to {updated} rooms",
    )
    return {"ok": True, "updated": updated, "monthly_rate": payload.monthly_rate}
