"""
Receipt and payment-proof files.

The client asks for a key (presign), PUTs the bytes to the returned URL and
later references the key from a payment or an expense.
"""
from urllib.parse import unquote

from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response

from kost.api.deps import get_property_id
from kost.core.auth import User, get_current_user
from kost.core.config import settings
from kost.core.errors import ValidationFailed
from kost.core.storage import generate_object_key, get_object, presign_response, put_object, upload_to_drive
from kost.schemas.upload import DriveUploadOut, PresignOut, PresignRequest, UploadOut

router = APIRouter(prefix="/uploads", tags=["uploads"])


async def _read_body(request: Request) -> bytes:
    body = await request.body()
    if not body:
        raise ValidationFailed("File kosong")
    if len(body) > settings.MAX_UPLOAD_SIZE_MB * 1024 * 1024:
        raise ValidationFailed(f"File too large. Max size: {settings.MAX_UPLOAD_SIZE_MB} MB.")
    return body


@router.post("/presign", response_model=PresignOut)
def presign(
    payload: PresignRequest,
    property_id: str = Depends(get_property_id),
    current_user: User = Depends(get_current_user),
):
    key = generate_object_key(payload.type, payload.period, payload.content_type, property_id)
    return presign_response(key)


@router.post("/drive", response_model=DriveUploadOut)
async def upload_drive(
    request: Request,
    current_user: User = Depends(get_current_user),
):
    """Forward the raw body to the Drive Apps Script; X-Filename names the file."""
    body = await _read_body(request)
    content_type = request.headers.get("content-type") or "application/octet-stream"
    filename = unquote(request.headers.get("x-filename") or "nota")
    return {"url": upload_to_drive(body, content_type, filename)}


@router.put("/{key:path}", response_model=UploadOut)
async def upload_object(
    key: str,
    request: Request,
    current_user: User = Depends(get_current_user),
):
    body = await _read_body(request)
    size = put_object(unquote(key), body)
    return {"object_key": key, "size": size}


@router.get("/{key:path}")
def download_object(
    key: str,
    current_user: User = Depends(get_current_user),
):
    key = unquote(key)
    data, content_type = get_object(key)
    return Response(
        content=data,
        media_type=content_type,
        headers={
            "Content-Disposition": f'inline; filename="{key.rsplit("/", 1)[-1]}"',
            "Cache-Control": "private, max-age=3600",
        },
    )
