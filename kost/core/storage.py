"""
File storage for receipts and payment proofs.

Objects live under UPLOADS_DIR and are addressed by key:
    {receipts|payment_proofs}/{property_id}/{period}/{file_id}.{ext}
"""
import base64
import logging
import mimetypes
from pathlib import Path
from typing import Optional, Tuple

import requests

from kost.core.config import settings
from kost.core.errors import NotFound, UpstreamError, ValidationFailed
from kost.core.utils import generate_id

logger = logging.getLogger(__name__)

EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "application/pdf": "pdf",
}

FOLDERS = {
    "payment_proof": "payment_proofs",
    "receipt": "receipts",
}

PRESIGN_EXPIRES_IN = 3600


def _root() -> Path:
    return Path(settings.UPLOADS_DIR).resolve()


def _path_for(key: str) -> Path:
    """Map a key to a file path, refusing keys that escape the uploads root."""
    root = _root()
    path = (root / key).resolve()
    if not key or path == root or root not in path.parents:
        raise ValidationFailed("Invalid object key", {"key": key})
    return path


def generate_object_key(upload_type: str, period: str, content_type: str, property_id: str) -> str:
    folder = FOLDERS.get(upload_type, "receipts")
    ext = EXTENSIONS.get(content_type, "bin")
    return f"{folder}/{property_id}/{period}/{generate_id()}.{ext}"


def presign_response(object_key: str) -> dict:
    """The client PUTs the file to upload_url; there is no separate signing step."""
    return {
        "object_key": object_key,
        "upload_url": f"/api/uploads/{object_key}",
        "method": "PUT",
        "expires_in": PRESIGN_EXPIRES_IN,
    }


def put_object(key: str, data: bytes) -> int:
    path = _path_for(key)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
    logger.info("Stored %s (%s bytes)", key, len(data))
    return len(data)


def get_object(key: str) -> Tuple[bytes, str]:
    """Return (bytes, content_type) for a stored object or raise NotFound."""
    path = _path_for(key)
    if not path.is_file():
        raise NotFound("File not found")
    content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
    return path.read_bytes(), content_type


def upload_to_drive(data: bytes, content_type: str, filename: str, script_url: Optional[str] = None) -> str:
    """
    Forward a file to the Google Apps Script that saves it into Drive.
    Returns the shareable Drive URL.
    """
    url = script_url or settings.DRIVE_APPS_SCRIPT_URL
    if not url:
        raise UpstreamError("Drive upload is not configured")

    try:
        response = requests.post(
            url,
            data={
                "fileData": base64.b64encode(data).decode("ascii"),
                "mimeType": content_type,
                "fileName": filename,
            },
            timeout=60,
        )
        result = response.json()
    except (requests.RequestException, ValueError) as e:
        logger.exception("Apps Script upload failed")
        raise UpstreamError(f"Gagal tersambung ke layanan Drive otomatis: {e}")

    if result.get("status") != "success":
        raise UpstreamError(result.get("message") or "Upload ke Drive gagal.")
    return result["url"]
