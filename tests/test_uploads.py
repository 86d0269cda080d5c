import pytest

from kost.core.errors import NotFound, ValidationFailed
from kost.core.storage import get_object, put_object


def test_presign_put_get(client, staff_headers):
    presign = client.post(
        "/api/uploads/presign",
        json={"type": "receipt", "period": "2025-03", "content_type": "image/jpeg"},
        headers=staff_headers,
    )
    assert presign.status_code == 200
    body = presign.json()
    assert body["object_key"].startswith("receipts/")
    assert "/2025-03/" in body["object_key"]
    assert body["object_key"].endswith(".jpg")
    assert body["method"] == "PUT"

    put = client.put(body["upload_url"], content=b"\xff\xd8receipt", headers={**staff_headers, "Content-Type": "image/jpeg"})
    assert put.status_code == 200
    assert put.json()["size"] == 9

    got = client.get(body["upload_url"], headers=staff_headers)
    assert got.status_code == 200
    assert got.content == b"\xff\xd8receipt"
    assert got.headers["content-type"] == "image/jpeg"


def test_payment_proof_folder(client, staff_headers):
    body = client.post(
        "/api/uploads/presign",
        json={"type": "payment_proof", "period": "2025-03", "content_type": "application/pdf"},
        headers=staff_headers,
    ).json()
    assert body["object_key"].startswith("payment_proofs/")
    assert body["object_key"].endswith(".pdf")


def test_presign_rejects_unknown_type(client, staff_headers):
    res = client.post(
        "/api/uploads/presign",
        json={"type": "receipt", "period": "2025-03", "content_type": "text/html"},
        headers=staff_headers,
    )
    assert res.status_code == 400


def test_empty_upload_rejected(client, staff_headers):
    res = client.put("/api/uploads/receipts/p/2025-03/a.jpg", content=b"", headers=staff_headers)
    assert res.status_code == 400


def test_missing_object(client, staff_headers):
    res = client.get("/api/uploads/receipts/p/2025-03/none.jpg", headers=staff_headers)
    assert res.status_code == 404


def test_uploads_need_login(client):
    assert client.get("/api/uploads/receipts/p/2025-03/a.jpg").status_code == 401


@pytest.mark.parametrize("key", ["../escape.jpg", "receipts/../../escape.jpg", ""])
def test_keys_cannot_escape_root(key):
    with pytest.raises(ValidationFailed):
        put_object(key, b"data")


def test_get_object_roundtrip_and_missing():
    put_object("receipts/p/2025-03/x.png", b"png")
    assert get_object("receipts/p/2025-03/x.png") == (b"png", "image/png")
    with pytest.raises(NotFound):
        get_object("receipts/p/2025-03/y.png")


def test_drive_upload_not_configured(client, staff_headers):
    res = client.post(
        "/api/uploads/drive",
        content=b"image-bytes",
        headers={**staff_headers, "Content-Type": "image/jpeg", "X-Filename": "nota.jpg"},
    )
    assert res.status_code == 502
    assert res.json()["error"]["code"] == "UPSTREAM"
