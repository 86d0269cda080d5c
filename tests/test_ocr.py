import json

import pytest

from kost.core.config import settings
from kost.core.storage import put_object
from kost.core.transactions import transaction_from_model_output
from kost.models import AuditLog, Expense

RECEIPT_KEY = "receipts/prop/2025-03/nota.jpg"


@pytest.fixture
def stored_receipt(monkeypatch):
    monkeypatch.setattr(settings, "GROQ_API_KEY", "gsk_test")
    put_object(RECEIPT_KEY, b"\xff\xd8receipt")
    return RECEIPT_KEY


def _fake_model(reply):
    """Stand-in for the vision call: decode a canned model reply the way the real one does."""
    def scan(image, mime, api_key):
        return transaction_from_model_output(reply)
    return scan


def test_receipt_becomes_draft(client, db, staff_headers, stored_receipt, monkeypatch):
    monkeypatch.setattr(
        "kost.api.routes.ocr.scan_receipt_image",
        _fake_model({
            "merchant_name": "PLN Mobile",
            "transaction_date": "2025-03-04",
            "total_amount": 285_000,
            "suggested_category": "listrik",
            "confidence": 0.92,
        }),
    )

    res = client.post("/api/ocr/receipt", json={"receipt_key": stored_receipt}, headers=staff_headers)

    assert res.status_code == 201
    body = res.json()
    assert body["status"] == "draft"
    assert body["category"] == "listrik"
    assert body["amount"] == 285_000
    assert body["expense_date"] == "2025-03-04"
    assert body["merchant_name"] == "PLN Mobile"
    assert body["confidence"] == "high"

    db.expire_all()
    expense = db.query(Expense).filter(Expense.id == body["expense_id"]).one()
    assert expense.receipt_key == stored_receipt
    assert expense.method == "other"
    assert json.loads(expense.ocr_json)["amount"] == 285_000
    assert db.query(AuditLog).filter(AuditLog.source == "ocr").count() == 1


def test_unknown_category_falls_back(client, staff_headers, stored_receipt, monkeypatch):
    monkeypatch.setattr(
        "kost.api.routes.ocr.scan_receipt_image",
        _fake_model({"total_amount": 45_000, "suggested_category": "makanan"}),
    )

    res = client.post(
        "/api/ocr/receipt",
        json={"receipt_key": stored_receipt, "expense_date": "2025-03-09"},
        headers=staff_headers,
    )

    assert res.status_code == 201
    assert res.json()["category"] == "lainnya"
    assert res.json()["expense_date"] == "2025-03-09"


@pytest.mark.parametrize("amount", [0, -5000, None, "abc"])
def test_unusable_amount_saves_nothing(client, db, staff_headers, stored_receipt, monkeypatch, amount):
    monkeypatch.setattr(
        "kost.api.routes.ocr.scan_receipt_image",
        _fake_model({"total_amount": amount, "suggested_category": "air"}),
    )

    res = client.post("/api/ocr/receipt", json={"receipt_key": stored_receipt}, headers=staff_headers)

    assert res.status_code == 400
    assert db.query(Expense).count() == 0


def test_missing_receipt(client, staff_headers, monkeypatch):
    monkeypatch.setattr(settings, "GROQ_API_KEY", "gsk_test")
    res = client.post("/api/ocr/receipt", json={"receipt_key": "receipts/none.jpg"}, headers=staff_headers)
    assert res.status_code == 404


def test_ocr_needs_key(client, staff_headers):
    res = client.post("/api/ocr/receipt", json={"receipt_key": RECEIPT_KEY}, headers=staff_headers)
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "CONFIG"


def test_per_property_key_wins(client, admin_headers, staff_headers, monkeypatch):
    put_object(RECEIPT_KEY, b"\xff\xd8receipt")
    client.patch("/api/settings", json={"groq_api_key": "gsk_property"}, headers=admin_headers)
    seen = {}

    def scan(image, mime, api_key):
        seen["api_key"] = api_key
        return transaction_from_model_output({"total_amount": 10_000, "suggested_category": "air"})

    monkeypatch.setattr("kost.api.routes.ocr.scan_receipt_image", scan)

    res = client.post("/api/ocr/receipt", json={"receipt_key": RECEIPT_KEY}, headers=staff_headers)

    assert res.status_code == 201
    assert seen["api_key"] == "gsk_property"
