from kost.core.config import settings
from kost.core.transactions import ParsedTransaction
from kost.models import Expense


def _create(client, headers, **overrides):
    payload = {
        "expense_date": "2025-03-05",
        "category": "listrik",
        "amount": 300_000,
        "method": "transfer",
        "notes": "token PLN",
    }
    payload.update(overrides)
    return client.post("/api/expenses", json=payload, headers=headers)


def test_create_and_list(client, staff_headers):
    res = _create(client, staff_headers)
    assert res.status_code == 201
    body = res.json()
    assert body["status"] == "confirmed"
    assert body["type"] == "expense"
    assert body["warning"] is None

    _create(client, staff_headers, category="modal", amount=1_000_000, type="income")
    _create(client, staff_headers, category="air", amount=80_000, status="draft")
    _create(client, staff_headers, expense_date="2025-04-01")

    listed = client.get("/api/expenses?period=2025-03", headers=staff_headers).json()
    assert len(listed["expenses"]) == 3
    assert listed["total_expense"] == 300_000
    assert listed["total_income"] == 1_000_000


def test_create_rejects_bad_input(client, staff_headers):
    assert _create(client, staff_headers, category="makan").status_code == 400
    assert _create(client, staff_headers, amount=0).status_code == 400
    assert _create(client, staff_headers, expense_date="05-03-2025").status_code == 400
    assert _create(client, staff_headers, expense_date="2025-02-30").status_code == 400
    assert _create(client, staff_headers, notes="x" * 501).status_code == 400


def test_confirm_draft(client, db, staff_headers):
    draft = _create(client, staff_headers, status="draft").json()

    res = client.post(f"/api/expenses/confirm/{draft['id']}", json={"amount": 310_000}, headers=staff_headers)
    assert res.status_code == 200
    assert res.json()["status"] == "confirmed"
    assert res.json()["amount"] == 310_000

    again = client.post(f"/api/expenses/confirm/{draft['id']}", headers=staff_headers)
    assert again.status_code == 409


def test_confirm_without_body(client, staff_headers):
    draft = _create(client, staff_headers, status="draft").json()
    res = client.post(f"/api/expenses/confirm/{draft['id']}", headers=staff_headers)
    assert res.status_code == 200


def test_confirm_unknown(client, staff_headers):
    assert client.post("/api/expenses/confirm/exp_missing", headers=staff_headers).status_code == 404


def test_draft_does_not_count_until_confirmed(client, staff_headers):
    draft = _create(client, staff_headers, status="draft").json()
    before = client.get("/api/dashboard?period=2025-03", headers=staff_headers).json()
    assert before["expense_total"] == 0

    client.post(f"/api/expenses/confirm/{draft['id']}", headers=staff_headers)
    after = client.get("/api/dashboard?period=2025-03", headers=staff_headers).json()
    assert after["expense_total"] == 300_000


def test_edit_and_delete_need_admin(client, db, staff_headers, admin_headers):
    expense_id = _create(client, staff_headers).json()["id"]

    assert client.patch(f"/api/expenses/{expense_id}", json={"amount": 1}, headers=staff_headers).status_code == 403
    assert client.delete(f"/api/expenses/{expense_id}", headers=staff_headers).status_code == 403

    edited = client.patch(f"/api/expenses/{expense_id}", json={"category": "air"}, headers=admin_headers)
    assert edited.status_code == 200
    assert edited.json()["category"] == "air"

    assert client.patch(f"/api/expenses/{expense_id}", json={}, headers=admin_headers).status_code == 400

    assert client.delete(f"/api/expenses/{expense_id}", headers=admin_headers).status_code == 200
    db.expire_all()
    assert db.query(Expense).filter(Expense.id == expense_id).first() is None
    assert client.delete(f"/api/expenses/{expense_id}", headers=admin_headers).status_code == 404


def test_scan_ai_returns_suggestion_without_saving(client, db, staff_headers, monkeypatch):
    monkeypatch.setattr(settings, "GROQ_API_KEY", "gsk_test")
    seen = {}

    def fake_scan(image, mime, api_key):
        seen.update(mime=mime, api_key=api_key, size=len(image))
        return ParsedTransaction(type="expense", category="perbaikan", amount=125_000, store="TB Jaya", confidence="high")

    monkeypatch.setattr("kost.api.routes.expenses.scan_receipt_image", fake_scan)

    res = client.post(
        "/api/expenses/scan-ai",
        files={"file": ("nota.jpg", b"\xff\xd8fakejpeg", "image/jpeg")},
        headers=staff_headers,
    )

    assert res.status_code == 200
    assert res.json()["category"] == "perbaikan"
    assert res.json()["amount"] == 125_000
    assert seen == {"mime": "image/jpeg", "api_key": "gsk_test", "size": 10}
    assert db.query(Expense).count() == 0


def test_scan_ai_rejects_non_images(client, staff_headers, monkeypatch):
    monkeypatch.setattr(settings, "GROQ_API_KEY", "gsk_test")
    res = client.post(
        "/api/expenses/scan-ai",
        files={"file": ("nota.txt", b"hello", "text/plain")},
        headers=staff_headers,
    )
    assert res.status_code == 400


def test_scan_ai_without_key(client, staff_headers):
    res = client.post(
        "/api/expenses/scan-ai",
        files={"file": ("nota.jpg", b"\xff\xd8fakejpeg", "image/jpeg")},
        headers=staff_headers,
    )
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "CONFIG"
