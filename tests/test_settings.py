def test_defaults_created_on_first_read(client, staff_headers):
    res = client.get("/api/settings", headers=staff_headers)

    assert res.status_code == 200
    body = res.json()
    assert body["default_monthly_rate"] == 0
    assert body["groq_api_key"] is None
    assert body["has_service_account"] is False


def test_keys_are_masked(client, admin_headers, staff_headers):
    res = client.patch(
        "/api/settings",
        json={"groq_api_key": "gsk_1234567890abcdef", "google_service_account_json": '{"type": "service_account"}'},
        headers=admin_headers,
    )
    assert res.status_code == 200
    assert res.json()["groq_api_key"] == "gsk_1234..."

    body = client.get("/api/settings", headers=staff_headers).json()
    assert body["groq_api_key"] == "gsk_1234..."
    assert body["has_service_account"] is True
    assert "google_service_account_json" not in body


def test_full_settings_owner_only(client, admin_headers, owner_headers):
    client.patch("/api/settings", json={"groq_api_key": "gsk_1234567890abcdef"}, headers=admin_headers)

    assert client.get("/api/settings/full", headers=admin_headers).status_code == 403
    full = client.get("/api/settings/full", headers=owner_headers)
    assert full.status_code == 200
    assert full.json()["groq_api_key"] == "gsk_1234567890abcdef"


def test_update_rates(client, admin_headers):
    res = client.patch(
        "/api/settings",
        json={"default_monthly_rate": 1_000_000, "default_deposit": 500_000},
        headers=admin_headers,
    )
    assert res.status_code == 200
    assert res.json()["default_monthly_rate"] == 1_000_000
    assert res.json()["default_deposit"] == 500_000


def test_null_clears_key(client, admin_headers, owner_headers):
    client.patch("/api/settings", json={"groq_api_key": "gsk_1234567890abcdef"}, headers=admin_headers)
    client.patch("/api/settings", json={"groq_api_key": None}, headers=admin_headers)

    assert client.get("/api/settings/full", headers=owner_headers).json()["groq_api_key"] is None


def test_empty_update_rejected(client, admin_headers):
    assert client.patch("/api/settings", json={}, headers=admin_headers).status_code == 400


def test_staff_cannot_update(client, staff_headers):
    res = client.patch("/api/settings", json={"default_deposit": 1}, headers=staff_headers)
    assert res.status_code == 403


def test_sheet_headers_need_configuration(client, admin_headers):
    res = client.post("/api/sheets/setup-headers", headers=admin_headers)
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "CONFIG"


def test_sheet_headers_use_stored_config(client, admin_headers, monkeypatch):
    client.patch(
        "/api/settings",
        json={"google_service_account_json": '{"type": "service_account"}', "sheets_spreadsheet_id": "sheet-123"},
        headers=admin_headers,
    )
    seen = {}
    monkeypatch.setattr(
        "kost.api.routes.settings.setup_sheet_headers",
        lambda config: seen.update(spreadsheet_id=config.spreadsheet_id),
    )

    res = client.post("/api/sheets/setup-headers", headers=admin_headers)

    assert res.status_code == 200
    assert seen == {"spreadsheet_id": "sheet-123"}
