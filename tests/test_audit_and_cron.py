from kost.core.period import current_period


def test_audit_trail_of_writes(client, owner_headers, admin_headers):
    room_id = client.post("/api/rooms", json={"room_no": 1, "monthly_rate": 900_000}, headers=admin_headers).json()["id"]
    client.patch(f"/api/rooms/{room_id}", json={"monthly_rate": 950_000}, headers=admin_headers)
    client.post(
        "/api/expenses",
        json={"expense_date": "2025-03-01", "category": "air", "amount": 50_000, "method": "cash"},
        headers=admin_headers,
    )

    logs = client.get("/api/audit-logs", headers=owner_headers).json()
    assert [(l["action"], l["entity_type"]) for l in logs] == [
        ("created", "expense"),
        ("updated", "room"),
        ("created", "room"),
    ]
    assert all(l["actor_email"] == "admin@kostannisa.id" for l in logs)

    rooms_only = client.get("/api/audit-logs?entity_type=room&action=updated", headers=owner_headers).json()
    assert len(rooms_only) == 1

    paged = client.get("/api/audit-logs?limit=1&offset=1", headers=owner_headers).json()
    assert [(l["action"], l["entity_type"]) for l in paged] == [("updated", "room")]


def test_audit_logs_owner_only(client, admin_headers):
    assert client.get("/api/audit-logs", headers=admin_headers).status_code == 403


def test_reminders_list_unpaid_of_current_month(client, admin_headers, staff_headers, add_room, add_tenant):
    add_tenant(add_room(2), "Budi")
    add_tenant(add_room(1), "Ayu")
    period = current_period()
    client.post(f"/api/invoices/generate?period={period}", headers=staff_headers)
    invoices = client.get(f"/api/invoices?period={period}", headers=staff_headers).json()["invoices"]
    client.post(
        "/api/payments",
        json={"invoice_id": invoices[0]["id"], "amount": invoices[0]["amount"], "method": "cash"},
        headers=staff_headers,
    )

    res = client.get("/api/cron/reminders", headers=admin_headers)

    assert res.status_code == 200
    body = res.json()
    assert body["period"] == period
    assert body["planned_reminders"] == 1
    assert [t["name"] for t in body["tenants"]] == ["Budi"]


def test_reminders_need_elevated_role(client, staff_headers):
    assert client.get("/api/cron/reminders", headers=staff_headers).status_code == 403


def test_health(client):
    res = client.get("/api/health")
    assert res.status_code == 200
    assert res.json()["ok"] is True
