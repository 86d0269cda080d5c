from datetime import datetime, timedelta, timezone

from kost.models import AuditLog, User

PASSWORD = "rahasia123"


def test_login_returns_token_and_role(client, admin):
    res = client.post("/api/login", json={"email": "admin@kostannisa.id", "password": PASSWORD})

    assert res.status_code == 200
    body = res.json()
    assert body["role"] == "admin"
    assert body["token"]

    me = client.get("/api/me", headers={"Authorization": f"Bearer {body['token']}"})
    assert me.status_code == 200
    assert me.json()["email"] == "admin@kostannisa.id"


def test_login_email_is_case_insensitive(client, admin):
    res = client.post("/api/login", json={"email": "Admin@Kostannisa.id", "password": PASSWORD})
    assert res.status_code == 200


def test_login_wrong_password(client, admin):
    res = client.post("/api/login", json={"email": "admin@kostannisa.id", "password": "salah-sekali"})
    assert res.status_code == 401
    assert res.json()["error"]["code"] == "UNAUTHORIZED"


def test_login_unknown_email(client):
    res = client.post("/api/login", json={"email": "siapa@kostannisa.id", "password": PASSWORD})
    assert res.status_code == 401


def test_login_inactive_account(client, add_user):
    add_user("lama@kostannisa.id", is_active=False)
    res = client.post("/api/login", json={"email": "lama@kostannisa.id", "password": PASSWORD})
    assert res.status_code == 403


def test_missing_or_bad_token(client):
    assert client.get("/api/me").status_code == 401
    bad = client.get("/api/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert bad.status_code == 401
    assert bad.json()["error"]["code"] == "UNAUTHORIZED"


def test_deactivated_user_token_stops_working(client, db, staff, staff_headers):
    assert client.get("/api/me", headers=staff_headers).status_code == 200

    staff.is_active = False
    db.commit()

    assert client.get("/api/me", headers=staff_headers).status_code == 403


def test_staff_cannot_manage_rooms(client, staff_headers, admin_headers):
    denied = client.post("/api/rooms", json={"room_no": 1, "monthly_rate": 900_000}, headers=staff_headers)
    assert denied.status_code == 403
    assert denied.json()["error"]["code"] == "FORBIDDEN"

    allowed = client.post("/api/rooms", json={"room_no": 1, "monthly_rate": 900_000}, headers=admin_headers)
    assert allowed.status_code == 201


def test_forgot_and_reset_password(client, db, admin, monkeypatch):
    sent = {}

    def fake_send(to, reset_link, name=None):
        sent["to"] = to
        sent["link"] = reset_link

    monkeypatch.setattr("kost.api.routes.auth.send_reset_password_email", fake_send)

    res = client.post("/api/forgot-password", json={"email": "admin@kostannisa.id"})
    assert res.status_code == 200
    assert sent["to"] == "admin@kostannisa.id"
    token = sent["link"].split("token=")[1]

    reset = client.post("/api/reset-password", json={"token": token, "password": "baru-123456"})
    assert reset.status_code == 200

    login = client.post("/api/login", json={"email": "admin@kostannisa.id", "password": "baru-123456"})
    assert login.status_code == 200

    reused = client.post("/api/reset-password", json={"token": token, "password": "lagi-123456"})
    assert reused.status_code == 400


def test_forgot_password_same_answer_for_unknown_email(client, admin, monkeypatch):
    monkeypatch.setattr("kost.api.routes.auth.send_reset_password_email", lambda *a, **k: None)

    known = client.post("/api/forgot-password", json={"email": "admin@kostannisa.id"})
    unknown = client.post("/api/forgot-password", json={"email": "siapa@kostannisa.id"})

    assert known.status_code == unknown.status_code == 200
    assert known.json() == unknown.json()


def test_forgot_password_survives_mail_failure(client, admin, monkeypatch):
    def broken(*args, **kwargs):
        raise RuntimeError("resend down")

    monkeypatch.setattr("kost.api.routes.auth.send_reset_password_email", broken)

    res = client.post("/api/forgot-password", json={"email": "admin@kostannisa.id"})
    assert res.status_code == 200


def test_expired_reset_token(client, db, admin):
    admin.reset_token = "expired-token"
    admin.reset_token_expires = datetime.now(timezone.utc) - timedelta(minutes=1)
    db.commit()

    res = client.post("/api/reset-password", json={"token": "expired-token", "password": "baru-123456"})
    assert res.status_code == 400


def test_owner_manages_users(client, db, owner_headers):
    res = client.post(
        "/api/users",
        json={"email": "Baru@Kostannisa.id", "name": "Baru", "password": "rahasia123", "role": "petugas"},
        headers=owner_headers,
    )
    assert res.status_code == 201
    user_id = res.json()["id"]
    assert res.json()["email"] == "baru@kostannisa.id"

    dup = client.post(
        "/api/users",
        json={"email": "baru@kostannisa.id", "password": "rahasia123", "role": "admin"},
        headers=owner_headers,
    )
    assert dup.status_code == 409

    listed = client.get("/api/users", headers=owner_headers).json()
    assert "baru@kostannisa.id" in {u["email"] for u in listed}

    assert client.patch(f"/api/users/{user_id}/deactivate", headers=owner_headers).status_code == 200
    db.expire_all()
    assert db.query(User).filter(User.id == user_id).one().is_active is False
    assert db.query(AuditLog).filter(AuditLog.entity_type == "user", AuditLog.action == "deactivated").count() == 1


def test_owner_accounts_are_protected(client, owner, owner_headers):
    assert client.delete(f"/api/users/{owner.id}", headers=owner_headers).status_code == 403
    assert client.patch(f"/api/users/{owner.id}/deactivate", headers=owner_headers).status_code == 403


def test_user_api_cannot_create_owner(client, owner_headers):
    res = client.post(
        "/api/users",
        json={"email": "bos2@kostannisa.id", "password": "rahasia123", "role": "admin_utama"},
        headers=owner_headers,
    )
    assert res.status_code == 400


def test_admin_cannot_manage_users(client, admin_headers):
    assert client.get("/api/users", headers=admin_headers).status_code == 403
