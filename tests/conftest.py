import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from kost.api.deps import get_db
from kost.core.auth import create_access_token, hash_password
from kost.core.config import settings
from kost.core.database import Base
from kost.core.utils import generate_id
from kost.main import app
from kost.models import Expense, Property, Room, Tenant, User

PROPERTY_ID = settings.PROPERTY_ID
PASSWORD = "rahasia123"

# bcrypt is slow on purpose; hash once per session
PASSWORD_HASH = hash_password(PASSWORD)


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    """No real integrations during tests; uploads go to a temp dir."""
    monkeypatch.setattr(settings, "UPLOADS_DIR", str(tmp_path / "uploads"))
    monkeypatch.setattr(settings, "GOOGLE_SERVICE_ACCOUNT_JSON", None)
    monkeypatch.setattr(settings, "SHEETS_SPREADSHEET_ID", None)
    monkeypatch.setattr(settings, "GROQ_API_KEY", None)
    monkeypatch.setattr(settings, "RESEND_API_KEY", None)
    monkeypatch.setattr(settings, "TELEGRAM_BOT_TOKEN", None)
    monkeypatch.setattr(settings, "DRIVE_APPS_SCRIPT_URL", None)


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(bind=engine, autocommit=False, autoflush=False)
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(session_factory):
    session = session_factory()
    session.add(Property(id=PROPERTY_ID, name="Kost Annisa"))
    session.commit()
    yield session
    session.close()


@pytest.fixture
def client(db, session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def _add_user(db, email, role, is_active=True):
    user = User(
        id=generate_id("usr"),
        email=email,
        name=email.split("@")[0],
        role=role,
        is_active=is_active,
        password_hash=PASSWORD_HASH,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def owner(db):
    return _add_user(db, "pemilik@kostannisa.id", "admin_utama")


@pytest.fixture
def admin(db):
    return _add_user(db, "admin@kostannisa.id", "admin")


@pytest.fixture
def staff(db):
    return _add_user(db, "petugas@kostannisa.id", "petugas")


@pytest.fixture
def add_user(db):
    def _make(email, role="petugas", is_active=True):
        return _add_user(db, email, role, is_active)
    return _make


def _headers(user):
    return {"Authorization": f"Bearer {create_access_token(user.id, user.role)}"}


@pytest.fixture
def owner_headers(owner):
    return _headers(owner)


@pytest.fixture
def admin_headers(admin):
    return _headers(admin)


@pytest.fixture
def staff_headers(staff):
    return _headers(staff)


@pytest.fixture
def add_room(db):
    def _make(room_no, monthly_rate=1_000_000, is_active=True):
        room = Room(
            id=generate_id("room"),
            property_id=PROPERTY_ID,
            room_no=room_no,
            monthly_rate=monthly_rate,
            is_active=is_active,
        )
        db.add(room)
        db.commit()
        db.refresh(room)
        return room
    return _make


@pytest.fixture
def add_tenant(db):
    def _make(room, name, is_active=True, move_in_date="2025-01-01"):
        tenant = Tenant(
            id=generate_id("ten"),
            property_id=PROPERTY_ID,
            room_id=room.id,
            name=name,
            move_in_date=move_in_date,
            deposit_amount=0,
            is_active=is_active,
        )
        db.add(tenant)
        db.commit()
        db.refresh(tenant)
        return tenant
    return _make


@pytest.fixture
def add_entry(db):
    """Cash-ledger row straight into the table."""
    def _make(expense_date, category, amount, status="confirmed", type="expense", method="cash"):
        entry = Expense(
            id=generate_id("exp"),
            property_id=PROPERTY_ID,
            expense_date=expense_date,
            category=category,
            amount=amount,
            method=method,
            status=status,
            type=type,
            created_by="seed",
        )
        db.add(entry)
        db.commit()
        db.refresh(entry)
        return entry
    return _make
