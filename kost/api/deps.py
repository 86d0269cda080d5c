from kost.core.config import settings
from kost.core.database import SessionLocal


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_property_id() -> str:
    """Property scope for the request; single-property deployments read it from config."""
    return settings.PROPERTY_ID
