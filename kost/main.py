import logging
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from kost.core.config import settings
from kost.core.database import SessionLocal
from kost.core.errors import register_exception_handlers
from kost.api.routes.auth import router as auth_router
from kost.api.routes.users import router as users_router
from kost.api.routes.dashboard import router as dashboard_router
from kost.api.routes.rooms import router as rooms_router
from kost.api.routes.tenants import router as tenants_router
from kost.api.routes.invoices import router as invoices_router
from kost.api.routes.payments import router as payments_router
from kost.api.routes.expenses import router as expenses_router
from kost.api.routes.uploads import router as uploads_router
from kost.api.routes.ocr import router as ocr_router
from kost.api.routes.settings import router as settings_router
from kost.api.routes.telegram import router as telegram_router
from kost.api.routes.cron import router as cron_router
from kost.api.routes.audit_logs import router as audit_logs_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# 1) Create the app FIRST
app = FastAPI(title="Kost Annisa Backend")

# 2) Add CORS Middleware BEFORE routes
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# 3) Include routers AFTER app is created; everything lives under /api
for router in (
    auth_router,
    users_router,
    dashboard_router,
    rooms_router,
    tenants_router,
    invoices_router,
    payments_router,
    expenses_router,
    uploads_router,
    ocr_router,
    settings_router,
    telegram_router,
    cron_router,
    audit_logs_router,
):
    app.include_router(router, prefix="/api")


# 4) Health check endpoints
@app.get("/api/health")
def health():
    return {"ok": True, "time": datetime.now(timezone.utc).isoformat()}


@app.get("/api/db-health")
def db_health():
    db = SessionLocal()
    try:
        db.execute(text("select 1"))
        return {"ok": True, "db": "connected"}
    finally:
        db.close()
