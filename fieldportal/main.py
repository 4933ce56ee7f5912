from __future__ import annotations
import logging
import os
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from fieldportal.admin import mount_admin
from fieldportal.core.config import settings, configure_cors
from fieldportal.core.exceptions import (
    validation_exception_handler,
    integrity_error_handler,
    database_error_handler,
)
from fieldportal.core.logging import setup_logging
from fieldportal.db.seed import seed_defaults
from fieldportal.db.session import init_models, SessionLocal

# Routers (import once, include once)
from fieldportal.api.routes.auth import router as auth_router
from fieldportal.api.routes.admin import router as admin_router
from fieldportal.api.routes.commesse import router as commesse_router
from fieldportal.api.routes.receipts import router as receipts_router
from fieldportal.api.routes.sites import router as sites_router
from fieldportal.api.routes.schedule import router as schedule_router
from fieldportal.api.routes.waste_logs import router as waste_logs_router

logger = logging.getLogger("fieldportal.main")

app = FastAPI(title=settings.app_name)
configure_cors(app)

# Global exception handlers
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(IntegrityError, integrity_error_handler)
app.add_exception_handler(SQLAlchemyError, database_error_handler)


@app.on_event("startup")
def on_startup():
    """
    - Configure logging
    - Create tables
    - Seed roles, first admin, allow-list and master password (idempotent)
    """
    setup_logging(settings.log_level)
    os.makedirs(settings.upload_dir, exist_ok=True)
    init_models()
    with SessionLocal() as db:
        seed_defaults(db)
    logger.info("%s started", settings.app_name)


# Mount API routers (once)
app.include_router(auth_router)
app.include_router(admin_router)
app.include_router(commesse_router)
app.include_router(receipts_router)
app.include_router(sites_router)
app.include_router(schedule_router)
app.include_router(waste_logs_router)


@app.get("/api/health", tags=["health"])
def health():
    return {"message": "Server is running", "timestamp": datetime.now(timezone.utc).isoformat()}


# Locally stored images (used when no blob storage is configured)
app.mount(
    settings.upload_url_prefix,
    StaticFiles(directory=settings.upload_dir, check_dir=False),
    name="uploads",
)

mount_admin(app)


@app.middleware("http")
async def _log_login(request, call_next):
    if request.url.path == "/api/login":
        logger.info(
            "Login attempt | method=%s origin=%s ua=%s",
            request.method,
            request.headers.get("origin"),
            request.headers.get("user-agent"),
        )
    return await call_next(request)
