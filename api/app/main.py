# api/app/main.py
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.app.config import get_settings
from api.app.routes import activity, audit, health
from db.engine import dispose_engine
from db.session import get_session_factory, reset_session_factory
from pipeline.forwarder import AuditForwarder
from services.activity_logger import ActivityLogger
from services.audit_service import AuditService
from services.log_store import LogStore

settings = get_settings()

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger("api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # One writer pair per process: built here, drained on shutdown.
    store = LogStore(get_session_factory())
    audit_service = AuditService.from_settings(store, settings)
    activity_logger = ActivityLogger.from_settings(store, settings, AuditForwarder(audit_service))

    app.state.audit_service = audit_service
    app.state.activity_logger = activity_logger

    audit_service.start()
    activity_logger.start()
    logger.info("Log writers started")
    try:
        yield
    finally:
        # activity first: its forwarder still feeds the audit queue
        await activity_logger.stop()
        await audit_service.stop()
        await dispose_engine()
        reset_session_factory()
        logger.info("Log writers drained")


app = FastAPI(
    title="POS Activity Log",
    description="Buffered activity and audit logging for the retail POS",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(activity.router, prefix="/v1")
app.include_router(audit.router, prefix="/v1")
