"""Airform API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map AirformError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database and Airtable client initialized on startup, closed on shutdown

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Router order: airtable_meta and form_submission before forms, because
      /forms/bases and /forms/public/... would otherwise hit /forms/{form_id}
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.error_handlers import register_error_handlers
from app.api.routes import (
    airtable_meta, auth, form_responses, form_submission, forms, health, webhooks,
)
from app.config import get_settings
from app.infrastructure.airtable_client import close_airtable, init_airtable
from app.infrastructure.database import close_db, init_db
from app.infrastructure.observability import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    init_airtable(
        api_url=settings.airtable_api_url,
        content_url=settings.airtable_content_url,
        auth_url=settings.airtable_auth_url,
        max_retries=settings.airtable_max_retries,
        base_delay_ms=settings.airtable_base_delay_ms,
        max_delay_ms=settings.airtable_max_delay_ms,
        timeout_seconds=settings.airtable_timeout_seconds,
    )
    logger.info("Airform API started")
    yield
    await close_airtable()
    await close_db()
    logger.info("Airform API shutting down")


app = FastAPI(title="Airform API", version="1.0.0", lifespan=lifespan)

# CORS — configured from settings, not hardcoded
settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(auth.router)
app.include_router(airtable_meta.router)
app.include_router(form_submission.router)
app.include_router(form_responses.router)
app.include_router(forms.router)
app.include_router(webhooks.router)

register_error_handlers(app)
