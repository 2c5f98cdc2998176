"""Response Routes — owner views of stored submissions and aggregate analytics.

Invariants:
    - Owner-only (same rules as form CRUD)
    - Rows flagged deleted_in_airtable never appear in listings or analytics

Design Decisions:
    - Analytics computed in Python by core/form_analytics.py over the loaded rows
      rather than in SQL: per-field unique counts over JSON answers are not portable
      between PostgreSQL and SQLite
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import get_owned_form
from app.config import Settings, get_settings
from app.core.form_analytics import compute_form_analytics
from app.infrastructure.database import get_db
from app.models.form import Form
from app.schemas.response import AnalyticsOut, ResponseOut
from app.services.form_responses import as_utc, list_active_responses

router = APIRouter(prefix="/api/v1/forms", tags=["responses"])


@router.get("/{form_id}/responses", response_model=list[ResponseOut])
async def list_responses(
    form: Form = Depends(get_owned_form),
    db: AsyncSession = Depends(get_db),
):
    responses = await list_active_responses(db, form.id)
    return [
        ResponseOut(
            id=r.id,
            form_id=r.form_id,
            airtable_record_id=r.airtable_record_id,
            answers=r.answers or {},
            failed_attachments=r.failed_attachments or [],
            created_at=as_utc(r.created_at),
            updated_at=as_utc(r.updated_at) if r.updated_at else None,
        )
        for r in responses
    ]


@router.get("/{form_id}/analytics", response_model=AnalyticsOut)
async def form_analytics(
    form: Form = Depends(get_owned_form),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    responses = await list_active_responses(db, form.id)
    stats = compute_form_analytics(
        form.to_definition().questions,
        [
            {"answers": r.answers, "created_at": as_utc(r.created_at)}
            for r in responses
        ],
        now=datetime.now(timezone.utc),
        recent_days=settings.analytics_recent_days,
    )
    return AnalyticsOut(
        form_name=form.name,
        created_at=as_utc(form.created_at),
        total_responses=stats["total_responses"],
        recent_responses=stats["recent_responses"],
        field_stats=stats["field_stats"],
    )
