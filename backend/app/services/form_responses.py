"""Form Responses — local persistence of accepted submissions and webhook updates.

Invariants:
    - record_response is only called with an Accepted result (Airtable already has it)
    - Stored answers are JSON-safe: FileUpload values become their describe() summary
    - Listings and analytics skip rows flagged deleted_in_airtable
    - Webhook updates address rows by airtable_record_id; unknown ids are a no-op

Design Decisions:
    - Plain async functions over a repository class: three call sites, no shared state
"""

import logging
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.domain_types import AnswerSet, FileUpload
from app.core.enforce_submission import Accepted
from app.models.form_response import FormResponse

logger = logging.getLogger(__name__)


def serialize_answers(answers: AnswerSet) -> dict:
    return {
        key: value.describe() if isinstance(value, FileUpload) else value
        for key, value in answers.items()
    }


def as_utc(value: datetime) -> datetime:
    """SQLite returns naive datetimes; every stored timestamp is UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


async def record_response(
    db: AsyncSession, form_id: UUID, answers: AnswerSet, accepted: Accepted,
) -> FormResponse:
    response = FormResponse(
        form_id=form_id,
        airtable_record_id=accepted.record_id,
        answers=serialize_answers(answers),
        failed_attachments=accepted.failed_attachments,
    )
    db.add(response)
    await db.commit()
    await db.refresh(response)
    logger.info(
        "Response recorded",
        extra={"form_id": str(form_id), "record_id": accepted.record_id},
    )
    return response


async def list_active_responses(
    db: AsyncSession, form_id: UUID,
) -> list[FormResponse]:
    result = await db.execute(
        select(FormResponse)
        .where(
            FormResponse.form_id == form_id,
            FormResponse.deleted_in_airtable.is_(False),
        )
        .order_by(FormResponse.created_at.desc()),
    )
    return list(result.scalars().all())


async def touch_by_record_id(db: AsyncSession, record_id: str) -> int:
    result = await db.execute(
        update(FormResponse)
        .where(FormResponse.airtable_record_id == record_id)
        .values(updated_at=datetime.now(timezone.utc)),
    )
    await db.commit()
    return result.rowcount


async def mark_deleted_by_record_id(db: AsyncSession, record_id: str) -> int:
    result = await db.execute(
        update(FormResponse)
        .where(FormResponse.airtable_record_id == record_id)
        .values(deleted_in_airtable=True, updated_at=datetime.now(timezone.utc)),
    )
    await db.commit()
    return result.rowcount
