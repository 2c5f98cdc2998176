"""Airtable Webhook — keeps local response rows in step with Airtable record changes.

Invariants:
    - recordUpdated → updated_at touched; recordDeleted → deleted_in_airtable = True
    - Unknown actions and unknown record ids are acknowledged (200) and ignored,
      so Airtable does not retry them
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.domain_types import WebhookAction
from app.infrastructure.database import get_db
from app.schemas.webhook import AirtableWebhook
from app.services.form_responses import mark_deleted_by_record_id, touch_by_record_id

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/webhooks", tags=["webhooks"])


@router.post("/airtable")
async def airtable_webhook(
    body: AirtableWebhook, db: AsyncSession = Depends(get_db),
):
    if body.action == WebhookAction.RECORD_UPDATED:
        matched = await touch_by_record_id(db, body.record_id)
    elif body.action == WebhookAction.RECORD_DELETED:
        matched = await mark_deleted_by_record_id(db, body.record_id)
    else:
        logger.info(f"Ignoring webhook action {body.action!r}")
        return {"status": "ignored"}
    logger.info(
        f"Webhook {body.action} matched {matched} response(s)",
        extra={"record_id": body.record_id},
    )
    return {"status": "ok", "matched": matched}
