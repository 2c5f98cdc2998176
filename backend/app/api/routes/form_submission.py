"""Submission Routes — anonymous respondent endpoints (render, live visibility, submit).

Invariants:
    - No owner identity required: respondents are anonymous
    - /visibility and /submit run the SAME core functions (visible_questions,
      find_missing_required): the renderer can never disagree with the validator
    - Rejected → 400 MISSING_REQUIRED_FIELDS with the missing keys; nothing is written
    - A response row is stored only after write_submission reported success
    - Airtable writes use the form owner's access token

Design Decisions:
    - Submit accepts multipart (answers JSON field + one file per attachment question,
      field name = question key) and plain JSON ({"answers": {...}}) for forms
      without attachments
    - Files are only accepted under attachment question keys; a file posted under a
      text question never replaces its answer
    - Registered BEFORE the forms router so /forms/public/... is never shadowed
"""

import json
import logging
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.datastructures import UploadFile

from app.api.dependencies import get_form_or_404, get_record_store
from app.config import Settings, get_settings
from app.core.domain_types import AnswerSet, FileUpload, QuestionType
from app.core.enforce_submission import Rejected, find_missing_required
from app.core.errors import (
    AuthenticationError, ErrorContext, SubmissionRejectedError,
)
from app.core.evaluate_visibility import visible_questions
from app.core.repository_protocols import RecordStore
from app.infrastructure.database import get_db
from app.models.user import User
from app.schemas.submission import SubmissionOut, VisibilityOut, VisibilityRequest
from app.services.form_responses import record_response
from app.services.submit_form import validate_submission

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/forms", tags=["submissions"])


def _parse_answers(raw) -> AnswerSet:
    if raw is None or raw == "":
        return {}
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError:
            raise HTTPException(
                status.HTTP_400_BAD_REQUEST, detail="answers is not valid JSON",
            )
    if not isinstance(raw, dict):
        raise HTTPException(
            status.HTTP_400_BAD_REQUEST, detail="answers must be a JSON object",
        )
    return raw


async def read_submission(request: Request, attachment_keys: set[str]) -> AnswerSet:
    """Answer set from a multipart or JSON submit request.

    Uploads are merged in under their field name only when that name is an attachment
    question; files sent under any other name are ignored.
    """
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        try:
            body = await request.json()
        except json.JSONDecodeError:
            raise HTTPException(
                status.HTTP_400_BAD_REQUEST, detail="request body is not valid JSON",
            )
        return _parse_answers(body.get("answers") if isinstance(body, dict) else body)

    form_data = await request.form()
    answers = _parse_answers(form_data.get("answers"))
    for key, value in form_data.multi_items():
        if key in attachment_keys and isinstance(value, UploadFile):
            answers[key] = FileUpload(
                filename=value.filename or key,
                content_type=value.content_type or "application/octet-stream",
                content=await value.read(),
            )
    return answers


@router.get("/public/{form_id}")
async def get_public_form(form_id: UUID, db: AsyncSession = Depends(get_db)):
    """Form definition for anonymous rendering."""
    form = await get_form_or_404(form_id, db)
    return {
        "id": str(form.id),
        "name": form.name,
        "questions": form.questions,
    }


@router.post("/public/{form_id}/visibility", response_model=VisibilityOut)
async def evaluate_form_visibility(
    form_id: UUID,
    body: VisibilityRequest,
    db: AsyncSession = Depends(get_db),
):
    """Which questions are visible (and which of them required) for these answers."""
    form = await get_form_or_404(form_id, db)
    visible = visible_questions(form.to_definition().questions, body.answers)
    return VisibilityOut(
        visible_question_keys=[q.question_key for q in visible],
        required_question_keys=[q.question_key for q in visible if q.required],
        missing_required_keys=find_missing_required(visible, body.answers),
    )


@router.post(
    "/{form_id}/submit",
    response_model=SubmissionOut,
    status_code=status.HTTP_201_CREATED,
)
async def submit_form(
    form_id: UUID,
    request: Request,
    db: AsyncSession = Depends(get_db),
    store: RecordStore = Depends(get_record_store),
    settings: Settings = Depends(get_settings),
):
    """Validate, forward to Airtable, then record the response locally."""
    form = await get_form_or_404(form_id, db)
    definition = form.to_definition()
    answers = await read_submission(request, {
        q.question_key for q in definition.questions
        if q.type == QuestionType.ATTACHMENT
    })
    owner = await db.get(User, form.owner_id)
    if owner is None:
        raise AuthenticationError("Form owner not found")

    result = await validate_submission(
        definition,
        answers,
        store=store,
        access_token=owner.access_token,
        retain_hidden_answers=settings.retain_hidden_answers,
    )
    if isinstance(result, Rejected):
        raise SubmissionRejectedError(
            result.missing_required_keys, ErrorContext(form_id=str(form_id)),
        )

    response = await record_response(db, form.id, answers, result)
    return SubmissionOut(
        response_id=response.id,
        airtable_record_id=result.record_id,
        failed_attachments=result.failed_attachments,
    )
