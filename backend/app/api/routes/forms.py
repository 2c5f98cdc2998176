"""Form Routes — owner CRUD over form definitions.

Invariants:
    - Every route is owner-scoped (user_id query → User); foreign forms → 403
    - Definitions are checked by core/enforce_form_definition.py on create AND update;
      a malformed definition is never stored
    - Deleting a form deletes its stored responses in the same transaction

Design Decisions:
    - Explicit DELETE statements over ORM cascade: async sessions cannot lazy-load the
      responses collection that an ORM-level cascade would need
"""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.dependencies import get_current_user, get_owned_form
from app.core.enforce_form_definition import validate_form_definition
from app.core.errors import ErrorContext, FormDefinitionError
from app.infrastructure.database import get_db
from app.models.form import Form
from app.models.form_response import FormResponse
from app.models.user import User
from app.schemas.form import (
    FormCreate, FormOut, FormUpdate, QuestionSchema,
    dump_questions, to_domain_questions,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/forms", tags=["forms"])


def _checked_questions(
    questions: list[QuestionSchema], form_id: str | None = None,
) -> list[dict]:
    """Validate a question list and return its stored JSON form."""
    problems = validate_form_definition(to_domain_questions(questions))
    if problems:
        raise FormDefinitionError(problems, ErrorContext(form_id=form_id))
    return dump_questions(questions)


def to_form_out(form: Form) -> FormOut:
    return FormOut(
        id=form.id,
        owner_id=form.owner_id,
        name=form.name,
        base_id=form.airtable_base_id,
        table_id=form.airtable_table_id,
        questions=form.questions,
        created_at=form.created_at,
        updated_at=form.updated_at,
    )


@router.post(
    "", response_model=FormOut, status_code=status.HTTP_201_CREATED,
)
async def create_form(
    body: FormCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Create a form bound to one Airtable table."""
    form = Form(
        owner_id=user.id,
        name=body.name,
        airtable_base_id=body.base_id,
        airtable_table_id=body.table_id,
        questions=_checked_questions(body.questions),
    )
    db.add(form)
    await db.commit()
    await db.refresh(form)
    logger.info("Form created", extra={"form_id": str(form.id)})
    return to_form_out(form)


@router.get("", response_model=list[FormOut])
async def list_forms(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(Form)
        .where(Form.owner_id == user.id)
        .order_by(Form.created_at.desc()),
    )
    return [to_form_out(f) for f in result.scalars().all()]


@router.get("/{form_id}", response_model=FormOut)
async def get_form(form: Form = Depends(get_owned_form)):
    return to_form_out(form)


@router.put("/{form_id}", response_model=FormOut)
async def update_form(
    body: FormUpdate,
    form: Form = Depends(get_owned_form),
    db: AsyncSession = Depends(get_db),
):
    """Rename a form and/or replace its question list."""
    if body.name and body.name.strip():
        form.name = body.name.strip()
    if body.questions is not None:
        form.questions = _checked_questions(body.questions, str(form.id))
    await db.commit()
    await db.refresh(form)
    return to_form_out(form)


@router.delete("/{form_id}")
async def delete_form(
    form: Form = Depends(get_owned_form),
    db: AsyncSession = Depends(get_db),
):
    form_id = form.id
    await db.execute(delete(FormResponse).where(FormResponse.form_id == form_id))
    await db.execute(delete(Form).where(Form.id == form_id))
    await db.commit()
    logger.info("Form deleted", extra={"form_id": str(form_id)})
    return {"message": "Form deleted successfully"}
