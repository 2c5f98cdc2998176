"""Route Dependencies — caller identity, form ownership, and the record store.

Invariants:
    - Owner identity is the user_id query parameter resolved to a stored User;
      absent or unknown → AuthenticationError (401)
    - Owner-only form access: unknown form → 404, someone else's form → 403
    - get_record_store is the single seam where tests swap Airtable for a fake

Design Decisions:
    - FastAPI dependencies over middleware: each route declares exactly what it needs,
      and dependency_overrides replaces them in tests
"""

from uuid import UUID

from fastapi import Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import (
    AccessDeniedError, AuthenticationError, ErrorContext, ResourceNotFoundError,
)
from app.core.repository_protocols import RecordStore
from app.infrastructure.airtable_client import (
    ResilientAirtableClient, get_airtable_client,
)
from app.infrastructure.database import get_db
from app.models.form import Form
from app.models.user import User


async def get_current_user(
    user_id: UUID | None = Query(None),
    db: AsyncSession = Depends(get_db),
) -> User:
    if user_id is None:
        raise AuthenticationError()
    user = await db.get(User, user_id)
    if user is None:
        raise AuthenticationError("User not found")
    return user


async def get_form_or_404(form_id: UUID, db: AsyncSession) -> Form:
    form = await db.get(Form, form_id)
    if form is None:
        raise ResourceNotFoundError(
            "Form", str(form_id), ErrorContext(form_id=str(form_id)),
        )
    return form


async def get_owned_form(
    form_id: UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> Form:
    form = await get_form_or_404(form_id, db)
    if form.owner_id != user.id:
        raise AccessDeniedError(ErrorContext(form_id=str(form_id)))
    return form


def get_record_store(
    client: ResilientAirtableClient = Depends(get_airtable_client),
) -> RecordStore:
    return client
