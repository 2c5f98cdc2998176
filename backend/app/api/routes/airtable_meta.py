"""Airtable Metadata — bases, tables and form-compatible fields of the owner's account.

Invariants:
    - Every call uses the caller's own access token
    - Fields are filtered to types a question can have (see AIRTABLE_FIELD_TYPES)

Design Decisions:
    - Registered BEFORE the forms router: /forms/bases must not be parsed as /forms/{form_id}
"""

from fastapi import APIRouter, Depends

from app.api.dependencies import get_current_user
from app.infrastructure.airtable_client import (
    ResilientAirtableClient, get_airtable_client,
)
from app.models.user import User

router = APIRouter(prefix="/api/v1/forms/bases", tags=["airtable"])


@router.get("")
async def list_bases(
    user: User = Depends(get_current_user),
    client: ResilientAirtableClient = Depends(get_airtable_client),
):
    return await client.list_bases(user.access_token)


@router.get("/{base_id}/tables")
async def list_tables(
    base_id: str,
    user: User = Depends(get_current_user),
    client: ResilientAirtableClient = Depends(get_airtable_client),
):
    return await client.list_tables(base_id, user.access_token)


@router.get("/{base_id}/tables/{table_id}/fields")
async def list_fields(
    base_id: str,
    table_id: str,
    user: User = Depends(get_current_user),
    client: ResilientAirtableClient = Depends(get_airtable_client),
):
    return await client.list_fields(base_id, table_id, user.access_token)
