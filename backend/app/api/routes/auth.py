"""Auth Routes — Airtable OAuth 2.0 login with PKCE.

Invariants:
    - /login sets two httpOnly cookies (state, code verifier) and redirects to Airtable
    - /callback rejects provider errors, state mismatch, missing code or verifier
      before any outbound call
    - Both cookies are cleared once the callback has consumed them
    - One User per Airtable account: upsert keyed on the whoami id

Design Decisions:
    - Cookies over server-side session store: the PKCE pair lives only for one
      redirect round-trip
    - Redirect to the frontend dashboard with ?userId= (the frontend passes it back on
      every owner request, see api/dependencies.py)
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings, get_settings
from app.core.errors import OAuthError
from app.infrastructure.airtable_client import (
    ResilientAirtableClient, get_airtable_client,
)
from app.infrastructure.airtable_oauth import (
    build_authorize_url,
    generate_code_challenge,
    generate_code_verifier,
    generate_state,
)
from app.infrastructure.database import get_db
from app.models.user import User

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/auth", tags=["auth"])

STATE_COOKIE = "airtable_oauth_state"
VERIFIER_COOKIE = "airtable_code_verifier"


@router.get("/login")
async def login(settings: Settings = Depends(get_settings)):
    """Start the OAuth flow."""
    state = generate_state()
    verifier = generate_code_verifier()
    url = build_authorize_url(
        auth_url=settings.airtable_auth_url,
        client_id=settings.airtable_client_id,
        redirect_uri=settings.airtable_redirect_uri,
        scope=settings.airtable_scopes,
        state=state,
        code_challenge=generate_code_challenge(verifier),
    )
    response = RedirectResponse(url)
    for name, value in ((STATE_COOKIE, state), (VERIFIER_COOKIE, verifier)):
        response.set_cookie(
            name, value, httponly=True, secure=settings.cookie_secure,
            samesite="lax",
        )
    return response


async def _upsert_user(db: AsyncSession, account_id: str, tokens: dict) -> User:
    result = await db.execute(
        select(User).where(User.airtable_user_id == account_id),
    )
    user = result.scalar_one_or_none()
    if user is None:
        user = User(airtable_user_id=account_id)
        db.add(user)
    user.profile = {"airtable_user_id": account_id}
    user.access_token = tokens["access_token"]
    user.refresh_token = tokens.get("refresh_token", "")
    user.login_timestamp = datetime.now(timezone.utc)
    await db.commit()
    await db.refresh(user)
    return user


@router.get("/callback")
async def callback(
    request: Request,
    code: str | None = None,
    state: str | None = None,
    error: str | None = None,
    error_description: str | None = None,
    db: AsyncSession = Depends(get_db),
    client: ResilientAirtableClient = Depends(get_airtable_client),
    settings: Settings = Depends(get_settings),
):
    """Finish the OAuth flow and redirect to the dashboard."""
    if error:
        raise OAuthError(
            f"OAuth provider returned an error: {error_description or error}",
        )
    stored_state = request.cookies.get(STATE_COOKIE)
    if not state or not stored_state or state != stored_state:
        raise OAuthError("Invalid OAuth state")
    if not code:
        raise OAuthError("Missing authorization code in callback")
    verifier = request.cookies.get(VERIFIER_COOKIE)
    if not verifier:
        raise OAuthError("Missing PKCE code_verifier cookie")

    tokens = await client.exchange_code(
        code=code,
        code_verifier=verifier,
        redirect_uri=settings.airtable_redirect_uri,
        client_id=settings.airtable_client_id,
        client_secret=settings.airtable_client_secret,
    )
    identity = await client.whoami(tokens["access_token"])
    user = await _upsert_user(db, identity["id"], tokens)
    logger.info(f"User {user.id} logged in")

    response = RedirectResponse(
        f"{settings.frontend_url.rstrip('/')}/dashboard?userId={user.id}",
    )
    response.delete_cookie(STATE_COOKIE)
    response.delete_cookie(VERIFIER_COOKIE)
    return response
