"""Auth + Airtable metadata routes — OAuth PKCE flow and owner-scoped metadata.

Invariants:
    - /login sets state + verifier cookies and redirects to Airtable's authorize URL
    - /callback rejects provider errors and state mismatch before any token exchange
    - Repeat logins of the same Airtable account reuse one User row
    - Metadata endpoints call Airtable with the caller's own token
"""

from urllib.parse import parse_qs, urlparse

from sqlalchemy import func, select

from app.models.user import User


async def _login(client):
    res = await client.get("/api/v1/auth/login")
    state = res.cookies.get("airtable_oauth_state")
    return res, state


# ─── Login ──────────────────────────────────────────────────────

async def test_login_redirects_with_pkce(client):
    res, state = await _login(client)
    assert res.status_code == 307
    location = urlparse(res.headers["location"])
    assert location.path.endswith("/authorize")
    params = parse_qs(location.query)
    assert params["state"] == [state]
    assert params["code_challenge_method"] == ["S256"]
    assert res.cookies.get("airtable_code_verifier")


# ─── Callback ───────────────────────────────────────────────────

async def test_callback_provider_error(client, fake_airtable):
    res = await client.get(
        "/api/v1/auth/callback?error=access_denied&error_description=nope",
    )
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "OAUTH_ERROR"
    assert fake_airtable.exchanged == []


async def test_callback_state_mismatch(client, fake_airtable):
    await _login(client)
    res = await client.get("/api/v1/auth/callback?code=abc&state=forged")
    assert res.status_code == 400
    assert fake_airtable.exchanged == []


async def test_callback_missing_code(client, fake_airtable):
    _, state = await _login(client)
    res = await client.get(f"/api/v1/auth/callback?state={state}")
    assert res.status_code == 400
    assert fake_airtable.exchanged == []


async def test_callback_creates_user_and_redirects(
    client, fake_airtable, test_session_factory,
):
    _, state = await _login(client)
    res = await client.get(f"/api/v1/auth/callback?code=abc&state={state}")
    assert res.status_code == 307
    assert "/dashboard?userId=" in res.headers["location"]
    assert fake_airtable.exchanged[0]["code"] == "abc"

    async with test_session_factory() as session:
        user = await session.scalar(select(User))
    assert user.airtable_user_id == "usrAccount1"
    assert user.access_token == "at-1"
    assert res.headers["location"].endswith(str(user.id))


async def test_repeat_login_reuses_user(client, fake_airtable, test_session_factory):
    for token in ("at-1", "at-2"):
        fake_airtable.tokens = {"access_token": token, "refresh_token": "rt"}
        _, state = await _login(client)
        await client.get(f"/api/v1/auth/callback?code=c&state={state}")

    async with test_session_factory() as session:
        assert await session.scalar(select(func.count()).select_from(User)) == 1
        user = await session.scalar(select(User))
    assert user.access_token == "at-2"


# ─── Metadata ───────────────────────────────────────────────────

async def test_list_bases_uses_owner_token(client, seed_user):
    res = await client.get(f"/api/v1/forms/bases?user_id={seed_user.id}")
    assert res.status_code == 200
    assert res.json()[0]["token"] == "owner-token"


async def test_list_tables_and_fields(client, seed_user):
    res = await client.get(f"/api/v1/forms/bases/appBase/tables?user_id={seed_user.id}")
    assert res.json()[0]["base"] == "appBase"
    res = await client.get(
        f"/api/v1/forms/bases/appBase/tables/tblTable/fields?user_id={seed_user.id}",
    )
    assert res.json()[0]["id"] == "fldName"


async def test_metadata_requires_user(client):
    res = await client.get("/api/v1/forms/bases")
    assert res.status_code == 401
