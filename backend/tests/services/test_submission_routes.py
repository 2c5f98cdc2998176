"""Submission Routes — public rendering, live visibility and submit.

Invariants:
    - /visibility and /submit agree: keys missing in one are missing in the other
    - A rejected submit is 400 MISSING_REQUIRED_FIELDS and writes nothing anywhere
    - An accepted submit is 201, reaches the store with the owner's token, and stores
      exactly one response row
    - Multipart uploads are routed to attachment fields, never into record fields
    - A file posted under a non-attachment question is ignored
"""

import json
from uuid import uuid4

from sqlalchemy import select

from app.config import Settings, get_settings
from app.main import app
from app.models.form_response import FormResponse


async def _responses(session_factory):
    async with session_factory() as session:
        result = await session.execute(select(FormResponse))
        return list(result.scalars().all())


# ─── Public form ────────────────────────────────────────────────

async def test_public_form_needs_no_user(client, seed_form):
    res = await client.get(f"/api/v1/forms/public/{seed_form.id}")
    assert res.status_code == 200
    body = res.json()
    assert body["name"] == "Colour survey"
    assert len(body["questions"]) == 4


async def test_public_form_missing(client):
    res = await client.get(f"/api/v1/forms/public/{uuid4()}")
    assert res.status_code == 404


# ─── Visibility ─────────────────────────────────────────────────

async def test_visibility_hides_shade_until_blue(client, seed_form):
    url = f"/api/v1/forms/public/{seed_form.id}/visibility"
    res = await client.post(url, json={"answers": {"color": "red"}})
    assert res.status_code == 200
    assert res.json() == {
        "visibleQuestionKeys": ["name", "color", "resume"],
        "requiredQuestionKeys": ["name", "color"],
        "missingRequiredKeys": ["name"],
    }

    res = await client.post(url, json={"answers": {"name": "Ada", "color": "blue"}})
    body = res.json()
    assert body["visibleQuestionKeys"] == ["name", "color", "shade", "resume"]
    assert body["missingRequiredKeys"] == ["shade"]


async def test_visibility_empty_answers(client, seed_form):
    res = await client.post(
        f"/api/v1/forms/public/{seed_form.id}/visibility", json={},
    )
    assert res.json()["missingRequiredKeys"] == ["name", "color"]


# ─── Submit: rejection ──────────────────────────────────────────

async def test_submit_missing_conditional_required(
    client, seed_form, fake_store, test_session_factory,
):
    res = await client.post(
        f"/api/v1/forms/{seed_form.id}/submit",
        json={"answers": {"name": "Ada", "color": "blue"}},
    )
    assert res.status_code == 400
    error = res.json()["error"]
    assert error["code"] == "MISSING_REQUIRED_FIELDS"
    assert error["fields"] == ["shade"]
    assert fake_store.calls == []
    assert await _responses(test_session_factory) == []


async def test_submit_invalid_answers_json(client, seed_form, fake_store):
    res = await client.post(
        f"/api/v1/forms/{seed_form.id}/submit",
        data={"answers": "{not json"},
    )
    assert res.status_code == 400
    assert fake_store.calls == []


async def test_submit_unknown_form(client):
    res = await client.post(
        f"/api/v1/forms/{uuid4()}/submit", json={"answers": {}},
    )
    assert res.status_code == 404


# ─── Submit: acceptance ─────────────────────────────────────────

async def test_submit_json_accepted(client, seed_form, fake_store, test_session_factory):
    res = await client.post(
        f"/api/v1/forms/{seed_form.id}/submit",
        json={"answers": {"name": "Ada", "color": "red", "shade": "navy"}},
    )
    assert res.status_code == 201
    body = res.json()
    assert body["message"] == "Response submitted successfully"
    assert body["airtableRecordId"] == "rec001"
    assert body["failedAttachments"] == []

    assert fake_store.calls[0] == (
        "create_record", "tblTable",
        {"fldName": "Ada", "fldColor": "red", "fldShade": "navy"},
        "owner-token",
    )
    rows = await _responses(test_session_factory)
    assert len(rows) == 1
    assert str(rows[0].id) == body["responseId"]
    assert rows[0].answers == {"name": "Ada", "color": "red", "shade": "navy"}


async def test_submit_drops_hidden_answers_when_configured(client, seed_form, fake_store):
    app.dependency_overrides[get_settings] = lambda: Settings(retain_hidden_answers=False)
    res = await client.post(
        f"/api/v1/forms/{seed_form.id}/submit",
        json={"answers": {"name": "Ada", "color": "red", "shade": "navy"}},
    )
    assert res.status_code == 201
    assert fake_store.records["rec001"] == {"fldName": "Ada", "fldColor": "red"}


async def test_submit_multipart_with_attachment(
    client, seed_form, fake_store, test_session_factory,
):
    res = await client.post(
        f"/api/v1/forms/{seed_form.id}/submit",
        data={"answers": json.dumps({"name": "Ada", "color": "red"})},
        files={"resume": ("cv.pdf", b"%PDF-1.4", "application/pdf")},
    )
    assert res.status_code == 201
    assert fake_store.records["rec001"] == {"fldName": "Ada", "fldColor": "red"}
    assert fake_store.attachments == [
        {"record_id": "rec001", "field_id": "fldResume", "filename": "cv.pdf"},
    ]
    rows = await _responses(test_session_factory)
    assert rows[0].answers["resume"] == {
        "filename": "cv.pdf", "content_type": "application/pdf", "size": 8,
    }


async def test_file_under_text_question_keeps_text_answer(
    client, seed_form, fake_store, test_session_factory,
):
    res = await client.post(
        f"/api/v1/forms/{seed_form.id}/submit",
        data={"answers": json.dumps({"name": "Ada", "color": "red"})},
        files={"color": ("swatch.png", b"\x89PNG", "image/png")},
    )
    assert res.status_code == 201
    assert fake_store.records["rec001"] == {"fldName": "Ada", "fldColor": "red"}
    assert fake_store.attachments == []
    rows = await _responses(test_session_factory)
    assert rows[0].answers["color"] == "red"


async def test_submit_degraded_when_attachment_fails(
    client, seed_form, fake_store, test_session_factory,
):
    fake_store.fail_fields.add("fldResume")
    res = await client.post(
        f"/api/v1/forms/{seed_form.id}/submit",
        data={"answers": json.dumps({"name": "Ada", "color": "red"})},
        files={"resume": ("cv.pdf", b"%PDF", "application/pdf")},
    )
    assert res.status_code == 201
    assert res.json()["failedAttachments"] == ["resume"]
    rows = await _responses(test_session_factory)
    assert rows[0].failed_attachments == ["resume"]


async def test_submit_all_writes_failed(
    client, seed_form, fake_store, test_session_factory,
):
    fake_store.fail_create = True
    res = await client.post(
        f"/api/v1/forms/{seed_form.id}/submit",
        json={"answers": {"name": "Ada", "color": "red"}},
    )
    assert res.status_code == 502
    assert res.json()["error"]["code"] == "EXTERNAL_WRITE_FAILED"
    assert await _responses(test_session_factory) == []
