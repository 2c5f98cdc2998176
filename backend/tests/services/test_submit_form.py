"""Submission Service — verifies write ordering and best-effort failure handling.

Invariants:
    - Rejected submissions make zero store calls
    - Scalar record is written first; attachments land on its id
    - Attachment-only submissions upload the first file in "pending" mode (record_id
      None); every later file lands on the record it created
    - Attachment-only submissions report the file-upload-only sentinel
    - A failed attachment degrades the result; all writes failing raises
      ExternalWriteFailedError
"""

import pytest

from app.core.domain_types import ATTACHMENT_ONLY_RECORD_ID, FileUpload
from app.core.enforce_submission import Accepted, Rejected
from app.core.errors import ExternalWriteFailedError
from app.core.form_definition import form_from_record
from app.services.submit_form import validate_submission

from tests.services.sample_forms import COLOR_FORM_QUESTIONS
from tests.services.fake_record_store import FakeRecordStore


FORM = form_from_record(
    form_id=None, owner_id=None, name="Colour survey",
    base_id="appBase", table_id="tblTable", questions=COLOR_FORM_QUESTIONS,
)

ATTACHMENT_ONLY_FORM = form_from_record(
    form_id=None, owner_id=None, name="Upload", base_id="appBase",
    table_id="tblTable", questions=[COLOR_FORM_QUESTIONS[-1]],
)

RESUME = FileUpload("cv.pdf", "application/pdf", b"%PDF")

TWO_UPLOADS_FORM = form_from_record(
    form_id=None, owner_id=None, name="Portfolio", base_id="appBase",
    table_id="tblTable",
    questions=[
        COLOR_FORM_QUESTIONS[-1],
        {
            "questionKey": "portfolio",
            "airtableFieldId": "fldPortfolio",
            "label": "Portfolio",
            "type": "attachment",
        },
    ],
)

PORTFOLIO = FileUpload("work.zip", "application/zip", b"PK")


async def _submit(answers, store, form=FORM, **kwargs):
    return await validate_submission(
        form, answers, store=store, access_token="tok", **kwargs,
    )


# ─── Rejection ──────────────────────────────────────────────────

async def test_rejected_submission_makes_no_calls():
    store = FakeRecordStore()
    result = await _submit({"name": "Ada", "color": "blue"}, store)
    assert result == Rejected(["shade"])
    assert store.calls == []


# ─── Ordering ───────────────────────────────────────────────────

async def test_scalar_record_then_attachment_on_same_record():
    store = FakeRecordStore()
    result = await _submit({"name": "Ada", "color": "red", "resume": RESUME}, store)

    assert isinstance(result, Accepted)
    assert result.record_id == "rec001"
    assert [c[0] for c in store.calls] == ["create_record", "attach_file"]
    assert store.attachments == [
        {"record_id": "rec001", "field_id": "fldResume", "filename": "cv.pdf"},
    ]
    assert result.external_field_mapping == {"fldName": "Ada", "fldColor": "red"}
    assert not result.degraded


async def test_owner_token_is_forwarded():
    store = FakeRecordStore()
    await _submit({"name": "Ada", "color": "red"}, store)
    assert store.calls[0][3] == "tok"


async def test_attachment_only_uses_pending_mode():
    store = FakeRecordStore()
    result = await _submit({"resume": RESUME}, store, form=ATTACHMENT_ONLY_FORM)
    assert store.calls == [("attach_file", None, "fldResume", "cv.pdf")]
    assert result.record_id == ATTACHMENT_ONLY_RECORD_ID


async def test_attachment_only_files_share_one_record():
    store = FakeRecordStore()
    result = await _submit(
        {"resume": RESUME, "portfolio": PORTFOLIO}, store, form=TWO_UPLOADS_FORM,
    )
    assert isinstance(result, Accepted)
    assert store.calls == [
        ("attach_file", None, "fldResume", "cv.pdf"),
        ("attach_file", "rec001", "fldPortfolio", "work.zip"),
    ]
    assert list(store.records) == ["rec001"]
    assert result.record_id == ATTACHMENT_ONLY_RECORD_ID


async def test_failed_first_upload_leaves_next_in_pending_mode():
    store = FakeRecordStore()
    store.fail_fields.add("fldResume")
    result = await _submit(
        {"resume": RESUME, "portfolio": PORTFOLIO}, store, form=TWO_UPLOADS_FORM,
    )
    assert result.failed_attachments == ["resume"]
    assert store.calls[1] == ("attach_file", None, "fldPortfolio", "work.zip")
    assert list(store.records) == ["rec001"]


async def test_nothing_to_write_is_accepted():
    store = FakeRecordStore()
    result = await _submit({}, store, form=ATTACHMENT_ONLY_FORM)
    assert isinstance(result, Accepted)
    assert store.calls == []


async def test_hidden_answers_not_forwarded_when_disabled():
    store = FakeRecordStore()
    await _submit(
        {"name": "Ada", "color": "red", "shade": "navy"}, store,
        retain_hidden_answers=False,
    )
    assert "fldShade" not in store.records["rec001"]


# ─── Failure handling ───────────────────────────────────────────

async def test_failed_attachment_degrades_but_accepts():
    store = FakeRecordStore()
    store.fail_fields.add("fldResume")
    result = await _submit({"name": "Ada", "color": "red", "resume": RESUME}, store)
    assert isinstance(result, Accepted)
    assert result.record_id == "rec001"
    assert result.failed_attachments == ["resume"]
    assert result.degraded


async def test_failed_scalar_write_keeps_attachment():
    store = FakeRecordStore()
    store.fail_create = True
    result = await _submit({"name": "Ada", "color": "red", "resume": RESUME}, store)
    assert isinstance(result, Accepted)
    assert result.failed_attachments == []
    assert [f.operation for f in result.failures] == ["create_record"]
    assert store.calls[1] == ("attach_file", None, "fldResume", "cv.pdf")
    assert result.record_id == ATTACHMENT_ONLY_RECORD_ID


async def test_every_write_failing_raises():
    store = FakeRecordStore()
    store.fail_create = True
    store.fail_fields.add("fldResume")
    with pytest.raises(ExternalWriteFailedError) as exc:
        await _submit({"name": "Ada", "color": "red", "resume": RESUME}, store)
    assert exc.value.http_status == 502
    assert exc.value.details()["failures"] == [
        {"operation": "create_record", "questionKey": None},
        {"operation": "attach_file", "questionKey": "resume"},
    ]
