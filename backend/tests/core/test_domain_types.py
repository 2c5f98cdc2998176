"""Domain Types — verifies rich type definitions and enum values.

Tests:
    - NewType wrappers exist and are callable
    - QuestionType covers exactly the nine supported field types
    - Airtable's "multilineText" maps to LONG_TEXT
    - FileUpload.describe never carries file bytes
"""

from uuid import uuid4

from app.core.domain_types import (
    AIRTABLE_FIELD_TYPES, ATTACHMENT_ONLY_RECORD_ID, SELECT_TYPES,
    ConditionOperator, FileUpload, FormId, QuestionType, ResponseId,
    RuleLogic, UserId, WebhookAction,
)


def test_identity_types_wrap_uuid():
    uid = uuid4()
    assert FormId(uid) == uid
    assert UserId(uid) == uid
    assert ResponseId(uid) == uid


def test_question_type_has_nine_types():
    assert {t.value for t in QuestionType} == {
        "singleLineText", "longText", "email", "phoneNumber", "number",
        "date", "singleSelect", "multipleSelects", "attachment",
    }


def test_airtable_multiline_text_maps_to_long_text():
    assert AIRTABLE_FIELD_TYPES["multilineText"] is QuestionType.LONG_TEXT
    assert "longText" not in AIRTABLE_FIELD_TYPES
    assert AIRTABLE_FIELD_TYPES["singleSelect"] is QuestionType.SINGLE_SELECT


def test_unsupported_airtable_types_are_absent():
    assert "formula" not in AIRTABLE_FIELD_TYPES
    assert "checkbox" not in AIRTABLE_FIELD_TYPES


def test_select_types():
    assert SELECT_TYPES == {QuestionType.SINGLE_SELECT, QuestionType.MULTIPLE_SELECTS}


def test_enum_values_match_stored_strings():
    assert RuleLogic("AND") is RuleLogic.AND
    assert ConditionOperator("notEquals") is ConditionOperator.NOT_EQUALS
    assert WebhookAction("recordDeleted") is WebhookAction.RECORD_DELETED


def test_file_upload_describe_omits_content():
    upload = FileUpload("a.txt", "text/plain", b"hello")
    assert upload.describe() == {
        "filename": "a.txt", "content_type": "text/plain", "size": 5,
    }


def test_attachment_only_sentinel():
    assert ATTACHMENT_ONLY_RECORD_ID == "file-upload-only"
