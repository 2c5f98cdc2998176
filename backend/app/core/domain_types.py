"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - FormId, UserId, ResponseId wrap UUIDs — never use bare UUID in domain logic
    - All valid states encoded as Enums — no raw string matching
    - FileUpload is the only non-JSON answer value; it never reaches the database

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: values are the exact strings stored in form definitions and sent by the
      form builder, so they serialize to JSON without custom encoders
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, NewType
from uuid import UUID


# ─── Identity Types ──────────────────────────────────────────────

FormId = NewType("FormId", UUID)
UserId = NewType("UserId", UUID)
ResponseId = NewType("ResponseId", UUID)
QuestionKey = NewType("QuestionKey", str)

# Mapping question_key -> answer value (str, number, list[str], FileUpload)
AnswerSet = dict[str, Any]

# Stored as airtable_record_id when only attachments were written
ATTACHMENT_ONLY_RECORD_ID = "file-upload-only"


# ─── Enums ───────────────────────────────────────────────────────

class QuestionType(str, Enum):
    """Supported question types — each maps to one Airtable field type."""
    SINGLE_LINE_TEXT = "singleLineText"
    LONG_TEXT = "longText"
    EMAIL = "email"
    PHONE_NUMBER = "phoneNumber"
    NUMBER = "number"
    DATE = "date"
    SINGLE_SELECT = "singleSelect"
    MULTIPLE_SELECTS = "multipleSelects"
    ATTACHMENT = "attachment"


SELECT_TYPES = frozenset({QuestionType.SINGLE_SELECT, QuestionType.MULTIPLE_SELECTS})

# Airtable names long text "multilineText"; everything else matches 1:1
AIRTABLE_FIELD_TYPES: dict[str, QuestionType] = {
    **{t.value: t for t in QuestionType if t is not QuestionType.LONG_TEXT},
    "multilineText": QuestionType.LONG_TEXT,
}


class RuleLogic(str, Enum):
    """How a rule set combines its conditions."""
    AND = "AND"
    OR = "OR"


class ConditionOperator(str, Enum):
    """Comparison applied between a stored answer and a condition value."""
    EQUALS = "equals"
    NOT_EQUALS = "notEquals"
    CONTAINS = "contains"


class WebhookAction(str, Enum):
    """Airtable record notifications the webhook understands."""
    RECORD_UPDATED = "recordUpdated"
    RECORD_DELETED = "recordDeleted"


# ─── Value Types ─────────────────────────────────────────────────

@dataclass(frozen=True)
class FileUpload:
    """An uploaded file answering an attachment question."""
    filename: str
    content_type: str
    content: bytes

    def describe(self) -> dict:
        """JSON-safe summary stored in place of the file bytes."""
        return {
            "filename": self.filename,
            "content_type": self.content_type,
            "size": len(self.content),
        }
