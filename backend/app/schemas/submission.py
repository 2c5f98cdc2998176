"""Submission Schemas — respondent-facing request/response contracts.

Invariants:
    - answers is an untyped mapping: value shape depends on the question type and is
      interpreted by core/evaluate_visibility.py and core/enforce_submission.py
    - SubmissionOut lists failed attachment keys so a degraded success is visible
    - Output keys are camelCase like the rest of the API
"""

from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class VisibilityRequest(BaseModel):
    answers: dict[str, Any] = Field(default_factory=dict)


class VisibilityOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    visible_question_keys: list[str] = Field(alias="visibleQuestionKeys")
    required_question_keys: list[str] = Field(alias="requiredQuestionKeys")
    missing_required_keys: list[str] = Field(alias="missingRequiredKeys")


class SubmissionOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str = "Response submitted successfully"
    response_id: UUID = Field(alias="responseId")
    airtable_record_id: str = Field(alias="airtableRecordId")
    failed_attachments: list[str] = Field(default_factory=list, alias="failedAttachments")
