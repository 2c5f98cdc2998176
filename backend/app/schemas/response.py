"""Response Schemas — owner-facing views of stored submissions and analytics.

Invariants:
    - Keys are camelCase, matching FormOut and the form definition JSON
    - fieldStats is keyed by question key, one entry per question in form order
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ResponseOut(_CamelModel):
    id: UUID
    form_id: UUID = Field(alias="formId")
    airtable_record_id: str = Field(alias="airtableRecordId")
    answers: dict[str, Any]
    failed_attachments: list[str] = Field(default_factory=list, alias="failedAttachments")
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime | None = Field(None, alias="updatedAt")


class FieldStatsOut(_CamelModel):
    label: str
    type: str
    responses: int
    unique_values: int = Field(alias="uniqueValues")


class AnalyticsOut(_CamelModel):
    """Aggregate counts over the active responses of one form."""
    form_name: str = Field(alias="formName")
    created_at: datetime = Field(alias="createdAt")
    total_responses: int = Field(alias="totalResponses")
    recent_responses: int = Field(alias="recentResponses")
    field_stats: dict[str, FieldStatsOut] = Field(alias="fieldStats")
