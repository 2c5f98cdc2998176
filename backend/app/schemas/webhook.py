"""Webhook Schemas — Airtable record notifications.

Invariants:
    - action is free text: unknown actions are acknowledged and ignored
"""

from pydantic import BaseModel, ConfigDict, Field


class AirtableWebhook(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    action: str
    record_id: str = Field(alias="recordId", min_length=1)
    base_id: str | None = Field(None, alias="baseId")
    table_id: str | None = Field(None, alias="tableId")
