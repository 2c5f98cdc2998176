"""Form Schemas — Pydantic models with field-level validation for form definitions.

Invariants:
    - FormCreate.name: 1-200 chars, stripped, non-empty
    - Condition values are scalars (str, int, float, bool), never lists or objects
    - question_key: 1-100 chars, stripped
    - Cross-question checks (unique keys, earlier-only references) run in
      core/enforce_form_definition.py, not here

Design Decisions:
    - Enum types for type/operator/logic: Pydantic rejects unknown values at the boundary
    - dump_questions() emits the stored camelCase JSON so the ORM never sees Pydantic objects
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.core.domain_types import ConditionOperator, QuestionType, RuleLogic
from app.core.form_definition import Question, question_from_dict


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ConditionSchema(_CamelModel):
    question_key: str = Field(alias="questionKey", min_length=1)
    operator: ConditionOperator
    value: str | int | float | bool


class RuleSetSchema(_CamelModel):
    logic: RuleLogic
    conditions: list[ConditionSchema] = Field(default_factory=list)


class QuestionSchema(_CamelModel):
    question_key: str = Field(alias="questionKey", min_length=1, max_length=100)
    airtable_field_id: str = Field(alias="airtableFieldId", min_length=1)
    label: str = Field(min_length=1, max_length=500)
    type: QuestionType
    required: bool = False
    conditional_rules: RuleSetSchema | None = Field(None, alias="conditionalRules")
    options: list[str] = Field(default_factory=list)

    @field_validator("question_key")
    @classmethod
    def strip_key(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("questionKey cannot be empty or whitespace")
        return v


def dump_questions(questions: list[QuestionSchema]) -> list[dict]:
    return [q.model_dump(mode="json", by_alias=True) for q in questions]


def to_domain_questions(questions: list[QuestionSchema]) -> tuple[Question, ...]:
    return tuple(question_from_dict(q) for q in dump_questions(questions))


class FormCreate(_CamelModel):
    """Form creation — binds a question list to one Airtable table."""
    name: str = Field(min_length=1, max_length=200)
    base_id: str = Field(alias="baseId", min_length=1, max_length=64)
    table_id: str = Field(alias="tableId", min_length=1, max_length=64)
    questions: list[QuestionSchema] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty or whitespace")
        return v


class FormUpdate(_CamelModel):
    """Partial update — only provided fields change."""
    name: str | None = Field(None, min_length=1, max_length=200)
    questions: list[QuestionSchema] | None = None


class FormOut(_CamelModel):
    """Form response — public-facing form data."""
    id: UUID
    owner_id: UUID = Field(alias="owner")
    name: str
    base_id: str = Field(alias="airtableBaseId")
    table_id: str = Field(alias="airtableTableId")
    questions: list[dict]
    created_at: datetime = Field(alias="createdAt")
    updated_at: datetime = Field(alias="updatedAt")
