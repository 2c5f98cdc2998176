"""Form Definition — immutable in-memory form, question, and rule-set values.

Invariants:
    - Questions keep the order in which the owner arranged them
    - conditional_rules is None for unconditional questions
    - Values are frozen: evaluation never mutates a definition

Design Decisions:
    - Frozen dataclasses over ORM objects: the evaluator runs on plain values so the
      same code serves the rendering endpoint and the submit endpoint
    - from_dict helpers accept the camelCase JSON the form builder stores
      (questionKey, airtableFieldId, conditionalRules)
    - Unknown operator/logic strings are kept as raw strings rather than rejected:
      stored legacy forms must still load, and evaluation treats them as false
"""

from dataclasses import dataclass, field
from typing import Any
from uuid import UUID

from app.core.domain_types import (
    ConditionOperator, QuestionType, RuleLogic,
)


@dataclass(frozen=True)
class Condition:
    question_key: str
    operator: ConditionOperator | str
    value: Any


@dataclass(frozen=True)
class ConditionalRuleSet:
    logic: RuleLogic | str
    conditions: tuple[Condition, ...] = ()


@dataclass(frozen=True)
class Question:
    question_key: str
    external_field_id: str
    label: str
    type: QuestionType
    required: bool = False
    conditional_rules: ConditionalRuleSet | None = None
    options: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class FormDefinition:
    id: UUID | None
    owner_id: UUID | None
    name: str
    base_id: str
    table_id: str
    questions: tuple[Question, ...]

    @property
    def question_keys(self) -> frozenset[str]:
        return frozenset(q.question_key for q in self.questions)


def _enum_or_raw(enum_cls, raw):
    try:
        return enum_cls(raw)
    except ValueError:
        return raw


def condition_from_dict(data: dict) -> Condition:
    return Condition(
        question_key=data["questionKey"],
        operator=_enum_or_raw(ConditionOperator, data["operator"]),
        value=data.get("value"),
    )


def rule_set_from_dict(data: dict | None) -> ConditionalRuleSet | None:
    if data is None:
        return None
    return ConditionalRuleSet(
        logic=_enum_or_raw(RuleLogic, data.get("logic")),
        conditions=tuple(
            condition_from_dict(c) for c in data.get("conditions") or []
        ),
    )


def question_from_dict(data: dict) -> Question:
    """Build a Question from its stored JSON form."""
    return Question(
        question_key=data["questionKey"],
        external_field_id=data["airtableFieldId"],
        label=data["label"],
        type=QuestionType(data["type"]),
        required=bool(data.get("required", False)),
        conditional_rules=rule_set_from_dict(data.get("conditionalRules")),
        options=tuple(data.get("options") or ()),
    )


def form_from_record(
    *,
    form_id: UUID | None,
    owner_id: UUID | None,
    name: str,
    base_id: str,
    table_id: str,
    questions: list[dict],
) -> FormDefinition:
    """Build a FormDefinition from persisted columns (questions as JSON list)."""
    return FormDefinition(
        id=form_id,
        owner_id=owner_id,
        name=name,
        base_id=base_id,
        table_id=table_id,
        questions=tuple(question_from_dict(q) for q in questions),
    )
