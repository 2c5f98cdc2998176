"""Submission Enforcement — decides whether a submission is accepted and what gets written.

Invariants:
    - All functions are PURE: no IO, no async, no DB, no side effects
    - Required-ness is judged on VISIBLE questions only: a hidden required question
      never blocks a submission
    - A scalar falsy answer is missing: None, False, 0, 0.0, NaN, "". Empty lists and
      objects are answered values (a multi-select answered [] passes).
      A required number answered 0 is unanswered
    - Rejection happens before any write is planned (no partial side effects)
    - Field mapping covers every question with a present answer (key in answer set),
      not only visible ones, unless retain_hidden_answers is False
    - Attachment answers never enter the scalar field mapping

Design Decisions:
    - Return values (Rejected / SubmissionPlan) rather than exceptions: the route decides
      how to surface a rejection, and tests assert plain values (ADR: uniform result shape)
    - Accepted is built by the submission service after the external writes, because
      the record id only exists once Airtable has answered
"""

import math
from dataclasses import dataclass, field
from typing import Any, Union

from app.core.domain_types import AnswerSet, FileUpload, QuestionType
from app.core.evaluate_visibility import visible_questions
from app.core.form_definition import FormDefinition, Question


@dataclass(frozen=True)
class AttachmentTarget:
    question_key: str
    external_field_id: str
    upload: FileUpload


@dataclass(frozen=True)
class SubmissionPlan:
    """Writes an accepted submission requires, before any of them has run."""
    field_mapping: dict[str, Any]
    attachments: tuple[AttachmentTarget, ...]
    visible_keys: tuple[str, ...]


@dataclass(frozen=True)
class ExternalWriteFailure:
    operation: str              # "create_record" | "attach_file"
    reason: str
    question_key: str | None = None


@dataclass(frozen=True)
class Rejected:
    missing_required_keys: list[str]


@dataclass(frozen=True)
class Accepted:
    external_field_mapping: dict[str, Any]
    record_id: str
    failed_attachments: list[str] = field(default_factory=list)
    failures: list[ExternalWriteFailure] = field(default_factory=list)

    @property
    def degraded(self) -> bool:
        return bool(self.failures)


SubmissionResult = Union[Accepted, Rejected]


def is_missing_answer(value: Any) -> bool:
    """True when an answer does not count toward a required question.

    Only scalar falsy values are missing; an empty list or object still counts as
    answered, as does any file.
    """
    if value is None or isinstance(value, (bool, str)):
        return not value
    if isinstance(value, (int, float)):
        return value == 0 or math.isnan(value)
    return False


def find_missing_required(
    visible: list[Question], answers: AnswerSet,
) -> list[str]:
    """Keys of visible required questions left unanswered, in form order."""
    return [
        q.question_key for q in visible
        if q.required and is_missing_answer(answers.get(q.question_key))
    ]


def build_field_mapping(
    questions: tuple[Question, ...],
    answers: AnswerSet,
    include_keys: frozenset[str] | None = None,
) -> tuple[dict[str, Any], tuple[AttachmentTarget, ...]]:
    """Split present answers into the scalar field mapping and attachment targets.

    include_keys restricts which questions contribute; None means all of them.
    """
    mapping: dict[str, Any] = {}
    attachments: list[AttachmentTarget] = []
    for q in questions:
        if q.question_key not in answers:
            continue
        if include_keys is not None and q.question_key not in include_keys:
            continue
        value = answers[q.question_key]
        if q.type == QuestionType.ATTACHMENT:
            if isinstance(value, FileUpload):
                attachments.append(
                    AttachmentTarget(q.question_key, q.external_field_id, value),
                )
            continue
        mapping[q.external_field_id] = value
    return mapping, tuple(attachments)


def plan_submission(
    form: FormDefinition,
    answers: AnswerSet,
    *,
    retain_hidden_answers: bool = True,
) -> Rejected | SubmissionPlan:
    """Validate a final answer set and plan the external writes it needs."""
    visible = visible_questions(form.questions, answers)
    missing = find_missing_required(visible, answers)
    if missing:
        return Rejected(missing_required_keys=missing)

    visible_set = frozenset(q.question_key for q in visible)
    mapping, attachments = build_field_mapping(
        form.questions, answers,
        include_keys=None if retain_hidden_answers else visible_set,
    )
    return SubmissionPlan(
        field_mapping=mapping,
        attachments=attachments,
        visible_keys=tuple(q.question_key for q in visible),
    )
