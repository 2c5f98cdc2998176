"""Visibility Evaluation — decides which questions a respondent currently sees.

Invariants:
    - All functions are PURE: no IO, no async, no caching, never raise
    - Unconditional questions (conditional_rules is None) are always visible
    - Closed world: a condition whose dependency is unanswered (absent or None) is False
      under every operator
    - A condition referencing a key that is not a question of the form is False,
      even if the answer set happens to carry that key
    - AND over no conditions is True; OR over no conditions is False
    - visible_questions returns an order-preserving subsequence of its input

Design Decisions:
    - Whole-list re-scan on every call, no dependency graph: any answer change can flip
      any question, and forms have tens of questions (ADR: O(N*M) is fine at this scale)
    - Shared by the rendering endpoint and the submit endpoint, one algorithm
    - Explicit coercion (coerce_to_text, strict_equals) instead of relying on Python's
      loose ==, which would make True == 1 and str(["a"]) == "['a']"
"""

import json
import math
from collections.abc import Iterable, Sequence
from typing import Any

from app.core.domain_types import (
    AnswerSet, ConditionOperator, FileUpload, RuleLogic,
)
from app.core.form_definition import Condition, ConditionalRuleSet, Question


# ─── Value coercion ─────────────────────────────────────────────

def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def coerce_to_text(value: Any) -> str:
    """Textual form of an answer, as the form renderer displays it.

    Lists join with "," (None members become empty), booleans are lowercase,
    integral floats drop the trailing ".0", files render as their filename.
    """
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, (list, tuple)):
        return ",".join("" if v is None else coerce_to_text(v) for v in value)
    if isinstance(value, FileUpload):
        return value.filename
    if isinstance(value, dict):
        return json.dumps(value, sort_keys=True, default=str)
    return str(value)


def strict_equals(left: Any, right: Any) -> bool:
    """Type-strict equality: booleans never equal numbers, numbers never equal text."""
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right
    if _is_number(left) or _is_number(right):
        return _is_number(left) and _is_number(right) and left == right
    return left == right


# ─── Rule evaluation ────────────────────────────────────────────

def evaluate_condition(
    condition: Condition,
    answers: AnswerSet,
    known_keys: frozenset[str] | None = None,
) -> bool:
    """Evaluate one condition against the in-progress answers."""
    if known_keys is not None and condition.question_key not in known_keys:
        return False
    answer = answers.get(condition.question_key)
    if answer is None:
        return False

    if condition.operator == ConditionOperator.EQUALS:
        return strict_equals(answer, condition.value)
    if condition.operator == ConditionOperator.NOT_EQUALS:
        return not strict_equals(answer, condition.value)
    if condition.operator == ConditionOperator.CONTAINS:
        return coerce_to_text(condition.value) in coerce_to_text(answer)
    return False


def evaluate_rule_set(
    rules: ConditionalRuleSet,
    answers: AnswerSet,
    known_keys: frozenset[str] | None = None,
) -> bool:
    """Combine condition results per rule logic. Anything but AND combines as OR."""
    results = [
        evaluate_condition(c, answers, known_keys) for c in rules.conditions
    ]
    if rules.logic == RuleLogic.AND:
        return all(results)
    return any(results)


def is_question_visible(
    question: Question,
    answers: AnswerSet,
    known_keys: frozenset[str] | None = None,
) -> bool:
    if question.conditional_rules is None:
        return True
    return evaluate_rule_set(question.conditional_rules, answers, known_keys)


def visible_questions(
    questions: Sequence[Question], answers: AnswerSet,
) -> list[Question]:
    """Questions currently visible for these answers, in form order."""
    known_keys = frozenset(q.question_key for q in questions)
    return [
        q for q in questions if is_question_visible(q, answers, known_keys)
    ]


def visible_keys(questions: Iterable[Question], answers: AnswerSet) -> list[str]:
    return [q.question_key for q in visible_questions(list(questions), answers)]
