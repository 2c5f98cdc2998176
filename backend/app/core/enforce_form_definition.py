"""Form Definition Enforcement — rejects malformed forms before they are stored.

Invariants:
    - All functions are PURE: no IO, no async, no DB, no side effects
    - Return a list of problems; empty list means the definition is sound
    - A condition may only reference a question that appears EARLIER in the form:
      this rules out self-, forward-, dangling and cyclic references in one check

Design Decisions:
    - Checked at create/update time, not at evaluation time: the evaluator must keep
      degrading to "hidden" for legacy rows, but new definitions never get that far
    - Collect every problem instead of failing fast: the form builder shows them all
"""

from app.core.domain_types import SELECT_TYPES
from app.core.form_definition import Question


def check_unique_keys(questions: tuple[Question, ...]) -> list[str]:
    seen: set[str] = set()
    problems = []
    for q in questions:
        if q.question_key in seen:
            problems.append(f"duplicate question key '{q.question_key}'")
        seen.add(q.question_key)
    return problems


def check_condition_references(questions: tuple[Question, ...]) -> list[str]:
    """Every condition must point at a question defined before its owner."""
    all_keys = {q.question_key for q in questions}
    earlier: set[str] = set()
    problems = []
    for q in questions:
        rules = q.conditional_rules
        for c in rules.conditions if rules else ():
            if c.question_key == q.question_key:
                problems.append(f"question '{q.question_key}' depends on itself")
            elif c.question_key not in all_keys:
                problems.append(
                    f"question '{q.question_key}' references unknown "
                    f"question '{c.question_key}'",
                )
            elif c.question_key not in earlier:
                problems.append(
                    f"question '{q.question_key}' references later "
                    f"question '{c.question_key}'",
                )
        earlier.add(q.question_key)
    return problems


def check_select_options(questions: tuple[Question, ...]) -> list[str]:
    problems = []
    for q in questions:
        if q.type in SELECT_TYPES and len(set(q.options)) != len(q.options):
            problems.append(f"question '{q.question_key}' has duplicate options")
    return problems


def validate_form_definition(questions: tuple[Question, ...]) -> list[str]:
    """Chain all definition checks. Returns every problem found."""
    return (
        check_unique_keys(questions)
        + check_condition_references(questions)
        + check_select_options(questions)
    )
