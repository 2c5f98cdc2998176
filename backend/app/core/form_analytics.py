"""Form Analytics — pure computation of response statistics for a form.

Invariants:
    - All inputs are plain values (no IO, no DB); caller filters out responses
      deleted in Airtable before calling
    - A question "has a response" when its key is present in the stored answers
    - Unique values compare by canonical JSON, so list answers are counted by content
    - Never raises: empty input yields zero counts

Design Decisions:
    - Pure function, not a query: response counts per form are small enough to load,
      and the same function is trivially testable (ADR: Functional Core)
"""

import json
from datetime import datetime, timedelta

from app.core.form_definition import Question


def _canonical(value) -> str:
    return json.dumps(value, sort_keys=True, default=str)


def compute_field_stats(
    questions: tuple[Question, ...], answer_sets: list[dict],
) -> dict[str, dict]:
    stats = {}
    for q in questions:
        present = [a[q.question_key] for a in answer_sets if q.question_key in a]
        stats[q.question_key] = {
            "label": q.label,
            "type": q.type.value,
            "responses": len(present),
            "unique_values": len({_canonical(v) for v in present}),
        }
    return stats


def compute_form_analytics(
    questions: tuple[Question, ...],
    responses: list[dict],
    now: datetime,
    recent_days: int = 7,
) -> dict:
    """Summarize responses. Each response is {"answers": dict, "created_at": datetime}."""
    cutoff = now - timedelta(days=recent_days)
    recent = sum(1 for r in responses if r["created_at"] > cutoff)
    return {
        "total_responses": len(responses),
        "recent_responses": recent,
        "field_stats": compute_field_stats(
            questions, [r["answers"] or {} for r in responses],
        ),
    }
