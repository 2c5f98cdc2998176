"""Submission Service — validates a final answer set and writes it to Airtable.

Invariants:
    - Validation (pure, core/enforce_submission.py) runs before any IO; a Rejected
      result returns with zero external calls
    - The scalar record is created first; its id anchors every attachment upload
    - Attachment uploads fan out concurrently (asyncio.gather) and are joined before
      the result is reported; no shared state between them
    - Without a scalar record the first attachment that lands creates the record and
      every later attachment lands on it; one submission never spans two records
    - Every write is best-effort and independent: a failed attachment never rolls back
      the scalar record, a failed scalar write does not stop attachments
    - Accepted when at least one write succeeded (or there was nothing to write);
      ExternalWriteFailedError when every write failed
    - No store exception escapes: each is converted to an ExternalWriteFailure

Design Decisions:
    - Scalar-then-attachments over full fan-out: uploads need a record id to land on,
      otherwise each file would create its own stray record (ADR: one submission, one record)
    - No retry here: ResilientAirtableClient owns retry/backoff for transient errors
    - In-flight writes are not cancelled if the respondent disconnects: Airtable has no
      rollback, so stopping halfway would only lose data
"""

import asyncio
import logging

from app.core.domain_types import ATTACHMENT_ONLY_RECORD_ID, AnswerSet
from app.core.enforce_submission import (
    Accepted,
    AttachmentTarget,
    ExternalWriteFailure,
    Rejected,
    SubmissionPlan,
    SubmissionResult,
    plan_submission,
)
from app.core.errors import AirformError, ExternalWriteFailedError, ErrorContext
from app.core.form_definition import FormDefinition
from app.core.repository_protocols import RecordStore

logger = logging.getLogger(__name__)


def _failure_reason(e: Exception) -> str:
    return e.message if isinstance(e, AirformError) else str(e) or type(e).__name__


async def _create_scalar_record(
    store: RecordStore, form: FormDefinition, plan: SubmissionPlan, access_token: str,
) -> tuple[str | None, ExternalWriteFailure | None]:
    if not plan.field_mapping:
        return None, None
    try:
        record_id = await store.create_record(form, plan.field_mapping, access_token)
        return record_id, None
    except Exception as e:
        logger.error(
            f"Scalar record write failed: {e}",
            extra={"form_id": str(form.id), "operation": "create_record"},
            exc_info=not isinstance(e, AirformError),
        )
        return None, ExternalWriteFailure("create_record", _failure_reason(e))


async def _attach(
    store: RecordStore,
    form: FormDefinition,
    record_id: str | None,
    target: AttachmentTarget,
    access_token: str,
) -> tuple[str | None, ExternalWriteFailure | None]:
    try:
        landed_on = await store.attach_file(
            form, record_id, target.external_field_id, target.upload, access_token,
        )
        return landed_on, None
    except Exception as e:
        logger.error(
            f"Attachment write failed: {e}",
            extra={
                "form_id": str(form.id),
                "question_key": target.question_key,
                "operation": "attach_file",
            },
            exc_info=not isinstance(e, AirformError),
        )
        return None, ExternalWriteFailure(
            "attach_file", _failure_reason(e), target.question_key,
        )


async def _attach_all(
    store: RecordStore,
    form: FormDefinition,
    record_id: str | None,
    targets: tuple[AttachmentTarget, ...],
    access_token: str,
) -> list[tuple[str | None, ExternalWriteFailure | None]]:
    """Upload every attachment onto one record.

    Without a scalar record, uploads go one at a time in pending mode until one of
    them creates a record; the rest then fan out onto that record's id.
    """
    results = []
    pending = list(targets)
    while record_id is None and pending:
        landed_on, failure = await _attach(
            store, form, None, pending.pop(0), access_token,
        )
        results.append((landed_on, failure))
        record_id = landed_on
    results += await asyncio.gather(*(
        _attach(store, form, record_id, target, access_token)
        for target in pending
    ))
    return results


async def write_submission(
    store: RecordStore,
    form: FormDefinition,
    plan: SubmissionPlan,
    access_token: str,
) -> Accepted:
    """Run the external writes of an accepted plan. Raises only if all of them failed."""
    record_id, scalar_failure = await _create_scalar_record(
        store, form, plan, access_token,
    )
    attach_results = await _attach_all(
        store, form, record_id, plan.attachments, access_token,
    )

    failures = [f for f in [scalar_failure] if f]
    failures += [f for _, f in attach_results if f]
    attempted = (1 if plan.field_mapping else 0) + len(plan.attachments)
    if attempted and len(failures) == attempted:
        raise ExternalWriteFailedError(
            failures, ErrorContext(form_id=str(form.id)),
        )

    accepted = Accepted(
        external_field_mapping=plan.field_mapping,
        record_id=record_id or ATTACHMENT_ONLY_RECORD_ID,
        failed_attachments=[
            f.question_key for f in failures if f.operation == "attach_file"
        ],
        failures=failures,
    )
    if accepted.degraded:
        logger.warning(
            f"Submission accepted with {len(failures)} failed write(s)",
            extra={"form_id": str(form.id), "record_id": accepted.record_id},
        )
    return accepted


async def validate_submission(
    form: FormDefinition,
    answers: AnswerSet,
    *,
    store: RecordStore,
    access_token: str,
    retain_hidden_answers: bool = True,
) -> SubmissionResult:
    """Validate answers against the form and, when accepted, forward them to Airtable."""
    plan = plan_submission(
        form, answers, retain_hidden_answers=retain_hidden_answers,
    )
    if isinstance(plan, Rejected):
        logger.info(
            f"Submission rejected: missing {plan.missing_required_keys}",
            extra={"form_id": str(form.id)},
        )
        return plan
    return await write_submission(store, form, plan, access_token)
