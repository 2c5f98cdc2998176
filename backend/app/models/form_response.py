"""FormResponse ORM — local record of a submission accepted by Airtable.

Invariants:
    - Always belongs to a Form (form_id FK, cascade on delete)
    - Created only after at least one Airtable write succeeded
    - airtable_record_id is "file-upload-only" when no scalar record was created
    - answers holds JSON only: uploaded files are stored as {filename, content_type, size}

Design Decisions:
    - Soft delete via deleted_in_airtable: the Airtable webhook marks rows, analytics
      and listings skip them, history is kept
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Boolean, DateTime, ForeignKey, JSON
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base


class FormResponse(Base):
    """One accepted submission."""
    __tablename__ = "form_responses"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    form_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("forms.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    airtable_record_id: Mapped[str] = mapped_column(
        String(64), nullable=False, index=True,
    )
    answers: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    failed_attachments: Mapped[list] = mapped_column(
        JSON, nullable=False, default=list,
    )
    deleted_in_airtable: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )

    form: Mapped["Form"] = relationship("Form", back_populates="responses")
