"""Form ORM — a public form bound to one Airtable base/table.

Invariants:
    - Always belongs to a User (owner_id FK)
    - questions is an ordered JSON list in the form builder's camelCase shape
      (questionKey, airtableFieldId, label, type, required, conditionalRules, options)
    - Deleting a form deletes its stored responses

Design Decisions:
    - JSON column for questions: a form is always loaded and evaluated whole, never
      queried per question (ADR: one row per form)
    - to_definition() is the only path from ORM row to the pure evaluator
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, DateTime, ForeignKey, JSON
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base
from app.core.form_definition import FormDefinition, form_from_record


class Form(Base):
    """Form aggregate root — owns its question list and responses."""
    __tablename__ = "forms"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    owner_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    airtable_base_id: Mapped[str] = mapped_column(String(64), nullable=False)
    airtable_table_id: Mapped[str] = mapped_column(String(64), nullable=False)
    questions: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    owner: Mapped["User"] = relationship("User", back_populates="forms")
    responses: Mapped[list["FormResponse"]] = relationship(
        "FormResponse", back_populates="form",
        cascade="all, delete-orphan", passive_deletes=True,
    )

    def to_definition(self) -> FormDefinition:
        return form_from_record(
            form_id=self.id,
            owner_id=self.owner_id,
            name=self.name,
            base_id=self.airtable_base_id,
            table_id=self.airtable_table_id,
            questions=self.questions or [],
        )
