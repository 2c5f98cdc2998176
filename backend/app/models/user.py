"""User ORM — an Airtable account owner who builds forms.

Invariants:
    - airtable_user_id is unique: the Airtable account id returned by whoami
    - access_token/refresh_token are replaced on every login

Design Decisions:
    - Tokens stored as plain text columns: the service acts on the owner's behalf
      when anonymous respondents submit (ADR: no separate secrets store)
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Text, DateTime, JSON
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from app.db.base import Base


class User(Base):
    """Form owner authenticated through Airtable OAuth."""
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    airtable_user_id: Mapped[str] = mapped_column(
        String(128), nullable=False, unique=True,
    )
    profile: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    access_token: Mapped[str] = mapped_column(Text, nullable=False)
    refresh_token: Mapped[str] = mapped_column(Text, nullable=False)
    login_timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    forms: Mapped[list["Form"]] = relationship(
        "Form", back_populates="owner",
        cascade="all, delete-orphan", passive_deletes=True,
    )
