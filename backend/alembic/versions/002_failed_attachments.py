"""Record which attachment uploads failed on a degraded submission.

Revision ID: 002_failed_attachments
Revises: 001_initial
Create Date: 2026-10-12

Adds failed_attachments (JSON list of question keys, default []) to form_responses
so partially-written submissions stay visible to the form owner.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '002_failed_attachments'
down_revision: Union[str, None] = '001_initial'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.add_column(
        'form_responses',
        sa.Column('failed_attachments', sa.JSON(), nullable=False, server_default='[]'),
    )


def downgrade() -> None:
    op.drop_column('form_responses', 'failed_attachments')
