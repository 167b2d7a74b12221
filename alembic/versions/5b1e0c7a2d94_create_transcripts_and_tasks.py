"""create transcripts and tasks

Revision ID: 5b1e0c7a2d94
Revises:
Create Date: 2026-10-18 09:00:00.000000
"""

from __future__ import annotations

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "5b1e0c7a2d94"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
  op.create_table(
    "transcripts",
    sa.Column("id", sa.String(), primary_key=True),
    sa.Column("job_id", sa.String(), nullable=False),
    sa.Column("content", sa.Text(), nullable=False),
    sa.Column("content_hash", sa.String(length=64), nullable=False),
    sa.Column("status", sa.String(), nullable=False, server_default="pending"),
    sa.Column("error_message", sa.Text(), nullable=True),
    sa.Column("metadata_json", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
    sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
  )
  # Unique hash index is what makes concurrent duplicate submissions converge.
  op.create_index("ix_transcripts_content_hash", "transcripts", ["content_hash"], unique=True)
  op.create_index("ix_transcripts_job_id", "transcripts", ["job_id"], unique=True)

  op.create_table(
    "tasks",
    sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
    sa.Column("task_id", sa.String(), nullable=False),
    sa.Column("transcript_id", sa.String(), sa.ForeignKey("transcripts.id", ondelete="CASCADE"), nullable=False),
    sa.Column("description", sa.Text(), nullable=False),
    sa.Column("priority", sa.String(), nullable=False, server_default="medium"),
    sa.Column("dependencies", postgresql.JSONB(astext_type=sa.Text()), nullable=False),
    sa.Column("status", sa.String(), nullable=False, server_default="ready"),
    sa.Column("error_message", sa.Text(), nullable=True),
    sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
  )
  op.create_index("ix_tasks_task_id", "tasks", ["task_id"], unique=True)
  op.create_index("ix_tasks_transcript_id", "tasks", ["transcript_id"], unique=False)
  op.create_index("ix_tasks_transcript_status", "tasks", ["transcript_id", "status"], unique=False)


def downgrade() -> None:
  op.drop_index("ix_tasks_transcript_status", table_name="tasks")
  op.drop_index("ix_tasks_transcript_id", table_name="tasks")
  op.drop_index("ix_tasks_task_id", table_name="tasks")
  op.drop_table("tasks")
  op.drop_index("ix_transcripts_job_id", table_name="transcripts")
  op.drop_index("ix_transcripts_content_hash", table_name="transcripts")
  op.drop_table("transcripts")
