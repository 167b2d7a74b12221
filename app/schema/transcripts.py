from __future__ import annotations

import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from app.core.database import Base


class Transcript(Base):
  __tablename__ = "transcripts"

  id: Mapped[str] = mapped_column(String, primary_key=True)
  job_id: Mapped[str] = mapped_column(String, nullable=False, unique=True, index=True)
  content: Mapped[str] = mapped_column(Text, nullable=False)
  content_hash: Mapped[str] = mapped_column(String(64), nullable=False, unique=True, index=True)
  status: Mapped[str] = mapped_column(String, nullable=False, default="pending", server_default="pending")
  error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
  metadata_json: Mapped[dict | None] = mapped_column(JSONB, nullable=True)
  created_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
  updated_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())


class Task(Base):
  __tablename__ = "tasks"
  __table_args__ = (Index("ix_tasks_transcript_status", "transcript_id", "status"),)

  id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
  task_id: Mapped[str] = mapped_column(String, nullable=False, unique=True, index=True)
  transcript_id: Mapped[str] = mapped_column(ForeignKey("transcripts.id", ondelete="CASCADE"), nullable=False, index=True)
  description: Mapped[str] = mapped_column(Text, nullable=False)
  priority: Mapped[str] = mapped_column(String, nullable=False, default="medium", server_default="medium")
  dependencies: Mapped[list] = mapped_column(JSONB, nullable=False, default=list)
  status: Mapped[str] = mapped_column(String, nullable=False, default="ready", server_default="ready")
  error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
  created_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now())
  updated_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())
