"""Postgres-backed repository for transcripts and tasks using SQLAlchemy."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from typing import cast

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.errors import DuplicateContentError, PersistenceFailure
from app.graph.models import TaskDraft, TaskPriority, TaskStatus
from app.schema.transcripts import Task, Transcript
from app.storage.transcripts_repo import TaskRecord, TranscriptMetadata, TranscriptRecord, TranscriptsRepository, TranscriptStatus
from app.utils.ids import generate_transcript_id

logger = logging.getLogger(__name__)


class PostgresTranscriptsRepository(TranscriptsRepository):
  """Persist transcripts and task batches to Postgres."""

  def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
    self._session_factory = session_factory

  @asynccontextmanager
  async def _session(self, operation: str) -> AsyncIterator[AsyncSession]:
    """Open a session and surface driver errors as PersistenceFailure."""
    async with self._session_factory() as session:
      try:
        yield session
      except SQLAlchemyError as exc:
        logger.error("Database operation %s failed: %s", operation, exc)
        raise PersistenceFailure(f"Database operation {operation} failed.") from exc

  async def store_transcript(self, *, job_id: str, content: str, content_hash: str) -> TranscriptRecord:
    async with self._session("store_transcript") as session:
      row = Transcript(id=generate_transcript_id(), job_id=job_id, content=content, content_hash=content_hash, status="pending")
      session.add(row)
      try:
        await session.commit()
      except IntegrityError:
        await session.rollback()
        # A concurrent submission may have claimed the hash first.
        existing = await self._select_transcript(session, Transcript.content_hash == content_hash)
        if existing is None:
          raise
        raise DuplicateContentError(content_hash) from None

      await session.refresh(row)
      return self._transcript_to_record(row)

  async def store_tasks(self, transcript_id: str, tasks: Sequence[TaskDraft]) -> list[TaskRecord]:
    async with self._session("store_tasks") as session:
      rows = [
        Task(task_id=task.task_id, transcript_id=transcript_id, description=task.description, priority=task.priority, dependencies=list(task.dependencies), status=task.status, error_message=task.error_message)
        for task in tasks
      ]
      # One transaction per batch so a job never leaves a partial task list behind.
      session.add_all(rows)
      await session.commit()
      for row in rows:
        await session.refresh(row)
      return [self._task_to_record(row) for row in rows]

  async def update_transcript_status(self, job_id: str, status: TranscriptStatus, *, error_message: str | None = None, metadata: TranscriptMetadata | None = None) -> TranscriptRecord | None:
    async with self._session("update_transcript_status") as session:
      row = await self._select_transcript(session, Transcript.job_id == job_id)
      if row is None:
        return None
      row.status = status
      if error_message is not None:
        row.error_message = error_message
      if metadata is not None:
        row.metadata_json = metadata.to_json()
      await session.commit()
      await session.refresh(row)
      return self._transcript_to_record(row)

  async def update_task_status(self, task_id: str, status: TaskStatus) -> TaskRecord | None:
    async with self._session("update_task_status") as session:
      row = await self._select_task(session, task_id)
      if row is None:
        return None
      row.status = status
      await session.commit()
      await session.refresh(row)
      return self._task_to_record(row)

  async def find_transcript_by_hash(self, content_hash: str) -> TranscriptRecord | None:
    async with self._session("find_transcript_by_hash") as session:
      row = await self._select_transcript(session, Transcript.content_hash == content_hash)
      return self._transcript_to_record(row) if row is not None else None

  async def find_transcript_by_job_id(self, job_id: str) -> TranscriptRecord | None:
    async with self._session("find_transcript_by_job_id") as session:
      row = await self._select_transcript(session, Transcript.job_id == job_id)
      return self._transcript_to_record(row) if row is not None else None

  async def find_transcript_by_id(self, transcript_id: str) -> TranscriptRecord | None:
    async with self._session("find_transcript_by_id") as session:
      row = await session.get(Transcript, transcript_id)
      return self._transcript_to_record(row) if row is not None else None

  async def find_task_by_task_id(self, task_id: str) -> TaskRecord | None:
    async with self._session("find_task_by_task_id") as session:
      row = await self._select_task(session, task_id)
      return self._task_to_record(row) if row is not None else None

  async def find_tasks_by_transcript(self, transcript_id: str) -> list[TaskRecord]:
    async with self._session("find_tasks_by_transcript") as session:
      # Surrogate key order matches insertion order within a batch.
      stmt = select(Task).where(Task.transcript_id == transcript_id).order_by(Task.id.asc())
      result = await session.execute(stmt)
      return [self._task_to_record(row) for row in result.scalars().all()]

  async def find_existing_task_ids(self, task_ids: Sequence[str]) -> set[str]:
    if not task_ids:
      return set()
    async with self._session("find_existing_task_ids") as session:
      result = await session.execute(select(Task.task_id).where(Task.task_id.in_(list(task_ids))))
      return set(result.scalars().all())

  async def _select_transcript(self, session: AsyncSession, criterion: object) -> Transcript | None:
    stmt = select(Transcript).where(criterion).limit(1)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()

  async def _select_task(self, session: AsyncSession, task_id: str) -> Task | None:
    stmt = select(Task).where(Task.task_id == task_id).limit(1)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()

  def _transcript_to_record(self, row: Transcript) -> TranscriptRecord:
    return TranscriptRecord(
      id=row.id,
      job_id=row.job_id,
      content=row.content,
      content_hash=row.content_hash,
      status=cast(TranscriptStatus, row.status),
      error_message=row.error_message,
      metadata=TranscriptMetadata.from_json(row.metadata_json),
      created_at=row.created_at,
      updated_at=row.updated_at,
    )

  def _task_to_record(self, row: Task) -> TaskRecord:
    return TaskRecord(
      task_id=row.task_id,
      transcript_id=row.transcript_id,
      description=row.description,
      priority=cast(TaskPriority, row.priority),
      status=cast(TaskStatus, row.status),
      dependencies=list(row.dependencies or []),
      error_message=row.error_message,
      created_at=row.created_at,
      updated_at=row.updated_at,
    )
