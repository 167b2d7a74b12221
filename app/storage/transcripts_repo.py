"""Storage interfaces for transcripts and their extracted tasks."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal, Protocol

from app.graph.models import TaskDraft, TaskPriority, TaskStatus

TranscriptStatus = Literal["pending", "processing", "completed", "failed"]


@dataclass(frozen=True)
class TranscriptMetadata:
  """Processing summary recorded when a job completes."""

  task_count: int
  cycles_detected: bool
  processing_time_ms: int

  def to_json(self) -> dict[str, Any]:
    return {"taskCount": self.task_count, "cyclesDetected": self.cycles_detected, "processingTimeMs": self.processing_time_ms}

  @classmethod
  def from_json(cls, payload: dict[str, Any] | None) -> TranscriptMetadata | None:
    if not payload:
      return None
    return cls(task_count=int(payload.get("taskCount") or 0), cycles_detected=bool(payload.get("cyclesDetected")), processing_time_ms=int(payload.get("processingTimeMs") or 0))


@dataclass(frozen=True)
class TranscriptRecord:
  """A submitted transcript and its processing outcome."""

  id: str
  job_id: str
  content: str
  content_hash: str
  status: TranscriptStatus
  error_message: str | None = None
  metadata: TranscriptMetadata | None = None
  created_at: datetime | None = None
  updated_at: datetime | None = None


@dataclass(frozen=True)
class TaskRecord:
  """A persisted task belonging to one transcript."""

  task_id: str
  transcript_id: str
  description: str
  priority: TaskPriority
  status: TaskStatus
  dependencies: list[str] = field(default_factory=list)
  error_message: str | None = None
  created_at: datetime | None = None
  updated_at: datetime | None = None


class TranscriptsRepository(Protocol):
  """Repository contract consumed by the idempotency gate, scheduler and task board."""

  async def store_transcript(self, *, job_id: str, content: str, content_hash: str) -> TranscriptRecord:
    """Persist a new pending transcript; raise DuplicateContentError when the hash exists."""

  async def store_tasks(self, transcript_id: str, tasks: Sequence[TaskDraft]) -> list[TaskRecord]:
    """Persist a whole task batch for a transcript, preserving batch order."""

  async def update_transcript_status(self, job_id: str, status: TranscriptStatus, *, error_message: str | None = None, metadata: TranscriptMetadata | None = None) -> TranscriptRecord | None:
    """Apply a status transition to the transcript owned by a job."""

  async def update_task_status(self, task_id: str, status: TaskStatus) -> TaskRecord | None:
    """Set the status of a single task."""

  async def find_transcript_by_hash(self, content_hash: str) -> TranscriptRecord | None:
    """Return the transcript registered under a content hash, if any."""

  async def find_transcript_by_job_id(self, job_id: str) -> TranscriptRecord | None:
    """Return the transcript for a job id, if any."""

  async def find_transcript_by_id(self, transcript_id: str) -> TranscriptRecord | None:
    """Return a transcript by primary key, if any."""

  async def find_task_by_task_id(self, task_id: str) -> TaskRecord | None:
    """Return a task by its task id, if any."""

  async def find_tasks_by_transcript(self, transcript_id: str) -> list[TaskRecord]:
    """Return all tasks for a transcript in batch order."""

  async def find_existing_task_ids(self, task_ids: Sequence[str]) -> set[str]:
    """Return the subset of `task_ids` already stored for any transcript."""
