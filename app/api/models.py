from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, StrictStr, field_validator
from pydantic.alias_generators import to_camel

from app.jobs.models import Job, QueueStats
from app.storage.transcripts_repo import TaskRecord, TranscriptMetadata, TranscriptRecord


class ApiModel(BaseModel):
  """Base for payloads exchanged with the frontend, which speaks camelCase."""

  model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SubmitTranscriptRequest(ApiModel):
  """Request body for transcript submission."""

  transcript: StrictStr = Field(description="Raw meeting transcript text.", examples=["Alice will draft the launch plan by Friday, then Bob reviews it..."])
  model_config = ConfigDict(extra="forbid")

  @field_validator("transcript")
  @classmethod
  def _strip_transcript(cls, value: str) -> str:
    """Trim surrounding whitespace and reject blank submissions."""
    value = value.strip()
    if not value:
      raise ValueError("Transcript content is required")
    return value


class SubmitTranscriptResponse(ApiModel):
  success: bool = True
  job_id: str
  message: str
  is_duplicate: bool


class MetadataModel(ApiModel):
  task_count: int
  cycles_detected: bool
  processing_time_ms: int

  @classmethod
  def from_metadata(cls, metadata: TranscriptMetadata | None) -> MetadataModel | None:
    if metadata is None:
      return None
    return cls(task_count=metadata.task_count, cycles_detected=metadata.cycles_detected, processing_time_ms=metadata.processing_time_ms)


class TaskModel(ApiModel):
  task_id: str
  transcript_id: str
  description: str
  priority: Literal["high", "medium", "low"]
  status: Literal["ready", "blocked", "completed", "error"]
  dependencies: list[str]
  error_message: str | None = None
  created_at: datetime | None = None
  updated_at: datetime | None = None

  @classmethod
  def from_record(cls, record: TaskRecord) -> TaskModel:
    return cls(
      task_id=record.task_id,
      transcript_id=record.transcript_id,
      description=record.description,
      priority=record.priority,
      status=record.status,
      dependencies=list(record.dependencies),
      error_message=record.error_message,
      created_at=record.created_at,
      updated_at=record.updated_at,
    )


class TranscriptSummary(ApiModel):
  id: str
  content: str
  created_at: datetime | None = None
  updated_at: datetime | None = None


class TranscriptModel(TranscriptSummary):
  job_id: str
  status: Literal["pending", "processing", "completed", "failed"]
  error_message: str | None = None
  metadata: MetadataModel | None = None

  @classmethod
  def from_record(cls, record: TranscriptRecord) -> TranscriptModel:
    return cls(
      id=record.id,
      job_id=record.job_id,
      content=record.content,
      status=record.status,
      error_message=record.error_message,
      metadata=MetadataModel.from_metadata(record.metadata),
      created_at=record.created_at,
      updated_at=record.updated_at,
    )


class QueueJobModel(ApiModel):
  """In-memory scheduler view of a job; absent after a restart."""

  job_id: str
  transcript_id: str
  status: Literal["pending", "processing", "completed", "failed"]
  started_at: datetime | None = None
  ended_at: datetime | None = None
  error_message: str | None = None

  @classmethod
  def from_job(cls, job: Job | None) -> QueueJobModel | None:
    if job is None:
      return None
    return cls(job_id=job.job_id, transcript_id=job.transcript_id, status=job.status, started_at=job.started_at, ended_at=job.ended_at, error_message=job.error_message)


class JobSnapshotModel(ApiModel):
  job_id: str
  status: Literal["pending", "processing", "completed", "failed"]
  transcript: TranscriptSummary
  tasks: list[TaskModel]
  metadata: MetadataModel | None = None
  error_message: str | None = None
  queue_status: QueueJobModel | None = None
  execution_order: list[str] | None = None


class JobSnapshotResponse(ApiModel):
  success: bool = True
  data: JobSnapshotModel


class QueueStatsModel(ApiModel):
  total: int
  pending: int
  processing: int
  completed: int
  failed: int

  @classmethod
  def from_stats(cls, stats: QueueStats) -> QueueStatsModel:
    return cls(total=stats.total, pending=stats.pending, processing=stats.processing, completed=stats.completed, failed=stats.failed)


class QueueStatsData(ApiModel):
  queue_stats: QueueStatsModel


class QueueStatsResponse(ApiModel):
  success: bool = True
  data: QueueStatsData


class TaskCompletionData(ApiModel):
  completed_task: TaskModel
  all_tasks: list[TaskModel]


class TaskCompletionResponse(ApiModel):
  success: bool = True
  message: str = "Task marked as completed"
  data: TaskCompletionData


class TranscriptTasksData(ApiModel):
  tasks: list[TaskModel]
  count: int


class TranscriptTasksResponse(ApiModel):
  success: bool = True
  data: TranscriptTasksData


class TranscriptDetailData(ApiModel):
  transcript: TranscriptModel
  tasks: list[TaskModel]


class TranscriptDetailResponse(ApiModel):
  success: bool = True
  data: TranscriptDetailData
