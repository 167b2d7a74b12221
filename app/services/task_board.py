"""Use-cases behind the transcript, job and task endpoints."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field

from app.core.errors import NotFoundError, TaskStateError, TranscriptValidationError
from app.graph import CycleDetector, ReadinessCalculator
from app.jobs.models import Job, QueueStats
from app.jobs.scheduler import JobScheduler
from app.services.idempotency import IdempotencyGate, Submission
from app.storage.transcripts_repo import TaskRecord, TranscriptMetadata, TranscriptRecord, TranscriptsRepository

logger = logging.getLogger(__name__)

_JOB_NOT_FOUND_MSG = "Job not found"
_TASK_NOT_FOUND_MSG = "Task not found"
_TRANSCRIPT_NOT_FOUND_MSG = "Transcript not found"


@dataclass(frozen=True)
class JobSnapshot:
  """Poll view of a job: persisted transcript state plus in-memory queue state."""

  job_id: str
  status: str
  transcript: TranscriptRecord
  tasks: list[TaskRecord] = field(default_factory=list)
  metadata: TranscriptMetadata | None = None
  error_message: str | None = None
  queue_status: Job | None = None
  execution_order: list[str] | None = None


@dataclass(frozen=True)
class CompletionResult:
  completed_task: TaskRecord
  all_tasks: list[TaskRecord]


class TaskBoardService:
  """Coordinate submission, polling and task completion."""

  def __init__(self, *, repo: TranscriptsRepository, gate: IdempotencyGate, scheduler: JobScheduler, min_transcript_chars: int = 50, detector: CycleDetector | None = None, readiness: ReadinessCalculator | None = None) -> None:
    self._repo = repo
    self._gate = gate
    self._scheduler = scheduler
    self._min_transcript_chars = min_transcript_chars
    self._detector = detector or CycleDetector()
    self._readiness = readiness or ReadinessCalculator()
    # Completions read the whole batch and write back derived statuses.
    self._completion_lock = asyncio.Lock()

  async def submit(self, content: str) -> Submission:
    """Deduplicate and enqueue a transcript."""
    if len(content.strip()) < self._min_transcript_chars:
      raise TranscriptValidationError(f"Transcript must be at least {self._min_transcript_chars} characters long")

    submission = await self._gate.submit(content)
    if not submission.is_duplicate:
      await self._scheduler.enqueue(submission.job_id, submission.transcript.id)
    return submission

  async def get_job_snapshot(self, job_id: str) -> JobSnapshot:
    transcript = await self._repo.find_transcript_by_job_id(job_id)
    if transcript is None:
      raise NotFoundError(_JOB_NOT_FOUND_MSG)

    # Tasks are only exposed once the whole batch has been written.
    tasks: list[TaskRecord] = []
    execution_order: list[str] | None = None
    if transcript.status == "completed":
      tasks = await self._repo.find_tasks_by_transcript(transcript.id)
      execution_order = self._detector.topological_sort(tasks)

    return JobSnapshot(
      job_id=job_id,
      status=transcript.status,
      transcript=transcript,
      tasks=tasks,
      metadata=transcript.metadata,
      error_message=transcript.error_message,
      queue_status=self._scheduler.get_status(job_id),
      execution_order=execution_order,
    )

  def get_queue_stats(self) -> QueueStats:
    return self._scheduler.get_stats()

  async def complete_task(self, task_id: str) -> CompletionResult:
    """Mark a task completed and recompute readiness for its whole batch."""
    async with self._completion_lock:
      task = await self._repo.find_task_by_task_id(task_id)
      if task is None:
        raise NotFoundError(_TASK_NOT_FOUND_MSG)

      # Error is terminal; a task on a dependency cycle can never be completed.
      if task.status == "error":
        raise TaskStateError(f"Task {task_id} is in error state and cannot be completed")

      if task.status != "completed":
        await self._repo.update_task_status(task_id, "completed")

      batch = await self._repo.find_tasks_by_transcript(task.transcript_id)
      completed_ids = {item.task_id for item in batch if item.status == "completed"}
      recomputed = self._readiness.recompute(batch, completed_ids)

      for before, after in zip(batch, recomputed, strict=True):
        if before.status != after.status:
          await self._repo.update_task_status(after.task_id, after.status)

      completed_task = next(item for item in recomputed if item.task_id == task_id)
      logger.info("Task %s completed; %d tasks now ready", task_id, sum(1 for item in recomputed if item.status == "ready"))
      return CompletionResult(completed_task=completed_task, all_tasks=recomputed)

  async def list_tasks_for_transcript(self, transcript_id: str) -> list[TaskRecord]:
    return await self._repo.find_tasks_by_transcript(transcript_id)

  async def get_transcript_detail(self, transcript_id: str) -> tuple[TranscriptRecord, list[TaskRecord]]:
    transcript = await self._repo.find_transcript_by_id(transcript_id)
    if transcript is None:
      raise NotFoundError(_TRANSCRIPT_NOT_FOUND_MSG)
    tasks = await self._repo.find_tasks_by_transcript(transcript_id)
    return transcript, tasks
