"""Single-worker FIFO scheduler for transcript extraction jobs."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from datetime import UTC, datetime
from typing import Protocol

from app.jobs.models import Job, QueueStats
from app.jobs.queue import InMemoryJobQueue, JobQueueBackend

logger = logging.getLogger(__name__)


class JobProcessor(Protocol):
  """Runs one job to completion, raising when the job fails."""

  async def process(self, job: Job) -> None: ...


class JobScheduler:
  """Drain queued jobs one at a time in arrival order.

  A single long-lived worker task owns the queue, so at most one job is ever
  in flight and the external generator never sees parallel calls. The worker
  blocks on the backend between jobs; every enqueue wakes it, so a job added
  while another is running is always picked up.
  """

  def __init__(self, processor: JobProcessor, *, backend: JobQueueBackend | None = None) -> None:
    self._processor = processor
    self._backend = backend or InMemoryJobQueue()
    self._jobs: dict[str, Job] = {}
    self._worker: asyncio.Task[None] | None = None
    self._current_job_id: str | None = None

  @property
  def is_busy(self) -> bool:
    """True while a job runs or jobs are waiting."""
    return self._current_job_id is not None or self._backend.qsize() > 0

  @property
  def is_running(self) -> bool:
    return self._worker is not None and not self._worker.done()

  def start(self) -> None:
    """Spawn the worker task if it is not already running."""
    if self.is_running:
      return
    self._worker = asyncio.create_task(self._run(), name="insightboard-job-worker")
    logger.info("Job scheduler worker started.")

  async def stop(self) -> None:
    """Cancel the worker; queued jobs are dropped with the process."""
    worker = self._worker
    self._worker = None
    if worker is None:
      return
    worker.cancel()
    with contextlib.suppress(asyncio.CancelledError):
      await worker
    logger.info("Job scheduler worker stopped.")

  async def join(self) -> None:
    """Wait until every enqueued job has finished."""
    await self._backend.join()

  async def enqueue(self, job_id: str, transcript_id: str) -> Job:
    """Register a pending job and hand it to the worker."""
    existing = self._jobs.get(job_id)
    # A job that is still queued or running must not be processed twice.
    if existing is not None and existing.status in ("pending", "processing"):
      return existing

    job = Job(job_id=job_id, transcript_id=transcript_id)
    self._jobs[job_id] = job
    await self._backend.put(job_id)
    logger.info("Job %s enqueued (queue depth %d).", job_id, self._backend.qsize())
    self.start()
    return job

  def get_status(self, job_id: str) -> Job | None:
    return self._jobs.get(job_id)

  def get_stats(self) -> QueueStats:
    statuses = [job.status for job in self._jobs.values()]
    return QueueStats(
      total=len(statuses),
      pending=statuses.count("pending"),
      processing=statuses.count("processing"),
      completed=statuses.count("completed"),
      failed=statuses.count("failed"),
    )

  async def _run(self) -> None:
    while True:
      job_id = await self._backend.get()
      try:
        await self._process(job_id)
      finally:
        self._backend.task_done()

  async def _process(self, job_id: str) -> None:
    job = self._jobs.get(job_id)
    if job is None:
      logger.warning("Dequeued unknown job %s; skipping.", job_id)
      return

    job.status = "processing"
    job.started_at = datetime.now(UTC)
    self._current_job_id = job_id
    logger.info("Processing job %s for transcript %s.", job_id, job.transcript_id)
    try:
      await self._processor.process(job)
    except Exception as exc:  # noqa: BLE001
      # One job's failure never stops the drain loop.
      job.status = "failed"
      job.error_message = str(exc) or type(exc).__name__
      logger.error("Job %s failed: %s", job_id, job.error_message, exc_info=True)
    else:
      job.status = "completed"
      logger.info("Job %s completed.", job_id)
    finally:
      job.ended_at = datetime.now(UTC)
      self._current_job_id = None
