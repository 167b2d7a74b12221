"""Background processor for queued transcript extraction jobs."""

from __future__ import annotations

import logging
import time

from app.ai.extraction import TaskExtractor
from app.core.errors import NotFoundError
from app.graph import CycleDetector, GraphSanitizer, ReadinessCalculator
from app.jobs.models import Job
from app.storage.transcripts_repo import TranscriptMetadata, TranscriptsRepository


class TranscriptJobProcessor:
  """Run the extraction pipeline for one job and record the outcome on its transcript."""

  def __init__(self, *, repo: TranscriptsRepository, extractor: TaskExtractor, sanitizer: GraphSanitizer | None = None, detector: CycleDetector | None = None, readiness: ReadinessCalculator | None = None) -> None:
    self._repo = repo
    self._extractor = extractor
    self._sanitizer = sanitizer or GraphSanitizer()
    self._detector = detector or CycleDetector()
    self._readiness = readiness or ReadinessCalculator()
    self._logger = logging.getLogger(__name__)

  async def process(self, job: Job) -> None:
    """Extract, repair and persist the task graph; mark the transcript failed on any error."""
    started = time.perf_counter()
    try:
      await self._repo.update_transcript_status(job.job_id, "processing")

      transcript = await self._repo.find_transcript_by_job_id(job.job_id)
      if transcript is None:
        raise NotFoundError(f"Transcript for job {job.job_id} not found")

      candidates = await self._extractor.extract_tasks(transcript.content)

      # Repair the graph before anything is written: dangling edges, then cycles, then readiness.
      drafts = self._sanitizer.sanitize(candidates)
      # Task ids are unique across transcripts; the generator may repeat ids from earlier batches.
      taken_ids = await self._repo.find_existing_task_ids([draft.task_id for draft in drafts])
      drafts = self._sanitizer.reassign_ids(drafts, taken_ids)
      detection = self._detector.detect_cycles(drafts)
      tasks = self._readiness.recompute(detection.tasks)

      await self._repo.store_tasks(transcript.id, tasks)

      metadata = TranscriptMetadata(task_count=len(tasks), cycles_detected=detection.has_cycles, processing_time_ms=int((time.perf_counter() - started) * 1000))
      await self._repo.update_transcript_status(job.job_id, "completed", metadata=metadata)
      self._logger.info("Job %s produced %d tasks (cycles=%s) in %dms", job.job_id, metadata.task_count, metadata.cycles_detected, metadata.processing_time_ms)
    except Exception as exc:
      await self._mark_failed(job.job_id, str(exc) or type(exc).__name__)
      raise

  async def _mark_failed(self, job_id: str, message: str) -> None:
    try:
      await self._repo.update_transcript_status(job_id, "failed", error_message=message)
    except Exception:  # noqa: BLE001
      # The original failure is re-raised by the caller; this one is only logged.
      self._logger.error("Failed to record failure for job %s", job_id, exc_info=True)
