"""Explicit wiring of the service graph shared by request handlers."""

from __future__ import annotations

from dataclasses import dataclass

from app.ai.extraction import TaskExtractor
from app.config import Settings
from app.graph import CycleDetector, GraphSanitizer, ReadinessCalculator
from app.jobs.queue import JobQueueBackend
from app.jobs.scheduler import JobScheduler
from app.jobs.worker import TranscriptJobProcessor
from app.services.idempotency import IdempotencyGate
from app.services.task_board import TaskBoardService
from app.storage.transcripts_repo import TranscriptsRepository


@dataclass(frozen=True)
class ServiceContainer:
  """Components owned by the application lifespan."""

  repo: TranscriptsRepository
  gate: IdempotencyGate
  scheduler: JobScheduler
  task_board: TaskBoardService


def build_services(settings: Settings, *, repo: TranscriptsRepository, extractor: TaskExtractor, backend: JobQueueBackend | None = None) -> ServiceContainer:
  """Build the service graph around a repository and an extractor."""
  detector = CycleDetector()
  readiness = ReadinessCalculator()
  processor = TranscriptJobProcessor(repo=repo, extractor=extractor, sanitizer=GraphSanitizer(), detector=detector, readiness=readiness)
  scheduler = JobScheduler(processor, backend=backend)
  gate = IdempotencyGate(repo)
  task_board = TaskBoardService(repo=repo, gate=gate, scheduler=scheduler, min_transcript_chars=settings.min_transcript_chars, detector=detector, readiness=readiness)
  return ServiceContainer(repo=repo, gate=gate, scheduler=scheduler, task_board=task_board)
