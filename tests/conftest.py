"""Shared fixtures: in-memory storage, a scripted extractor and an API client."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Sequence
from dataclasses import replace
from datetime import UTC, datetime
from typing import Any

import pytest
from httpx import ASGITransport, AsyncClient

from app.config import get_settings
from app.core.errors import DuplicateContentError, ExtractionFailure, PersistenceFailure
from app.graph.models import TaskDraft, TaskStatus
from app.main import app
from app.services.container import ServiceContainer, build_services
from app.storage.transcripts_repo import TaskRecord, TranscriptMetadata, TranscriptRecord, TranscriptStatus
from app.utils.ids import generate_transcript_id


class InMemoryTranscriptsRepo:
  """In-memory repository that enforces the same uniqueness rules as Postgres."""

  def __init__(self) -> None:
    self.transcripts: dict[str, TranscriptRecord] = {}
    self.tasks: list[TaskRecord] = []
    self.status_history: list[tuple[str, TranscriptStatus]] = []

  async def store_transcript(self, *, job_id: str, content: str, content_hash: str) -> TranscriptRecord:
    # Check-and-insert happens without yielding, like a unique index.
    if any(item.content_hash == content_hash for item in self.transcripts.values()):
      raise DuplicateContentError(content_hash)
    now = datetime.now(UTC)
    record = TranscriptRecord(id=generate_transcript_id(), job_id=job_id, content=content, content_hash=content_hash, status="pending", created_at=now, updated_at=now)
    self.transcripts[record.id] = record
    return record

  async def store_tasks(self, transcript_id: str, tasks: Sequence[TaskDraft]) -> list[TaskRecord]:
    # Mirror the unique index on task_id.
    stored = {task.task_id for task in self.tasks}
    if any(task.task_id in stored for task in tasks):
      raise PersistenceFailure("Database operation store_tasks failed.")
    now = datetime.now(UTC)
    records = [
      TaskRecord(task_id=task.task_id, transcript_id=transcript_id, description=task.description, priority=task.priority, status=task.status, dependencies=list(task.dependencies), error_message=task.error_message, created_at=now, updated_at=now)
      for task in tasks
    ]
    self.tasks.extend(records)
    return records

  async def update_transcript_status(self, job_id: str, status: TranscriptStatus, *, error_message: str | None = None, metadata: TranscriptMetadata | None = None) -> TranscriptRecord | None:
    record = await self.find_transcript_by_job_id(job_id)
    if record is None:
      return None
    changes: dict[str, Any] = {"status": status, "updated_at": datetime.now(UTC)}
    if error_message is not None:
      changes["error_message"] = error_message
    if metadata is not None:
      changes["metadata"] = metadata
    updated = replace(record, **changes)
    self.transcripts[record.id] = updated
    self.status_history.append((job_id, status))
    return updated

  async def update_task_status(self, task_id: str, status: TaskStatus) -> TaskRecord | None:
    for index, task in enumerate(self.tasks):
      if task.task_id == task_id:
        self.tasks[index] = replace(task, status=status, updated_at=datetime.now(UTC))
        return self.tasks[index]
    return None

  async def find_transcript_by_hash(self, content_hash: str) -> TranscriptRecord | None:
    found = next((item for item in self.transcripts.values() if item.content_hash == content_hash), None)
    # Yield after reading so concurrent submissions can act on a stale answer.
    await asyncio.sleep(0)
    return found

  async def find_transcript_by_job_id(self, job_id: str) -> TranscriptRecord | None:
    return next((item for item in self.transcripts.values() if item.job_id == job_id), None)

  async def find_transcript_by_id(self, transcript_id: str) -> TranscriptRecord | None:
    return self.transcripts.get(transcript_id)

  async def find_task_by_task_id(self, task_id: str) -> TaskRecord | None:
    return next((task for task in self.tasks if task.task_id == task_id), None)

  async def find_tasks_by_transcript(self, transcript_id: str) -> list[TaskRecord]:
    return [task for task in self.tasks if task.transcript_id == transcript_id]

  async def find_existing_task_ids(self, task_ids: Sequence[str]) -> set[str]:
    stored = {task.task_id for task in self.tasks}
    return {task_id for task_id in task_ids if task_id in stored}


class ScriptedExtractor:
  """Extractor double returning canned candidates, or raising, per call."""

  def __init__(self, respond: Callable[[str], list[dict[str, Any]]] | None = None) -> None:
    self._respond = respond or (lambda _content: [])
    self.calls: list[str] = []

  async def extract_tasks(self, transcript: str) -> list[dict[str, Any]]:
    self.calls.append(transcript)
    await asyncio.sleep(0)
    return self._respond(transcript)


SAMPLE_TASKS: list[dict[str, Any]] = [
  {"id": "A", "description": "Draft the launch plan", "priority": "high", "dependencies": []},
  {"id": "B", "description": "Review the launch plan", "priority": "medium", "dependencies": ["A"]},
  {"id": "C", "description": "Book the venue", "priority": "bogus", "dependencies": ["X"]},
]

SAMPLE_TRANSCRIPT = "Alice will draft the launch plan by Friday. Bob reviews it afterwards. Carol books the venue."


@pytest.fixture
def anyio_backend() -> str:
  return "asyncio"


@pytest.fixture
def repo() -> InMemoryTranscriptsRepo:
  return InMemoryTranscriptsRepo()


@pytest.fixture
def sample_tasks() -> list[dict[str, Any]]:
  """A/B/C batch where C points at a task the model never emitted."""
  return [dict(item) for item in SAMPLE_TASKS]


@pytest.fixture
def sample_transcript() -> str:
  return SAMPLE_TRANSCRIPT


@pytest.fixture
def extractor(sample_tasks: list[dict[str, Any]]) -> ScriptedExtractor:
  return ScriptedExtractor(lambda _content: [dict(item) for item in sample_tasks])


@pytest.fixture
def scripted_extractor() -> type[ScriptedExtractor]:
  return ScriptedExtractor


@pytest.fixture
def failing_extractor() -> ScriptedExtractor:
  def _raise(_content: str) -> list[dict[str, Any]]:
    raise ExtractionFailure("model unavailable")

  return ScriptedExtractor(_raise)


@pytest.fixture
async def services(repo: InMemoryTranscriptsRepo, extractor: ScriptedExtractor):
  settings = replace(get_settings(), min_transcript_chars=50)
  container = build_services(settings, repo=repo, extractor=extractor)
  yield container
  await container.scheduler.stop()


@pytest.fixture
async def async_client(services: ServiceContainer):
  app.state.services = services
  async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
    yield client
  del app.state.services
