"""Domain models for in-memory transcript processing jobs."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Literal

JobStatus = Literal["pending", "processing", "completed", "failed"]


@dataclass
class Job:
  """Represents one queued transcript extraction run.

  Jobs live only in process memory; a restart loses them while the persisted
  transcript keeps its last recorded status.
  """

  job_id: str
  transcript_id: str
  status: JobStatus = "pending"
  started_at: datetime | None = None
  ended_at: datetime | None = None
  error_message: str | None = None


@dataclass(frozen=True)
class QueueStats:
  """Aggregate job counts by status."""

  total: int
  pending: int
  processing: int
  completed: int
  failed: int
