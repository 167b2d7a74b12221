"""Content-hash deduplication for transcript submissions."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from app.core.errors import DuplicateContentError
from app.storage.transcripts_repo import TranscriptRecord, TranscriptsRepository
from app.utils.hashing import generate_content_hash
from app.utils.ids import generate_job_id

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DuplicateCheck:
  is_duplicate: bool
  job_id: str | None = None
  transcript: TranscriptRecord | None = None


@dataclass(frozen=True)
class Submission:
  """Outcome of a submit call; `is_duplicate` means no new job was created."""

  job_id: str
  is_duplicate: bool
  transcript: TranscriptRecord


class IdempotencyGate:
  """Resolve equivalent transcripts to a single job.

  Content is equivalent when it matches after trimming and lower-casing. The
  check-then-create sequence is only safe because storage enforces hash
  uniqueness; a lost insert race is reported as DuplicateContentError and
  resolved to the winner's job.
  """

  def __init__(self, repo: TranscriptsRepository, *, job_id_factory: Callable[[], str] = generate_job_id) -> None:
    self._repo = repo
    self._job_id_factory = job_id_factory

  async def check_duplicate(self, content: str) -> DuplicateCheck:
    existing = await self._repo.find_transcript_by_hash(generate_content_hash(content))
    if existing is None:
      return DuplicateCheck(is_duplicate=False)

    logger.info("Duplicate transcript detected; returning existing job %s", existing.job_id)
    return DuplicateCheck(is_duplicate=True, job_id=existing.job_id, transcript=existing)

  async def create_record(self, job_id: str, content: str) -> TranscriptRecord:
    transcript = await self._repo.store_transcript(job_id=job_id, content=content, content_hash=generate_content_hash(content))
    logger.info("New transcript %s created for job %s", transcript.id, job_id)
    return transcript

  async def submit(self, content: str) -> Submission:
    """Return the existing job for equivalent content or create a new pending transcript."""
    check = await self.check_duplicate(content)
    if check.is_duplicate and check.job_id is not None and check.transcript is not None:
      return Submission(job_id=check.job_id, is_duplicate=True, transcript=check.transcript)

    job_id = self._job_id_factory()
    try:
      transcript = await self.create_record(job_id, content)
    except DuplicateContentError as exc:
      # A concurrent submission won the insert; converge on its job.
      winner = await self._repo.find_transcript_by_hash(exc.content_hash)
      if winner is None:
        raise
      logger.info("Lost submission race for hash %s; using job %s", exc.content_hash, winner.job_id)
      return Submission(job_id=winner.job_id, is_duplicate=True, transcript=winner)

    return Submission(job_id=job_id, is_duplicate=False, transcript=transcript)
