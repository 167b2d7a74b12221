"""Domain error taxonomy surfaced by services and mapped to HTTP responses in app.core.exceptions."""

from __future__ import annotations


class InsightBoardError(Exception):
  """Base class for errors raised by the InsightBoard core."""


class TranscriptValidationError(InsightBoardError):
  """Raised when client input is malformed; surfaced verbatim as a 400."""


class NotFoundError(InsightBoardError):
  """Raised when a job, transcript or task id is unknown."""


class TaskStateError(InsightBoardError):
  """Raised when a task cannot make the requested status transition."""


class ExtractionFailure(InsightBoardError):
  """Raised when the generator is unreachable or its output cannot be parsed."""


class PersistenceFailure(InsightBoardError):
  """Raised when the storage layer fails to read or write."""


class DuplicateContentError(PersistenceFailure):
  """Raised when a transcript with the same content hash already exists."""

  def __init__(self, content_hash: str) -> None:
    super().__init__(f"Transcript with content hash {content_hash} already exists.")
    self.content_hash = content_hash
