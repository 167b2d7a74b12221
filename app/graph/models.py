"""Task graph types shared by the sanitizer, cycle detector and readiness calculator."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Protocol, TypeVar

TaskStatus = Literal["ready", "blocked", "completed", "error"]
TaskPriority = Literal["high", "medium", "low"]

VALID_PRIORITIES: frozenset[str] = frozenset({"high", "medium", "low"})
TERMINAL_TASK_STATUSES: frozenset[str] = frozenset({"completed", "error"})
DEFAULT_PRIORITY: TaskPriority = "medium"


class GraphTask(Protocol):
  """Anything with an id, dependency edges and a status can flow through the graph pipeline."""

  @property
  def task_id(self) -> str: ...

  @property
  def dependencies(self) -> list[str]: ...

  @property
  def status(self) -> TaskStatus: ...


TaskT = TypeVar("TaskT", bound=GraphTask)


@dataclass(frozen=True)
class TaskDraft:
  """A sanitized task extracted from one transcript, not yet persisted."""

  task_id: str
  description: str
  priority: TaskPriority = DEFAULT_PRIORITY
  dependencies: list[str] = field(default_factory=list)
  status: TaskStatus = "ready"
  error_message: str | None = None
  # Dependency ids the generator declared but that did not resolve to a sibling task.
  dropped_dependencies: tuple[str, ...] = ()
