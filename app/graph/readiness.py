"""Derive ready/blocked status from the set of completed tasks."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import replace

from app.graph.models import TERMINAL_TASK_STATUSES, TaskT


class ReadinessCalculator:
  """Whole-batch readiness recompute.

  Pure and idempotent: applying it twice with the same completed set yields
  the same statuses. Terminal tasks (`completed`, `error`) are never touched.
  """

  def recompute(self, tasks: Sequence[TaskT], completed_ids: Iterable[str] = ()) -> list[TaskT]:
    completed = set(completed_ids)
    updated: list[TaskT] = []

    for task in tasks:
      if task.status in TERMINAL_TASK_STATUSES:
        updated.append(task)
        continue

      status = "ready" if all(dependency in completed for dependency in task.dependencies) else "blocked"
      updated.append(task if task.status == status else replace(task, status=status))

    return updated
