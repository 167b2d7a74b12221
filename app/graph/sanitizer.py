"""Repair untrusted generator output into a self-consistent task batch."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import replace
from typing import Any, cast

from app.graph.models import DEFAULT_PRIORITY, VALID_PRIORITIES, TaskDraft, TaskPriority
from app.utils.ids import generate_task_id

logger = logging.getLogger(__name__)


def _coerce_id(value: Any) -> str | None:
  """Return a usable identifier from a raw id value, or None when it is unusable."""
  # Booleans are ints in Python but never meaningful ids.
  if isinstance(value, bool):
    return None
  if isinstance(value, int):
    return str(value)
  if isinstance(value, str) and value.strip():
    return value.strip()
  return None


def _normalize_priority(value: Any) -> TaskPriority:
  if isinstance(value, str) and value.strip().lower() in VALID_PRIORITIES:
    return cast(TaskPriority, value.strip().lower())
  return DEFAULT_PRIORITY


class GraphSanitizer:
  """Normalize candidate tasks and drop dependency edges that do not resolve inside the batch."""

  def __init__(self, *, id_factory: Callable[[], str] = generate_task_id) -> None:
    self._id_factory = id_factory

  def sanitize(self, candidates: Iterable[Mapping[str, Any]]) -> list[TaskDraft]:
    """Return drafts whose dependency lists only reference sibling task ids."""
    identified = self._assign_ids(candidates)
    # Build the id set once so each dependency check is O(1).
    known_ids = {task_id for task_id, _ in identified}

    drafts: list[TaskDraft] = []
    for task_id, item in identified:
      kept, dropped = self._partition_dependencies(item.get("dependencies"), known_ids)
      if dropped:
        logger.warning("Task %s had unresolved dependencies removed: %s", task_id, dropped)

      drafts.append(
        TaskDraft(
          task_id=task_id,
          description=str(item.get("description") or "").strip(),
          priority=_normalize_priority(item.get("priority")),
          dependencies=kept,
          status="ready",
          dropped_dependencies=tuple(dropped),
        )
      )

    return drafts

  def reassign_ids(self, drafts: Sequence[TaskDraft], taken_ids: Iterable[str]) -> list[TaskDraft]:
    """Give fresh ids to drafts whose id is already used elsewhere, remapping sibling edges to match."""
    taken = set(taken_ids)
    renamed = {draft.task_id: self._id_factory() for draft in drafts if draft.task_id in taken}
    if not renamed:
      return list(drafts)

    for old_id, new_id in renamed.items():
      logger.warning("Task id %s is already in use; reassigned to %s", old_id, new_id)
    return [
      replace(draft, task_id=renamed.get(draft.task_id, draft.task_id), dependencies=[renamed.get(dependency, dependency) for dependency in draft.dependencies])
      for draft in drafts
    ]

  def _assign_ids(self, candidates: Iterable[Mapping[str, Any]]) -> list[tuple[str, Mapping[str, Any]]]:
    """Pair every candidate with a unique id, backfilling missing or repeated ones."""
    identified: list[tuple[str, Mapping[str, Any]]] = []
    seen: set[str] = set()

    for index, item in enumerate(candidates):
      if not isinstance(item, Mapping):
        logger.warning("Skipping non-object task candidate at index %d", index)
        continue

      task_id = _coerce_id(item.get("id"))
      if task_id is None:
        task_id = self._id_factory()
        logger.info("Backfilled missing id for task candidate at index %d: %s", index, task_id)
      elif task_id in seen:
        # The first occurrence owns the id; dependents resolve to it.
        replacement = self._id_factory()
        logger.warning("Duplicate task id %s at index %d replaced with %s", task_id, index, replacement)
        task_id = replacement

      seen.add(task_id)
      identified.append((task_id, item))

    return identified

  @staticmethod
  def _partition_dependencies(raw: Any, known_ids: set[str]) -> tuple[list[str], list[str]]:
    """Split declared dependencies into resolvable ids and dropped references."""
    if not isinstance(raw, list):
      return [], []

    kept: list[str] = []
    dropped: list[str] = []
    for value in raw:
      dependency_id = _coerce_id(value)
      if dependency_id is not None and dependency_id in known_ids:
        kept.append(dependency_id)
      else:
        dropped.append(str(value))

    return kept, dropped
