"""Unit tests for repairing untrusted task batches."""

from __future__ import annotations

import itertools

from app.graph import GraphSanitizer


def _sequential_ids():
  counter = itertools.count(1)
  return lambda: f"generated-{next(counter)}"


def test_dangling_dependencies_are_dropped_and_recorded() -> None:
  """Ensure every kept dependency resolves to a sibling task."""
  drafts = GraphSanitizer().sanitize(
    [
      {"id": "A", "description": "a", "dependencies": []},
      {"id": "B", "description": "b", "dependencies": ["A"]},
      {"id": "C", "description": "c", "dependencies": ["X", "A"]},
    ]
  )
  by_id = {draft.task_id: draft for draft in drafts}
  assert by_id["B"].dependencies == ["A"]
  assert by_id["C"].dependencies == ["A"]
  assert by_id["C"].dropped_dependencies == ("X",)
  known = set(by_id)
  assert all(set(draft.dependencies) <= known for draft in drafts)


def test_priority_and_dependencies_are_normalized() -> None:
  drafts = GraphSanitizer().sanitize(
    [
      {"id": "A", "description": "a", "priority": "urgent", "dependencies": "A"},
      {"id": "B", "description": "b", "priority": " HIGH "},
      {"id": "C", "description": "c", "priority": None, "dependencies": None},
    ]
  )
  assert [draft.priority for draft in drafts] == ["medium", "high", "medium"]
  assert [draft.dependencies for draft in drafts] == [[], [], []]
  assert all(draft.status == "ready" for draft in drafts)


def test_missing_ids_are_backfilled() -> None:
  drafts = GraphSanitizer(id_factory=_sequential_ids()).sanitize([{"description": "a"}, {"id": "   ", "description": "b"}])
  assert [draft.task_id for draft in drafts] == ["generated-1", "generated-2"]


def test_integer_ids_are_coerced_to_strings() -> None:
  drafts = GraphSanitizer().sanitize([{"id": 1, "description": "a"}, {"id": 2, "description": "b", "dependencies": [1, True, {"id": 1}]}])
  assert [draft.task_id for draft in drafts] == ["1", "2"]
  assert drafts[1].dependencies == ["1"]
  assert len(drafts[1].dropped_dependencies) == 2


def test_repeated_id_keeps_first_occurrence() -> None:
  """The later duplicate gets a fresh id so the batch stays persistable."""
  drafts = GraphSanitizer(id_factory=_sequential_ids()).sanitize(
    [
      {"id": "A", "description": "first"},
      {"id": "A", "description": "second"},
      {"id": "B", "description": "b", "dependencies": ["A"]},
    ]
  )
  assert [draft.task_id for draft in drafts] == ["A", "generated-1", "B"]
  assert drafts[2].dependencies == ["A"]


def test_non_object_candidates_are_skipped() -> None:
  drafts = GraphSanitizer().sanitize([{"id": "A", "description": "a"}, "not a task", 42])  # type: ignore[list-item]
  assert [draft.task_id for draft in drafts] == ["A"]


def test_self_dependency_is_kept_for_cycle_detection() -> None:
  drafts = GraphSanitizer().sanitize([{"id": "A", "description": "a", "dependencies": ["A"]}])
  assert drafts[0].dependencies == ["A"]


def test_ids_taken_elsewhere_are_reassigned_with_edges_remapped() -> None:
  sanitizer = GraphSanitizer(id_factory=_sequential_ids())
  drafts = sanitizer.sanitize(
    [
      {"id": "A", "description": "a", "dependencies": []},
      {"id": "B", "description": "b", "dependencies": ["A"]},
      {"id": "C", "description": "c", "dependencies": ["B"]},
    ]
  )
  reassigned = sanitizer.reassign_ids(drafts, {"A", "Z"})
  assert [draft.task_id for draft in reassigned] == ["generated-1", "B", "C"]
  assert reassigned[1].dependencies == ["generated-1"]
  assert reassigned[2].dependencies == ["B"]


def test_reassign_without_conflicts_keeps_batch() -> None:
  drafts = GraphSanitizer().sanitize([{"id": "A", "description": "a"}])
  assert GraphSanitizer().reassign_ids(drafts, set()) == drafts
