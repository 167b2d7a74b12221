"""Unit tests for cycle quarantine and execution ordering."""

from __future__ import annotations

from app.graph import CIRCULAR_DEPENDENCY_MESSAGE, CycleDetector, TaskDraft


def _task(task_id: str, *dependencies: str) -> TaskDraft:
  return TaskDraft(task_id=task_id, description=f"task {task_id}", dependencies=list(dependencies))


def test_three_node_cycle_is_quarantined() -> None:
  """Ensure A->B->C->A marks every member as error."""
  result = CycleDetector().detect_cycles([_task("A", "B"), _task("B", "C"), _task("C", "A")])
  assert result.has_cycles is True
  assert result.cycle_nodes == frozenset({"A", "B", "C"})
  assert all(task.status == "error" for task in result.tasks)
  assert all(task.error_message == CIRCULAR_DEPENDENCY_MESSAGE for task in result.tasks)


def test_acyclic_graph_is_untouched() -> None:
  tasks = [_task("A"), _task("B", "A"), _task("C", "A", "B")]
  result = CycleDetector().detect_cycles(tasks)
  assert result.has_cycles is False
  assert result.cycle_nodes == frozenset()
  assert result.tasks == tasks
  assert all(task.status != "error" for task in result.tasks)


def test_dependents_of_a_cycle_are_not_marked_error() -> None:
  """D depends on the cycle but is not part of it."""
  result = CycleDetector().detect_cycles([_task("D", "A"), _task("A", "B"), _task("B", "A"), _task("E")])
  by_id = {task.task_id: task for task in result.tasks}
  assert result.cycle_nodes == frozenset({"A", "B"})
  assert by_id["D"].status == "ready"
  assert by_id["E"].status == "ready"


def test_self_loop_is_a_cycle() -> None:
  result = CycleDetector().detect_cycles([_task("A", "A"), _task("B")])
  assert result.cycle_nodes == frozenset({"A"})


def test_multiple_disjoint_cycles_are_all_found() -> None:
  result = CycleDetector().detect_cycles([_task("A", "B"), _task("B", "A"), _task("C", "D"), _task("D", "E"), _task("E", "C")])
  assert result.cycle_nodes == frozenset({"A", "B", "C", "D", "E"})


def test_tail_leading_into_cycle_is_excluded() -> None:
  """Only nodes on the cycle itself are quarantined, not the path that reached it."""
  result = CycleDetector().detect_cycles([_task("T", "A"), _task("A", "B"), _task("B", "C"), _task("C", "B")])
  assert result.cycle_nodes == frozenset({"B", "C"})


def test_topological_sort_puts_dependencies_first() -> None:
  tasks = [_task("C", "A", "B"), _task("B", "A"), _task("A"), _task("D", "C")]
  order = CycleDetector().topological_sort(tasks)
  assert order is not None
  assert sorted(order) == ["A", "B", "C", "D"]
  position = {task_id: index for index, task_id in enumerate(order)}
  for task in tasks:
    for dependency in task.dependencies:
      assert position[dependency] < position[task.task_id]


def test_topological_sort_fails_on_any_cycle() -> None:
  assert CycleDetector().topological_sort([_task("A"), _task("B", "C"), _task("C", "B")]) is None


def test_long_chain_does_not_hit_recursion_limit() -> None:
  tasks = [_task("n0")] + [_task(f"n{index}", f"n{index - 1}") for index in range(1, 5000)]
  detector = CycleDetector()
  assert detector.detect_cycles(tasks).has_cycles is False
  order = detector.topological_sort(tasks)
  assert order is not None
  assert order[0] == "n0"
  assert order[-1] == "n4999"


def test_cycle_member_reached_through_finished_node_is_quarantined() -> None:
  """D closes D->C->A->B->D even though C is finished before the walk reaches D."""
  result = CycleDetector().detect_cycles([_task("A", "B"), _task("B", "C", "D"), _task("C", "A"), _task("D", "C")])
  assert result.cycle_nodes == frozenset({"A", "B", "C", "D"})
  assert all(task.status == "error" for task in result.tasks)


def test_overlapping_cycles_share_one_quarantine() -> None:
  tasks = [_task("A", "B"), _task("B", "A", "C"), _task("C", "B"), _task("E", "C"), _task("F")]
  result = CycleDetector().detect_cycles(tasks)
  by_id = {task.task_id: task for task in result.tasks}
  assert result.cycle_nodes == frozenset({"A", "B", "C"})
  assert by_id["E"].status == "ready"
  assert by_id["F"].status == "ready"


def test_topological_sort_on_diamond_keeps_dependencies_first() -> None:
  order = CycleDetector().topological_sort([_task("D", "B", "C"), _task("B", "A"), _task("C", "A"), _task("A")])
  assert order is not None
  assert order[0] == "A"
  assert order[-1] == "D"
