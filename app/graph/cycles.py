"""Cycle detection and ordering over task dependency graphs.

Edges point from a task to each of its dependencies. Both passes walk the
graph iteratively with an explicit stack, so batch size never runs into the
interpreter recursion limit.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, replace
from enum import Enum
from typing import Generic

from app.graph.models import TaskT

logger = logging.getLogger(__name__)

CIRCULAR_DEPENDENCY_MESSAGE = "This task is part of a circular dependency"


class _NodeState(Enum):
  UNVISITED = 0
  ON_PATH = 1
  DONE = 2


@dataclass(frozen=True)
class CycleDetectionResult(Generic[TaskT]):
  """Outcome of a cycle scan over one batch."""

  has_cycles: bool
  cycle_nodes: frozenset[str]
  tasks: list[TaskT]


def _build_graph(tasks: Sequence[TaskT]) -> dict[str, list[str]]:
  """Map each task id to its dependency ids, preserving batch order."""
  graph: dict[str, list[str]] = {}
  for task in tasks:
    graph[task.task_id] = list(task.dependencies or [])
  return graph


def _cyclic_components(graph: dict[str, list[str]]) -> list[list[str]]:
  """Return the strongly connected components that contain a cycle.

  Iterative Tarjan. A component is cyclic when it has two or more members or
  its only member depends on itself. A node that can reach itself always
  lands in such a component, whichever edge the walk first reaches it by.
  """
  index_of: dict[str, int] = {}
  lowlink: dict[str, int] = {}
  on_stack: set[str] = set()
  component_stack: list[str] = []
  components: list[list[str]] = []
  work: list[tuple[str, Iterator[str]]] = []

  def enter(node: str) -> None:
    index_of[node] = lowlink[node] = len(index_of)
    component_stack.append(node)
    on_stack.add(node)
    work.append((node, iter(graph[node])))

  for root in graph:
    if root in index_of:
      continue

    enter(root)
    while work:
      node, dependencies = work[-1]
      dependency = next(dependencies, None)

      if dependency is None:
        work.pop()
        if work:
          parent = work[-1][0]
          lowlink[parent] = min(lowlink[parent], lowlink[node])
        if lowlink[node] != index_of[node]:
          continue

        # `node` roots a component: everything above it on the stack belongs to it.
        component: list[str] = []
        while True:
          member = component_stack.pop()
          on_stack.discard(member)
          component.append(member)
          if member == node:
            break
        if len(component) > 1 or node in graph[node]:
          components.append(component[::-1])
        continue

      # Unknown ids only appear when callers skip sanitization; they cannot close a cycle.
      if dependency not in graph:
        continue
      if dependency not in index_of:
        enter(dependency)
      elif dependency in on_stack:
        lowlink[node] = min(lowlink[node], index_of[dependency])

  return components


def _post_order(graph: dict[str, list[str]]) -> list[str] | None:
  """Depth-first post-order over the graph, or None on the first back-edge."""
  state = dict.fromkeys(graph, _NodeState.UNVISITED)
  order: list[str] = []

  for root in graph:
    if state[root] is not _NodeState.UNVISITED:
      continue

    state[root] = _NodeState.ON_PATH
    stack: list[tuple[str, Iterator[str]]] = [(root, iter(graph[root]))]
    while stack:
      node, dependencies = stack[-1]
      dependency = next(dependencies, None)

      # All edges of this node examined: backtrack.
      if dependency is None:
        stack.pop()
        state[node] = _NodeState.DONE
        order.append(node)
        continue

      dependency_state = state.get(dependency)
      if dependency_state is _NodeState.UNVISITED:
        state[dependency] = _NodeState.ON_PATH
        stack.append((dependency, iter(graph[dependency])))
      elif dependency_state is _NodeState.ON_PATH:
        return None

  return order


class CycleDetector:
  """Find circular dependencies and quarantine the tasks that form them."""

  def detect_cycles(self, tasks: Sequence[TaskT]) -> CycleDetectionResult[TaskT]:
    """Mark every task that lies on a dependency cycle as `error`.

    Tasks that merely depend on a cyclic task are left untouched; readiness
    will keep them blocked since their dependency can never complete.
    """
    cycle_nodes: set[str] = set()
    for component in _cyclic_components(_build_graph(tasks)):
      cycle_nodes.update(component)
      logger.warning("Circular dependency detected among tasks: %s", ", ".join(component))

    updated = [replace(task, status="error", error_message=CIRCULAR_DEPENDENCY_MESSAGE) if task.task_id in cycle_nodes else task for task in tasks]
    return CycleDetectionResult(has_cycles=bool(cycle_nodes), cycle_nodes=frozenset(cycle_nodes), tasks=updated)

  def topological_sort(self, tasks: Sequence[TaskT]) -> list[str] | None:
    """Return task ids in dependency-first order, or None when any cycle exists.

    For every edge task -> dependency the dependency comes first. This is the
    DFS post-order as emitted; reversing it would put dependents ahead of
    what they wait on.
    """
    return _post_order(_build_graph(tasks))
