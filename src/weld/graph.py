
import heapq
import os
import threading
import typing as t
from pathlib import Path

from weld.artifacts import ArtifactRegistry
from weld.errors import (CyclicDependencyError, DuplicateOutputError, DuplicateTaskError,
  UnknownTaskError, UnresolvedArtifactError)
from weld.task import Task
from weld.util.collections import unique


class BuildGraph:
  """
  The build graph contains the tasks of a build invocation and the edges between them. Edges are
  derived from the explicit dependencies of every task, from dependencies added with
  #add_dependency() and from the artifacts that a task consumes (an edge to the producer of the
  artifact).

  The graph is rebuilt for every invocation. Ties between independent tasks in the
  #topological_order() are broken by the order in which the tasks were registered.
  """

  def __init__(self) -> None:
    self._lock = threading.RLock()
    self._tasks: t.Dict[str, Task] = {}
    self._index: t.Dict[str, int] = {}
    self._edges: t.Dict[str, t.List[str]] = {}
    self._output_owners: t.Dict[Path, str] = {}
    self._dependents: t.Optional[t.Dict[str, t.List[str]]] = None
    self.artifacts = ArtifactRegistry(self)

  def __repr__(self) -> str:
    return f'{type(self).__name__}(tasks={len(self._tasks)})'

  def __contains__(self, task_id: str) -> bool:
    return task_id in self._tasks

  def __len__(self) -> int:
    return len(self._tasks)

  def register(self, task: Task) -> None:
    """
    Add a task to the graph. Raises a #DuplicateTaskError if a task with the same identity was
    already registered, a #DuplicateOutputError if one of the task's outputs is owned by another
    task and a #DuplicateArtifactError if the task publishes an artifact that another task already
    publishes.
    """

    with self._lock:
      if task.path in self._tasks:
        raise DuplicateTaskError(task.path)
      for output in task.outputs:
        owner = self._output_owners.get(output.path)
        if owner is not None and owner != task.path:
          raise DuplicateOutputError(str(output.path), owner, task.path)
      for declaration in task.publishes:
        self.artifacts.declare(task.path, declaration)
      for output in task.outputs:
        self._output_owners[output.path] = task.path
      self._index[task.path] = len(self._tasks)
      self._tasks[task.path] = task
      self._edges[task.path] = task.get_dependency_ids()
      self._dependents = None

  def register_all(self, tasks: t.Iterable[Task]) -> None:
    for task in tasks:
      self.register(task)

  def add_dependency(self, task_id: str, depends_on_id: str) -> None:
    """ Add an edge that makes *task_id* depend on *depends_on_id*. """

    with self._lock:
      for key in (task_id, depends_on_id):
        if key not in self._tasks:
          raise UnknownTaskError(key)
      if depends_on_id not in self._edges[task_id]:
        self._edges[task_id].append(depends_on_id)
        self._dependents = None

  def get(self, task_id: str) -> Task:
    try:
      return self._tasks[task_id]
    except KeyError:
      raise UnknownTaskError(task_id)

  def tasks(self) -> t.List[Task]:
    """ Returns all tasks in the order they were registered. """

    return list(self._tasks.values())

  def owner_of(self, path: t.Union[str, Path]) -> t.Optional[str]:
    """ Returns the identity of the task that declares *path* as its output. """

    return self._output_owners.get(Path(os.path.abspath(path)))

  def dependencies_of(self, task_id: str) -> t.List[str]:
    """
    Returns the direct dependencies of a task, including those implied by the artifacts it
    consumes. Raises an #UnresolvedArtifactError if no task declares a consumed artifact.
    """

    task = self.get(task_id)
    with self._lock:
      result = list(self._edges[task_id])
    for name in task.consumes:
      producer = self.artifacts.producer_of(name)
      if producer is None:
        raise UnresolvedArtifactError(name, task_id)
      result.append(producer)
    return [x for x in unique(result) if x != task_id]

  def dependents_of(self, task_id: str, within: t.Optional[t.Collection[str]] = None) -> t.List[str]:
    """ Returns the tasks that directly depend on *task_id*, optionally limited to *within*. """

    dependents = self._reverse_edges().get(task_id, [])
    if within is None:
      return list(dependents)
    return [x for x in dependents if x in within]

  def transitive_dependents(self, task_id: str, within: t.Optional[t.Collection[str]] = None) -> t.List[str]:
    """ Returns all tasks that depend on *task_id* directly or transitively. """

    result: t.Set[str] = set()
    queue = [task_id]
    while queue:
      for dependent in self.dependents_of(queue.pop(), within):
        if dependent not in result:
          result.add(dependent)
          queue.append(dependent)
    return self._sorted(result)

  def validate(self) -> None:
    """
    Checks that every dependency reference points to a registered task, that every consumed
    artifact is declared and that the graph is acyclic.
    """

    for task_id, edges in self._edges.items():
      for dep in edges:
        if dep not in self._tasks:
          raise UnknownTaskError(dep, task_id)
    self._visit(list(self._tasks))

  def closure(self, target_ids: t.Iterable[str]) -> t.List[Task]:
    """
    Returns the targets plus all of their transitive dependencies, in registration order. Raises
    a #CyclicDependencyError if the dependencies of the targets form a cycle.
    """

    targets = list(target_ids)
    for target in targets:
      if target not in self._tasks:
        raise UnknownTaskError(target)
    return [self._tasks[x] for x in self._sorted(self._visit(targets))]

  def topological_order(self, tasks: t.Iterable[Task]) -> t.List[Task]:
    """
    Returns a linear order of *tasks* in which every task comes after its dependencies (those that
    are contained in *tasks*). Among tasks that are ready at the same time, the one registered
    first comes first.
    """

    task_ids = {task.path for task in tasks}
    pending = {x: set(self.dependencies_of(x)) & task_ids for x in task_ids}
    ready = [(self._index[x], x) for x, deps in pending.items() if not deps]
    heapq.heapify(ready)
    result: t.List[Task] = []
    while ready:
      _, task_id = heapq.heappop(ready)
      result.append(self._tasks[task_id])
      for dependent in self.dependents_of(task_id, task_ids):
        pending[dependent].discard(task_id)
        if not pending[dependent]:
          heapq.heappush(ready, (self._index[dependent], dependent))
    if len(result) != len(task_ids):
      # Raises the CyclicDependencyError with the offending tasks.
      self._visit(self._sorted(task_ids - {x.path for x in result}))
    return result

  def _sorted(self, task_ids: t.Iterable[str]) -> t.List[str]:
    return sorted(task_ids, key=self._index.__getitem__)

  def _reverse_edges(self) -> t.Dict[str, t.List[str]]:
    """ Maps every task to the tasks that depend on it, in registration order. Built on demand. """

    with self._lock:
      if self._dependents is None:
        dependents: t.Dict[str, t.List[str]] = {x: [] for x in self._tasks}
        for task_id in self._tasks:
          for dep in self.dependencies_of(task_id):
            if dep in dependents:
              dependents[dep].append(task_id)
        self._dependents = dependents
      return self._dependents

  def _visit(self, roots: t.List[str]) -> t.Set[str]:
    """
    Depth-first walk over the dependencies of *roots* with an explicit stack. Returns the visited
    tasks or raises a #CyclicDependencyError naming the tasks on the cycle.
    """

    visited: t.Set[str] = set()
    for root in roots:
      if root in visited:
        continue
      if root not in self._tasks:
        raise UnknownTaskError(root)
      stack = [root]
      on_stack = {root}
      iterators = [iter(self.dependencies_of(root))]
      while iterators:
        dep = next(iterators[-1], None)
        if dep is None:
          iterators.pop()
          on_stack.discard(stack[-1])
          visited.add(stack.pop())
        elif dep in on_stack:
          raise CyclicDependencyError(stack[stack.index(dep):])
        elif dep not in visited:
          if dep not in self._tasks:
            raise UnknownTaskError(dep, stack[-1])
          stack.append(dep)
          on_stack.add(dep)
          iterators.append(iter(self.dependencies_of(dep)))
    return visited
