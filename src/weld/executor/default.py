
"""
The default executor runs the tasks of a #BuildGraph on a pool of worker threads. A task is only
started after all of its dependencies reached a terminal state. With a single worker, tasks run
in the order returned by #BuildGraph.topological_order().

All bookkeeping (state transitions, fingerprint store updates, artifact publishing and failure
propagation) happens on the thread that calls #DefaultExecutor.execute(). Worker threads only
evaluate whether a task is up to date and invoke its actions.
"""

import concurrent.futures
import heapq
import logging
import time
import typing as t
from dataclasses import dataclass, field

from weld.actions import ActionContext, IProcessRunner, SubprocessRunner
from weld.errors import ActionFailure, TaskExecutionError
from weld.task import Task, TaskState
from weld.uptodate import Snapshot, UpToDateEvaluator
from weld.util.preconditions import check_argument, check_not_none
from .api import IExecutor
from .report import BuildReport, TaskResult
from .reporter import ConsoleReporter

if t.TYPE_CHECKING:
  from weld.artifacts import Artifact
  from weld.graph import BuildGraph
  from weld.settings import Settings
  from weld.store import FingerprintStore


@dataclass
class _Outcome:
  task_id: str
  state: TaskState
  duration: float
  inputs: t.Optional[Snapshot] = None
  error: t.Optional[BaseException] = None
  output: t.List[str] = field(default_factory=list)


class DefaultExecutor(IExecutor):
  """
  # Arguments
  workers: The maximum number of tasks that run at the same time.
  fail_fast: If enabled, no new tasks are started after the first task failed. Tasks that are
    already running are allowed to finish, all other tasks are cancelled.
  verbose: Print commands before they are executed and the output of every task.
  runner: The process runner to invoke external commands with.
  reporter: Receives the result of every task and of the build.
  """

  log = logging.getLogger(__module__ + '.' + __qualname__)  # type: ignore

  def __init__(
    self,
    workers: int = 1,
    fail_fast: bool = False,
    verbose: bool = False,
    runner: t.Optional[IProcessRunner] = None,
    reporter: t.Optional[ConsoleReporter] = None,
  ) -> None:
    check_argument(workers >= 1, f'workers must be at least 1, got {workers}')
    self.workers = workers
    self.fail_fast = fail_fast
    self.verbose = verbose
    self.runner = runner or SubprocessRunner()
    self.reporter = reporter or ConsoleReporter(verbose=verbose)

  def __repr__(self) -> str:
    return f'{type(self).__name__}(workers={self.workers!r}, fail_fast={self.fail_fast!r})'

  @classmethod
  def from_settings(cls, settings: 'Settings') -> 'DefaultExecutor':
    return cls(
      workers=settings.get_int('core.executor.workers', 1),
      fail_fast=settings.get_bool('core.executor.fail_fast', False),
      verbose=settings.get_bool('core.verbose', False))

  def execute(
    self,
    graph: 'BuildGraph',
    targets: t.Sequence[str],
    store: 'FingerprintStore',
    force: t.Collection[str] = (),
  ) -> BuildReport:

    # Configuration errors (unknown tasks, cycles) are raised here, before any task runs.
    order = graph.topological_order(graph.closure(targets))
    index = {task.path: i for i, task in enumerate(order)}
    pending = {x: set(graph.dependencies_of(x)) & index.keys() for x in index}
    evaluator = UpToDateEvaluator(force)
    results: t.Dict[str, TaskResult] = {}

    for task in order:
      task.state = TaskState.Pending

    ready = [(index[x], x) for x, deps in pending.items() if not deps]
    heapq.heapify(ready)
    running: t.Dict[concurrent.futures.Future, str] = {}
    stopped = False

    def finish(task: Task, result: TaskResult) -> None:
      task.state = result.state
      results[task.path] = result
      self.reporter.task_finished(result)

    with concurrent.futures.ThreadPoolExecutor(self.workers, thread_name_prefix='weld') as pool:
      while running or (ready and not stopped):
        while ready and not stopped and len(running) < self.workers:
          _, task_id = heapq.heappop(ready)
          task = graph.get(task_id)
          satisfied = all(results[x].state.satisfied for x in pending_deps(graph, task_id, index))
          artifacts = {name: graph.artifacts.resolve(name, task_id) for name in task.consumes}
          future = pool.submit(self._run_task, task, store, evaluator, artifacts, satisfied)
          running[future] = task_id

        done, _ = concurrent.futures.wait(list(running), return_when=concurrent.futures.FIRST_COMPLETED)
        for future in sorted(done, key=lambda f: index[running[f]]):
          task_id = running.pop(future)
          task = graph.get(task_id)
          outcome: _Outcome = future.result()
          self._complete(graph, store, evaluator, task, outcome)
          finish(task, TaskResult(task_id, outcome.state, outcome.duration, outcome.error, outcome.output))

          if outcome.state.satisfied:
            for dependent in graph.dependents_of(task_id, index.keys()):
              pending[dependent].discard(task_id)
              if not pending[dependent] and dependent not in results:
                heapq.heappush(ready, (index[dependent], dependent))
          else:
            for dependent in graph.transitive_dependents(task_id, index.keys()):
              if dependent not in results:
                finish(graph.get(dependent), TaskResult(dependent, TaskState.SkippedDueToFailure))
            if self.fail_fast and not stopped:
              self.log.info('stopping build after failure of task %r', task_id)
              stopped = True

    for task in order:
      if task.path not in results:
        finish(task, TaskResult(task.path, TaskState.Cancelled))

    report = BuildReport(list(targets), {x.path: results[x.path] for x in order})
    self.reporter.build_finished(report)
    return report

  def _run_task(
    self,
    task: Task,
    store: 'FingerprintStore',
    evaluator: UpToDateEvaluator,
    artifacts: t.Dict[str, 'Artifact'],
    dependencies_satisfied: bool,
  ) -> _Outcome:
    """ Called in a worker thread. Never raises. """

    tstart = time.perf_counter()
    extra_inputs = [artifact.output for artifact in artifacts.values()]
    context = ActionContext(task.path, self.runner, self.verbose, artifacts)
    inputs: t.Optional[Snapshot] = None

    try:
      inputs = evaluator.snapshot_inputs(task, extra_inputs)
      if evaluator.is_up_to_date(task, store, inputs, dependencies_satisfied):
        task.state = TaskState.UpToDate
        return _Outcome(task.path, TaskState.Skipped, time.perf_counter() - tstart, inputs)
      task.state = TaskState.Running
      self.log.debug('executing task %r', task.path)
      for action in task.get_actions():
        action.execute(context)
    except TaskExecutionError as exc:
      return _Outcome(task.path, TaskState.Failed, time.perf_counter() - tstart, inputs, exc, context.output)
    except Exception as exc:
      self.log.debug('unexpected error in task %r', task.path, exc_info=True)
      error = ActionFailure(task.path, f'{type(exc).__name__}: {exc}')
      error.__cause__ = exc
      return _Outcome(task.path, TaskState.Failed, time.perf_counter() - tstart, inputs, error, context.output)

    return _Outcome(task.path, TaskState.Succeeded, time.perf_counter() - tstart, inputs, None, context.output)

  def _complete(
    self,
    graph: 'BuildGraph',
    store: 'FingerprintStore',
    evaluator: UpToDateEvaluator,
    task: Task,
    outcome: _Outcome,
  ) -> None:
    """
    Updates the fingerprint store and publishes the artifacts of a task that did not fail. The
    record of a failed task is removed so that it is executed again in the next invocation.
    """

    if outcome.state == TaskState.Succeeded:
      inputs = check_not_none(outcome.inputs, f'no input snapshot for task {task.path!r}')
      store.save(evaluator.capture(task, inputs))
    elif outcome.state == TaskState.Failed:
      store.remove(task.path)
    if outcome.state.satisfied:
      for declaration in task.publishes:
        graph.artifacts.publish(task.path, declaration.name, declaration.output, declaration.type_tag)


def pending_deps(graph: 'BuildGraph', task_id: str, index: t.Collection[str]) -> t.List[str]:
  return [x for x in graph.dependencies_of(task_id) if x in index]
