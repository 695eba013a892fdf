
import typing as t
from dataclasses import dataclass, field

from weld.task.state import TaskState


@dataclass
class TaskResult:
  task_id: str
  state: TaskState
  duration: float = 0.0
  error: t.Optional[BaseException] = None

  #: Output captured from the task's external commands.
  output: t.List[str] = field(default_factory=list)

  @property
  def up_to_date(self) -> bool:
    return self.state == TaskState.Skipped

  @property
  def executed(self) -> bool:
    return self.state in (TaskState.Succeeded, TaskState.Failed)


@dataclass
class BuildReport:
  """
  The result of a build invocation. The build #succeeded if every requested target succeeded or
  was up to date.
  """

  targets: t.List[str]
  results: t.Dict[str, TaskResult] = field(default_factory=dict)

  def __getitem__(self, task_id: str) -> TaskResult:
    return self.results[task_id]

  def state_of(self, task_id: str) -> TaskState:
    return self.results[task_id].state

  @property
  def succeeded(self) -> bool:
    return all(x in self.results and self.results[x].state.satisfied for x in self.targets)

  def failed_tasks(self) -> t.List[TaskResult]:
    return [r for r in self.results.values() if r.state == TaskState.Failed]

  def executed_tasks(self) -> t.List[str]:
    return [r.task_id for r in self.results.values() if r.executed]

  def summary(self) -> str:
    counts: t.Dict[TaskState, int] = {}
    for result in self.results.values():
      counts[result.state] = counts.get(result.state, 0) + 1
    parts = [f'{len(self.results)} task(s)']
    for state, label in [
      (TaskState.Succeeded, 'executed'),
      (TaskState.Skipped, 'up to date'),
      (TaskState.Failed, 'failed'),
      (TaskState.SkippedDueToFailure, 'skipped due to failure'),
      (TaskState.Cancelled, 'cancelled'),
    ]:
      if counts.get(state):
        parts.append(f'{counts[state]} {label}')
    return ', '.join(parts)
