
"""
Exceptions raised by the build system. Errors deriving from #ConfigurationError indicate that
the build graph itself is invalid; they are detected before any task is executed and abort the
whole invocation. Errors deriving from #TaskExecutionError are contained to the task that raised
them and the tasks that depend on it.
"""

import typing as t
from dataclasses import dataclass, field

if t.TYPE_CHECKING:
  from weld.executor.report import BuildReport


class WeldError(Exception):
  pass


class ConfigurationError(WeldError):
  pass


@dataclass
class DuplicateTaskError(ConfigurationError):
  task_id: str

  def __str__(self) -> str:
    return f'task already registered: {self.task_id!r}'


@dataclass
class UnknownTaskError(ConfigurationError):
  task_id: str
  referenced_by: t.Optional[str] = None

  def __str__(self) -> str:
    message = f'unknown task: {self.task_id!r}'
    if self.referenced_by:
      message += f' (referenced by {self.referenced_by!r})'
    return message


@dataclass
class DuplicateOutputError(ConfigurationError):
  path: str
  owner: str
  task_id: str

  def __str__(self) -> str:
    return f'output {self.path!r} of task {self.task_id!r} is already owned by task {self.owner!r}'


@dataclass
class DuplicateArtifactError(ConfigurationError):
  name: str
  producer: str
  task_id: str

  def __str__(self) -> str:
    return f'artifact {self.name!r} of task {self.task_id!r} is already produced by task {self.producer!r}'


@dataclass
class UnresolvedArtifactError(ConfigurationError):
  name: str
  consumer: t.Optional[str] = None

  def __str__(self) -> str:
    message = f'artifact {self.name!r} was never published'
    if self.consumer:
      message += f' (consumed by {self.consumer!r})'
    return message


@dataclass
class CyclicDependencyError(ConfigurationError):
  #: The task identities that form the cycle, in dependency order.
  cycle: t.List[str] = field(default_factory=list)

  def __str__(self) -> str:
    return 'cyclic dependency: ' + ' -> '.join(self.cycle + self.cycle[:1])


class TaskExecutionError(WeldError):
  pass


@dataclass
class MissingInputError(TaskExecutionError):
  task_id: str
  path: str

  def __str__(self) -> str:
    return f'input of task {self.task_id!r} does not exist: {self.path!r}'


@dataclass
class ActionFailure(TaskExecutionError):
  task_id: str
  message: str
  exit_code: t.Optional[int] = None

  def __str__(self) -> str:
    return f'task {self.task_id!r} failed: {self.message}'


@dataclass
class BuildFailed(WeldError):
  report: 'BuildReport'

  def __str__(self) -> str:
    failed = ', '.join(r.task_id for r in self.report.failed_tasks())
    return f'build failed ({failed or "no task failed, targets not reached"})'
