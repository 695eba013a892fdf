
import typing as t
import weakref
from dataclasses import dataclass, field
from pathlib import Path

from weld.artifacts import ArtifactDeclaration
from weld.util.collections import unique
from weld.util.preconditions import check_instance_of, check_not_none
from .spec import DirectorySpec, FileSpec, IOSpec, PathSpec, ValueSpec, file_or_directory
from .state import TaskState

if t.TYPE_CHECKING:
  from weld.actions import Action, ActionContext
  from weld.project import Project


@dataclass
class ActionDescriptor:
  """
  Describes the invocation of an external command: the program, its arguments, additional
  environment variables and the working directory.
  """

  command: str
  args: t.List[str] = field(default_factory=list)
  env: t.Dict[str, str] = field(default_factory=dict)
  cwd: t.Optional[str] = None

  def to_action(self) -> 'Action':
    from weld.actions import CommandAction
    return CommandAction(
      command=[self.command] + list(self.args),
      working_directory=self.cwd,
      environment=dict(self.env))


class Task:
  """
  A task represents a set of sequential actions with declared inputs and outputs that may have
  dependencies on other tasks. The identity of a task is its #path, which is qualified by the
  path of the project the task belongs to (e.g. `:npm-app:packageNpmApp`).

  A task without actions only serves to order its dependencies (e.g. an `assemble` task).
  """

  #: Explicit dependencies of the task. Tasks in this list will always be executed before
  #: this task. Strings are task names relative to the task's project or absolute task paths
  #: if they start with a colon.
  dependencies: t.List[t.Union['Task', str]]

  #: Whether the task should be included if no explicit set of tasks is selected for execution.
  default: bool = True

  #: A short description of the task.
  description: t.Optional[str] = None

  #: A name for the group that the task belongs to. Task groups are used to select tasks via
  #: common identifiers (e.g. `build` or `check`).
  group: t.Optional[str] = None

  #: A boolean flag that indicates whether the task is always to be considered outdated.
  always_outdated: bool = False

  def __init__(self, project: 'Project', name: str) -> None:
    self._project = weakref.ref(project)
    self._name = name
    self.dependencies = []
    self.inputs: t.List[IOSpec] = []
    self.outputs: t.List[PathSpec] = []
    self.consumes: t.List[str] = []
    self.publishes: t.List[ArtifactDeclaration] = []
    self.actions: t.List['Action'] = []
    self.do_last_actions: t.List['Action'] = []
    self.state = TaskState.Pending

  def __repr__(self) -> str:
    return f'{type(self).__name__}({self.path!r})'

  @property
  def project(self) -> 'Project':
    return check_not_none(self._project(), 'lost reference to project')

  @property
  def name(self) -> str:
    return self._name

  @property
  def path(self) -> str:
    return f'{self.project.path}:{self.name}'

  def _resolve_path(self, path: t.Union[str, Path]) -> Path:
    return self.project.directory / path

  def depends_on(self, *tasks: t.Union['Task', str]) -> 'Task':
    for task in tasks:
      check_instance_of(task, (Task, str), 'task')
      self.dependencies.append(task)
    return self

  def input_file(self, *paths: t.Union[str, Path]) -> 'Task':
    self.inputs.extend(FileSpec(self._resolve_path(p)) for p in paths)
    return self

  def input_dir(self, *paths: t.Union[str, Path]) -> 'Task':
    self.inputs.extend(DirectorySpec(self._resolve_path(p)) for p in paths)
    return self

  def input_value(self, name: str, value: t.Any) -> 'Task':
    self.inputs.append(ValueSpec(name, value))
    return self

  def output_file(self, *paths: t.Union[str, Path]) -> 'Task':
    self.outputs.extend(FileSpec(self._resolve_path(p)) for p in paths)
    return self

  def output_dir(self, *paths: t.Union[str, Path]) -> 'Task':
    self.outputs.extend(DirectorySpec(self._resolve_path(p)) for p in paths)
    return self

  def consume(self, *artifact_names: str) -> 'Task':
    """
    Declare that the task consumes the artifacts with the specified names. The task that
    publishes an artifact is executed before this task and the artifact's output becomes an
    input of this task.
    """

    self.consumes.extend(artifact_names)
    return self

  def publish(self, name: str, path: t.Union[str, Path], type_tag: str = 'archive') -> 'Task':
    """
    Expose the output at *path* as an artifact with the specified *name*. If the task does not
    declare an output at *path* yet, it is declared as an output directory if *path* ends with a
    separator or is an existing directory, otherwise as an output file.
    """

    spec = file_or_directory(path, self.project.directory)
    existing = next((o for o in self.outputs if o.path == spec.path), None)
    if existing is None:
      self.outputs.append(spec)
    else:
      spec = existing
    self.publishes.append(ArtifactDeclaration(name, spec, type_tag))
    return self

  def add_action(self, action: 'Action') -> 'Task':
    from weld.actions import Action
    check_instance_of(action, Action, 'action')
    self.actions.append(action)
    return self

  def do_last(self, action: t.Union['Action', t.Callable[['ActionContext'], None]]) -> 'Task':
    from weld.actions import Action, LambdaAction
    if not isinstance(action, Action):
      if not callable(action):
        raise TypeError(f'action: expected Action or callable, got {type(action).__name__}')
      action = LambdaAction(action)
    self.do_last_actions.append(action)
    return self

  def get_actions(self) -> t.List['Action']:
    """ Get the list of actions for this task. This should be called when everything is loaded. """

    return self.actions + self.do_last_actions

  def get_dependency_ids(self) -> t.List[str]:
    """ Returns the identities of the explicit dependencies of the task. """

    result: t.List[str] = []
    for dep in self.dependencies:
      if isinstance(dep, Task):
        result.append(dep.path)
      elif dep.startswith(':'):
        result.append(dep)
      else:
        result.append(f'{self.project.path}:{dep}')
    return [x for x in unique(result) if x != self.path]
