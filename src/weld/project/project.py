
import glob
import string
import typing as t
import weakref
from pathlib import Path

from weld.errors import DuplicateTaskError
from weld.util.preconditions import check_not_none

if t.TYPE_CHECKING:
  from weld.context import Context
  from weld.task import Task

T_Task = t.TypeVar('T_Task', bound='Task')


class Project:
  """
  A project is a collection of tasks, usually populated through a build file, tied to a
  directory. Projects can have sub projects and there is usually only one root project in a
  build. The #path of the root project is empty, the path of a sub project is its name prefixed
  by the path of its parent and a colon (e.g. `:npm-app`).
  """

  def __init__(self,
    context: 'Context',
    parent: t.Optional['Project'],
    directory: t.Union[str, Path],
  ) -> None:
    self._context = weakref.ref(context)
    self._parent = weakref.ref(parent) if parent is not None else parent
    self.directory = Path(directory).resolve()
    self._name: t.Optional[str] = None
    self._build_directory: t.Optional[Path] = None
    self._tasks: t.Dict[str, 'Task'] = {}
    self._subprojects: t.Dict[Path, 'Project'] = {}

  def __repr__(self) -> str:
    return f'Project("{self.path or ":"}")'

  @property
  def context(self) -> 'Context':
    return check_not_none(self._context(), 'lost reference to context')

  @property
  def parent(self) -> t.Optional['Project']:
    if self._parent is not None:
      return check_not_none(self._parent(), 'lost reference to parent')
    return None

  @property
  def name(self) -> str:
    if self._name is not None:
      return self._name
    return self.directory.name

  @name.setter
  def name(self, name: str) -> None:
    if not name or set(name) - set(string.ascii_letters + string.digits + '_-'):
      raise ValueError(f'invalid project name: {name!r}')
    self._name = name

  @property
  def path(self) -> str:
    parent = self.parent
    if parent is None:
      return ''
    return f'{parent.path}:{self.name}'

  @property
  def build_directory(self) -> Path:
    if self._build_directory:
      return self._build_directory
    return self.context.get_default_build_directory(self)

  @build_directory.setter
  def build_directory(self, path: t.Union[str, Path]) -> None:
    self._build_directory = self.directory / path

  def task(self, name: str, task_class: t.Optional[t.Type[T_Task]] = None) -> T_Task:
    """
    Create a new task of type *task_class* (defaulting to #Task) and add it to the project. The
    task name must be unique within the project.
    """

    from weld.task import Task

    if not name or set(name) - set(string.ascii_letters + string.digits + '_-'):
      raise ValueError(f'invalid task name: {name!r}')
    if name in self._tasks:
      raise DuplicateTaskError(f'{self.path}:{name}')

    task = (task_class or Task)(self, name)
    self._tasks[name] = task
    return t.cast(T_Task, task)

  @property
  def tasks(self) -> 'TaskContainer':
    """ Returns the #TaskContainer object for this project. """

    return TaskContainer(self, self._tasks)

  def subproject(self, directory: t.Union[str, Path]) -> 'Project':
    """
    Reference a subproject by a path relative to the project directory. If the project has not
    been loaded yet, it will be loaded with the context's project loader.
    """

    path = (self.directory / directory).resolve()
    if path not in self._subprojects:
      project = self.context.project_loader.load_project(self.context, self, path)
      self._subprojects[path] = project
    return self._subprojects[path]

  def add_subproject(self, project: 'Project') -> 'Project':
    """ Add a project that was created without a loader (e.g. programmatically). """

    if project.parent is not self:
      raise ValueError(f'{project} is not a child of {self}')
    self._subprojects[project.directory] = project
    return project

  def get_subproject_by_name(self, name: str) -> 'Project':
    """
    Returns a sub project of this project by it's name. Raises a #ValueError if no sub project
    with the specified name exists in the project.
    """

    for project in self._subprojects.values():
      if project.name == name:
        return project

    raise ValueError(f'project {self.path}:{name} does not exist')

  def subprojects(self) -> t.List['Project']:
    """ Returns a list of the project's loaded subprojects. """

    return list(self._subprojects.values())

  def file(self, sub_path: t.Union[str, Path]) -> Path:
    return self.directory / sub_path

  def glob(self, pattern: str) -> t.List[Path]:
    """
    Apply the specified glob pattern relative to the project directory and return a list of the
    matched files.
    """

    return [Path(f) for f in sorted(glob.glob(str(self.directory / pattern), recursive=True))]


class TaskContainer:

  def __init__(self, project: 'Project', tasks: t.Dict[str, 'Task']) -> None:
    self._project = weakref.ref(project)
    self._tasks = tasks

  def __iter__(self) -> t.Iterator['Task']:
    return iter(list(self._tasks.values()))

  def __len__(self) -> int:
    return len(self._tasks)

  def __contains__(self, name: str) -> bool:
    return name in self._tasks

  def for_each(self, closure: t.Callable[['Task'], None]) -> None:
    for task in list(self._tasks.values()):
      closure(task)

  def resolve(self, selector: str, raise_empty: bool = True) -> t.List['Task']:
    project = check_not_none(self._project(), 'lost reference to project')
    tasks = project.context.task_selector.select_tasks(selector, project)
    if not tasks and raise_empty:
      raise ValueError(f'no task matched selector {selector!r} in project {project}')
    return tasks

  def __getattr__(self, key: str) -> 'Task':
    try:
      return self[key]
    except KeyError:
      raise AttributeError(key)

  def __getitem__(self, key: str) -> 'Task':
    return self._tasks[key]


def all_tasks(project: Project) -> t.Iterator['Task']:
  yield from project.tasks
  for subproject in project.subprojects():
    yield from all_tasks(subproject)


def all_projects(project: Project) -> t.Iterator[Project]:
  yield project
  for subproject in project.subprojects():
    yield from all_projects(subproject)
