
import logging
import typing as t
from pathlib import Path

from weld.actions import ActionContext, DeleteAction, SubprocessRunner
from weld.errors import BuildFailed, UnknownTaskError
from weld.executor import BuildReport, IExecutor
from weld.graph import BuildGraph
from weld.project import IProjectLoader, Project, all_tasks
from weld.settings import Settings
from weld.store import FingerprintStore
from weld.task import ITaskSelector, Task
from weld.util.preconditions import check_not_none

Selection = t.Union[None, str, Task, t.Sequence[t.Union[str, Task]]]


class Context:
  """
  The context carries globally accessible data for a build. If no *settings* are specified,
  the `build.settings` file is read from the current working directory (if it exists).

  # Supported Settings

  * `core.build_directory` (no default)
  * `core.metadata_directory` (defaults to `.weld-metadata` in the root project's #Project.build_directory)
  * `core.executor` (defaults to `weld.executor.default.DefaultExecutor`)
  * `core.executor.workers`, `core.executor.fail_fast`, `core.verbose`
  * `core.project.loader` (defaults to `weld.project.loader.delegate.DelegateProjectLoader`)
  * `core.task_selector` (defaults to `weld.task.selector.DefaultTaskSelector`)
  """

  log = logging.getLogger(__module__ + '.' + __qualname__)  # type: ignore

  DEFAULT_EXECUTOR = 'weld.executor.default.DefaultExecutor'
  DEFAULT_SELECTOR = 'weld.task.selector.DefaultTaskSelector'
  DEFAULT_PROJECT_LOADER = 'weld.project.loader.delegate.DelegateProjectLoader'
  SETTINGS_FILE = Path('build.settings')
  METADATA_DIRECTORY = '.weld-metadata'

  def __init__(
    self,
    settings: t.Optional[Settings] = None, *,
    executor: t.Optional[IExecutor] = None,
    project_loader: t.Optional[IProjectLoader] = None,
    store: t.Optional[FingerprintStore] = None,
  ) -> None:

    if settings is None and self.SETTINGS_FILE.exists():
      settings = Settings.from_file(self.SETTINGS_FILE)
    elif settings is None:
      settings = Settings.of({})

    self._root_project: t.Optional[Project] = None
    self.settings = settings
    self.executor = executor or settings.get_instance(
        IExecutor, 'core.executor', self.DEFAULT_EXECUTOR)  # type: ignore
    self.project_loader = project_loader or settings.get_instance(
        IProjectLoader, 'core.project.loader', self.DEFAULT_PROJECT_LOADER)  # type: ignore
    self.task_selector = settings.get_instance(
        ITaskSelector, 'core.task_selector', self.DEFAULT_SELECTOR)  # type: ignore
    self._store = store
    self.graph: t.Optional[BuildGraph] = None

  @property
  def store(self) -> FingerprintStore:
    if self._store is None:
      directory = self.settings.get_path('core.metadata_directory')
      if directory is None:
        root = check_not_none(self._root_project, 'no root project initialized')
        directory = root.build_directory / self.METADATA_DIRECTORY
      self._store = FingerprintStore.in_directory(str(directory))
    return self._store

  @property
  def root_project(self) -> t.Optional[Project]:
    return self._root_project

  def create_project(self, directory: t.Union[str, Path], parent: t.Optional[Project] = None) -> Project:
    """
    Create a new #Project. If *parent* is `None`, the project becomes the root project of the
    context. Used by project loaders and to configure a build programmatically.
    """

    project = Project(self, parent, directory)
    if parent is None:
      self._root_project = project
    else:
      parent.add_subproject(project)
    return project

  def load_project(self, path: Path) -> Project:
    """
    Initialize the root project with the context's project loader and return it.
    """

    project = self.project_loader.load_project(self, None, path)
    self._root_project = project
    return project

  def get_default_build_directory(self, project: Project) -> Path:
    """
    Returns the default build directory for a project, used if no explicit build directory is
    set. The default implementation returns the `.build/` directory in the project's directory,
    unless `core.build_directory` is set.
    """

    return self.settings.get_path('core.build_directory') or project.directory.joinpath('.build')

  def build_graph(self) -> BuildGraph:
    """
    Creates a new #BuildGraph from the tasks of all projects and validates it. Configuration
    errors are raised from here, before anything is executed.
    """

    root_project = check_not_none(self.root_project, 'no root project initialized')
    graph = BuildGraph()
    graph.register_all(all_tasks(root_project))
    graph.validate()
    self.graph = graph
    return graph

  def select(self, selection: Selection = None) -> t.List[Task]:
    """
    Resolve a selection (task selectors, #Task objects or `None` for the default tasks) into a
    list of tasks.
    """

    root_project = check_not_none(self.root_project, 'no root project initialized')
    if selection is None:
      return list(self.task_selector.select_default(root_project))

    if isinstance(selection, (str, Task)):
      selection = [selection]

    result: t.List[Task] = []
    for item in selection:
      if isinstance(item, Task):
        tasks = [item]
      elif isinstance(item, str):
        tasks = list(self.task_selector.select_tasks(item, root_project))
        if not tasks:
          raise UnknownTaskError(item)
      else:
        raise TypeError(f'expected str|Task, got {type(item).__name__}')
      result.extend(x for x in tasks if x not in result)
    return result

  def execute(self, selection: Selection = None, force: Selection = ()) -> BuildReport:
    """
    Execute the selected tasks and their dependencies. Tasks matched by *force* are executed
    even if they are up to date. Raises #BuildFailed if a selected task did not succeed.
    """

    graph = self.build_graph()
    targets = [task.path for task in self.select(selection)]
    forced = [task.path for task in self.select(force)] if force else []
    report = self.executor.execute(graph, targets, self.store, forced)
    if not report.succeeded:
      raise BuildFailed(report)
    return report

  def clean(self, selection: Selection = None) -> t.List[str]:
    """
    Delete the outputs of the selected tasks (all tasks if no selection is specified) and forget
    their fingerprints. Returns the identities of the cleaned tasks.
    """

    root_project = check_not_none(self.root_project, 'no root project initialized')
    tasks = list(all_tasks(root_project)) if selection is None else self.select(selection)
    verbose = self.settings.get_bool('core.verbose', False)
    for task in tasks:
      self.log.info('cleaning task %r', task.path)
      action = DeleteAction([output.path for output in task.outputs])
      action.execute(ActionContext(task.path, SubprocessRunner(), verbose))
      self.store.remove(task.path)
    return [task.path for task in tasks]
