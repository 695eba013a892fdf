
import abc
import typing as t

if t.TYPE_CHECKING:
  from weld.project import Project
  from weld.task import Task


@t.runtime_checkable
class ITaskSelector(t.Protocol, metaclass=abc.ABCMeta):
  """ An interface to expand a string into a set of tasks in the context of a project. """

  @abc.abstractmethod
  def select_tasks(self, selection: str, project: 'Project') -> t.List['Task']:
    pass

  @abc.abstractmethod
  def select_default(self, project: 'Project') -> t.List['Task']:
    pass


class DefaultTaskSelector(ITaskSelector):
  """
  The default task selector employs the following selector syntax:

      [:][subProject:]*taskName

  If the selector is prefixed with a colon (`:`), the task path must match exactly. The
  `taskName` may refer to an individual task's name or a task group.

  Without the `:` prefix, the path must only match exactly at the end of the path (e.g. `a:b`
  matches both tasks with an absolute path `:foo:a:b` and `:egg:spam:a:b`).

  Tasks are returned in the order in which they were declared.
  """

  def select_tasks(self, selection: str, project: 'Project') -> t.List['Task']:
    is_abs = selection.startswith(':')
    if not is_abs:
      selection = ':' + selection

    result: t.List['Task'] = []
    for task in self._iter_all_tasks(project):
      if self._matches(task.path, selection, is_abs) or \
          task.group and self._matches(task.project.path + ':' + task.group, selection, is_abs):
        result.append(task)

    return result

  def select_default(self, project: 'Project') -> t.List['Task']:
    return [task for task in self._iter_all_tasks(project) if task.default]

  def _iter_all_tasks(self, project: 'Project') -> t.Iterator['Task']:
    yield from project.tasks
    for subproject in project.subprojects():
      yield from self._iter_all_tasks(subproject)

  def _matches(self, path: str, selection: str, is_abs: bool) -> bool:
    if is_abs:
      return path == selection
    return path.endswith(selection)
