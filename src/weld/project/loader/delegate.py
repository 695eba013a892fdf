
import logging
import typing as t
from pathlib import Path

from weld.settings import IHasFromSettings, Settings
from .api import CannotLoadProject, IProjectLoader

if t.TYPE_CHECKING:
  from weld.context import Context
  from weld.project import Project


class DelegateProjectLoader(IProjectLoader, IHasFromSettings):
  """
  Delegates the project loading process to a sequence of other loaders. Returns the first project
  loaded by any loader.

  If created from configuration, the `core.project.loader.delegates` option is respected, which
  must be a comma-separated list of fully qualified loader names. A loader name may be trailed by
  a question mark to ignore if the loader name cannot be resolved.
  """

  log = logging.getLogger(__module__ + '.' + __qualname__)  # type: ignore

  DEFAULT_DELEGATES = 'weld.project.loader.declarative.TomlProjectLoader,weld.project.loader.script.PythonProjectLoader'

  def __init__(self, delegates: t.List[IProjectLoader]) -> None:
    self.delegates = delegates

  def __repr__(self) -> str:
    return f'{type(self).__name__}({self.delegates!r})'

  @classmethod
  def from_settings(cls, settings: Settings) -> 'DelegateProjectLoader':
    delegates: t.List[IProjectLoader] = []
    for name in settings.get_list('core.project.loader.delegates', cls.DEFAULT_DELEGATES):
      ignore_unresolved = name.endswith('?')
      name = name.rstrip('?')
      try:
        delegates.append(settings.create_instance(IProjectLoader, name))  # type: ignore
      except ImportError:
        if ignore_unresolved:
          cls.log.warning('unable to resolve delegate project loader "%s"', name)
        else:
          raise
    return cls(delegates)

  def load_project(self, context: 'Context', parent: t.Optional['Project'], path: Path) -> 'Project':
    for delegate in self.delegates:
      try:
        return delegate.load_project(context, parent, path)
      except CannotLoadProject:
        pass
    raise CannotLoadProject(self, context, parent, path)
