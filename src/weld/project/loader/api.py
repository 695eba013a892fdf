
import abc
import typing as t
from dataclasses import dataclass
from pathlib import Path

from weld.errors import WeldError

if t.TYPE_CHECKING:
  from weld.context import Context
  from weld.project import Project


@dataclass
class CannotLoadProject(WeldError):
  loader: 'IProjectLoader'
  context: 'Context'
  parent: t.Optional['Project']
  path: Path

  def __str__(self) -> str:
    return f'unable to load project at "{self.path}" with {self.loader!r}'


@t.runtime_checkable
class IProjectLoader(t.Protocol, metaclass=abc.ABCMeta):

  @abc.abstractmethod
  def load_project(self, context: 'Context', parent: t.Optional['Project'], path: Path) -> 'Project':
    pass
