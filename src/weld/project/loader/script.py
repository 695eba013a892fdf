
"""
Loads `build.weld.py` files and executes them as a plain Python script providing the current
#Project in the global scope.
"""

import typing as t
from pathlib import Path

from .api import CannotLoadProject, IProjectLoader

if t.TYPE_CHECKING:
  from weld.context import Context
  from weld.project import Project

BUILD_SCRIPT_FILENAME = Path('build.weld.py')


class PythonProjectLoader(IProjectLoader):

  def __repr__(self) -> str:
    return f'{type(self).__name__}()'

  def load_project(self, context: 'Context', parent: t.Optional['Project'], path: Path) -> 'Project':
    filename = path / BUILD_SCRIPT_FILENAME
    if not filename.exists():
      raise CannotLoadProject(self, context, parent, path)
    project = context.create_project(path, parent)
    scope = {'project': project, '__file__': str(filename), '__name__': '__main__'}
    exec(compile(filename.read_text(), str(filename), 'exec'), scope, scope)
    return project
