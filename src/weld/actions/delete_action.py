
import os
import shutil
import typing as t
from dataclasses import dataclass, field
from pathlib import Path

from .action import Action, ActionContext


@dataclass
class DeleteAction(Action):
  """ Removes files and directory trees. Paths that do not exist are ignored. """

  paths: t.List[Path] = field(default_factory=list)

  def execute(self, context: ActionContext) -> None:
    for path in self.paths:
      if os.path.isdir(path) and not os.path.islink(path):
        shutil.rmtree(path)
      elif os.path.lexists(path):
        os.remove(path)
      else:
        continue
      if context.verbose:
        print(f'deleted {str(path)!r}', flush=True)
