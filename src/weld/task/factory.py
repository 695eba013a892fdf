
"""
Factory functions that map a declarative description to a #Task in a project. A command such as
`npm run build` produces a task named `npm_run_build`.
"""

import re
import typing as t
from pathlib import Path

from weld.actions import ArchiveAction
from .task import ActionDescriptor, Task

if t.TYPE_CHECKING:
  from weld.project import Project


def command_task_name(descriptor: ActionDescriptor) -> str:
  """
  Derive a task name from the command and its arguments. Characters that are not allowed in
  task names are replaced by underscores.

  >>> command_task_name(ActionDescriptor('npm', ['run', 'build']))
  'npm_run_build'
  """

  name = '_'.join([Path(descriptor.command).name] + list(descriptor.args))
  return re.sub(r'[^A-Za-z0-9_\-]+', '_', name).strip('_')


def command_task(
  project: 'Project',
  descriptor: ActionDescriptor,
  name: t.Optional[str] = None,
) -> Task:
  """
  Create a task that runs the command described by *descriptor*. The command's working directory
  defaults to the project directory. The environment variables are declared as inputs of the task.
  """

  if descriptor.cwd is None:
    descriptor.cwd = str(project.directory)
  else:
    descriptor.cwd = str(project.directory / descriptor.cwd)
  task = project.task(name or command_task_name(descriptor))
  task.add_action(descriptor.to_action())
  task.input_value('command', [descriptor.command] + list(descriptor.args))
  for key, value in sorted(descriptor.env.items()):
    task.input_value(f'env.{key}', value)
  return task


def archive_task(
  project: 'Project',
  name: str,
  source_directory: t.Union[str, Path],
  archive: t.Union[str, Path],
  prefix: t.Optional[str] = None,
) -> Task:
  """
  Create a task that packs the files of *source_directory* into the *archive*. Both paths are
  relative to the project directory. The directory is declared as an input, the archive as an
  output of the task.
  """

  task = project.task(name)
  source = project.directory / source_directory
  target = project.directory / archive
  task.add_action(ArchiveAction(source, target, prefix))
  task.input_dir(source)
  task.input_value('prefix', prefix)
  task.output_file(target)
  return task
