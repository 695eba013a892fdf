
"""
Loads declarative `build.toml` files. Example:

```toml
[project]
name = "npm-app"

[[command_tasks]]              # creates the task "npm_run_build"
command = "npm"
args = ["run", "build"]
input_dirs = ["public", "src"]
inputs = ["package.json", "package-lock.json"]
output_dirs = ["build"]

[tasks.packageNpmApp]
depends_on = ["npm_run_build"]
archive = { from = "build", into = "static", file = "build_packageNpmApp/npm-app.jar" }
publish = { name = "npmResources", path = "build_packageNpmApp/npm-app.jar", type = "jar" }

[tasks.assemble]
depends_on = ["packageNpmApp"]
```

Sub projects listed in `project.subprojects` are loaded through the context's project loader.
"""

import typing as t
from pathlib import Path

import toml

from weld.actions import CommandAction, DeleteAction, WriteFileAction
from weld.errors import ConfigurationError
from weld.task import ActionDescriptor, Task, archive_task, command_task
from .api import CannotLoadProject, IProjectLoader

if t.TYPE_CHECKING:
  from weld.context import Context
  from weld.project import Project

BUILD_FILENAME = Path('build.toml')

#: Text appended to the marker file of a task.
MARKER_TEXT = 'delete this file to force re-execution\n'

_TASK_KEYS = frozenset([
  'command', 'args', 'env', 'cwd', 'commands', 'archive', 'depends_on', 'inputs', 'input_dirs',
  'outputs', 'output_dirs', 'values', 'consumes', 'publish', 'description', 'group', 'default',
  'always_outdated', 'marker', 'delete', 'name',
])


class TomlProjectLoader(IProjectLoader):

  def __repr__(self) -> str:
    return f'{type(self).__name__}()'

  def load_project(self, context: 'Context', parent: t.Optional['Project'], path: Path) -> 'Project':
    filename = path / BUILD_FILENAME
    if not filename.exists():
      raise CannotLoadProject(self, context, parent, path)
    try:
      data = toml.loads(filename.read_text())
    except toml.TomlDecodeError as exc:
      raise ConfigurationError(f'{filename}: {exc}') from exc

    project = context.create_project(path, parent)
    self.configure_project(project, data, str(filename))
    return project

  def configure_project(self, project: 'Project', data: t.Dict[str, t.Any], filename: str) -> None:
    project_data = data.get('project', {})
    if 'name' in project_data:
      project.name = project_data['name']
    if 'build_directory' in project_data:
      project.build_directory = project_data['build_directory']
    for directory in project_data.get('subprojects', []):
      project.subproject(directory)

    for task_data in data.get('command_tasks', []):
      self.create_task(project, task_data.get('name'), task_data, filename)
    for name, task_data in data.get('tasks', {}).items():
      self.create_task(project, name, task_data, filename)

  def create_task(
    self,
    project: 'Project',
    name: t.Optional[str],
    data: t.Dict[str, t.Any],
    filename: str,
  ) -> Task:
    unknown = set(data) - _TASK_KEYS
    if unknown:
      raise ConfigurationError(f'{filename}: unknown key(s) in task {name!r}: {", ".join(sorted(unknown))}')

    if 'command' in data:
      descriptor = ActionDescriptor(
        data['command'], list(data.get('args', [])), dict(data.get('env', {})), data.get('cwd'))
      task = command_task(project, descriptor, name)
    elif 'archive' in data:
      if name is None:
        raise ConfigurationError(f'{filename}: archive tasks need a name')
      archive = data['archive']
      try:
        task = archive_task(project, name, archive['from'], archive['file'], archive.get('into'))
      except KeyError as exc:
        raise ConfigurationError(f'{filename}: archive of task {name!r} misses key {exc}')
    elif name is None:
      raise ConfigurationError(f'{filename}: tasks without a command need a name')
    else:
      task = project.task(name)

    if 'commands' in data:
      task.add_action(CommandAction(
        commands=data['commands'],
        working_directory=str(project.directory / data.get('cwd', '.')),
        environment=dict(data.get('env', {}))))
    if 'delete' in data:
      task.add_action(DeleteAction([project.directory / p for p in data['delete']]))

    task.depends_on(*data.get('depends_on', []))
    task.input_file(*data.get('inputs', []))
    task.input_dir(*data.get('input_dirs', []))
    task.output_file(*data.get('outputs', []))
    task.output_dir(*data.get('output_dirs', []))
    for key, value in data.get('values', {}).items():
      task.input_value(key, value)
    task.consume(*data.get('consumes', []))

    publish = data.get('publish', [])
    if not isinstance(publish, (dict, list)):
      raise ConfigurationError(f'{filename}: publish of task {name!r} must be a table or an array of tables')
    for item in [publish] if isinstance(publish, dict) else publish:
      if not isinstance(item, dict):
        raise ConfigurationError(f'{filename}: publish of task {name!r} must be a table, got {item!r}')
      try:
        artifact_name, path = item['name'], item['path']
      except KeyError as exc:
        raise ConfigurationError(f'{filename}: publish of task {name!r} misses key {exc}')
      task.publish(artifact_name, path, item.get('type', 'archive'))

    if 'marker' in data:
      marker = project.directory / data['marker']
      task.output_file(marker)
      task.do_last(WriteFileAction(marker, text=MARKER_TEXT, append=True))

    task.description = data.get('description', task.description)
    task.group = data.get('group', task.group)
    task.default = data.get('default', task.default)
    task.always_outdated = data.get('always_outdated', task.always_outdated)
    return task
