
import zipfile

import pytest
import toml

from weld.context import Context
from weld.errors import ConfigurationError, DuplicateArtifactError
from weld.executor import DefaultExecutor, NullReporter
from weld.project import CannotLoadProject
from weld.project.loader.declarative import MARKER_TEXT
from weld.settings import Settings
from weld.task import TaskState


def _write_build(directory, data):
  directory.mkdir(parents=True, exist_ok=True)
  (directory / 'build.toml').write_text(toml.dumps(data))


@pytest.fixture
def multi_project(tmp_path, runner):
  """
  A root project with a web frontend built by npm that is packaged and bundled into the jar of a
  Java application built by Gradle.
  """

  npm_app = tmp_path / 'npm-app'
  java_app = tmp_path / 'java-app'

  _write_build(tmp_path, {
    'project': {'subprojects': ['npm-app', 'java-app']},
    'tasks': {'assemble': {'depends_on': [':java-app:bootJar'], 'description': 'Builds everything.'}},
  })
  _write_build(npm_app, {
    'project': {'name': 'npm-app'},
    'command_tasks': [{
      'command': 'npm',
      'args': ['run', 'build'],
      'input_dirs': ['src'],
      'output_dirs': ['build'],
    }],
    'tasks': {
      'packageNpmApp': {
        'depends_on': ['npm_run_build'],
        'archive': {'from': 'build', 'into': 'static', 'file': 'build_packageNpmApp/npm-app.jar'},
        'publish': {'name': 'npmResources', 'path': 'build_packageNpmApp/npm-app.jar', 'type': 'jar'},
      },
    },
  })
  _write_build(java_app, {
    'tasks': {
      'bootJar': {
        'command': 'gradle',
        'args': ['bootJar', '-PnpmJar=${artifact:npmResources}'],
        'consumes': ['npmResources'],
        'outputs': ['build/libs/java-app.jar'],
        'group': 'build',
      },
    },
  })

  (npm_app / 'src').mkdir()
  (npm_app / 'src' / 'index.js').write_text('render()')

  def npm_run_build():
    (npm_app / 'build').mkdir(exist_ok=True)
    (npm_app / 'build' / 'index.js').write_text((npm_app / 'src' / 'index.js').read_text())

  def gradle_boot_jar():
    (java_app / 'build' / 'libs').mkdir(parents=True, exist_ok=True)
    (java_app / 'build' / 'libs' / 'java-app.jar').write_text('jar')

  runner.hooks['npm'] = npm_run_build
  runner.hooks['gradle'] = gradle_boot_jar
  return tmp_path


def test_load_multi_project_build(context, multi_project):
  root = context.load_project(multi_project)
  assert [p.path for p in root.subprojects()] == [':npm-app', ':java-app']
  npm_app = root.get_subproject_by_name('npm-app')
  assert [t.name for t in npm_app.tasks] == ['npm_run_build', 'packageNpmApp']
  assert root.tasks.assemble.description == 'Builds everything.'
  assert context.select('build') == [root.get_subproject_by_name('java-app').tasks.bootJar]


def test_multi_project_build_is_incremental(context, runner, multi_project):
  context.load_project(multi_project)

  report = context.execute(':assemble')
  assert report.executed_tasks() == [
    ':npm-app:npm_run_build', ':npm-app:packageNpmApp', ':java-app:bootJar', ':assemble']
  jar = multi_project / 'npm-app' / 'build_packageNpmApp' / 'npm-app.jar'
  assert runner.calls == [['npm', 'run', 'build'], ['gradle', 'bootJar', f'-PnpmJar={jar}']]
  with zipfile.ZipFile(jar) as zf:
    assert zf.namelist() == ['static/index.js']

  report = context.execute(':assemble')
  assert report.state_of(':npm-app:npm_run_build') == TaskState.Skipped
  assert report.state_of(':npm-app:packageNpmApp') == TaskState.Skipped
  assert report.state_of(':java-app:bootJar') == TaskState.Skipped
  assert len(runner.calls) == 2

  (multi_project / 'npm-app' / 'src' / 'index.js').write_text('render(app)')
  report = context.execute(':assemble')
  assert report.executed_tasks() == [
    ':npm-app:npm_run_build', ':npm-app:packageNpmApp', ':java-app:bootJar', ':assemble']
  assert runner.programs() == ['npm', 'gradle', 'npm', 'gradle']


def test_npm_failure_skips_java_build(context, runner, multi_project):
  context.load_project(multi_project)
  runner.exit_codes['npm'] = 1
  report = context.executor.execute(context.build_graph(), [':assemble'], context.store)
  assert report.state_of(':npm-app:npm_run_build') == TaskState.Failed
  assert report.state_of(':npm-app:packageNpmApp') == TaskState.SkippedDueToFailure
  assert report.state_of(':java-app:bootJar') == TaskState.SkippedDueToFailure
  assert report.state_of(':assemble') == TaskState.SkippedDueToFailure
  assert runner.programs() == ['npm']


def test_marker_and_commands(context, runner, tmp_path):
  _write_build(tmp_path, {
    'tasks': {
      'install': {
        'commands': [['npm', 'ci'], ['npm', 'run', 'lint']],
        'inputs': ['package.json'],
        'marker': 'build/install.marker',
      },
    },
  })
  (tmp_path / 'package.json').write_text('{}')
  context.load_project(tmp_path)

  context.execute()
  context.execute()
  assert runner.calls == [['npm', 'ci'], ['npm', 'run', 'lint']]
  assert (tmp_path / 'build' / 'install.marker').read_text() == MARKER_TEXT

  (tmp_path / 'build' / 'install.marker').unlink()
  context.execute()
  assert len(runner.calls) == 4


def test_unknown_task_key(context, tmp_path):
  _write_build(tmp_path, {'tasks': {'a': {'command': 'true', 'dependsOn': ['b']}}})
  with pytest.raises(ConfigurationError) as excinfo:
    context.load_project(tmp_path)
  assert 'dependsOn' in str(excinfo.value)


def test_invalid_toml(context, tmp_path):
  (tmp_path / 'build.toml').write_text('[tasks\n')
  with pytest.raises(ConfigurationError):
    context.load_project(tmp_path)


def test_duplicate_artifact_across_projects(context, tmp_path):
  _write_build(tmp_path, {'project': {'subprojects': ['a', 'b']}})
  for name in 'ab':
    _write_build(tmp_path / name, {'tasks': {'jar': {'publish': [{'name': 'lib', 'path': 'lib.jar'}]}}})
  context.load_project(tmp_path)
  with pytest.raises(DuplicateArtifactError):
    context.build_graph()


def test_python_build_script(context, tmp_path):
  (tmp_path / 'build.weld.py').write_text(
    "project.name = 'scripted'\n"
    "project.task('hello').output_file('hello.txt').do_last(\n"
    "  lambda ctx: project.file('hello.txt').write_text(ctx.task_id))\n")
  root = context.load_project(tmp_path)
  assert root.name == 'scripted'
  context.execute('hello')
  assert (tmp_path / 'hello.txt').read_text() == ':hello'


def test_no_build_file(context, tmp_path):
  with pytest.raises(CannotLoadProject):
    context.load_project(tmp_path)


@pytest.mark.parametrize('publish,message', [
  ({'path': 'a.jar'}, "misses key 'name'"),
  ({'name': 'lib'}, "misses key 'path'"),
  (['a.jar'], 'must be a table'),
  ('a.jar', 'must be a table or an array of tables'),
])
def test_invalid_publish(context, tmp_path, publish, message):
  _write_build(tmp_path, {'tasks': {'jar': {'publish': publish}}})
  with pytest.raises(ConfigurationError) as excinfo:
    context.load_project(tmp_path)
  assert message in str(excinfo.value)


def test_build_directory_holds_the_fingerprint_store(tmp_path, runner):
  _write_build(tmp_path, {
    'project': {'build_directory': 'out'},
    'tasks': {'install': {'commands': [['npm', 'ci']], 'marker': 'out/install.marker'}},
  })
  executor = DefaultExecutor(runner=runner, reporter=NullReporter())
  context = Context(Settings.of({}), executor=executor)
  root = context.load_project(tmp_path)
  assert root.build_directory == tmp_path.resolve() / 'out'

  context.execute()
  context.execute()
  assert runner.calls == [['npm', 'ci']]
  assert (tmp_path / 'out' / '.weld-metadata' / 'task-fingerprints').is_dir()
  assert not (tmp_path / '.build').exists()
