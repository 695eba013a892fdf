
import io
import threading
import time

import pytest

from weld.actions import CommandAction
from weld.errors import ActionFailure, BuildFailed
from weld.executor import BuildReport, ConsoleReporter, DefaultExecutor, TaskResult
from weld.graph import BuildGraph
from weld.store import FingerprintStore
from weld.task import TaskState


def test_tasks_run_after_their_dependencies(context, project, runner):
  project.task('compile').add_action(CommandAction(['javac']))
  project.task('test').depends_on('compile').add_action(CommandAction(['junit']))
  project.task('docs').add_action(CommandAction(['javadoc']))
  project.task('assemble').depends_on('test', 'docs')

  report = context.execute('assemble')
  assert runner.programs() == ['javac', 'junit', 'javadoc']
  assert report.succeeded
  assert report.state_of(':assemble') == TaskState.Succeeded
  assert report.summary() == '4 task(s), 4 executed'
  assert all(result.state.terminal for result in report.results.values())


def test_independent_tasks_run_in_parallel(make_context, tmp_path):
  context = make_context(workers=2)
  project = context.create_project(tmp_path)
  barrier = threading.Barrier(2, timeout=5)
  started = time.perf_counter()

  def work(ctx):
    barrier.wait()
    time.sleep(0.2)

  project.task('a').do_last(work)
  project.task('b').do_last(work)
  report = context.execute()

  assert report.state_of(':a') == TaskState.Succeeded
  assert report.state_of(':b') == TaskState.Succeeded
  assert time.perf_counter() - started < 2.0


def test_sequential_executor_never_overlaps_tasks(context, project):
  running = []
  overlaps = []
  lock = threading.Lock()

  def work(ctx):
    with lock:
      if running:
        overlaps.append((ctx.task_id, list(running)))
      running.append(ctx.task_id)
    time.sleep(0.01)
    with lock:
      running.remove(ctx.task_id)

  for name in 'abcd':
    project.task(name).do_last(work)
  context.execute()
  assert overlaps == []


def test_failure_skips_dependents_but_continues_independent_tasks(context, project, runner):
  runner.exit_codes['javac'] = 2
  project.task('compile').add_action(CommandAction(['javac']))
  project.task('test').depends_on('compile').add_action(CommandAction(['junit']))
  project.task('docs').add_action(CommandAction(['javadoc']))

  with pytest.raises(BuildFailed) as excinfo:
    context.execute()
  report = excinfo.value.report
  assert runner.programs() == ['javac', 'javadoc']
  assert report.state_of(':compile') == TaskState.Failed
  assert report.state_of(':test') == TaskState.SkippedDueToFailure
  assert report.state_of(':docs') == TaskState.Succeeded
  assert isinstance(report[':compile'].error, ActionFailure)
  assert report[':compile'].error.exit_code == 2
  assert report[':compile'].output == ['ran javac\n']
  assert [r.task_id for r in report.failed_tasks()] == [':compile']
  assert str(excinfo.value) == 'build failed (:compile)'


def test_fail_fast_cancels_tasks_that_did_not_start(make_context, tmp_path, runner):
  context = make_context(fail_fast=True)
  project = context.create_project(tmp_path)
  runner.exit_codes['a'] = 1
  for name in 'abc':
    project.task(name).add_action(CommandAction([name]))

  with pytest.raises(BuildFailed) as excinfo:
    context.execute()
  report = excinfo.value.report
  assert runner.programs() == ['a']
  assert report.state_of(':a') == TaskState.Failed
  assert report.state_of(':b') == TaskState.Cancelled
  assert report.state_of(':c') == TaskState.Cancelled


def test_fail_fast_lets_running_tasks_finish(project, runner):
  sibling_started = threading.Event()
  failure_reported = threading.Event()

  class Reporter(ConsoleReporter):
    def task_finished(self, result):
      super().task_finished(result)
      if result.task_id == ':a':
        failure_reported.set()

  def fail(ctx):
    assert sibling_started.wait(5)
    raise RuntimeError('compilation failed')

  def sibling(ctx):
    sibling_started.set()
    assert failure_reported.wait(5)

  project.task('a').do_last(fail)
  project.task('b').do_last(sibling)
  project.task('c').add_action(CommandAction(['c']))

  graph = BuildGraph()
  graph.register_all(project.tasks)
  executor = DefaultExecutor(workers=2, fail_fast=True, runner=runner, reporter=Reporter(io.StringIO()))
  report = executor.execute(graph, [':a', ':b', ':c'], FingerprintStore.in_memory())

  assert report.state_of(':a') == TaskState.Failed
  assert report.state_of(':b') == TaskState.Succeeded
  assert report.state_of(':c') == TaskState.Cancelled
  assert runner.calls == []


def test_missing_toolchain_fails_the_task(context, project, runner):
  runner.missing.add('gradle')
  project.task('bootJar').add_action(CommandAction(['gradle', 'bootJar']))

  with pytest.raises(BuildFailed) as excinfo:
    context.execute()
  error = excinfo.value.report[':bootJar'].error
  assert isinstance(error, ActionFailure)
  assert 'could not run' in str(error)


def test_unexpected_exception_in_action_fails_the_task(context, project):
  def explode(ctx):
    raise KeyError('boom')

  project.task('a').do_last(explode)
  with pytest.raises(BuildFailed) as excinfo:
    context.execute()
  error = excinfo.value.report[':a'].error
  assert isinstance(error, ActionFailure)
  assert isinstance(error.__cause__, KeyError)


def test_execute_graph_directly(project, runner):
  project.task('a').add_action(CommandAction(['a'])).output_file('a.txt')
  project.task('b').depends_on('a').add_action(CommandAction(['b']))
  project.task('c').add_action(CommandAction(['c']))

  graph = BuildGraph()
  graph.register_all(project.tasks)
  report = DefaultExecutor(runner=runner, reporter=ConsoleReporter(io.StringIO())) \
    .execute(graph, [':b'], FingerprintStore.in_memory())
  assert list(report.results) == [':a', ':b']
  assert report.executed_tasks() == [':a', ':b']
  assert report[':a'].duration >= 0


def test_console_reporter():
  stream = io.StringIO()
  reporter = ConsoleReporter(stream)
  reporter.task_finished(TaskResult(':a', TaskState.Succeeded))
  reporter.task_finished(TaskResult(':b', TaskState.Skipped))
  reporter.task_finished(TaskResult(':c', TaskState.Failed, error=ActionFailure(':c', 'oops'), output=['log\n']))
  reporter.task_finished(TaskResult(':d', TaskState.SkippedDueToFailure))
  reporter.build_finished(BuildReport([':d'], {}))
  assert stream.getvalue().splitlines() == [
    '> Task :a',
    '> Task :b UP TO DATE',
    '> Task :c FAILED',
    "  task ':c' failed: oops",
    'log',
    '> Task :d SKIPPED',
    '',
    'BUILD FAILED (0 task(s))',
  ]


def test_workers_must_be_positive():
  with pytest.raises(ValueError):
    DefaultExecutor(workers=0)
