
import threading
import typing as t

import pytest

from weld.actions import ProcessResult
from weld.context import Context
from weld.executor import DefaultExecutor, NullReporter
from weld.settings import Settings
from weld.store import FingerprintStore


class FakeRunner:
  """
  Records the commands it is asked to run instead of running them. The exit code of a command
  is looked up by its program name in *exit_codes* (default `0`), a program listed in *missing*
  behaves like a program that is not installed.
  """

  def __init__(self) -> None:
    self.calls: t.List[t.List[str]] = []
    self.exit_codes: t.Dict[str, int] = {}
    self.missing: t.Set[str] = set()
    self.hooks: t.Dict[str, t.Callable[[], None]] = {}
    self._lock = threading.Lock()

  def run(self, command, env=None, cwd=None) -> ProcessResult:
    with self._lock:
      self.calls.append(list(command))
    if command[0] in self.missing:
      raise FileNotFoundError(2, 'No such file or directory', command[0])
    if command[0] in self.hooks:
      self.hooks[command[0]]()
    return ProcessResult(self.exit_codes.get(command[0], 0), f'ran {command[0]}\n')

  def programs(self) -> t.List[str]:
    return [x[0] for x in self.calls]


@pytest.fixture
def runner() -> FakeRunner:
  return FakeRunner()


@pytest.fixture
def make_context(tmp_path, runner):
  """ Returns a function to create a #Context with a custom executor configuration. """

  def factory(workers: int = 1, fail_fast: bool = False) -> Context:
    executor = DefaultExecutor(workers=workers, fail_fast=fail_fast, runner=runner, reporter=NullReporter())
    store = FingerprintStore.in_directory(str(tmp_path / '.weld-metadata'))
    return Context(Settings.of({}), executor=executor, store=store)
  return factory


@pytest.fixture
def context(make_context) -> Context:
  return make_context()


@pytest.fixture
def project(context, tmp_path):
  directory = tmp_path / 'root'
  directory.mkdir()
  return context.create_project(directory)
