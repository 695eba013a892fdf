
import sys
import threading
import typing as t

from termcolor import colored

from weld.task.state import TaskState

if t.TYPE_CHECKING:
  from .report import BuildReport, TaskResult

_STATE_LABELS = {
  TaskState.Succeeded: (None, None),
  TaskState.Skipped: ('UP TO DATE', 'green'),
  TaskState.Failed: ('FAILED', 'red'),
  TaskState.SkippedDueToFailure: ('SKIPPED', 'yellow'),
  TaskState.Cancelled: ('CANCELLED', 'yellow'),
}


class ConsoleReporter:
  """
  Prints a status line for every task that finished. Colors are only used if the stream is a
  terminal. Output of a failed task's commands is printed after its status line, or for every
  task if *verbose* is enabled.
  """

  def __init__(self, stream: t.Optional[t.TextIO] = None, verbose: bool = False) -> None:
    self._stream = stream
    self._lock = threading.Lock()
    self.verbose = verbose

  @property
  def stream(self) -> t.TextIO:
    return self._stream or sys.stdout

  def _color(self, text: str, color: t.Optional[str], bold: bool = False) -> str:
    if color is None or not self.stream.isatty():
      return text
    return colored(text, color, attrs=['bold'] if bold else None)

  def task_finished(self, result: 'TaskResult') -> None:
    label, color = _STATE_LABELS.get(result.state, (result.state.name, None))
    line = '> Task ' + self._color(result.task_id, 'blue' if color is None else color, bold=True)
    if label:
      line += ' ' + self._color(label, color)
    with self._lock:
      print(line, file=self.stream)
      if result.error is not None and result.state == TaskState.Failed:
        print('  ' + self._color(str(result.error), 'red'), file=self.stream)
      if result.output and (self.verbose or result.state == TaskState.Failed):
        for text in result.output:
          print(text.rstrip('\n'), file=self.stream)
      self.stream.flush()

  def build_finished(self, report: 'BuildReport') -> None:
    status = self._color('BUILD SUCCESSFUL', 'green', True) if report.succeeded \
        else self._color('BUILD FAILED', 'red', True)
    with self._lock:
      print(f'\n{status} ({report.summary()})', file=self.stream)
      self.stream.flush()


class NullReporter(ConsoleReporter):

  def task_finished(self, result: 'TaskResult') -> None:
    pass

  def build_finished(self, report: 'BuildReport') -> None:
    pass
