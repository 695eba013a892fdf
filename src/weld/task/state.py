
import enum


class TaskState(enum.Enum):
  Pending = enum.auto()
  UpToDate = enum.auto()
  Running = enum.auto()
  Succeeded = enum.auto()
  Failed = enum.auto()

  #: The task was up to date and its actions were not invoked.
  Skipped = enum.auto()

  #: A dependency of the task failed, the task was never invoked.
  SkippedDueToFailure = enum.auto()

  #: The task was not started because the build stopped after a failure (fail-fast).
  Cancelled = enum.auto()

  @property
  def terminal(self) -> bool:
    return self in TERMINAL_STATES

  @property
  def satisfied(self) -> bool:
    """ True if dependents of a task in this state may run. """

    return self in (TaskState.Succeeded, TaskState.Skipped)


TERMINAL_STATES = frozenset([
  TaskState.Succeeded,
  TaskState.Failed,
  TaskState.Skipped,
  TaskState.SkippedDueToFailure,
  TaskState.Cancelled,
])
