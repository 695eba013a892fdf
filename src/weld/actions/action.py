
import abc
import typing as t
from dataclasses import dataclass, field

if t.TYPE_CHECKING:
  from weld.actions.process import IProcessRunner
  from weld.artifacts import Artifact


@dataclass
class ActionContext:
  """
  Passed to #Action.execute(). Carries the identity of the task that is executing, the process
  runner to invoke external commands with and the artifacts resolved for the task.
  """

  task_id: str
  runner: 'IProcessRunner'
  verbose: bool = False
  artifacts: t.Dict[str, 'Artifact'] = field(default_factory=dict)

  #: Output captured from external commands, in the order they were run.
  output: t.List[str] = field(default_factory=list)


class Action(metaclass=abc.ABCMeta):
  """
  An action is a single step of work executed by a task. An action signals failure by raising
  an exception; #weld.errors.ActionFailure is preferred for expected failures.
  """

  @abc.abstractmethod
  def execute(self, context: ActionContext) -> None:
    pass
