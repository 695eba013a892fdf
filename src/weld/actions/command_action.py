
import re
import shlex
import typing as t
from dataclasses import dataclass, field

from weld.errors import ActionFailure, UnresolvedArtifactError
from .action import Action, ActionContext

#: Matches `${artifact:<name>}` references in command arguments.
ARTIFACT_REFERENCE = re.compile(r'\$\{artifact:([^}]+)\}')


@dataclass
class CommandAction(Action):

  #: A command line to execute.
  command: t.Optional[t.Sequence[str]] = None

  #: A list of command lines to execute in order. If both #command and #commands are
  #: specified, #command is executed first.
  commands: t.Optional[t.Sequence[t.Sequence[str]]] = None

  #: The working directory in which to execute the command(s).
  working_directory: t.Optional[str] = None

  #: Environment variables to set in addition to the current process environment.
  environment: t.Dict[str, str] = field(default_factory=dict)

  #: If this is enabled, the command that is being run is printed to stdout.
  verbose: bool = False

  def format_command(self, command: t.List[str]) -> str:
    return '$ ' + ' '.join(map(shlex.quote, command))

  def expand_argument(self, context: ActionContext, arg: str) -> str:
    """
    Replaces `${artifact:<name>}` with the path of the resolved artifact *name*.
    """

    def _sub(match: t.Match) -> str:
      name = match.group(1)
      try:
        return str(context.artifacts[name].output.path)
      except KeyError:
        raise UnresolvedArtifactError(name, context.task_id)

    return ARTIFACT_REFERENCE.sub(_sub, arg)

  def get_command_lines(self, context: ActionContext) -> t.List[t.List[str]]:
    commands: t.List[t.List[str]] = []
    if self.command is not None:
      commands.append([str(x) for x in self.command])
    if self.commands is not None:
      commands.extend([[str(x) for x in cmd] for cmd in self.commands])
    return [[self.expand_argument(context, x) for x in cmd] for cmd in commands]

  def execute(self, context: ActionContext) -> None:
    for command in self.get_command_lines(context):
      if self.verbose or context.verbose:
        print(self.format_command(command), flush=True)
      try:
        result = context.runner.run(command, self.environment or None, self.working_directory)
      except OSError as exc:
        # The program could not be started, e.g. a toolchain that is not installed.
        raise ActionFailure(context.task_id, f'could not run {command[0]!r}: {exc}') from exc
      if result.stdout:
        context.output.append(result.stdout)
      if result.exit_code != 0:
        raise ActionFailure(
          context.task_id,
          f'command {self.format_command(command)[2:]!r} exited with code {result.exit_code}',
          result.exit_code)
