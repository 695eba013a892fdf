
"""
The process runner is the collaborator through which external commands are invoked. The build
core only interprets the exit code of a command.
"""

import abc
import logging
import os
import subprocess as sp
import typing as t
from dataclasses import dataclass


@dataclass
class ProcessResult:
  exit_code: int
  stdout: t.Optional[str] = None
  stderr: t.Optional[str] = None


@t.runtime_checkable
class IProcessRunner(t.Protocol, metaclass=abc.ABCMeta):

  @abc.abstractmethod
  def run(
    self,
    command: t.Sequence[str],
    env: t.Optional[t.Mapping[str, str]] = None,
    cwd: t.Optional[str] = None,
  ) -> ProcessResult:
    """
    Run *command* and wait for it to finish. Raises an #OSError if the command could not be
    started at all (e.g. because the program does not exist).
    """


class SubprocessRunner(IProcessRunner):
  """
  Runs commands with #subprocess.run(). The environment variables in *env* are added on top of
  the current process environment. If *capture* is enabled, the output of the command is captured
  and returned in the #ProcessResult instead of being forwarded to the terminal.
  """

  log = logging.getLogger(__module__ + '.' + __qualname__)  # type: ignore

  def __init__(self, capture: bool = True) -> None:
    self.capture = capture

  def __repr__(self) -> str:
    return f'{type(self).__name__}(capture={self.capture!r})'

  def run(
    self,
    command: t.Sequence[str],
    env: t.Optional[t.Mapping[str, str]] = None,
    cwd: t.Optional[str] = None,
  ) -> ProcessResult:
    full_env = None
    if env:
      full_env = os.environ.copy()
      full_env.update(env)
    self.log.debug('running %r in %r', list(command), cwd)
    proc = sp.run(
      list(command),
      env=full_env,
      cwd=cwd,
      stdout=sp.PIPE if self.capture else None,
      stderr=sp.STDOUT if self.capture else None,
      universal_newlines=True,
    )
    return ProcessResult(proc.returncode, proc.stdout)
