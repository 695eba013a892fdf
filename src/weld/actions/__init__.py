
from .action import Action, ActionContext
from .archive_action import ArchiveAction
from .command_action import CommandAction
from .delete_action import DeleteAction
from .lambda_action import LambdaAction
from .process import IProcessRunner, ProcessResult, SubprocessRunner
from .write_file_action import WriteFileAction

__all__ = [
  'Action',
  'ActionContext',
  'ArchiveAction',
  'CommandAction',
  'DeleteAction',
  'IProcessRunner',
  'LambdaAction',
  'ProcessResult',
  'SubprocessRunner',
  'WriteFileAction',
]
