
from .factory import archive_task, command_task, command_task_name
from .selector import DefaultTaskSelector, ITaskSelector
from .spec import DirectorySpec, FileSpec, IOSpec, PathSpec, ValueSpec
from .state import TaskState
from .task import ActionDescriptor, Task

__all__ = [
  'ActionDescriptor',
  'DefaultTaskSelector',
  'DirectorySpec',
  'FileSpec',
  'IOSpec',
  'ITaskSelector',
  'PathSpec',
  'Task',
  'TaskState',
  'ValueSpec',
  'archive_task',
  'command_task',
  'command_task_name',
]
