
from .api import IExecutor
from .default import DefaultExecutor
from .report import BuildReport, TaskResult
from .reporter import ConsoleReporter, NullReporter

__all__ = ['BuildReport', 'ConsoleReporter', 'DefaultExecutor', 'IExecutor', 'NullReporter', 'TaskResult']
