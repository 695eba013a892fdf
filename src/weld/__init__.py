
__version__ = '0.1.0'

from weld.actions import Action, ActionContext
from weld.artifacts import Artifact, ArtifactRegistry
from weld.context import Context
from weld.executor import BuildReport, DefaultExecutor
from weld.graph import BuildGraph
from weld.project import Project
from weld.settings import Settings
from weld.store import FingerprintStore
from weld.task import Task, TaskState
from weld.uptodate import UpToDateEvaluator
