
"""
The artifact registry lets a task expose one of its outputs under a name so that tasks in other
projects can consume it. Consuming an artifact establishes a data dependency (the artifact's
output becomes an input of the consumer) and an implicit edge from the consumer to the producer
in the #BuildGraph.
"""

import logging
import threading
import typing as t
from dataclasses import dataclass

from weld.errors import DuplicateArtifactError, UnresolvedArtifactError

if t.TYPE_CHECKING:
  from weld.graph import BuildGraph
  from weld.task.spec import PathSpec


@dataclass(frozen=True)
class ArtifactDeclaration:
  """ Declared on the producing task at configuration time. """

  name: str
  output: 'PathSpec'
  type_tag: str = 'archive'


@dataclass(frozen=True)
class Artifact:
  """ A published artifact. The #version is incremented every time the artifact is republished. """

  name: str
  producer: str
  output: 'PathSpec'
  type_tag: str
  version: int = 1


class ArtifactRegistry:

  log = logging.getLogger(__module__ + '.' + __qualname__)  # type: ignore

  def __init__(self, graph: t.Optional['BuildGraph'] = None) -> None:
    self._graph = graph
    self._lock = threading.RLock()
    self._declarations: t.Dict[str, t.Tuple[str, ArtifactDeclaration]] = {}
    self._published: t.Dict[str, Artifact] = {}

  def declare(self, task_id: str, declaration: ArtifactDeclaration) -> None:
    """
    Record that *task_id* produces the artifact described by *declaration*. Raises a
    #DuplicateArtifactError if another task already declared an artifact with the same name.
    """

    with self._lock:
      existing = self._declarations.get(declaration.name)
      if existing is not None and existing[0] != task_id:
        raise DuplicateArtifactError(declaration.name, existing[0], task_id)
      self._declarations[declaration.name] = (task_id, declaration)

  def declarations(self) -> t.Dict[str, t.Tuple[str, ArtifactDeclaration]]:
    with self._lock:
      return dict(self._declarations)

  def producer_of(self, name: str) -> t.Optional[str]:
    """ Returns the identity of the task that declares the artifact *name*. """

    with self._lock:
      entry = self._declarations.get(name)
      return entry[0] if entry else None

  def publish(self, task_id: str, name: str, output: 'PathSpec', type_tag: str) -> Artifact:
    """
    Publish the artifact *name*. Must only be called after the producing task succeeded or was
    confirmed to be up to date. Republishing an artifact by the same task increments its version,
    publishing it from a different task raises a #DuplicateArtifactError.
    """

    with self._lock:
      producer = self.producer_of(name)
      if producer is not None and producer != task_id:
        raise DuplicateArtifactError(name, producer, task_id)
      previous = self._published.get(name)
      if previous is not None and previous.producer != task_id:
        raise DuplicateArtifactError(name, previous.producer, task_id)
      artifact = Artifact(name, task_id, output, type_tag, previous.version + 1 if previous else 1)
      self._published[name] = artifact
    self.log.debug('published artifact %r (version %d) from task %r', name, artifact.version, task_id)
    return artifact

  def is_published(self, name: str) -> bool:
    with self._lock:
      return name in self._published

  def resolve(self, name: str, consumer_id: t.Optional[str] = None) -> Artifact:
    """
    Returns the current record of the artifact *name*. Raises an #UnresolvedArtifactError if the
    artifact has not been published in this invocation. If *consumer_id* is specified, the edge
    from the consumer to the producing task is added to the graph if it is not already present.
    """

    with self._lock:
      try:
        artifact = self._published[name]
      except KeyError:
        raise UnresolvedArtifactError(name, consumer_id)
    if consumer_id is not None and self._graph is not None:
      if artifact.producer not in self._graph.dependencies_of(consumer_id):
        self._graph.add_dependency(consumer_id, artifact.producer)
    return artifact

  def reset(self) -> None:
    """ Forget all published artifacts, keeping the declarations. """

    with self._lock:
      self._published.clear()
