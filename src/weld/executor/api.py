
import typing as t

if t.TYPE_CHECKING:
  from weld.graph import BuildGraph
  from weld.store import FingerprintStore
  from .report import BuildReport


@t.runtime_checkable
class IExecutor(t.Protocol):

  def execute(
    self,
    graph: 'BuildGraph',
    targets: t.Sequence[str],
    store: 'FingerprintStore',
    force: t.Collection[str] = (),
  ) -> 'BuildReport':
    raise NotImplementedError
