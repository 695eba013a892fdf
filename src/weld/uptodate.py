
import logging
import typing as t

from weld.errors import MissingInputError
from weld.store import Fingerprint, FingerprintStore, TaskRecord
from weld.task import Task
from weld.task.fingerprint import compute_fingerprint
from weld.task.spec import IOSpec, PathSpec

#: Maps the identity of an input or output spec to its current digest.
Snapshot = t.Dict[str, t.Optional[str]]


class UpToDateEvaluator:
  """
  Decides whether a task may be skipped. A task is up to date if

  1. a record of a previous successful run exists in the #FingerprintStore,
  2. the fingerprints of all of its inputs equal the recorded fingerprints,
  3. all of its outputs still exist and their fingerprints equal the recorded fingerprints and
  4. all of its dependencies were up to date or succeeded in the current invocation.

  Tasks that are always outdated, tasks without any declared inputs and outputs and tasks that
  are listed in *force* are never up to date.
  """

  log = logging.getLogger(__module__ + '.' + __qualname__)  # type: ignore

  def __init__(self, force: t.Collection[str] = ()) -> None:
    self.force = frozenset(force)

  def snapshot_inputs(self, task: Task, extra_inputs: t.Sequence[IOSpec] = ()) -> Snapshot:
    """
    Computes the digests of the task's inputs. Raises a #MissingInputError if an input file or
    directory does not exist.
    """

    result: Snapshot = {}
    for spec in list(task.inputs) + list(extra_inputs):
      digest = compute_fingerprint(spec)
      if digest is None:
        path = spec.path if isinstance(spec, PathSpec) else spec.identity
        raise MissingInputError(task.path, str(path))
      result[spec.identity] = digest
    return result

  def snapshot_outputs(self, task: Task) -> Snapshot:
    return {spec.identity: compute_fingerprint(spec) for spec in task.outputs}

  def is_up_to_date(
    self,
    task: Task,
    store: FingerprintStore,
    inputs: t.Optional[Snapshot] = None,
    dependencies_satisfied: bool = True,
    extra_inputs: t.Sequence[IOSpec] = (),
  ) -> bool:
    """
    Evaluates whether *task* may be skipped. If *inputs* is not specified, the inputs are
    snapshotted with #snapshot_inputs(), which may raise a #MissingInputError.
    """

    if inputs is None:
      inputs = self.snapshot_inputs(task, extra_inputs)

    if task.path in self.force or task.always_outdated:
      return False
    if not dependencies_satisfied:
      return False
    if not inputs and not task.outputs:
      return False

    record = store.load(task.path)
    if record is None or not record.succeeded:
      self.log.debug('task %r has no record of a successful run', task.path)
      return False

    if not _matches(inputs, record.inputs):
      self.log.debug('inputs of task %r changed', task.path)
      return False

    outputs = self.snapshot_outputs(task)
    if any(digest is None for digest in outputs.values()):
      self.log.debug('outputs of task %r are missing', task.path)
      return False
    if not _matches(outputs, record.outputs):
      self.log.debug('outputs of task %r changed', task.path)
      return False

    return True

  def capture(self, task: Task, inputs: Snapshot) -> TaskRecord:
    """
    Creates the record for a successful run of *task*. The *inputs* should be the snapshot taken
    before the task's actions were invoked, the outputs are snapshotted now.
    """

    return TaskRecord(
      task_id=task.path,
      inputs={k: Fingerprint(v) for k, v in inputs.items()},
      outputs={k: Fingerprint(v) for k, v in self.snapshot_outputs(task).items()},
      succeeded=True,
    )


def _matches(current: Snapshot, recorded: t.Dict[str, Fingerprint]) -> bool:
  if current.keys() != recorded.keys():
    return False
  return all(digest is not None and recorded[key].digest == digest for key, digest in current.items())
