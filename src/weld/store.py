
"""
The fingerprint store persists, per task, the fingerprints of the task's declared inputs and
outputs as captured after its last successful run. Records are stored through the key/value API
of `nr.caching`; the default backend keeps one JSON file per task and replaces it atomically, so
a concurrent reader observes either the previous or the new record, never a partial one.
"""

import base64
import json
import logging
import os
import tempfile
import threading
import time
import typing as t
import urllib.parse
from dataclasses import asdict, dataclass, field

from nr.caching.api import KeyDoesNotExist, KeyValueStore, NamespaceStore

#: The namespace in which task records are stored.
TASK_RECORD_NAMESPACE = 'task-fingerprints'


@dataclass
class Fingerprint:
  #: The content hash of the spec, `None` if the file or directory did not exist.
  digest: t.Optional[str]

  #: A logical timestamp. Assigned by the #FingerprintStore when the record is saved.
  timestamp: int = 0


@dataclass
class TaskRecord:
  task_id: str
  inputs: t.Dict[str, Fingerprint] = field(default_factory=dict)
  outputs: t.Dict[str, Fingerprint] = field(default_factory=dict)

  #: Marks the record as being captured after a successful run.
  succeeded: bool = True

  #: Incremented every time the record for the task is replaced.
  generation: int = 0

  def to_json(self) -> t.Dict[str, t.Any]:
    return asdict(self)

  @classmethod
  def from_json(cls, data: t.Dict[str, t.Any]) -> 'TaskRecord':
    return cls(
      task_id=data['task_id'],
      inputs={k: Fingerprint(**v) for k, v in data.get('inputs', {}).items()},
      outputs={k: Fingerprint(**v) for k, v in data.get('outputs', {}).items()},
      succeeded=data.get('succeeded', False),
      generation=data.get('generation', 0),
    )


class IterableKeyValueStore(KeyValueStore):
  """ A #KeyValueStore that can list the keys it contains. """

  def keys(self) -> t.List[str]:
    raise NotImplementedError(f'{type(self).__name__}.keys()')


class MemoryStore(IterableKeyValueStore):
  """ Keeps values in memory. Useful for tests and dry runs. """

  def __init__(self) -> None:
    self._lock = threading.Lock()
    self._values: t.Dict[str, t.Tuple[bytes, t.Optional[float]]] = {}

  def load(self, key: str) -> bytes:
    with self._lock:
      try:
        value, exp = self._values[key]
      except KeyError:
        raise KeyDoesNotExist(key)
      if exp is not None and exp < time.time():
        del self._values[key]
        raise KeyDoesNotExist(key)
      return value

  def store(self, key: str, value: bytes, expires_in: t.Optional[int] = None) -> None:
    with self._lock:
      if expires_in == 0:
        self._values.pop(key, None)
        return
      exp = time.time() + expires_in if expires_in is not None else None
      self._values[key] = (value, exp)

  def expunge(self) -> None:
    now = time.time()
    with self._lock:
      for key in [k for k, (_, exp) in self._values.items() if exp is not None and exp < now]:
        del self._values[key]

  def keys(self) -> t.List[str]:
    with self._lock:
      return list(self._values)


class DirectoryStore(IterableKeyValueStore):
  """
  A key value store that maps every key to a JSON file in a directory. Files are written to a
  temporary file first and then moved into place with #os.replace().
  """

  def __init__(self, directory: str) -> None:
    self._directory = directory
    self._lock = threading.Lock()

  def __repr__(self) -> str:
    return f'{type(self).__name__}({self._directory!r})'

  def _filename(self, key: str) -> str:
    return os.path.join(self._directory, urllib.parse.quote(key, safe='') + '.json')

  def _read(self, filename: str) -> t.Optional[t.Dict[str, t.Any]]:
    try:
      with open(filename) as fp:
        return json.load(fp)
    except FileNotFoundError:
      return None

  def load(self, key: str) -> bytes:
    entry = self._read(self._filename(key))
    if entry is None:
      raise KeyDoesNotExist(key)
    if entry['exp'] is not None and entry['exp'] < time.time():
      raise KeyDoesNotExist(key)
    return base64.b85decode(entry['val'].encode('ascii'))

  def store(self, key: str, value: bytes, expires_in: t.Optional[int] = None) -> None:
    filename = self._filename(key)
    with self._lock:
      if expires_in == 0:
        try:
          os.remove(filename)
        except FileNotFoundError:
          pass
        return
      exp = time.time() + expires_in if expires_in is not None else None
      os.makedirs(self._directory, exist_ok=True)
      fd, tmpname = tempfile.mkstemp(dir=self._directory, prefix='.tmp-', suffix='.json')
      try:
        with os.fdopen(fd, 'w') as fp:
          json.dump({'val': base64.b85encode(value).decode('ascii'), 'exp': exp}, fp)
        os.replace(tmpname, filename)
      except BaseException:
        os.remove(tmpname)
        raise

  def expunge(self) -> None:
    now = time.time()
    for key in self.keys():
      entry = self._read(self._filename(key))
      if entry is not None and entry['exp'] is not None and entry['exp'] < now:
        self.store(key, b'', expires_in=0)

  def keys(self) -> t.List[str]:
    try:
      names = os.listdir(self._directory)
    except (FileNotFoundError, NotADirectoryError):
      names = []
    return sorted(urllib.parse.unquote(n[:-5]) for n in names
        if n.endswith('.json') and not n.startswith('.tmp-'))


class JsonDirectoryStore(NamespaceStore):
  """
  A namespace store that maps one namespace to a sub directory of *directory*.
  """

  def __init__(self, directory: str, create_dir: bool = False) -> None:
    self._directory = directory
    self._namespaces: t.Dict[str, DirectoryStore] = {}
    self._lock = threading.Lock()
    if create_dir:
      os.makedirs(directory, exist_ok=True)

  def __repr__(self) -> str:
    return f'{type(self).__name__}({self._directory!r})'

  def namespace(self, namespace: str) -> DirectoryStore:
    with self._lock:
      if namespace not in self._namespaces:
        self._namespaces[namespace] = DirectoryStore(os.path.join(self._directory, namespace))
      return self._namespaces[namespace]

  def expunge(self, namespace: t.Optional[str] = None) -> None:
    if namespace:
      self.namespace(namespace).expunge()
    else:
      try:
        names = os.listdir(self._directory)
      except (FileNotFoundError, NotADirectoryError):
        names = []
      for name in names:
        if os.path.isdir(os.path.join(self._directory, name)):
          self.namespace(name).expunge()


class MemoryNamespaceStore(NamespaceStore):

  def __init__(self) -> None:
    self._namespaces: t.Dict[str, MemoryStore] = {}

  def namespace(self, namespace: str) -> MemoryStore:
    return self._namespaces.setdefault(namespace, MemoryStore())

  def expunge(self, namespace: t.Optional[str] = None) -> None:
    for name, store in self._namespaces.items():
      if namespace is None or name == namespace:
        store.expunge()


class FingerprintStore:
  """
  Loads and saves #TaskRecord objects keyed by task identity. Saving a record assigns the next
  logical timestamp of the task to all of its fingerprints. Writes are serialized; every record
  is replaced as a whole.
  """

  log = logging.getLogger(__module__ + '.' + __qualname__)  # type: ignore

  def __init__(self, backend: NamespaceStore, namespace: str = TASK_RECORD_NAMESPACE) -> None:
    self._backend = backend
    self._store = backend.namespace(namespace)
    self._lock = threading.Lock()

  def __repr__(self) -> str:
    return f'{type(self).__name__}({self._backend!r})'

  @classmethod
  def in_memory(cls) -> 'FingerprintStore':
    return cls(MemoryNamespaceStore())

  @classmethod
  def in_directory(cls, directory: str) -> 'FingerprintStore':
    return cls(JsonDirectoryStore(directory, create_dir=True))

  def load(self, task_id: str) -> t.Optional[TaskRecord]:
    try:
      data = self._store.load(task_id)
    except KeyDoesNotExist:
      return None
    try:
      return TaskRecord.from_json(json.loads(data.decode('utf-8')))
    except (ValueError, KeyError, TypeError) as exc:
      self.log.warning('discarding unreadable record for task %r: %s', task_id, exc)
      return None

  def load_all(self) -> t.Dict[str, TaskRecord]:
    if not isinstance(self._store, IterableKeyValueStore):
      raise TypeError(f'{self._store!r} can not list its keys')
    result: t.Dict[str, TaskRecord] = {}
    for key in self._store.keys():
      record = self.load(key)
      if record is not None:
        result[key] = record
    return result

  def save(self, record: TaskRecord) -> TaskRecord:
    with self._lock:
      previous = self.load(record.task_id)
      record.generation = (previous.generation if previous else 0) + 1
      for fingerprint in list(record.inputs.values()) + list(record.outputs.values()):
        fingerprint.timestamp = record.generation
      self._store.store(record.task_id, json.dumps(record.to_json(), sort_keys=True).encode('utf-8'))
    self.log.debug('saved record for task %r (generation %d)', record.task_id, record.generation)
    return record

  def save_all(self, records: t.Iterable[TaskRecord]) -> None:
    for record in records:
      self.save(record)

  def remove(self, task_id: str) -> None:
    with self._lock:
      self._store.store(task_id, b'', expires_in=0)

  def clear(self) -> None:
    for task_id in self.load_all():
      self.remove(task_id)
