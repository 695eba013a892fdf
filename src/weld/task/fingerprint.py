
import hashlib
import json
import os
import typing as t
from pathlib import Path

from .spec import DirectorySpec, FileSpec, IOSpec, ValueSpec

HASH_ALGORITHM = 'sha1'


class _IHasher(t.Protocol):
  def update(self, data: bytes) -> None:  # NOSONAR
    pass


def _hash_file(hasher: _IHasher, path: Path) -> None:
  with path.open('rb') as fp:
    while True:
      chunk = fp.read(8048)
      hasher.update(chunk)
      if not chunk:
        break


def hash_file(path: Path) -> str:
  hasher = hashlib.new(HASH_ALGORITHM)
  _hash_file(hasher, path)
  return hasher.hexdigest()


def hash_directory(path: Path) -> str:
  """
  Hashes the listing of the directory tree (relative paths of all files and directories) plus
  the contents of every file. Renaming, adding or removing entries as well as modifying files
  changes the hash.
  """

  hasher = hashlib.new(HASH_ALGORITHM)
  entries: t.List[t.Tuple[str, Path]] = []
  for root, dirnames, filenames in os.walk(path):
    dirnames.sort()
    for name in dirnames + filenames:
      full = Path(root) / name
      entries.append((full.relative_to(path).as_posix(), full))

  for relpath, full in sorted(entries):
    hasher.update(relpath.encode('utf-8'))
    if full.is_file():
      hasher.update(b'\0f')
      _hash_file(hasher, full)
    else:
      hasher.update(b'\0d')

  return hasher.hexdigest()


def hash_value(value: t.Any) -> str:
  """
  > Implementation detail: Values that are not JSON serializable are encoded with their #repr(),
  > which is expected to be consistent across invocations.
  """

  encoded = json.dumps(value, sort_keys=True, default=repr)
  return hashlib.new(HASH_ALGORITHM, encoded.encode('utf-8')).hexdigest()


def compute_fingerprint(spec: IOSpec) -> t.Optional[str]:
  """
  Computes the current digest of *spec*. Returns `None` if the file or directory referenced by
  the spec does not exist.
  """

  if isinstance(spec, FileSpec):
    return hash_file(spec.path) if spec.exists() else None
  elif isinstance(spec, DirectorySpec):
    return hash_directory(spec.path) if spec.exists() else None
  elif isinstance(spec, ValueSpec):
    return hash_value(spec.value)
  raise TypeError(f'unsupported spec type: {type(spec).__name__}')
