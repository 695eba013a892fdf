
"""
Declared inputs and outputs of a task. A spec names either a single file, a directory subtree or
a literal key/value pair. The #IOSpec.identity is stable across invocations and is used as the
key of the fingerprint recorded for the spec.
"""

import abc
import os
import typing as t
from dataclasses import dataclass
from pathlib import Path


class IOSpec(metaclass=abc.ABCMeta):

  #: A short name for the kind of spec, used as the prefix of the #identity.
  kind: t.ClassVar[str]

  @property
  @abc.abstractmethod
  def identity(self) -> str:
    pass


class PathSpec(IOSpec):

  path: Path

  def __post_init__(self) -> None:
    # Specs are frozen, the normalized path must be assigned through object.
    object.__setattr__(self, 'path', Path(os.path.abspath(self.path)))

  @property
  def identity(self) -> str:
    return f'{self.kind}:{self.path}'

  def exists(self) -> bool:
    return self.path.exists()


@dataclass(frozen=True)
class FileSpec(PathSpec):
  kind = 'file'
  path: Path

  def exists(self) -> bool:
    return self.path.is_file()


@dataclass(frozen=True)
class DirectorySpec(PathSpec):
  kind = 'dir'
  path: Path

  def exists(self) -> bool:
    return self.path.is_dir()


@dataclass(frozen=True)
class ValueSpec(IOSpec):
  kind = 'value'
  name: str
  value: t.Any

  @property
  def identity(self) -> str:
    return f'{self.kind}:{self.name}'


def file_or_directory(path: t.Union[str, Path], base: t.Union[None, str, Path] = None) -> PathSpec:
  """
  Returns a #DirectorySpec if *path* ends with a path separator or points to an existing
  directory, a #FileSpec otherwise. A relative *path* is joined with *base*.
  """

  is_dir = str(path).endswith(('/', os.sep))
  if base is not None:
    path = Path(base) / path
  if is_dir or Path(path).is_dir():
    return DirectorySpec(Path(path))
  return FileSpec(Path(path))
