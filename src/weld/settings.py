
"""
Build settings are flat `key=value` pairs, read from the `build.settings` file of the working
directory and overridden with `-O key=value` on the command line. All values are strings; the
getters convert them on access.
"""

import abc
import logging
import typing as t
from pathlib import Path

from weld.util.preconditions import check_instance_of
from weld.util.pyimport import load_class

T = t.TypeVar('T')
log = logging.getLogger(__name__)


class ClassInstantiationError(Exception):
  pass


@t.runtime_checkable
class IHasFromSettings(t.Protocol):

  @classmethod
  def from_settings(cls, settings: 'Settings') -> t.Any:
    pass


class Settings(metaclass=abc.ABCMeta):

  @abc.abstractmethod
  def __getitem__(self, key: str) -> str:
    pass

  @abc.abstractmethod
  def __iter__(self) -> t.Iterator[str]:
    pass

  @abc.abstractmethod
  def set(self, key: str, value: t.Union[str, int, bool]) -> None:
    pass

  def get(self, key: str, default: T) -> t.Union[str, T]:
    try:
      return self[key]
    except KeyError:
      return default

  def get_int(self, key: str, default: int) -> int:
    try:
      return int(self[key].strip())
    except KeyError:
      return default
    except ValueError:
      raise ValueError(f'{key!r} is not an integer: {self[key]!r}')

  def get_bool(self, key: str, default: bool = False) -> bool:
    try:
      value = self[key].strip().lower()
    except KeyError:
      return default
    if value in ('yes', 'true', 'on', '1'):
      return True
    if value in ('no', 'false', 'off', '0'):
      return False
    raise ValueError(f'{key!r} is not a boolean: {self[key]!r}')

  def get_list(self, key: str, default: str = '') -> t.List[str]:
    """ Reads a comma separated list. Empty items are dropped. """

    return [x.strip() for x in self.get(key, default).split(',') if x.strip()]

  def get_path(self, key: str) -> t.Optional[Path]:
    value = self.get(key, '').strip()
    return Path(value) if value else None

  def get_instance(self, type: t.Type[T], key: str, default: str) -> T:
    """
    Instantiates the class named by the value of *key* (or *default*) with #create_instance().
    Used for the pluggable parts of a #weld.context.Context, e.g. `core.executor`.
    """

    return self.create_instance(type, self.get(key, default))

  def create_instance(self, type: t.Type[T], qualname: str) -> T:
    """
    Load the class *qualname* and create an instance of it with its `from_settings()` method, or
    without arguments if it has none. An #ImportError propagates if the class cannot be found.
    """

    class_ = load_class(qualname)
    try:
      instance = class_.from_settings(self) if hasattr(class_, 'from_settings') else class_()
    except Exception as exc:
      raise ClassInstantiationError(f'could not create `{qualname}`: {exc}') from exc
    check_instance_of(instance, type, qualname)
    return instance

  def update(self, other: 'Settings') -> None:
    for key in other:
      self.set(key, other[key])

  @staticmethod
  def of(mapping: t.MutableMapping[str, str]) -> 'Settings':
    return _MappingSettings(mapping)

  @staticmethod
  def parse(
    lines: t.Iterable[str],
    on_invalid_line: t.Optional[t.Callable[[int, str], None]] = None,
  ) -> 'Settings':
    """
    Parses `key=value` lines. Blank lines and lines starting with a hashsign (`#`) are skipped.
    Lines without an equals sign are passed to *on_invalid_line* (if specified) and skipped.
    """

    mapping: t.Dict[str, str] = {}
    for index, line in enumerate(lines):
      line = line.strip()
      if not line or line.startswith('#'):
        continue
      key, sep, value = line.partition('=')
      if not sep:
        if on_invalid_line:
          on_invalid_line(index, line)
        continue
      mapping[key.strip()] = value.strip()
    return _MappingSettings(mapping)

  @staticmethod
  def from_file(path: Path, not_exist_ok: bool = True) -> 'Settings':
    if not path.exists() and not_exist_ok:
      return Settings.of({})

    def on_invalid_line(index: int, line: str) -> None:
      log.warning('%s:%d: ignoring line without "=": %r', path, index + 1, line)

    return Settings.parse(path.read_text().splitlines(), on_invalid_line)


class _MappingSettings(Settings):

  def __init__(self, mapping: t.MutableMapping[str, str]) -> None:
    self._mapping = mapping

  def __repr__(self) -> str:
    return f'Settings({self._mapping!r})'

  def __getitem__(self, key: str) -> str:
    return self._mapping[key]

  def __iter__(self) -> t.Iterator[str]:
    return iter(self._mapping)

  def set(self, key: str, value: t.Union[str, int, bool]) -> None:
    if not isinstance(value, (str, int, bool)):
      raise TypeError(f'expected typing.Union[str, int, bool], got {type(value).__name__}')
    if isinstance(value, bool):
      value = 'true' if value else 'false'
    self._mapping[key] = str(value)
