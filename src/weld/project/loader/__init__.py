
from .api import CannotLoadProject, IProjectLoader
from .delegate import DelegateProjectLoader
from .script import PythonProjectLoader
from .declarative import TomlProjectLoader

__all__ = ['CannotLoadProject', 'DelegateProjectLoader', 'IProjectLoader', 'PythonProjectLoader', 'TomlProjectLoader']
