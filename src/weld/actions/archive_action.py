
import os
import typing as t
import zipfile
from dataclasses import dataclass
from pathlib import Path

from weld.errors import ActionFailure
from .action import Action, ActionContext

#: Timestamp written for every archive entry so that identical inputs produce identical bytes.
ZIP_EPOCH = (1980, 1, 1, 0, 0, 0)


@dataclass
class ArchiveAction(Action):
  """
  Packs all files below #source_directory into a ZIP archive at #archive. If #prefix is set,
  entries are stored under that path in the archive (e.g. `static` to make a web application's
  files visible as static resources on a Java classpath).

  Entries are written in sorted order with a fixed timestamp, the archive only changes if the
  packed files do.
  """

  #: The directory whose files are packed.
  source_directory: Path

  #: The path of the archive to write.
  archive: Path

  #: An optional path under which the files are stored in the archive.
  prefix: t.Optional[str] = None

  def get_entries(self) -> t.List[t.Tuple[str, Path]]:
    entries: t.List[t.Tuple[str, Path]] = []
    for root, dirnames, filenames in os.walk(self.source_directory):
      dirnames.sort()
      for filename in sorted(filenames):
        path = Path(root) / filename
        arcname = path.relative_to(self.source_directory).as_posix()
        if self.prefix:
          arcname = self.prefix.strip('/') + '/' + arcname
        entries.append((arcname, path))
    return sorted(entries)

  def execute(self, context: ActionContext) -> None:
    if not os.path.isdir(self.source_directory):
      raise ActionFailure(context.task_id, f'not a directory: {str(self.source_directory)!r}')

    os.makedirs(os.path.dirname(os.path.abspath(self.archive)), exist_ok=True)
    with zipfile.ZipFile(self.archive, 'w', zipfile.ZIP_DEFLATED) as zf:
      for arcname, path in self.get_entries():
        info = zipfile.ZipInfo(arcname, ZIP_EPOCH)
        info.compress_type = zipfile.ZIP_DEFLATED
        info.external_attr = 0o644 << 16
        zf.writestr(info, path.read_bytes())

    if context.verbose:
      print(f'packed {len(self.get_entries())} file(s) into {str(self.archive)!r}', flush=True)
