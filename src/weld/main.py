
import argparse
import logging
import sys
from pathlib import Path

from weld.context import Context
from weld.errors import BuildFailed, ConfigurationError, WeldError
from weld.project import CannotLoadProject
from weld.settings import Settings

parser = argparse.ArgumentParser(prog='weld')
parser.add_argument('-O', '--option', default=[], action='append',
  help='Set or override an option in the settings of the build.')
parser.add_argument('--settings-file', default=Context.SETTINGS_FILE, type=Path,
  help='Point to another settings file. (default: %(default)s)')
parser.add_argument('-C', '--directory', type=Path,
  help='The directory of the root project. (default: the current directory)')
parser.add_argument('-j', '--workers', type=int,
  help='The maximum number of tasks to run in parallel.')
parser.add_argument('--fail-fast', action='store_true', default=None,
  help='Do not start any more tasks after the first task failed.')
parser.add_argument('--force', metavar='task', default=[], action='append',
  help='Execute the selected task(s) even if they are up to date. Can be specified multiple times.')
parser.add_argument('--clean', action='store_true',
  help='Delete the outputs of the selected tasks (or all tasks) instead of executing them.')
parser.add_argument('-v', '--verbose', action='store_true',
  help='Print commands and their output and enable debug logging.')
parser.add_argument('tasks', metavar='task', nargs='*')


def main(argv=None):
  args = parser.parse_args(argv)
  logging.basicConfig(
    format='[%(levelname)s %(name)s]: %(message)s',
    level=logging.DEBUG if args.verbose else logging.WARNING)

  settings = Settings.from_file(Path(args.settings_file))
  settings.update(Settings.parse(args.option, lambda index, line: parser.error(f'invalid option: {line!r}')))
  if args.workers is not None:
    settings.set('core.executor.workers', args.workers)
  if args.fail_fast is not None:
    settings.set('core.executor.fail_fast', args.fail_fast)
  if args.verbose:
    settings.set('core.verbose', True)

  try:
    context = Context(settings)
    context.load_project(args.directory or Path.cwd())
    if args.clean:
      for task_id in context.clean(args.tasks or None):
        print('cleaned', task_id)
    else:
      context.execute(args.tasks or None, args.force)
  except (ConfigurationError, CannotLoadProject) as exc:
    print(f'error: {exc}', file=sys.stderr)
    sys.exit(2)
  except BuildFailed:
    sys.exit(1)
  except WeldError as exc:
    print(f'error: {exc}', file=sys.stderr)
    sys.exit(1)


if __name__ == '__main__':
  main()
