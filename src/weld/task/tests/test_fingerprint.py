
from pathlib import Path

from weld.task import DirectorySpec, FileSpec, ValueSpec
from weld.task.fingerprint import compute_fingerprint, hash_directory, hash_file, hash_value
from weld.task.spec import file_or_directory


def test_spec_identity_is_normalized(tmp_path):
  spec = FileSpec(tmp_path / 'a' / '..' / 'b.txt')
  assert spec.path == tmp_path / 'b.txt'
  assert spec.identity == f'file:{tmp_path / "b.txt"}'
  assert spec == FileSpec(tmp_path / 'b.txt')
  assert DirectorySpec(tmp_path).identity == f'dir:{tmp_path}'
  assert ValueSpec('mode', 'release').identity == 'value:mode'


def test_file_fingerprint(tmp_path):
  path = tmp_path / 'file.txt'
  spec = FileSpec(path)
  assert compute_fingerprint(spec) is None

  path.write_text('a')
  digest = compute_fingerprint(spec)
  assert digest == hash_file(path)
  path.write_text('b')
  assert compute_fingerprint(spec) != digest
  path.write_text('a')
  assert compute_fingerprint(spec) == digest


def test_directory_fingerprint_covers_listing_and_contents(tmp_path):
  root = tmp_path / 'src'
  (root / 'lib').mkdir(parents=True)
  (root / 'lib' / 'app.js').write_text('x')
  assert compute_fingerprint(DirectorySpec(tmp_path / 'nothing')) is None

  digest = hash_directory(root)
  (root / 'lib' / 'app.js').write_text('y')
  modified = hash_directory(root)
  assert modified != digest

  (root / 'lib' / 'app.js').rename(root / 'lib' / 'main.js')
  assert hash_directory(root) != modified

  (root / 'lib' / 'main.js').rename(root / 'lib' / 'app.js')
  assert hash_directory(root) == modified
  (root / 'empty').mkdir()
  assert hash_directory(root) != modified


def test_value_fingerprint():
  assert hash_value({'a': 1, 'b': [1, 2]}) == hash_value({'b': [1, 2], 'a': 1})
  assert hash_value('release') != hash_value('debug')
  assert hash_value(Path('x')) == hash_value(Path('x'))


def test_file_or_directory(tmp_path):
  assert isinstance(file_or_directory(tmp_path), DirectorySpec)
  assert isinstance(file_or_directory(str(tmp_path / 'build') + '/'), DirectorySpec)
  assert isinstance(file_or_directory(tmp_path / 'app.jar'), FileSpec)
