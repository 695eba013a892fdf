
import sys

import pytest
import toml

from weld.main import main


def _write_build(directory, tasks):
  (directory / 'build.toml').write_text(toml.dumps({'tasks': tasks}))


def _python(code):
  return {'command': sys.executable, 'args': ['-c', code]}


def test_main_builds_and_skips_up_to_date_tasks(tmp_path, monkeypatch, capsys):
  monkeypatch.chdir(tmp_path)
  _write_build(tmp_path, {
    'hello': dict(_python("open('hello.txt', 'w').write('hello')"), outputs=['hello.txt']),
  })

  main(['hello'])
  assert (tmp_path / 'hello.txt').read_text() == 'hello'
  assert '> Task :hello\n' in capsys.readouterr().out

  main(['-C', str(tmp_path), 'hello'])
  assert '> Task :hello UP TO DATE' in capsys.readouterr().out

  main(['--force', 'hello', 'hello'])
  assert '> Task :hello\n' in capsys.readouterr().out

  main(['--clean'])
  assert capsys.readouterr().out == 'cleaned :hello\n'
  assert not (tmp_path / 'hello.txt').exists()


def test_main_exits_with_1_on_task_failure(tmp_path, monkeypatch, capsys):
  monkeypatch.chdir(tmp_path)
  _write_build(tmp_path, {
    'fail': _python('import sys; print("compilation failed"); sys.exit(3)'),
    'after': {'depends_on': ['fail']},
  })

  with pytest.raises(SystemExit) as excinfo:
    main(['-j', '2', 'after'])
  assert excinfo.value.code == 1
  out = capsys.readouterr().out
  assert '> Task :fail FAILED' in out
  assert 'compilation failed' in out
  assert '> Task :after SKIPPED' in out


def test_main_exits_with_2_on_configuration_error(tmp_path, monkeypatch, capsys):
  monkeypatch.chdir(tmp_path)
  _write_build(tmp_path, {
    'a': {'depends_on': ['b']},
    'b': {'depends_on': ['a']},
  })

  with pytest.raises(SystemExit) as excinfo:
    main([])
  assert excinfo.value.code == 2
  assert 'cyclic dependency: :a -> :b -> :a' in capsys.readouterr().err


def test_main_exits_with_2_without_build_file(tmp_path, monkeypatch):
  monkeypatch.chdir(tmp_path)
  with pytest.raises(SystemExit) as excinfo:
    main(['--settings-file', str(tmp_path / 'nothing.settings')])
  assert excinfo.value.code == 2


def test_main_unknown_task(tmp_path, monkeypatch, capsys):
  monkeypatch.chdir(tmp_path)
  _write_build(tmp_path, {'a': {}})
  with pytest.raises(SystemExit) as excinfo:
    main(['b'])
  assert excinfo.value.code == 2
  assert "unknown task: 'b'" in capsys.readouterr().err


def test_main_exits_with_2_on_invalid_build_file(tmp_path, monkeypatch, capsys):
  monkeypatch.chdir(tmp_path)
  _write_build(tmp_path, {'jar': {'publish': {'path': 'a.jar'}}})
  with pytest.raises(SystemExit) as excinfo:
    main([])
  assert excinfo.value.code == 2
  assert "publish of task 'jar' misses key 'name'" in capsys.readouterr().err


def test_main_rejects_invalid_option(tmp_path, monkeypatch, capsys):
  monkeypatch.chdir(tmp_path)
  _write_build(tmp_path, {'a': {}})
  with pytest.raises(SystemExit) as excinfo:
    main(['-O', 'core.verbose'])
  assert excinfo.value.code == 2
  assert "invalid option: 'core.verbose'" in capsys.readouterr().err
