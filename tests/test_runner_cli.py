"""Tests for the host-side runner command line."""

from pathlib import Path
from unittest.mock import Mock, patch

import pytest

from addin_compat.diff_cache import CACHE_SUBDIR, PENDING_SUBDIR
from addin_compat.runner_cli import main


@pytest.fixture
def config_file(tmp_path):
    """Tool config pointing the diff cache into the test directory."""
    path = tmp_path / "addin-compat.yaml"
    path.write_text(f"cache_dir: {tmp_path / 'cache'}\n")
    return path


def _fake_run(bad_names):
    def fake_run(cmd, **kwargs):
        if "--generate-baseline" in cmd:
            return Mock(returncode=0, stdout="", stderr="")
        location = Path(cmd[cmd.index("--addin-dir") + 1])
        if location.name in bad_names:
            diff_file = Path(cmd[cmd.index("--diff-output-file") + 1])
            diff_file.write_text("C uses Baz\n")
            return Mock(returncode=1, stdout="", stderr="")
        return Mock(returncode=0, stdout="", stderr="")
    return fake_run


def test_no_command_prints_help(capsys):
    assert main([]) == -1
    assert "usage:" in capsys.readouterr().out


@patch('addin_compat.runner.subprocess.run')
def test_check_save_reset_cycle(mock_run, tmp_path, app_dir, make_addin, config_file):
    mock_run.side_effect = _fake_run({"Bad"})
    bad = make_addin("Bad", ["C uses Baz"])
    good = make_addin("Good", ["A uses Foo"])
    cache = tmp_path / "cache"

    exit_code = main(["--config", str(config_file), "check", "--app-dir", str(app_dir),
                      "--addin-dir", str(bad), "--addin-dir", str(good)])

    assert exit_code == 1
    assert [p.name for p in (cache / PENDING_SUBDIR).iterdir()] == ["Bad,1.0-diff.txt"]
    # Every CLI invocation receives the same tool config
    assert all(cmd[cmd.index("--config") + 1] == str(config_file.resolve())
               for cmd in (c.args[0] for c in mock_run.call_args_list))

    assert main(["--config", str(config_file), "save"]) == 0
    assert (cache / CACHE_SUBDIR / "Bad,1.0-diff.txt").read_text() == "C uses Baz\n"
    assert not (cache / PENDING_SUBDIR).exists()

    assert main(["--config", str(config_file), "reset"]) == 0
    assert not (cache / CACHE_SUBDIR).exists()


@patch('addin_compat.runner.subprocess.run')
def test_check_all_compatible(mock_run, app_dir, make_addin, config_file, capsys):
    mock_run.side_effect = _fake_run(set())
    good = make_addin("Good", ["A uses Foo"])

    assert main(["--config", str(config_file), "check", "--app-dir", str(app_dir),
                 "--addin-dir", str(good)]) == 0
    assert "All extensions are compatible" in capsys.readouterr().out


@patch('addin_compat.runner.subprocess.run')
def test_check_baseline_failure(mock_run, app_dir, make_addin, config_file):
    mock_run.return_value = Mock(returncode=-1, stdout="", stderr="ERROR: scanner missing")

    assert main(["--config", str(config_file), "check", "--app-dir", str(app_dir),
                 "--addin-dir", str(make_addin("Good", ["x"]))]) == -1


def test_check_missing_addin_dir(tmp_path, app_dir, config_file, capsys):
    exit_code = main(["--config", str(config_file), "check", "--app-dir", str(app_dir),
                      "--addin-dir", str(tmp_path / "missing")])

    assert exit_code == -1
    assert "Addin directory does not exist" in capsys.readouterr().err


def test_check_app_not_located(make_addin, config_file, capsys):
    with patch('addin_compat.runner_cli.locate_app_dir', return_value=None):
        exit_code = main(["--config", str(config_file), "check",
                          "--addin-dir", str(make_addin("Good", ["x"]))])

    assert exit_code == -1
    assert "Application directory not found" in capsys.readouterr().err
