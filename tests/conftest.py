"""Shared fixtures: a fake scanner whose report is the text of its start files."""

import zipfile
from pathlib import Path

import pytest

from addin_compat.scanners.adapter import CompatScanAdapter
from addin_compat.scanners.inprocess import CallableScanEngine

APP_LINES = ["A uses Foo", "B uses Bar"]


def scan_file_contents(root, files, start_files, config):
    """Each fake assembly holds the report lines it contributes."""
    lines = []
    for f in start_files:
        lines.extend(f.read_text().splitlines())
    return lines


def write_assembly(directory: Path, name: str, lines) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / name
    path.write_text("".join(f"{line}\n" for line in lines))
    return path


def write_mpack(path: Path, name: str, version: str, lines) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with zipfile.ZipFile(path, "w") as zf:
        zf.writestr("addin.info", f'<Addin id="{name}" name="{name}" version="{version}" />')
        zf.writestr(f"{name}.dll", "".join(f"{line}\n" for line in lines))
    return path


@pytest.fixture
def engine():
    return CallableScanEngine(scan_file_contents)


@pytest.fixture
def adapter(engine):
    return CompatScanAdapter(engine)


@pytest.fixture
def app_dir(tmp_path):
    app = tmp_path / "app"
    write_assembly(app / "Contents" / "Resources", "Host.dll", APP_LINES)
    return app


@pytest.fixture
def make_addin(tmp_path):
    """Factory: extracted addin directory with a manifest and one assembly."""
    def _make(name, lines, version="1.0"):
        directory = tmp_path / "addins" / name
        write_assembly(directory, f"{name}.dll", lines)
        (directory / "addin.info").write_text(
            f'<Addin id="{name}" name="{name}" version="{version}" />'
        )
        return directory
    return _make
