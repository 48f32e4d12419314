"""Tests for CompatScanAdapter."""

from pathlib import Path

import pytest

from addin_compat.errors import ConfigurationError
from addin_compat.report_store import ReportStore
from addin_compat.scanners.adapter import CompatScanAdapter
from addin_compat.scanners.base import FileSet, ScanEngine, ScannerConfig
from addin_compat.scanners.inprocess import CallableScanEngine


class RecordingEngine(ScanEngine):
    """Minimal concrete implementation recording its inputs."""

    def __init__(self):
        self.calls = []

    def get_files(self, root, config_file=None):
        files = sorted(root.rglob("*.dll"))
        return FileSet(root=root, files=files, start_files=files)

    def check(self, root, files, start_files, report_file, config):
        self.calls.append((root, files, start_files, config))
        report_file.write_text("line\n")
        return True


def test_scan_engine_is_abstract():
    with pytest.raises(TypeError):
        ScanEngine()


def test_app_only_scan_uses_app_files_as_start(tmp_path, app_dir):
    engine = RecordingEngine()
    store = ReportStore()
    handle = store.create()
    try:
        result = CompatScanAdapter(engine, store=store).scan(app_dir, handle)
    finally:
        store.dispose(handle)

    root, files, start_files, _config = engine.calls[0]
    assert root == app_dir
    assert files == start_files
    assert result.success is True
    assert result.lines == ["line"]


def test_addin_scan_concatenates_and_starts_from_addin(app_dir, make_addin):
    engine = RecordingEngine()
    addin_dir = make_addin("Addin", ["x"])
    store = ReportStore()
    handle = store.create()
    try:
        CompatScanAdapter(engine, store=store).scan(app_dir, handle, addin_dir=addin_dir)
    finally:
        store.dispose(handle)

    _root, files, start_files, _config = engine.calls[0]
    assert files[-1] == addin_dir / "Addin.dll"
    assert app_dir / "Contents" / "Resources" / "Host.dll" in files
    assert start_files == [addin_dir / "Addin.dll"]


def test_config_passed_by_value(app_dir, tmp_path):
    engine = RecordingEngine()
    base_config = ScannerConfig(report_version_mismatch=True)
    adapter = CompatScanAdapter(engine, config=base_config)
    config_file = tmp_path / "app-config.txt"
    config_file.write_text("")
    store = ReportStore()
    handle = store.create()
    try:
        adapter.scan(app_dir, handle, config_file=config_file)
        adapter.scan(app_dir, handle)
    finally:
        store.dispose(handle)

    first, second = engine.calls[0][3], engine.calls[1][3]
    assert first.config_file == config_file
    assert first.report_version_mismatch is True
    assert second.config_file is None
    assert adapter.config.config_file is None


def test_missing_app_directory(tmp_path):
    adapter = CompatScanAdapter(RecordingEngine())
    with pytest.raises(ConfigurationError, match="Application directory does not exist"):
        adapter.scan(tmp_path / "nope", ReportStore().create(tmp_path / "r.txt"))


def test_callable_engine_writes_report_and_success(tmp_path):
    engine = CallableScanEngine(lambda root, files, start, config: ["a", "b"])
    report = tmp_path / "report.txt"

    assert engine.check(tmp_path, [], [], report, ScannerConfig()) is True
    assert report.read_text() == "a\nb\n"


def test_callable_engine_custom_discovery(tmp_path):
    engine = CallableScanEngine(lambda *args: [], discover=lambda root, cfg: [Path("x.dll")])

    assert engine.get_files(tmp_path).files == [Path("x.dll")]
