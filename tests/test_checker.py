"""Tests for a single addin compatibility check."""

import io
from unittest.mock import Mock

import pytest

from addin_compat.checker import AddinCompatChecker, CheckOutcome
from addin_compat.errors import ConfigurationError, ScanError
from addin_compat.scanners.adapter import CompatScanAdapter
from addin_compat.scanners.inprocess import CallableScanEngine

from conftest import APP_LINES


def test_baseline_generation_returns_app_report(adapter, app_dir):
    with AddinCompatChecker(adapter, app_dir) as checker:
        assert checker.check() == CheckOutcome.PASSED
        assert checker.report_lines() == APP_LINES
        report_dir = checker._report.handle.owned_directory

    assert not report_dir.exists()


def test_compatible_addin_passes(adapter, app_dir, make_addin):
    addin_dir = make_addin("Good", ["A uses Foo"])

    with AddinCompatChecker(adapter, app_dir, addin_dir=addin_dir, baseline=APP_LINES) as checker:
        assert checker.check() == CheckOutcome.PASSED
        assert checker.comparison.passed is True


def test_incompatible_addin_writes_diff(adapter, app_dir, make_addin, tmp_path):
    addin_dir = make_addin("Bad", ["A uses Foo", "C uses Baz"])
    diff_file = tmp_path / "Bad-diff.txt"

    with AddinCompatChecker(adapter, app_dir, addin_dir=addin_dir, baseline=APP_LINES,
                            diff_output_file=diff_file, stream=io.StringIO()) as checker:
        assert checker.check() == CheckOutcome.INCOMPATIBLE
        assert checker.comparison.added == {"C uses Baz"}

    assert diff_file.read_text() == "C uses Baz\n"


def test_ignore_file_suppresses_known_lines(adapter, app_dir, make_addin, tmp_path):
    addin_dir = make_addin("Known", ["C uses Baz"])
    ignore_file = tmp_path / "Known-diff.txt"
    ignore_file.write_text("C uses Baz\n")

    with AddinCompatChecker(adapter, app_dir, addin_dir=addin_dir, baseline=APP_LINES,
                            diff_ignore_file=ignore_file) as checker:
        assert checker.check() == CheckOutcome.PASSED


def test_missing_ignore_file_is_treated_as_empty(adapter, app_dir, tmp_path):
    checker = AddinCompatChecker(adapter, app_dir, diff_ignore_file=tmp_path / "nope.txt")

    assert checker.diff_ignore_lines() == []


def test_scan_failure_is_scan_error(app_dir, make_addin):
    engine = CallableScanEngine(lambda root, files, start, config: ([], False))
    addin_dir = make_addin("Any", ["x"])

    with AddinCompatChecker(CompatScanAdapter(engine), app_dir, addin_dir=addin_dir,
                            baseline=APP_LINES) as checker:
        assert checker.check() == CheckOutcome.SCAN_ERROR
        assert checker.comparison is None


def test_missing_addin_directory_is_configuration_error(adapter, app_dir, tmp_path):
    with AddinCompatChecker(adapter, app_dir, addin_dir=tmp_path / "missing") as checker:
        with pytest.raises(ConfigurationError, match="Addin directory does not exist"):
            checker.check()


def test_report_lines_before_check():
    checker = AddinCompatChecker(Mock(), None)

    with pytest.raises(ScanError, match="Report file not set"):
        checker.report_lines()


def test_report_written_to_requested_file(adapter, app_dir, tmp_path):
    report = tmp_path / "reports" / "app.txt"

    with AddinCompatChecker(adapter, app_dir, report_file=report) as checker:
        checker.check()

    assert report.read_text().splitlines() == APP_LINES


def test_save_report_publishes_copy(adapter, app_dir, tmp_path):
    destination = tmp_path / "baselines" / "app.txt"

    with AddinCompatChecker(adapter, app_dir) as checker:
        checker.check()
        assert checker.save_report(destination) == destination

    assert destination.read_text().splitlines() == APP_LINES
    assert [p.name for p in destination.parent.iterdir()] == ["app.txt"]


def test_save_report_before_check():
    checker = AddinCompatChecker(Mock(), None)

    with pytest.raises(ScanError, match="Report file not set"):
        checker.save_report(None)
