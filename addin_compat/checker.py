"""Single compatibility check: scan the app (plus an addin) and diff the report."""

import logging
from enum import Enum
from pathlib import Path
from typing import List, Optional, Sequence

from .baseline import BaselineChecker, BaselineComparison
from .errors import ScanError
from .report_store import ReportStore, TemporaryReport, read_report_lines
from .scanners.adapter import CompatScanAdapter, ScanResult

logger = logging.getLogger(__name__)


class CheckOutcome(Enum):
    """Classification of one addin check."""
    PASSED = "passed"
    INCOMPATIBLE = "incompatible"
    SCAN_ERROR = "scan_error"


class AddinCompatChecker:
    """Run one scan and, when a baseline is set, compare against it.

    Without ``baseline`` the check only produces a report (used to generate
    the baseline itself). The temporary report is removed on ``dispose``.

    Usage:
        with AddinCompatChecker(adapter, app_dir, addin_dir=d, baseline=lines) as checker:
            outcome = checker.check()
    """

    def __init__(self, adapter: CompatScanAdapter, app_dir: Path,
                 addin_dir: Optional[Path] = None,
                 app_config_file: Optional[Path] = None,
                 report_file: Optional[Path] = None,
                 diff_output_file: Optional[Path] = None,
                 diff_ignore_file: Optional[Path] = None,
                 baseline: Optional[Sequence[str]] = None,
                 store: Optional[ReportStore] = None,
                 stream=None):
        self.adapter = adapter
        self.app_dir = app_dir
        self.addin_dir = addin_dir
        self.app_config_file = app_config_file
        self.report_file = report_file
        self.diff_output_file = diff_output_file
        self.diff_ignore_file = diff_ignore_file
        self.baseline = baseline
        self.store = store or ReportStore()
        self.stream = stream

        self.scan_result: Optional[ScanResult] = None
        self.comparison: Optional[BaselineComparison] = None
        self._report: Optional[TemporaryReport] = None

    def check(self) -> CheckOutcome:
        """Scan and classify.

        Raises:
            ConfigurationError: If app or addin directory is missing.
            ScanError: If the engine cannot be run.
        """
        self._report = TemporaryReport(self.report_file, store=self.store)
        self.scan_result = self.adapter.scan(
            self.app_dir, self._report.handle,
            addin_dir=self.addin_dir,
            config_file=self.app_config_file,
        )

        if not self.scan_result.success:
            return CheckOutcome.SCAN_ERROR

        if self.baseline is None:
            return CheckOutcome.PASSED

        baseline_checker = BaselineChecker(
            diff_output_file=self.diff_output_file,
            ignore_lines=self.diff_ignore_lines(),
            stream=self.stream,
        )
        self.comparison = baseline_checker.check(self.baseline, self.scan_result.lines)
        return CheckOutcome.PASSED if self.comparison.passed else CheckOutcome.INCOMPATIBLE

    def report_lines(self) -> List[str]:
        """Lines of the generated report (empty if nothing was written)."""
        if self._report is None:
            raise ScanError("Report file not set: check() has not run")
        return self._report.read_lines()

    def save_report(self, destination: Path) -> Path:
        """Publish the generated report at ``destination``.

        Callers only do this after a PASSED check, so a failed scan never
        replaces a baseline on disk.
        """
        if self._report is None:
            raise ScanError("Report file not set: check() has not run")
        return self._report.save_as(destination)

    def diff_ignore_lines(self) -> List[str]:
        if self.diff_ignore_file is None:
            return []
        if not self.diff_ignore_file.exists():
            logger.warning("Diff ignore file does not exist '%s'", self.diff_ignore_file)
            return []
        return read_report_lines(self.diff_ignore_file)

    def dispose(self) -> None:
        if self._report is not None:
            self._report.dispose()

    def __enter__(self) -> "AddinCompatChecker":
        return self

    def __exit__(self, *exc) -> None:
        self.dispose()
