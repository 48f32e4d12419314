"""Assemble scan inputs for the host app plus one addin and collect the report."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from ..errors import ConfigurationError
from ..report_store import ReportHandle, ReportStore
from .base import ScanEngine, ScannerConfig

logger = logging.getLogger(__name__)


@dataclass
class ScanResult:
    """Outcome of one scan: engine success flag plus report lines."""
    success: bool
    lines: List[str] = field(default_factory=list)
    report_file: Optional[Path] = None


class CompatScanAdapter:
    """Drive a ScanEngine over an application bundle and an optional addin.

    The adapter only marshals inputs and outputs: file sets of all roots are
    concatenated and scanned as one unit, and the report is read back through
    a ReportStore handle.
    """

    def __init__(self, engine: ScanEngine, config: Optional[ScannerConfig] = None,
                 store: Optional[ReportStore] = None):
        self.engine = engine
        self.config = config or ScannerConfig()
        self.store = store or ReportStore()

    @staticmethod
    def _require_directory(path: Path, what: str) -> None:
        if not path.is_dir():
            raise ConfigurationError(f"{what} directory does not exist: '{path}'")

    def scan(self, app_dir: Path, report: ReportHandle,
             addin_dir: Optional[Path] = None,
             config_file: Optional[Path] = None) -> ScanResult:
        """Scan the host application, optionally together with an addin.

        Args:
            app_dir: Host application root.
            report: Handle the report is written to.
            addin_dir: Extracted addin directory. When given, only the addin's
                files are start files; the app's files resolve references.
            config_file: Scanner config for the host application.

        Raises:
            ConfigurationError: If a root directory does not exist.
            ScanError: If the engine cannot be run.
        """
        self._require_directory(app_dir, "Application")
        if addin_dir is not None:
            self._require_directory(addin_dir, "Addin")

        app_files = self.engine.get_files(app_dir, config_file)
        files = list(app_files.files)
        start_files = list(app_files.start_files)

        if addin_dir is not None:
            addin_files = self.engine.get_files(addin_dir, None)
            files.extend(addin_files.files)
            start_files = list(addin_files.files)

        logger.debug("Scanning %d file(s), %d start file(s) under %s",
                     len(files), len(start_files), app_dir)

        success = self.engine.check(
            app_dir, files, start_files, report.path,
            self.config.with_config_file(config_file),
        )
        if not success:
            logger.warning("Unexpected scanner failure for %s", addin_dir or app_dir)

        return ScanResult(success=success, lines=self.store.read_lines(report),
                          report_file=report.path)
