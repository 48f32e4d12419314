"""End-to-end compatibility run: one baseline, N addins, one summary."""

import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterable, List, Mapping, Optional, Sequence

from .addins import Addin, sort_addins
from .baseline import BaselineComparison
from .checker import AddinCompatChecker, CheckOutcome
from .errors import BaselineError, ScanError
from .extractor import AddinArchiveExtractor
from .report_store import read_report_lines
from .scanners.adapter import CompatScanAdapter

logger = logging.getLogger(__name__)

EXIT_SUCCESS = 0
EXIT_INCOMPATIBLE = 1
EXIT_CONFIGURATION_ERROR = -1
# Runs with scan errors but no regression share the fatal code; callers
# treat 1 alone as "incompatible, diff available".
EXIT_SCAN_ERROR = EXIT_CONFIGURATION_ERROR


class RunState(Enum):
    IDLE = "idle"
    GENERATING_BASELINE = "generating_baseline"
    BASELINE_READY = "baseline_ready"
    BASELINE_FAILED = "baseline_failed"
    CHECKING_ADDIN = "checking_addin"
    SUMMARIZING = "summarizing"
    DONE = "done"


@dataclass
class AddinResult:
    """Outcome of checking one addin."""
    addin: Addin
    outcome: CheckOutcome
    comparison: Optional[BaselineComparison] = None
    error: Optional[str] = None

    def to_dict(self) -> dict:
        data = {
            "name": self.addin.name,
            "version": self.addin.version,
            "location": str(self.addin.location),
            "outcome": self.outcome.value,
        }
        if self.comparison is not None:
            data["diff"] = self.comparison.to_dict()
        if self.error:
            data["error"] = self.error
        return data


@dataclass
class RunSummary:
    """Aggregate of one run, in addin processing order."""
    results: List[AddinResult] = field(default_factory=list)
    baseline_lines: int = 0
    cancelled: bool = False

    @property
    def incompatible(self) -> List[AddinResult]:
        return [r for r in self.results if r.outcome == CheckOutcome.INCOMPATIBLE]

    @property
    def errored(self) -> List[AddinResult]:
        return [r for r in self.results if r.outcome == CheckOutcome.SCAN_ERROR]

    @property
    def passed(self) -> bool:
        return not self.incompatible and not self.errored

    @property
    def exit_code(self) -> int:
        if self.incompatible:
            return EXIT_INCOMPATIBLE
        if self.errored:
            return EXIT_SCAN_ERROR
        return EXIT_SUCCESS

    def format_summary(self) -> str:
        """Human-readable summary: failing addins, or overall success."""
        lines = []
        incompatible = self.incompatible
        if incompatible:
            lines.append(format_incompatible([r.addin for r in incompatible]))
        errored = self.errored
        if errored:
            lines.append(f"Failed to run compatibility checks for {len(errored)} extension(s):")
            lines.extend(f"    {r.addin.display_name}: {r.error or 'scan failed'}" for r in errored)
        if not lines:
            lines.append("All extensions are compatible")
        if self.cancelled:
            lines.append("Run cancelled before all extensions were checked.")
        return "\n".join(lines)

    def to_dict(self) -> dict:
        """Export as JSON-serializable dict"""
        return {
            "passed": self.passed,
            "exit_code": self.exit_code,
            "cancelled": self.cancelled,
            "baseline_lines": self.baseline_lines,
            "addins": [r.to_dict() for r in self.results],
        }


def format_incompatible(addins: Sequence[Addin]) -> str:
    """Count plus one `name version` row per incompatible addin."""
    count = len(addins)
    noun = "extension is" if count == 1 else "extensions are"
    lines = [f"{count} {noun} not compatible:"]
    lines.extend(f"    {addin.display_name}" for addin in addins)
    return "\n".join(lines)


class CompatRun:
    """Sequence baseline generation, per-addin checks and the summary.

    Args:
        adapter: Scan adapter shared by every scan in the run.
        app_dir: Host application root.
        addins: Addins to check; processed sorted by name.
        baseline_file: Existing file is used as the baseline; a missing path
            is generated and written; None generates a throwaway baseline.
        app_config_file: Scanner config for the host application.
        ignore_files: ``Addin.local_id`` -> ignore diff file.
        diff_output_files: ``Addin.local_id`` -> diff output file.
        diff_output_dir: Default location for ``<local_id>-diff.txt`` files.
        cancel_event: When set, no further addin is started.
    """

    def __init__(self, adapter: CompatScanAdapter, app_dir: Path,
                 addins: Iterable[Addin],
                 baseline_file: Optional[Path] = None,
                 app_config_file: Optional[Path] = None,
                 ignore_files: Optional[Mapping[str, Path]] = None,
                 diff_output_files: Optional[Mapping[str, Path]] = None,
                 diff_output_dir: Optional[Path] = None,
                 cancel_event: Optional[threading.Event] = None,
                 stream=None):
        self.adapter = adapter
        self.app_dir = app_dir
        self.addins = sort_addins(addins)
        self.baseline_file = baseline_file
        self.app_config_file = app_config_file
        self.ignore_files = dict(ignore_files or {})
        self.diff_output_files = dict(diff_output_files or {})
        self.diff_output_dir = diff_output_dir
        self.cancel_event = cancel_event or threading.Event()
        self.stream = stream
        self.state = RunState.IDLE

    def run(self) -> RunSummary:
        """Execute the run.

        Raises:
            BaselineError: If the baseline cannot be produced.
            ConfigurationError: If the application directory is invalid.
        """
        self.state = RunState.GENERATING_BASELINE
        try:
            baseline = self.resolve_baseline()
        except Exception:
            self.state = RunState.BASELINE_FAILED
            raise
        self.state = RunState.BASELINE_READY

        summary = RunSummary(baseline_lines=len(baseline))
        for addin in self.addins:
            if self.cancel_event.is_set():
                logger.info("Cancellation requested, skipping remaining addins")
                summary.cancelled = True
                break
            self.state = RunState.CHECKING_ADDIN
            summary.results.append(self.check_addin(addin, baseline))

        self.state = RunState.SUMMARIZING
        logger.info("Checked %d addin(s): %d incompatible, %d errored",
                    len(summary.results), len(summary.incompatible), len(summary.errored))
        self.state = RunState.DONE
        return summary

    def resolve_baseline(self) -> List[str]:
        """Read the baseline, or scan the host application alone to create it."""
        if self.baseline_file is not None and self.baseline_file.is_file():
            logger.info("Using baseline %s", self.baseline_file)
            return read_report_lines(self.baseline_file)

        logger.info("Generating baseline for %s", self.app_dir)
        with AddinCompatChecker(self.adapter, self.app_dir,
                                app_config_file=self.app_config_file) as checker:
            try:
                outcome = checker.check()
            except ScanError as e:
                raise BaselineError(f"Unable to generate baseline: {e}") from e
            if outcome != CheckOutcome.PASSED:
                raise BaselineError("Unable to generate baseline")
            if self.baseline_file is not None:
                checker.save_report(self.baseline_file)
            return checker.report_lines()

    def _diff_output_file(self, addin: Addin) -> Optional[Path]:
        if addin.local_id in self.diff_output_files:
            return self.diff_output_files[addin.local_id]
        if self.diff_output_dir is not None:
            return self.diff_output_dir / f"{addin.local_id}-diff.txt"
        return None

    def check_addin(self, addin: Addin, baseline: List[str]) -> AddinResult:
        """Check one addin; any exception becomes a SCAN_ERROR result."""
        print(f"========== Checking extension {addin.display_name} ==========",
              file=self.stream)
        extractor = AddinArchiveExtractor(addin.location) if addin.is_archive else None
        try:
            addin_dir = extractor.extract() if extractor else addin.location
            with AddinCompatChecker(self.adapter, self.app_dir,
                                    addin_dir=addin_dir,
                                    app_config_file=self.app_config_file,
                                    diff_output_file=self._diff_output_file(addin),
                                    diff_ignore_file=self.ignore_files.get(addin.local_id),
                                    baseline=baseline,
                                    stream=self.stream) as checker:
                outcome = checker.check()
                result = AddinResult(addin, outcome, comparison=checker.comparison)
        except Exception as e:
            logger.exception("Unable to run addin compat check for %s", addin.display_name)
            result = AddinResult(addin, CheckOutcome.SCAN_ERROR, error=str(e))
        finally:
            if extractor is not None:
                extractor.dispose()

        label = {
            CheckOutcome.PASSED: "Passed",
            CheckOutcome.INCOMPATIBLE: "Failed",
            CheckOutcome.SCAN_ERROR: "Error",
        }[result.outcome]
        print(f"{label}: Addin compat: '{addin.location}'", file=self.stream)
        return result
