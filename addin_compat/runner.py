"""Host-side runner that drives the addin-compat CLI as a subprocess.

This is the flow an IDE uses: generate a baseline once, run one CLI process
per installed addin, collect the diff files of incompatible addins so the
operator can save them as the new accepted state.
"""

import logging
import subprocess
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from .addins import Addin, sort_addins
from .diff_cache import DiffCache
from .orchestrator import format_incompatible
from .report_store import create_temp_directory, remove_directory

logger = logging.getLogger(__name__)

BASELINE_FILE_NAME = "app-baseline.txt"


@dataclass
class CheckerCommandLine:
    """Arguments for one invocation of the addin-compat CLI."""
    app_dir: Path
    addin_dir: Optional[Path] = None
    addin_archive: Optional[Path] = None
    baseline_file: Optional[Path] = None
    generate_baseline: bool = False
    diff_ignore_file: Optional[Path] = None
    diff_output_file: Optional[Path] = None
    config_file: Optional[Path] = None
    executable: Sequence[str] = (sys.executable, "-m", "addin_compat")

    def build(self) -> List[str]:
        cmd = list(self.executable)
        cmd.extend(["--app-dir", str(self.app_dir)])
        if self.addin_dir is not None:
            cmd.extend(["--addin-dir", str(self.addin_dir)])
        if self.addin_archive is not None:
            cmd.extend(["--addin-archive", str(self.addin_archive)])
        if self.baseline_file is not None:
            cmd.extend(["--baseline-file", str(self.baseline_file)])
        if self.generate_baseline:
            cmd.append("--generate-baseline")
        if self.diff_ignore_file is not None:
            cmd.extend(["--diff-ignore-file", str(self.diff_ignore_file)])
        if self.diff_output_file is not None:
            cmd.extend(["--diff-output-file", str(self.diff_output_file)])
        if self.config_file is not None:
            cmd.extend(["--config", str(self.config_file)])
        return cmd


@dataclass
class RunnerReport:
    """What the host shows the operator after a runner pass."""
    message: str
    incompatible: List[Addin] = field(default_factory=list)
    failed: bool = False
    can_save_baseline: bool = False
    can_reset_baseline: bool = False


class CompatibilityCheckRunner:
    """Check installed addins by spawning the CLI once per addin.

    Args:
        app_dir: Host application root.
        diff_cache: Store of saved ignore-diff files.
        config_file: Optional tool config passed to every CLI process.
        executable: Command prefix that starts the CLI.
    """

    def __init__(self, app_dir: Path, diff_cache: DiffCache,
                 config_file: Optional[Path] = None,
                 executable: Sequence[str] = (sys.executable, "-m", "addin_compat"),
                 stream=None):
        self.app_dir = app_dir
        self.diff_cache = diff_cache
        self.config_file = config_file
        self.executable = tuple(executable)
        self.stream = stream
        self.diff_output_dir: Optional[Path] = None

    def _log(self, message: str) -> None:
        print(message, file=self.stream)

    def _run(self, command_line: CheckerCommandLine) -> int:
        cmd = command_line.build()
        logger.debug("Running: %s", " ".join(cmd))
        r = subprocess.run(cmd, capture_output=True, text=True)
        if r.stdout:
            self._log(r.stdout.rstrip("\n"))
        if r.stderr:
            self._log(r.stderr.rstrip("\n"))
        return r.returncode

    def _command_line(self, **kwargs) -> CheckerCommandLine:
        return CheckerCommandLine(app_dir=self.app_dir, config_file=self.config_file,
                                  executable=self.executable, **kwargs)

    def generate_baseline(self) -> Optional[Path]:
        """Generate the app baseline into a fresh temp directory."""
        baseline_file = create_temp_directory() / BASELINE_FILE_NAME
        exit_code = self._run(self._command_line(baseline_file=baseline_file,
                                                 generate_baseline=True))
        if exit_code != 0:
            self._log("Unable to generate baseline")
            remove_directory(baseline_file.parent)
            return None
        return baseline_file

    def check_addin(self, addin: Addin, baseline_file: Path) -> int:
        self._log(f"========== Checking extension {addin.display_name} ==========")
        diff_output_file = self.diff_output_dir / f"{addin.local_id}-diff.txt"
        location = {"addin_archive" if addin.is_archive else "addin_dir": addin.location}
        exit_code = self._run(self._command_line(
            **location,
            baseline_file=baseline_file,
            diff_ignore_file=self.diff_cache.existing_diff_file(addin),
            diff_output_file=diff_output_file,
        ))
        if exit_code == 1:
            self.diff_cache.add_pending(addin, diff_output_file)
        return exit_code

    def run(self, addins: Iterable[Addin]) -> RunnerReport:
        """Check ``addins`` (sorted by name) and build the operator report."""
        addins = sort_addins(addins)
        if not addins:
            self._log("No extensions to check")
            return RunnerReport(message="No extensions to check")

        self._log("Checking extension compatibility…")
        self.diff_cache.clear_pending()

        baseline_file = self.generate_baseline()
        if baseline_file is None:
            return RunnerReport(message="Unable to generate baseline", failed=True)

        self.diff_output_dir = create_temp_directory()
        incompatible: List[Addin] = []
        report_failure = False
        try:
            for addin in addins:
                try:
                    exit_code = self.check_addin(addin, baseline_file)
                except (OSError, subprocess.SubprocessError) as e:
                    logger.error("Unable to run addin compat check for %s: %s",
                                 addin.display_name, e)
                    continue
                if exit_code == 1:
                    incompatible.append(addin)
                elif exit_code != 0:
                    report_failure = True
        finally:
            remove_directory(baseline_file.parent)
            remove_directory(self.diff_output_dir)
            self.diff_output_dir = None

        if incompatible:
            message = format_incompatible(incompatible)
        elif report_failure:
            message = "Failed to run compatibility checks"
        else:
            message = "All extensions are compatible"
        self._log(message)

        has_error = bool(incompatible) or report_failure
        return RunnerReport(
            message=message,
            incompatible=incompatible,
            failed=has_error,
            can_save_baseline=has_error,
            can_reset_baseline=True,
        )

    def save_baseline(self) -> int:
        """Accept the pending diffs of the last run as known differences."""
        saved = self.diff_cache.save()
        self._log(f"Saved {saved} diff file(s)")
        return saved

    def reset_baseline(self) -> None:
        """Forget every saved and pending diff."""
        self.diff_cache.reset()
        self.diff_cache.clear_pending()
        self._log("Baseline diffs reset")
