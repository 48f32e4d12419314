"""Scanning engine that runs an external scanner executable."""

import logging
import shutil
import subprocess
from pathlib import Path
from typing import List, Optional, Sequence

from ..errors import ScanError
from .base import FileSet, ScanEngine, ScannerConfig
from .discovery import find_assemblies

logger = logging.getLogger(__name__)

DEFAULT_COMMAND = ("checkbinarycompat", "@{response_file}")


class CommandScanEngine(ScanEngine):
    """Adapter for a command-line binary compatibility scanner.

    The scanner is invoked once per scan. Its inputs are passed through a
    response file, one argument per line:

        --root <root>
        --report <report_file>
        --report-intptr-constructors | --no-report-intptr-constructors
        --report-version-mismatch | --no-report-version-mismatch
        --report-embedded-interop-types | --no-report-embedded-interop-types
        --start <file>      (one per start file)
        <file>              (one per input file)

    ``command`` is a template; ``{response_file}``, ``{root}`` and
    ``{report_file}`` are substituted in each element.
    """

    def __init__(self, command: Sequence[str] = DEFAULT_COMMAND,
                 timeout: Optional[int] = None):
        if not command:
            raise ValueError("Scanner command must not be empty")
        self.command = list(command)
        self.timeout = timeout

    def _resolve_executable(self) -> str:
        """Resolve the scanner to an absolute path (avoid PATH hijacking)."""
        executable = self.command[0]
        resolved = shutil.which(executable)
        if not resolved:
            raise ScanError(
                f"Scanner executable '{executable}' not found in PATH. "
                f"Install it: dotnet tool install -g checkbinarycompat"
            )
        return resolved

    def get_files(self, root: Path, config_file: Optional[Path] = None) -> FileSet:
        files = find_assemblies(root, config_file)
        return FileSet(root=root, files=files, start_files=list(files))

    @staticmethod
    def build_response_file(root: Path, files: List[Path], start_files: List[Path],
                            report_file: Path, config: ScannerConfig) -> List[str]:
        def flag(name: str, enabled: bool) -> str:
            return f"--{name}" if enabled else f"--no-{name}"

        lines = [
            "--root", str(root),
            "--report", str(report_file),
            flag("report-intptr-constructors", config.report_int_ptr_constructors),
            flag("report-version-mismatch", config.report_version_mismatch),
            flag("report-embedded-interop-types", config.report_embedded_interop_types),
        ]
        if config.config_file is not None:
            lines.extend(["--config", str(config.config_file)])
        for start in start_files:
            lines.extend(["--start", str(start)])
        lines.extend(str(f) for f in files)
        return lines

    def check(self, root: Path, files: List[Path], start_files: List[Path],
              report_file: Path, config: ScannerConfig) -> bool:
        executable = self._resolve_executable()

        response_file = report_file.with_name(report_file.name + ".rsp")
        response_file.write_text(
            "\n".join(self.build_response_file(root, files, start_files, report_file, config)) + "\n",
            encoding="utf-8",
        )

        substitutions = {
            "response_file": str(response_file),
            "root": str(root),
            "report_file": str(report_file),
        }
        cmd = [executable] + [arg.format(**substitutions) for arg in self.command[1:]]
        logger.debug("Running scanner: %s", " ".join(cmd))

        try:
            r = subprocess.run(cmd, capture_output=True, text=True, timeout=self.timeout)
        except subprocess.TimeoutExpired as e:
            raise ScanError(f"Scanner timed out after {self.timeout}s: {root}") from e
        except OSError as e:
            raise ScanError(f"Could not run scanner '{executable}': {e}") from e
        finally:
            response_file.unlink(missing_ok=True)

        if r.returncode != 0:
            stderr_tail = r.stderr.strip()[-300:] if r.stderr.strip() else "(no output)"
            logger.error("Scanner rc=%d for %s: %s", r.returncode, root, stderr_tail)
            return False
        return True
