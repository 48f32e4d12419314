"""Base interface for scanning engines."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional


@dataclass(frozen=True)
class ScannerConfig:
    """Scanner flags, passed by value into every scan.

    The engine never keeps these between scans, so one addin's check cannot
    leak settings into the next.
    """
    report_int_ptr_constructors: bool = True
    report_version_mismatch: bool = False
    report_embedded_interop_types: bool = False
    config_file: Optional[Path] = None

    def with_config_file(self, config_file: Optional[Path]) -> "ScannerConfig":
        return ScannerConfig(
            report_int_ptr_constructors=self.report_int_ptr_constructors,
            report_version_mismatch=self.report_version_mismatch,
            report_embedded_interop_types=self.report_embedded_interop_types,
            config_file=config_file,
        )


@dataclass
class FileSet:
    """Files discovered under one root.

    ``start_files`` are the entry points the engine walks references from;
    ``files`` is everything it may resolve those references against.
    """
    root: Path
    files: List[Path] = field(default_factory=list)
    start_files: List[Path] = field(default_factory=list)


class ScanEngine(ABC):
    """Abstract base class for compatibility scanning engines.

    Each engine (external command, in-process callable) implements this
    interface. Engines hold no per-scan state.
    """

    @abstractmethod
    def get_files(self, root: Path, config_file: Optional[Path] = None) -> FileSet:
        """Discover the assemblies to scan under ``root``.

        Args:
            root: Application bundle or addin directory.
            config_file: Optional scanner config listing exclusions.

        Returns:
            FileSet with files and start files for this root.
        """
        pass

    @abstractmethod
    def check(self, root: Path, files: List[Path], start_files: List[Path],
              report_file: Path, config: ScannerConfig) -> bool:
        """Scan ``files`` and write the report to ``report_file``.

        Args:
            root: Root directory the report paths are relative to.
            files: All files the scan may resolve references against.
            start_files: Files whose references are checked.
            report_file: Where the line-oriented report is written.
            config: Scanner flags for this scan.

        Returns:
            True if the engine completed without internal failure.

        Raises:
            ScanError: If the engine cannot be run at all.
        """
        pass
