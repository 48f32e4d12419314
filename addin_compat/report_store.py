"""Scratch storage for compatibility reports."""

import logging
import os
import random
import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional

logger = logging.getLogger(__name__)

TEMP_PREFIX = "addin-compat-"
DEFAULT_REPORT_NAME = "report.txt"


def create_temp_directory(prefix: str = TEMP_PREFIX) -> Path:
    """Create a fresh directory under the system temp dir.

    A random suffix is retried until an unused name is found; mkdir without
    exist_ok makes a concurrent winner raise and trigger another attempt.
    """
    base = Path(tempfile.gettempdir())
    while True:
        candidate = base / f"{prefix}{random.randint(0, 2**31 - 1)}"
        try:
            candidate.mkdir(parents=True)
        except FileExistsError:
            continue
        return candidate


def remove_directory(directory: Optional[Path]) -> bool:
    """Best-effort recursive removal. Never raises.

    Refuses to remove a directory without a parent (filesystem root).
    Returns True when the directory is gone afterwards.
    """
    if directory is None:
        return True
    directory = Path(directory)
    if directory.parent == directory:
        logger.warning("Refusing to remove root directory %s", directory)
        return False
    try:
        shutil.rmtree(directory)
    except FileNotFoundError:
        return True
    except OSError as e:
        logger.info("Could not remove temporary directory %s: %s", directory, e)
        return False
    return True


@dataclass
class ReportHandle:
    """A report file plus the temp directory that owns it (if any)."""
    path: Path
    owned_directory: Optional[Path] = None


class ReportStore:
    """Create, read, write and dispose report files."""

    def create(self, preferred_name: Optional[Path] = None) -> ReportHandle:
        """Allocate a report location.

        Args:
            preferred_name: Caller-chosen report path. Its parent directory is
                created; the file is not removed on dispose. When omitted a
                fresh temp directory is created and owned by the handle.
        """
        if preferred_name is None:
            directory = create_temp_directory()
            return ReportHandle(path=directory / DEFAULT_REPORT_NAME, owned_directory=directory)

        path = Path(preferred_name)
        path.parent.mkdir(parents=True, exist_ok=True)
        return ReportHandle(path=path)

    @staticmethod
    def write_lines(handle: ReportHandle, lines: Iterable[str]) -> None:
        handle.path.write_text("".join(f"{line}\n" for line in lines), encoding="utf-8")

    @staticmethod
    def read_lines(handle: ReportHandle) -> List[str]:
        """Return report lines, or an empty list if nothing was written yet."""
        return read_report_lines(handle.path)

    @staticmethod
    def save_as(handle: ReportHandle, destination: Path) -> Path:
        """Copy the report onto ``destination``, replacing it in one step.

        The copy goes to a sibling temp file first, so a reader of
        ``destination`` sees either the old content or the complete new one.
        """
        destination = Path(destination)
        destination.parent.mkdir(parents=True, exist_ok=True)
        staging = destination.with_name(f".{destination.name}.tmp")
        try:
            if handle.path.exists():
                shutil.copyfile(handle.path, staging)
            else:
                staging.write_text("", encoding="utf-8")
            os.replace(staging, destination)
        finally:
            staging.unlink(missing_ok=True)
        return destination

    @staticmethod
    def dispose(handle: ReportHandle) -> None:
        if handle.owned_directory is not None:
            remove_directory(handle.owned_directory)
            handle.owned_directory = None


def read_report_lines(path: Path) -> List[str]:
    """Read a line-oriented report file; a missing file reads as empty."""
    try:
        text = Path(path).read_text(encoding="utf-8")
    except FileNotFoundError:
        return []
    return text.splitlines()


class TemporaryReport:
    """Report file inside its own temp directory, removed on exit.

    Usage:
        with TemporaryReport() as report:
            engine.check(..., report.path, ...)
            lines = report.read_lines()
    """

    def __init__(self, name: Optional[Path] = None, store: Optional[ReportStore] = None):
        self.store = store or ReportStore()
        self.handle = self.store.create(name)

    @property
    def path(self) -> Path:
        return self.handle.path

    def write_lines(self, lines: Iterable[str]) -> None:
        self.store.write_lines(self.handle, lines)

    def read_lines(self) -> List[str]:
        return self.store.read_lines(self.handle)

    def save_as(self, destination: Path) -> Path:
        return self.store.save_as(self.handle, destination)

    def dispose(self) -> None:
        self.store.dispose(self.handle)

    def __enter__(self) -> "TemporaryReport":
        return self

    def __exit__(self, *exc) -> None:
        self.dispose()
