"""Per-addin ignore-diff files kept between runs."""

import logging
import shutil
from pathlib import Path
from typing import Dict, Optional

from .addins import Addin

logger = logging.getLogger(__name__)

CACHE_SUBDIR = "addin-compat-diffs"
PENDING_SUBDIR = "addin-compat-pending"
DIFF_SUFFIX = "-diff.txt"


def diff_file_name(addin: Addin) -> str:
    return f"{addin.local_id}{DIFF_SUFFIX}"


class DiffCache:
    """Key-value store: ``Addin.local_id`` -> saved diff file.

    Diff files produced by a failing run are copied into a *pending* area
    next to the cache, so they outlive the run's temp directory and a later
    process can save them. Saving replaces the whole cache with the pending
    set. Resetting drops every saved diff.
    """

    def __init__(self, cache_dir: Path):
        cache_dir = Path(cache_dir)
        self.directory = cache_dir / CACHE_SUBDIR
        self.pending_directory = cache_dir / PENDING_SUBDIR

    @property
    def pending(self) -> Dict[str, Path]:
        if not self.pending_directory.is_dir():
            return {}
        return {
            path.name[:-len(DIFF_SUFFIX)]: path
            for path in sorted(self.pending_directory.glob(f"*{DIFF_SUFFIX}"))
        }

    def diff_file_for(self, addin: Addin) -> Path:
        return self.directory / diff_file_name(addin)

    def add_pending(self, addin: Addin, diff_file: Path) -> Optional[Path]:
        """Copy ``diff_file`` into the pending area for ``addin``."""
        diff_file = Path(diff_file)
        if not diff_file.is_file():
            logger.warning("No diff file for %s: %s", addin.display_name, diff_file)
            return None
        self.pending_directory.mkdir(parents=True, exist_ok=True)
        target = self.pending_directory / diff_file_name(addin)
        shutil.copyfile(diff_file, target)
        return target

    def clear_pending(self) -> None:
        if self.pending_directory.exists():
            shutil.rmtree(self.pending_directory)

    def existing_diff_file(self, addin: Addin) -> Optional[Path]:
        path = self.diff_file_for(addin)
        return path if path.is_file() else None

    def save(self) -> int:
        """Replace saved diffs with the pending ones. Returns files saved."""
        pending = self.pending
        if not pending:
            return 0

        self.reset()
        self.directory.mkdir(parents=True, exist_ok=True)
        for source in pending.values():
            shutil.move(str(source), str(self.directory / source.name))
        self.clear_pending()
        logger.info("Saved %d diff file(s) to %s", len(pending), self.directory)
        return len(pending)

    def reset(self) -> None:
        """Remove every saved diff file."""
        if self.directory.exists():
            shutil.rmtree(self.directory)
