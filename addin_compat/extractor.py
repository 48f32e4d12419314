"""Extraction of packaged (.mpack) addins into temporary directories."""

import logging
import zipfile
from pathlib import Path
from typing import Optional

from .errors import ConfigurationError
from .report_store import create_temp_directory, remove_directory

logger = logging.getLogger(__name__)


def safe_extract_zip(zf: zipfile.ZipFile, extract_dir: Path):
    """Safely extract zip archive preventing path traversal.

    Args:
        zf: zipfile.ZipFile object
        extract_dir: Destination directory

    Raises:
        RuntimeError: If any member attempts path traversal
    """
    extract_dir = extract_dir.resolve()

    for name in zf.namelist():
        member_path = (extract_dir / name).resolve()

        if member_path != extract_dir and extract_dir not in member_path.parents:
            raise RuntimeError(
                f"Path traversal attempt: {name} outside {extract_dir}"
            )

        if name.endswith('/'):
            member_path.mkdir(parents=True, exist_ok=True)
        else:
            member_path.parent.mkdir(parents=True, exist_ok=True)
            member_path.write_bytes(zf.read(name))


class AddinArchiveExtractor:
    """Unzip an addin archive into a temp directory it owns.

    Usage:
        with AddinArchiveExtractor(mpack) as extractor:
            scan(extractor.addin_directory)
    """

    def __init__(self, archive: Path):
        self.archive = Path(archive)
        self.addin_directory: Optional[Path] = None

    def extract(self) -> Path:
        """Extract the archive and return the extraction directory.

        Raises:
            ConfigurationError: If the archive does not exist or is not a zip.
            RuntimeError: If a member would extract outside the directory.
        """
        if not self.archive.is_file():
            raise ConfigurationError(f"Addin file does not exist '{self.archive}'")
        if not zipfile.is_zipfile(self.archive):
            raise ConfigurationError(f"Addin file is not a zip archive: '{self.archive}'")

        self.addin_directory = create_temp_directory()
        logger.debug("Extracting %s to %s", self.archive, self.addin_directory)
        try:
            with zipfile.ZipFile(self.archive) as zf:
                safe_extract_zip(zf, self.addin_directory)
        except Exception:
            self.dispose()
            raise
        return self.addin_directory

    def dispose(self) -> None:
        """Remove the extraction directory. Never raises."""
        if self.addin_directory is None:
            return
        # Never delete a directory whose parent is the filesystem root.
        parent = self.addin_directory.parent
        if parent == parent.parent:
            logger.warning("Not removing %s: parent is filesystem root", self.addin_directory)
            return
        remove_directory(self.addin_directory)
        self.addin_directory = None

    def __enter__(self) -> "AddinArchiveExtractor":
        self.extract()
        return self

    def __exit__(self, *exc) -> None:
        self.dispose()
