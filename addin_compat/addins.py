"""Addin identity and discovery."""

import logging
import re
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional
from xml.etree import ElementTree

logger = logging.getLogger(__name__)

ARCHIVE_SUFFIX = ".mpack"
MANIFEST_NAMES = ("addin.info",)
MANIFEST_GLOB = "*.addin.xml"

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._,-]+")


@dataclass(frozen=True)
class Addin:
    """A third-party extension under test.

    ``location`` is either an extracted directory or an archive; the
    orchestrator extracts archives before scanning. Never mutated.
    """
    name: str
    version: str
    location: Path
    addin_id: Optional[str] = None

    @property
    def is_archive(self) -> bool:
        return self.location.is_file()

    @property
    def local_id(self) -> str:
        """Filesystem-safe identity used as the diff cache key."""
        ident = self.addin_id or self.name
        if self.version:
            ident = f"{ident},{self.version}"
        return _UNSAFE_CHARS.sub("_", ident)

    @property
    def display_name(self) -> str:
        return f"{self.name} {self.version}".strip()

    @classmethod
    def from_directory(cls, directory: Path) -> "Addin":
        """Describe an extracted addin, using its manifest when present."""
        directory = Path(directory)
        manifest = _find_manifest_file(directory)
        if manifest is not None:
            try:
                info = _parse_manifest(manifest.read_bytes())
            except ElementTree.ParseError as e:
                logger.warning("Ignoring unreadable manifest %s: %s", manifest, e)
            else:
                if info:
                    return cls(location=directory, **_with_fallback_name(info, directory.name))
        return cls(name=directory.name, version="", location=directory)

    @classmethod
    def from_archive(cls, archive: Path) -> "Addin":
        """Describe a packaged addin without extracting it."""
        archive = Path(archive)
        fallback = archive.stem
        try:
            with zipfile.ZipFile(archive) as zf:
                manifest_name = _find_manifest_member(zf.namelist())
                if manifest_name is not None:
                    info = _parse_manifest(zf.read(manifest_name))
                    if info:
                        return cls(location=archive, **_with_fallback_name(info, fallback))
        except (zipfile.BadZipFile, ElementTree.ParseError) as e:
            logger.warning("Could not read addin manifest from %s: %s", archive, e)
        return cls(name=fallback, version="", location=archive)


def _find_manifest_file(directory: Path) -> Optional[Path]:
    for name in MANIFEST_NAMES:
        candidate = directory / name
        if candidate.is_file():
            return candidate
    matches = sorted(directory.glob(MANIFEST_GLOB))
    return matches[0] if matches else None


def _find_manifest_member(names: Iterable[str]) -> Optional[str]:
    names = list(names)
    for name in names:
        if name in MANIFEST_NAMES:
            return name
    for name in sorted(names):
        if "/" not in name and name.endswith(".addin.xml"):
            return name
    return None


def _parse_manifest(content: bytes) -> dict:
    """Extract id/name/version attributes from an <Addin> manifest root."""
    root = ElementTree.fromstring(content)
    if root.tag != "Addin":
        return {}
    addin_id = root.get("id")
    namespace = root.get("namespace")
    if addin_id and namespace:
        addin_id = f"{namespace}.{addin_id}"
    return {
        "name": root.get("name") or "",
        "version": root.get("version") or "",
        "addin_id": addin_id,
    }


def _with_fallback_name(info: dict, fallback: str) -> dict:
    if not info["name"]:
        info = dict(info, name=info["addin_id"] or fallback)
    return info


def find_archives(directory: Path) -> List[Path]:
    """Find addin archives under ``directory`` recursively, sorted."""
    return sorted(p for p in Path(directory).rglob(f"*{ARCHIVE_SUFFIX}") if p.is_file())


def sort_addins(addins: Iterable[Addin]) -> List[Addin]:
    """Sort addins by name, case-insensitive, for reproducible output."""
    return sorted(addins, key=lambda a: (a.name.casefold(), a.version, str(a.location)))
