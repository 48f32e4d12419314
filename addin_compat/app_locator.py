"""Locate the host application bundle when --app-dir is not given."""

import logging
import plistlib
from pathlib import Path
from typing import List, Optional, Sequence

from packaging.version import InvalidVersion, Version

logger = logging.getLogger(__name__)

BUNDLE_VERSION_KEY = "CFBundleShortVersionString"


def get_bundle_version(bundle: Path) -> Optional[str]:
    """Read CFBundleShortVersionString from the bundle's Info.plist."""
    info_plist = bundle / "Contents" / "Info.plist"
    try:
        with open(info_plist, "rb") as f:
            values = plistlib.load(f)
    except (OSError, plistlib.InvalidFileException) as e:
        logger.debug("Could not read %s: %s", info_plist, e)
        return None
    version = values.get(BUNDLE_VERSION_KEY)
    return str(version) if version is not None else None


def _latest_version(bundles: List[Path]) -> Optional[Path]:
    parsed = []
    for bundle in bundles:
        text = get_bundle_version(bundle)
        try:
            parsed.append((Version(text), bundle))
        except (InvalidVersion, TypeError):
            logger.warning("Could not determine app bundle version '%s'", bundle)
    if not parsed:
        return None
    return sorted(parsed, key=lambda item: item[0])[-1][1]


def find_app_bundle(bundle_name: str, search_dirs: Sequence[Path]) -> Optional[Path]:
    """Find ``bundle_name`` in ``search_dirs``.

    One match is returned as-is. With several, the highest bundle version
    wins; if no version is readable the first match in search order is used.
    """
    candidates = [d / bundle_name for d in search_dirs if (d / bundle_name).is_dir()]
    if not candidates:
        return None
    if len(candidates) == 1:
        return candidates[0]

    chosen = _latest_version(candidates)
    if chosen is not None:
        logger.info("Multiple applications found. Using '%s'", chosen)
        return chosen

    logger.warning("Could not determine latest application version. Using '%s'", candidates[0])
    return candidates[0]


def locate_app_dir(app_bundles: dict, search_dirs: Sequence[Path],
                   use_preview: bool = False) -> Optional[Path]:
    """Locate the release (or preview) application bundle."""
    key = "preview" if use_preview else "release"
    return find_app_bundle(app_bundles[key], search_dirs)
