"""Assembly discovery shared by scanning engines."""

import fnmatch
from pathlib import Path
from typing import List, Optional

ASSEMBLY_PATTERNS = ("*.dll", "*.exe")


def load_exclusions(config_file: Optional[Path]) -> List[str]:
    """Read exclusion globs from a scanner config file.

    One glob per line, relative to the scan root. Blank lines and lines
    starting with '#' are skipped. A missing file means no exclusions.
    """
    if config_file is None or not config_file.exists():
        return []
    patterns = []
    for line in config_file.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if line and not line.startswith("#"):
            patterns.append(line)
    return patterns


def _is_excluded(relative: str, patterns: List[str]) -> bool:
    return any(fnmatch.fnmatch(relative, p) for p in patterns)


def find_assemblies(root: Path, config_file: Optional[Path] = None) -> List[Path]:
    """Find managed assemblies under root, sorted, minus excluded paths."""
    exclusions = load_exclusions(config_file)
    found = set()
    for pattern in ASSEMBLY_PATTERNS:
        for path in root.rglob(pattern):
            if not path.is_file():
                continue
            relative = path.relative_to(root).as_posix()
            if exclusions and _is_excluded(relative, exclusions):
                continue
            found.add(path)
    return sorted(found)
