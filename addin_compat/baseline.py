"""Baseline comparison for compatibility reports.

A report is a list of text lines, one compatibility finding per line. Two
reports are compared as sets: any line in the new report that is missing from
the baseline is a regression, unless the addin's ignore list expects it.
"""

import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Set

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BaselineComparison:
    """Result of comparing a candidate report against a baseline."""
    passed: bool
    added: Set[str] = field(default_factory=set)
    removed: Set[str] = field(default_factory=set)

    def format_summary(self) -> str:
        """Format one-line human-readable summary."""
        if self.passed:
            return "✅ PASSED"
        parts = ["❌ FAILED"]
        if self.added:
            parts.append(f"new: {len(self.added)}")
        if self.removed:
            parts.append(f"missing: {len(self.removed)}")
        return " | ".join(parts)

    def format_details(self) -> str:
        """Format the missing and new line blocks, sorted for stable output."""
        if self.passed:
            return ""

        separator = "================================="
        lines = ["The current assembly binary compatibility report is different from the baseline."]

        if self.removed:
            lines.append(separator)
            lines.append("These expected lines are missing:")
            lines.extend(sorted(self.removed))
            lines.append(separator)

        if self.added:
            lines.append(separator)
            lines.append("These actual lines are new:")
            lines.extend(sorted(self.added))
            lines.append(separator)

        return "\n".join(lines)

    def to_dict(self) -> dict:
        """Export as JSON-serializable dict"""
        return {
            "passed": self.passed,
            "added": sorted(self.added),
            "removed": sorted(self.removed),
        }


def compare(
    baseline: Sequence[str],
    candidate: Sequence[str],
    ignore: Optional[Sequence[str]] = None,
) -> BaselineComparison:
    """Compare a candidate report against a baseline.

    Args:
        baseline: Lines of the trusted baseline report.
        candidate: Lines of the newly generated report.
        ignore: Lines that are known to differ. Entries found among the new
            lines suppress them; entries not found are reported as missing.

    Returns:
        BaselineComparison. An empty candidate always passes, so a scan that
        produced no output is never reported as a regression.
    """
    if not candidate:
        return BaselineComparison(passed=True)

    added = set(candidate) - set(baseline)
    removed: Set[str] = set()

    if ignore:
        ignore_set = set(ignore)
        removed = ignore_set - added
        added = added - ignore_set

    return BaselineComparison(
        passed=not added and not removed,
        added=added,
        removed=removed,
    )


class BaselineChecker:
    """Compare reports and emit the diff side effects of a check.

    Args:
        diff_output_file: When set, the raw new lines (before ignore
            filtering) are written here so they can later be saved as the
            addin's ignore list.
        ignore_lines: Ignore list passed to :func:`compare`.
        stream: Where the failure report is printed (default: stderr).
    """

    def __init__(self, diff_output_file: Optional[Path] = None,
                 ignore_lines: Iterable[str] = (),
                 stream=None):
        self.diff_output_file = diff_output_file
        self.ignore_lines: List[str] = list(ignore_lines)
        self.stream = stream

    def check(self, old_baseline: Sequence[str], new_baseline: Sequence[str]) -> BaselineComparison:
        raw_added = set(new_baseline) - set(old_baseline)
        if raw_added:
            self._write_diff_report(raw_added)

        result = compare(old_baseline, new_baseline, self.ignore_lines)

        if not result.passed:
            logger.info("Baseline mismatch: %d new, %d missing",
                        len(result.added), len(result.removed))
            print(result.format_details(), file=self.stream or sys.stderr)

        return result

    def _write_diff_report(self, added: Set[str]) -> None:
        if self.diff_output_file is None:
            return
        self.diff_output_file.parent.mkdir(parents=True, exist_ok=True)
        self.diff_output_file.write_text(
            "".join(f"{line}\n" for line in sorted(added)),
            encoding="utf-8",
        )
