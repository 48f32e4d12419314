"""Validated command-line options."""

import argparse
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from .addins import Addin, find_archives
from .errors import ConfigurationError


def full_path(path: Optional[str]) -> Optional[Path]:
    if path is None:
        return None
    return Path(path).expanduser().resolve()


@dataclass
class CommandLineOptions:
    """Options after path normalization and validation.

    Every path is absolute. ``from_namespace`` raises ConfigurationError
    before anything is scanned if an input does not exist.
    """
    app_dir: Optional[Path] = None
    addin_dirs: List[Path] = field(default_factory=list)
    addin_archives: List[Path] = field(default_factory=list)
    addin_archive_dirs: List[Path] = field(default_factory=list)
    baseline_file: Optional[Path] = None
    generate_baseline: bool = False
    use_preview: bool = False
    app_config_file: Optional[Path] = None
    diff_ignore_file: Optional[Path] = None
    diff_output_file: Optional[Path] = None
    diff_output_dir: Optional[Path] = None
    config_file: Optional[Path] = None
    output_format: str = "text"
    verbose: bool = False

    @classmethod
    def from_namespace(cls, args: argparse.Namespace) -> "CommandLineOptions":
        options = cls(
            app_dir=full_path(args.app_dir),
            addin_dirs=[full_path(d) for d in args.addin_dir or []],
            addin_archives=[full_path(f) for f in args.addin_archive or []],
            addin_archive_dirs=[full_path(d) for d in args.addin_archive_dir or []],
            baseline_file=full_path(args.baseline_file),
            generate_baseline=args.generate_baseline,
            use_preview=args.use_preview,
            app_config_file=full_path(args.app_config_file),
            diff_ignore_file=full_path(args.diff_ignore_file),
            diff_output_file=full_path(args.diff_output_file),
            diff_output_dir=full_path(args.diff_output_dir),
            config_file=full_path(args.config),
            output_format=args.format,
            verbose=args.verbose,
        )
        options.validate()
        return options

    def validate(self) -> None:
        for directory in self.addin_dirs:
            if not directory.is_dir():
                raise ConfigurationError(f"Addin directory does not exist: '{directory}'")

        if self.app_dir is not None and not self.app_dir.is_dir():
            raise ConfigurationError(f"Application directory does not exist: '{self.app_dir}'")

        for archive in self.addin_archives:
            if not archive.is_file():
                raise ConfigurationError(f"Addin file does not exist '{archive}'")

        for directory in self.addin_archive_dirs:
            if not directory.is_dir():
                raise ConfigurationError(f"Addin archive directory does not exist: '{directory}'")

        if self.app_config_file is not None and not self.app_config_file.is_file():
            raise ConfigurationError(f"Application config file does not exist: '{self.app_config_file}'")

        if self.generate_baseline and self.baseline_file is None:
            raise ConfigurationError("--generate-baseline requires --baseline-file")

        if self.generate_baseline and (self.addin_dirs or self.addin_archives or self.addin_archive_dirs):
            raise ConfigurationError(
                "--generate-baseline cannot be combined with --addin-dir, "
                "--addin-archive or --addin-archive-dir"
            )

        if self.diff_ignore_file is not None or self.diff_output_file is not None:
            single = len(self.addin_dirs) + len(self.addin_archives) == 1 and not self.addin_archive_dirs
            if not single:
                raise ConfigurationError(
                    "--diff-ignore-file and --diff-output-file require exactly one addin"
                )

    def collect_addins(self) -> List[Addin]:
        """Addins named by --addin-dir, --addin-archive and --addin-archive-dir."""
        addins = [Addin.from_directory(d) for d in self.addin_dirs]
        addins.extend(Addin.from_archive(f) for f in self.addin_archives)
        for directory in self.addin_archive_dirs:
            addins.extend(Addin.from_archive(f) for f in find_archives(directory))
        return addins
