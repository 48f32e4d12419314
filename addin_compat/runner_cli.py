"""CLI for the host-side runner: check installed addins, save or reset diffs."""

import argparse
import logging
import sys
from typing import List, Optional

from . import __version__
from .app_locator import locate_app_dir
from .config import load_config
from .diff_cache import DiffCache
from .errors import ConfigurationError
from .options import CommandLineOptions, full_path
from .orchestrator import EXIT_CONFIGURATION_ERROR, EXIT_INCOMPATIBLE, EXIT_SUCCESS
from .runner import CompatibilityCheckRunner


def create_parser():
    """Create argument parser."""
    parser = argparse.ArgumentParser(
        prog="addin-compat-runner",
        description="addin-compat-runner — check installed extensions one process at a time",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Check every .mpack under a directory against the located application
  addin-compat-runner check --addin-archive-dir ~/Library/Extensions

  # Accept the differences reported by the last check
  addin-compat-runner save

  # Forget every accepted difference
  addin-compat-runner reset

Exit codes (check):
  0  = All extensions are compatible
  1  = One or more extensions are not compatible (run 'save' to accept)
  -1 = Configuration error, baseline failure or scanner failure
"""
    )

    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--config", metavar="FILE",
                        help="YAML tool configuration (cache_dir, scanner, app bundles)")
    parser.add_argument("-v", "--verbose", action="store_true")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    chk = subparsers.add_parser("check", help="Check addins against a fresh baseline")
    chk.add_argument("--app-dir", metavar="DIR",
                     help="Host application bundle directory. Located automatically when omitted.")
    chk.add_argument("--use-preview", action="store_true",
                     help="Locate the preview application bundle instead of the release one")
    chk.add_argument("--addin-dir", action="append", metavar="DIR")
    chk.add_argument("--addin-archive", action="append", metavar="FILE")
    chk.add_argument("--addin-archive-dir", action="append", metavar="DIR")

    subparsers.add_parser("save", help="Save pending diffs of the last check as known differences")
    subparsers.add_parser("reset", help="Remove all saved and pending diffs")

    return parser


def cmd_check(args, runner: CompatibilityCheckRunner, addins) -> int:
    report = runner.run(addins)
    if report.incompatible:
        return EXIT_INCOMPATIBLE
    if report.failed:
        return EXIT_CONFIGURATION_ERROR
    return EXIT_SUCCESS


def cmd_save(args, runner: CompatibilityCheckRunner, addins) -> int:
    runner.save_baseline()
    return EXIT_SUCCESS


def cmd_reset(args, runner: CompatibilityCheckRunner, addins) -> int:
    runner.reset_baseline()
    return EXIT_SUCCESS


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for CLI."""
    parser = create_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as e:
        return EXIT_SUCCESS if e.code in (0, None) else EXIT_CONFIGURATION_ERROR

    if not args.command:
        parser.print_help()
        return EXIT_CONFIGURATION_ERROR

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        config_file = full_path(args.config)
        config = load_config(config_file)

        app_dir = None
        addins = []
        if args.command == "check":
            options = CommandLineOptions(
                app_dir=full_path(args.app_dir),
                addin_dirs=[full_path(d) for d in args.addin_dir or []],
                addin_archives=[full_path(f) for f in args.addin_archive or []],
                addin_archive_dirs=[full_path(d) for d in args.addin_archive_dir or []],
                use_preview=args.use_preview,
                config_file=config_file,
            )
            options.validate()
            app_dir = options.app_dir or locate_app_dir(
                config.app_bundles, config.app_search_dirs, use_preview=options.use_preview
            )
            if app_dir is None:
                raise ConfigurationError("Application directory not found. Pass --app-dir.")
            addins = options.collect_addins()

        runner = CompatibilityCheckRunner(app_dir, DiffCache(config.cache_dir),
                                          config_file=config_file)
    except ConfigurationError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_CONFIGURATION_ERROR

    handlers = {
        "check": cmd_check,
        "save":  cmd_save,
        "reset": cmd_reset,
    }
    return handlers[args.command](args, runner, addins)


if __name__ == "__main__":
    sys.exit(main())
