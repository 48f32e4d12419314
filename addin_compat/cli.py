"""CLI interface for addin-compat."""

import argparse
import json
import logging
import sys
from typing import List, Optional

from . import __version__
from .app_locator import locate_app_dir
from .checker import AddinCompatChecker, CheckOutcome
from .config import load_config
from .errors import BaselineError, ConfigurationError, ScanError
from .options import CommandLineOptions
from .orchestrator import EXIT_CONFIGURATION_ERROR, EXIT_SUCCESS, CompatRun
from .scanners.factory import create_adapter


def create_parser():
    """Create argument parser."""
    parser = argparse.ArgumentParser(
        prog="addin-compat",
        description="addin-compat — binary compatibility gate for IDE extensions",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Check an extracted addin against a fresh baseline
  addin-compat --app-dir "/Applications/Visual Studio.app" --addin-dir ./MyAddin

  # Check every .mpack under a directory, keeping the baseline between runs
  addin-compat --app-dir ./app --addin-archive-dir ./packages --baseline-file baseline.txt

  # Regenerate the baseline only
  addin-compat --app-dir ./app --baseline-file baseline.txt --generate-baseline

Exit codes:
  0  = No regressions
  1  = One or more addins are not compatible with the baseline
  -1 = Configuration or usage error, baseline could not be generated, or the
       scanner failed for an addin
"""
    )

    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    parser.add_argument("--app-dir", metavar="DIR",
                        help="Host application bundle directory. Located automatically when omitted.")
    parser.add_argument("--addin-dir", action="append", metavar="DIR",
                        help="Directory containing addin files (repeatable)")
    parser.add_argument("--addin-archive", action="append", metavar="FILE",
                        help="Addin .mpack file (repeatable)")
    parser.add_argument("--addin-archive-dir", action="append", metavar="DIR",
                        help="Directory searched recursively for .mpack files (repeatable)")
    parser.add_argument("--baseline-file", metavar="FILE",
                        help="Baseline report. Used if it exists, generated there if it does not.")
    parser.add_argument("--generate-baseline", action="store_true",
                        help="Scan the application only and (re)write --baseline-file")
    parser.add_argument("--use-preview", action="store_true",
                        help="Locate the preview application bundle instead of the release one")
    parser.add_argument("--app-config-file", metavar="FILE",
                        help="Scanner config for the application (exclusion globs)")
    parser.add_argument("--diff-ignore-file", metavar="FILE",
                        help="Known report differences for the single addin being checked")
    parser.add_argument("--diff-output-file", metavar="FILE",
                        help="Write new report lines of the single addin being checked here")
    parser.add_argument("--diff-output-dir", metavar="DIR",
                        help="Write <addin>-diff.txt files for every checked addin here")
    parser.add_argument("--config", metavar="FILE",
                        help="YAML tool configuration (scanner command, flags, app bundles)")
    parser.add_argument("--format", choices=["text", "json"], default="text")
    parser.add_argument("-v", "--verbose", action="store_true")

    return parser


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _show_error(message: str) -> None:
    print(f"ERROR: {message}", file=sys.stderr)


def cmd_generate_baseline(options: CommandLineOptions, adapter) -> int:
    """Scan the application alone and write the baseline file."""
    with AddinCompatChecker(adapter, options.app_dir,
                            app_config_file=options.app_config_file) as checker:
        outcome = checker.check()
        if outcome != CheckOutcome.PASSED:
            _show_error("Unable to generate baseline")
            return EXIT_CONFIGURATION_ERROR
        checker.save_report(options.baseline_file)
    print(f"Baseline written to {options.baseline_file}")
    return EXIT_SUCCESS


def cmd_check(options: CommandLineOptions, adapter) -> int:
    """Check every requested addin against the baseline."""
    addins = options.collect_addins()

    ignore_files = {}
    diff_output_files = {}
    if len(addins) == 1:
        key = addins[0].local_id
        if options.diff_ignore_file is not None:
            ignore_files[key] = options.diff_ignore_file
        if options.diff_output_file is not None:
            diff_output_files[key] = options.diff_output_file

    run = CompatRun(
        adapter, options.app_dir, addins,
        baseline_file=options.baseline_file,
        app_config_file=options.app_config_file,
        ignore_files=ignore_files,
        diff_output_files=diff_output_files,
        diff_output_dir=options.diff_output_dir,
        # Keep stdout parseable in JSON mode
        stream=sys.stderr if options.output_format == "json" else None,
    )
    summary = run.run()

    if options.output_format == "json":
        print(json.dumps(summary.to_dict(), indent=2))
    else:
        print(summary.format_summary())
    return summary.exit_code


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for CLI."""
    parser = create_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as e:
        # --help/--version exit 0; usage errors map to the configuration exit code
        return EXIT_SUCCESS if e.code in (0, None) else EXIT_CONFIGURATION_ERROR

    _configure_logging(args.verbose)

    try:
        options = CommandLineOptions.from_namespace(args)
        config = load_config(options.config_file)

        if options.app_dir is None:
            options.app_dir = locate_app_dir(config.app_bundles, config.app_search_dirs,
                                             use_preview=options.use_preview)
            if options.app_dir is None:
                raise ConfigurationError(
                    "Application directory not found. Pass --app-dir."
                )

        adapter = create_adapter(config)

        if options.generate_baseline:
            return cmd_generate_baseline(options, adapter)
        return cmd_check(options, adapter)

    except ConfigurationError as e:
        _show_error(str(e))
        print("Pass --help for usage information.", file=sys.stderr)
        return EXIT_CONFIGURATION_ERROR
    except (BaselineError, ScanError) as e:
        _show_error(str(e))
        return EXIT_CONFIGURATION_ERROR
    except Exception as e:
        if args.verbose:
            raise
        _show_error(f"Unexpected error: {e}")
        return EXIT_CONFIGURATION_ERROR


if __name__ == "__main__":
    sys.exit(main())
