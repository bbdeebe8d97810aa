"""
CLI entrypoint for sourcesnap.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from colorama import Fore, Style, just_fix_windows_console

from . import __version__
from .config import OUTPUT_FORMATS, Options, load_config_file, resolve_options
from .core import InvalidRootError, OutputError, SourceSnapError, collect
from .output import render_report, write_output

logger = logging.getLogger(__name__)

PACKAGE_LOGGER = "sourcesnap"


class ColorFormatter(logging.Formatter):
    """Color log records by level when writing to a terminal."""

    COLORS = {
        logging.DEBUG: Style.DIM,
        logging.WARNING: Fore.YELLOW,
        logging.ERROR: Fore.RED,
        logging.CRITICAL: Fore.RED + Style.BRIGHT,
    }

    def __init__(self, fmt: str = "%(message)s", use_color: bool = True) -> None:
        super().__init__(fmt)
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        color = self.COLORS.get(record.levelno, "")
        if self.use_color and color:
            message = f"{color}{message}{Style.RESET_ALL}"
        return message


def setup_logging(options: Options) -> logging.Logger:
    """Route the package logs to stdout at the level implied by silent/verbose."""
    just_fix_windows_console()
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(ColorFormatter(use_color=sys.stdout.isatty()))
    package_logger.addHandler(handler)

    # silent wins over verbose
    if options.silent:
        package_logger.setLevel(logging.WARNING)
    elif options.verbose:
        package_logger.setLevel(logging.DEBUG)
    else:
        package_logger.setLevel(logging.INFO)
    return package_logger


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="source-snap",
        description="Collect and consolidate source files into a single snapshot file.",
    )
    p.add_argument("--root", type=Path, dest="folder_path", help="Directory to collect files from (default: cwd)")
    p.add_argument("--out", type=Path, dest="output_file", help="Output file (default: generated name)")
    p.add_argument(
        "--types",
        dest="file_types",
        help="Comma separated extensions to include, e.g. .js,.ts ('' for all)",
    )
    p.add_argument("--max-size", type=float, dest="max_size_mb", help="Maximum file size in MB (default 10)")
    p.add_argument("--max-depth", dest="max_depth", help="Maximum directory depth (default: unbounded)")
    p.add_argument("--format", choices=OUTPUT_FORMATS, dest="output_format", help="Output format (default txt)")
    p.add_argument("-s", "--silent", action="store_true", default=None, help="Suppress console output")
    p.add_argument("-v", "--verbose", action="store_true", default=None, help="Verbose logging and summary")
    p.add_argument("--exclude-folders", dest="exclude_folders", help="Comma separated folder names to skip")
    p.add_argument("--exclude-files", dest="exclude_files", help="Comma separated file globs to skip")
    p.add_argument(
        "--no-gitignore",
        dest="respect_gitignore",
        action="store_false",
        default=None,
        help="Do not apply the root .gitignore",
    )
    p.add_argument("--include", dest="include_patterns", help="Comma separated globs a file must match")
    p.add_argument("--exclude", dest="exclude_patterns", help="Comma separated globs to skip")
    p.add_argument("--workers", type=int, help="Threads used to read files")
    p.add_argument("--config", type=Path, help="Path to a JSON config file (default: ./.sourcesnaprc)")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return p.parse_args(argv)


def _overrides(ns: argparse.Namespace) -> Dict[str, Any]:
    values = vars(ns).copy()
    values.pop("config", None)
    return values


def main(argv: Optional[List[str]] = None) -> None:
    try:
        ns = _parse_args(argv)

        try:
            file_config = load_config_file(ns.config)
            options = resolve_options(file_config, _overrides(ns))
        except SourceSnapError as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)

        setup_logging(options)

        try:
            result = collect(options)
        except InvalidRootError as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)

        for skipped in result.skipped:
            logger.debug(f"Skipped {skipped.path}: {skipped.reason}")

        try:
            links = write_output(result.files, options)
        except OutputError as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)

        render_report(links, result.stats, options)
        logger.info(f"\nCode collection completed! Output file: {options.output_file.resolve()}")

    except KeyboardInterrupt:
        print("\nOperation cancelled by user.", file=sys.stderr)
        sys.exit(130)


if __name__ == "__main__":
    main()
