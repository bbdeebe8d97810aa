"""
Source Snap - collect a filtered snapshot of a source tree into one file.

This package walks a directory tree, filters files by extension, size, depth,
glob patterns, excluded folders and .gitignore rules, and writes the
surviving files to a single text or JSON file along with line statistics.
"""

__version__ = "0.1.0"
__author__ = "Source Snap Team"

from .core import (
    CollectedFile,
    CollectionCancelled,
    ConfigFileError,
    InvalidOptionError,
    InvalidRootError,
    OutputError,
    SkippedFile,
    SnapResult,
    SourceSnapError,
    Stats,
    aggregate,
    collect,
)
from .config import Options, load_config_file, resolve_options

__all__ = [
    "CollectedFile",
    "CollectionCancelled",
    "ConfigFileError",
    "InvalidOptionError",
    "InvalidRootError",
    "Options",
    "OutputError",
    "SkippedFile",
    "SnapResult",
    "SourceSnapError",
    "Stats",
    "aggregate",
    "collect",
    "load_config_file",
    "resolve_options",
]
