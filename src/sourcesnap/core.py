"""
Core logic for sourcesnap: ignore rules, traversal, admission and statistics.
"""

from __future__ import annotations

import logging
import os
import posixpath
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Dict, Iterable, List, NamedTuple, Optional, Tuple, Union

import pathspec
from wcmatch import glob

if TYPE_CHECKING:
    from .config import Options

logger = logging.getLogger(__name__)


# Exceptions
class SourceSnapError(Exception): ...
class InvalidRootError(SourceSnapError): ...
class InvalidOptionError(SourceSnapError): ...
class ConfigFileError(InvalidOptionError): ...
class OutputError(SourceSnapError): ...
class CollectionCancelled(SourceSnapError): ...


# Defaults & helpers
GITIGNORE_NAME = ".gitignore"
BYTES_PER_MB = 1024 * 1024


@dataclass(frozen=True)
class CollectedFile:
    path: str
    content: str


@dataclass(frozen=True)
class SkippedFile:
    """A file that passed every filter but could not be loaded."""

    path: str
    reason: str


@dataclass
class ExtensionStats:
    files: int = 0
    lines: int = 0


@dataclass
class Stats:
    total_files: int = 0
    total_lines: int = 0
    by_extension: Dict[str, ExtensionStats] = field(default_factory=dict)


@dataclass
class SnapResult:
    files: List[CollectedFile]
    stats: Stats
    skipped: List[SkippedFile] = field(default_factory=list)


class _Candidate(NamedTuple):
    full_path: Path
    relative_path: str


def extension_of(path: str) -> str:
    """Lower-cased extension with its leading dot, ``""`` when there is none."""
    return posixpath.splitext(path)[1].lower()


def count_lines(content: str) -> int:
    # A trailing newline yields one extra empty segment.
    return len(content.split("\n"))


def _is_binary(data: bytes) -> bool:
    return b"\0" in data


def _check_cancel(cancel: Optional[threading.Event]) -> None:
    if cancel is not None and cancel.is_set():
        raise CollectionCancelled("Collection cancelled")


# Ignore-file utilities
class IgnoreRules:
    """Compiled ``.gitignore`` patterns for one traversal root."""

    def __init__(self, spec: Optional[pathspec.GitIgnoreSpec] = None) -> None:
        self._spec = spec if spec is not None else pathspec.GitIgnoreSpec.from_lines([])

    @classmethod
    def from_lines(cls, lines: Iterable[str]) -> "IgnoreRules":
        return cls(pathspec.GitIgnoreSpec.from_lines(lines))

    def __len__(self) -> int:
        # comment lines compile to patterns with ``include is None``
        return sum(1 for p in self._spec.patterns if p.include is not None)

    def matches(self, relative_path: str, is_dir: bool = False) -> bool:
        # Directory-only patterns such as ``dist/`` need the trailing slash.
        if is_dir and not relative_path.endswith("/"):
            relative_path += "/"
        return bool(self._spec.match_file(relative_path))


def load_gitignore(root: Path, enabled: bool = True) -> IgnoreRules:
    if not enabled:
        return IgnoreRules()
    gitignore_path = root / GITIGNORE_NAME
    try:
        with gitignore_path.open("r", encoding="utf-8") as fh:
            lines = fh.read().splitlines()
    except (OSError, UnicodeDecodeError) as e:
        logger.debug(f"No usable {GITIGNORE_NAME} in {root}: {e}")
        return IgnoreRules()
    rules = IgnoreRules.from_lines(lines)
    logger.debug(f"Loaded {len(rules)} ignore rules from {gitignore_path}")
    return rules


# minimatch-style globs: ``*`` stays in one segment, ``**`` crosses segments
GLOB_FLAGS = glob.GLOBSTAR | glob.DOTMATCH | glob.BRACE | glob.FORCEUNIX


class GlobSet:
    """User glob patterns matched against root-relative POSIX paths."""

    def __init__(self, patterns: Iterable[str]) -> None:
        self.patterns = tuple(patterns)

    def __len__(self) -> int:
        return len(self.patterns)

    def match_file(self, relative_path: str) -> bool:
        if not self.patterns:
            return False
        return glob.globmatch(relative_path, self.patterns, flags=GLOB_FLAGS)


def compile_patterns(patterns: Iterable[str]) -> GlobSet:
    return GlobSet(patterns)


class PatternSet(NamedTuple):
    exclude_files: GlobSet
    include: GlobSet
    exclude: GlobSet

    @classmethod
    def from_options(cls, options: "Options") -> "PatternSet":
        return cls(
            exclude_files=compile_patterns(options.exclude_files),
            include=compile_patterns(options.include_patterns),
            exclude=compile_patterns(options.exclude_patterns),
        )


# Admission
def admit(
    full_path: Path,
    relative_path: str,
    options: "Options",
    patterns: PatternSet,
) -> Union[CollectedFile, SkippedFile, None]:
    """
    Run one regular file through the admission checks.

    Returns the collected file, a :class:`SkippedFile` when the file passed the
    filters but could not be loaded, or ``None`` when a filter rejected it.
    """
    if patterns.exclude_files.match_file(relative_path):
        logger.info(f"Skipping excluded file: {full_path}")
        return None
    if options.include_patterns and not patterns.include.match_file(relative_path):
        logger.debug(f"Skipping file outside include patterns: {full_path}")
        return None
    if patterns.exclude.match_file(relative_path):
        logger.debug(f"Skipping file matching exclude patterns: {full_path}")
        return None

    ext = extension_of(relative_path)
    if options.file_types and ext not in options.file_types:
        logger.debug(f"Skipping file type '{ext}': {full_path}")
        return None

    try:
        size = full_path.stat().st_size
    except OSError as e:
        logger.warning(f"Could not stat {relative_path}: {e}")
        return SkippedFile(relative_path, str(e))
    size_mb = size / BYTES_PER_MB
    if size_mb > options.max_size_mb:
        logger.info(f"Skipping large file: {full_path} ({size_mb:.2f} MB)")
        return None

    try:
        raw = full_path.read_bytes()
    except OSError as e:
        logger.warning(f"Could not read {relative_path}: {e}")
        return SkippedFile(relative_path, str(e))
    if _is_binary(raw):
        logger.info(f"Skipping binary file: {full_path}")
        return SkippedFile(relative_path, "binary")

    return CollectedFile(relative_path, raw.decode("utf-8", errors="replace"))


# Traversal
def _scan_directory(
    directory: Path,
    prefix: str,
    depth: int,
    options: "Options",
    rules: IgnoreRules,
    cancel: Optional[threading.Event],
) -> List[_Candidate]:
    """Return the admission candidates below *directory*, merged from each subtree."""
    try:
        with os.scandir(directory) as it:
            entries = sorted(it, key=lambda e: e.name)
    except OSError as e:
        logger.warning(f"Could not list directory {directory}: {e}")
        return []

    candidates: List[_Candidate] = []
    for entry in entries:
        _check_cancel(cancel)
        full_path = Path(entry.path)
        relative_path = prefix + entry.name
        is_dir = entry.is_dir(follow_symlinks=False)

        if options.respect_gitignore and rules.matches(relative_path, is_dir=is_dir):
            logger.info(f"Skipping ignored path: {full_path}")
            continue
        if entry.is_symlink():
            logger.info(f"Skipping symlink: {full_path}")
            continue

        if is_dir:
            if entry.name in options.exclude_folders:
                logger.info(f"Skipping folder: {full_path}")
                continue
            if options.max_depth is not None and depth + 1 > options.max_depth:
                logger.info(f"Skipping folder beyond max depth {options.max_depth}: {full_path}")
                continue
            candidates.extend(
                _scan_directory(full_path, relative_path + "/", depth + 1, options, rules, cancel)
            )
        elif entry.is_file(follow_symlinks=False):
            candidates.append(_Candidate(full_path, relative_path))

    return candidates


def walk(
    root: Path,
    options: "Options",
    rules: IgnoreRules,
    cancel: Optional[threading.Event] = None,
) -> Tuple[List[CollectedFile], List[SkippedFile]]:
    """
    Walk *root* and return the admitted files, sorted by relative path, along
    with the files that had to be skipped because they could not be read.
    """
    candidates = _scan_directory(root, "", 0, options, rules, cancel)
    patterns = PatternSet.from_options(options)

    def _admit(candidate: _Candidate) -> Union[CollectedFile, SkippedFile, None]:
        _check_cancel(cancel)
        return admit(candidate.full_path, candidate.relative_path, options, patterns)

    with ThreadPoolExecutor(
        max_workers=options.workers, thread_name_prefix="sourcesnap"
    ) as executor:
        outcomes = list(executor.map(_admit, candidates))

    files = sorted(
        (o for o in outcomes if isinstance(o, CollectedFile)), key=lambda f: f.path
    )
    skipped = sorted(
        (o for o in outcomes if isinstance(o, SkippedFile)), key=lambda s: s.path
    )
    return files, skipped


# Statistics
def aggregate(files: Iterable[CollectedFile]) -> Stats:
    stats = Stats()
    for f in files:
        lines = count_lines(f.content)
        stats.total_files += 1
        stats.total_lines += lines
        bucket = stats.by_extension.setdefault(extension_of(f.path), ExtensionStats())
        bucket.files += 1
        bucket.lines += lines
    return stats


# Entry point
def _validate_root(folder_path: Path) -> Path:
    try:
        root = folder_path.resolve()
    except (OSError, RuntimeError) as e:
        raise InvalidRootError(f"Could not resolve root path '{folder_path}': {e}")
    if not root.exists():
        raise InvalidRootError(f"Root directory '{root}' does not exist")
    if not root.is_dir():
        raise InvalidRootError(f"Root path '{root}' is not a directory")
    try:
        with os.scandir(root):
            pass
    except OSError as e:
        raise InvalidRootError(f"Could not scan directory '{root}': {e}")
    return root


def collect(options: "Options", cancel: Optional[threading.Event] = None) -> SnapResult:
    """
    Collect every file under ``options.folder_path`` that passes the filters.

    Raises :class:`InvalidRootError` before any traversal when the root is
    missing, not a directory or cannot be listed, and
    :class:`CollectionCancelled` when *cancel* is set mid-run.
    """
    root = _validate_root(options.folder_path)
    logger.debug(f"Starting code collection with options: {options}")
    rules = load_gitignore(root, options.respect_gitignore)
    files, skipped = walk(root, options, rules, cancel)
    return SnapResult(files=files, stats=aggregate(files), skipped=skipped)
