"""
Configuration for sourcesnap.

Options are resolved in three tiers: the built-in defaults of :class:`Options`,
then values read from a ``.sourcesnaprc`` JSON file, then explicit overrides
(usually the command line). :func:`resolve_options` applies them in that order
and returns one immutable :class:`Options` value.
"""

from __future__ import annotations

import datetime
import json
import math
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple, Union

from .core import ConfigFileError, InvalidOptionError

CONFIG_FILENAME = ".sourcesnaprc"
OUTPUT_FORMATS = ("txt", "json")

DEFAULT_FILE_TYPES: Tuple[str, ...] = (".js", ".ts")
DEFAULT_EXCLUDE_FOLDERS: Tuple[str, ...] = ("dist", "node_modules")
DEFAULT_EXCLUDE_FILES: Tuple[str, ...] = (
    "bun.lockb",
    "package-lock.json",
    "yarn.lock",
    "pnpm-lock.yaml",
    ".prettierignore",
)

# camelCase keys accepted in the rc file
_FILE_KEYS: Dict[str, str] = {
    "folderPath": "folder_path",
    "outputFile": "output_file",
    "fileTypes": "file_types",
    "maxSizeMB": "max_size_mb",
    "maxDepth": "max_depth",
    "outputFormat": "output_format",
    "silent": "silent",
    "verbose": "verbose",
    "excludeFolders": "exclude_folders",
    "excludeFiles": "exclude_files",
    "respectGitignore": "respect_gitignore",
    "includePatterns": "include_patterns",
    "excludePatterns": "exclude_patterns",
    "workers": "workers",
}


def default_output_file() -> Path:
    stamp = datetime.datetime.now(datetime.timezone.utc).strftime("%Y-%m-%dT%H-%M-%S")
    return Path(f"source-snap-{stamp}.txt")


def split_list(value: Union[str, Iterable[str], None]) -> Tuple[str, ...]:
    """Turn ``"a, b,,c"`` or ``["a", " b"]`` into ``("a", "b", "c")``."""
    if value is None:
        return ()
    if isinstance(value, str):
        items: Iterable[Any] = value.split(",")
    else:
        items = value
    out = []
    for item in items:
        if not isinstance(item, str):
            raise InvalidOptionError(f"Expected a string list entry, got {item!r}")
        item = item.strip()
        if item:
            out.append(item)
    return tuple(out)


def normalize_file_types(value: Union[str, Iterable[str], None]) -> Tuple[str, ...]:
    types = []
    for ext in split_list(value):
        ext = ext.lower()
        if not ext.startswith("."):
            ext = "." + ext
        types.append(ext)
    return tuple(types)


def parse_max_depth(value: Any) -> Optional[int]:
    """
    Parse a depth bound; ``None``, ``inf`` and ``"Infinity"`` mean unbounded.

    Raises:
        InvalidOptionError: If the value is negative or not a whole number.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise InvalidOptionError(f"Invalid max depth: {value!r}")
    if isinstance(value, str):
        text = value.strip().lower()
        if text in ("", "inf", "infinity", "none", "unbounded"):
            return None
        try:
            value = float(text)
        except ValueError:
            raise InvalidOptionError(f"Invalid max depth: {value!r}")
    if isinstance(value, float):
        if math.isinf(value) and value > 0:
            return None
        if not value.is_integer():
            raise InvalidOptionError(f"Max depth must be a whole number, got {value!r}")
        value = int(value)
    if not isinstance(value, int) or value < 0:
        raise InvalidOptionError(f"Max depth must be a non-negative integer, got {value!r}")
    return value


def _as_bool(name: str, value: Any) -> bool:
    if not isinstance(value, bool):
        raise InvalidOptionError(f"Option '{name}' must be true or false, got {value!r}")
    return value


@dataclass(frozen=True)
class Options:
    folder_path: Path = field(default_factory=Path.cwd)
    output_file: Path = field(default_factory=default_output_file)
    file_types: Tuple[str, ...] = DEFAULT_FILE_TYPES
    max_size_mb: float = 10.0
    max_depth: Optional[int] = None
    output_format: str = "txt"
    silent: bool = False
    verbose: bool = False
    exclude_folders: Tuple[str, ...] = DEFAULT_EXCLUDE_FOLDERS
    exclude_files: Tuple[str, ...] = DEFAULT_EXCLUDE_FILES
    respect_gitignore: bool = True
    include_patterns: Tuple[str, ...] = ()
    exclude_patterns: Tuple[str, ...] = ()
    workers: Optional[int] = None

    def __post_init__(self) -> None:
        def _set(name: str, value: Any) -> None:
            object.__setattr__(self, name, value)

        _set("folder_path", Path(self.folder_path))
        _set("output_file", Path(self.output_file))
        _set("file_types", normalize_file_types(self.file_types))
        _set("exclude_folders", split_list(self.exclude_folders))
        _set("exclude_files", split_list(self.exclude_files))
        _set("include_patterns", split_list(self.include_patterns))
        _set("exclude_patterns", split_list(self.exclude_patterns))
        _set("max_depth", parse_max_depth(self.max_depth))
        for name in ("silent", "verbose", "respect_gitignore"):
            _set(name, _as_bool(name, getattr(self, name)))

        try:
            max_size_mb = float(self.max_size_mb)
        except (TypeError, ValueError):
            raise InvalidOptionError(f"Invalid max file size: {self.max_size_mb!r}")
        if isinstance(self.max_size_mb, bool) or math.isnan(max_size_mb) or max_size_mb < 0:
            raise InvalidOptionError(f"Invalid max file size: {self.max_size_mb!r}")
        _set("max_size_mb", max_size_mb)

        if self.output_format not in OUTPUT_FORMATS:
            raise InvalidOptionError(
                f"Unknown output format {self.output_format!r}; "
                f"expected one of {', '.join(OUTPUT_FORMATS)}"
            )
        if self.workers is not None and (
            isinstance(self.workers, bool) or not isinstance(self.workers, int) or self.workers < 1
        ):
            raise InvalidOptionError(f"Workers must be a positive integer, got {self.workers!r}")


OPTION_NAMES = frozenset(f.name for f in fields(Options))


# Config file handling
def load_config_file(path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Read ``.sourcesnaprc`` and return its values keyed by option name.

    Without *path* the file is looked up in the current directory and a
    missing file simply yields ``{}``; an explicit *path* must exist.
    """
    config_path = path if path is not None else Path.cwd() / CONFIG_FILENAME
    if not config_path.exists():
        if path is not None:
            raise ConfigFileError(f"Config file '{config_path}' does not exist")
        return {}
    if not config_path.is_file():
        raise ConfigFileError(f"'{config_path}' is not a file")
    try:
        text = config_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigFileError(f"Could not read config file '{config_path}': {e}")
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ConfigFileError(f"Invalid JSON in config file '{config_path}': {e}")
    if not isinstance(data, dict):
        raise ConfigFileError(f"Config file '{config_path}' must contain a JSON object")

    values: Dict[str, Any] = {}
    for key, value in data.items():
        name = _FILE_KEYS.get(key, key)
        if name not in OPTION_NAMES:
            raise ConfigFileError(f"Unknown option '{key}' in config file '{config_path}'")
        values[name] = value
    return values


def resolve_options(
    file_config: Optional[Mapping[str, Any]] = None,
    overrides: Optional[Mapping[str, Any]] = None,
) -> Options:
    """
    Merge defaults < *file_config* < *overrides* into one :class:`Options`.

    A ``None`` value in either layer means "not given" and leaves the lower
    tier in place.
    """
    values: Dict[str, Any] = {}
    for layer in (file_config or {}, overrides or {}):
        for name, value in layer.items():
            if name not in OPTION_NAMES:
                raise InvalidOptionError(f"Unknown option '{name}'")
            if value is not None:
                values[name] = value
    return Options(**values)
