"""
Output writers and the terminal report for sourcesnap.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List, NamedTuple, Sequence, Tuple

from .config import Options
from .core import CollectedFile, OutputError, Stats

logger = logging.getLogger(__name__)


class FileLink(NamedTuple):
    """Where a file's ``// path`` header landed in the text output (1-based)."""

    path: str
    line: int


def build_text(files: Sequence[CollectedFile]) -> Tuple[str, List[FileLink]]:
    lines: List[str] = []
    links: List[FileLink] = []
    for f in files:
        links.append(FileLink(f.path, len(lines) + 1))
        lines.append(f"// {f.path}")
        lines.extend(f.content.split("\n"))
        lines.append("")
    return "\n".join(lines), links


def build_json(files: Sequence[CollectedFile]) -> str:
    records = [{"path": f.path, "content": f.content} for f in files]
    return json.dumps(records, indent=2, ensure_ascii=False)


def write_output(files: Sequence[CollectedFile], options: Options) -> List[FileLink]:
    """Write *files* to ``options.output_file`` and return the header links (txt only)."""
    out_path: Path = options.output_file
    try:
        out_path = out_path.resolve()
    except (OSError, RuntimeError) as e:
        raise OutputError(f"Could not resolve output path '{out_path}': {e}")

    if not out_path.parent.exists():
        try:
            out_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise OutputError(f"Could not create directory '{out_path.parent}': {e}")

    if options.output_format == "txt":
        text, links = build_text(files)
    else:
        text, links = build_json(files), []

    try:
        with out_path.open("w", encoding="utf-8", newline="\n") as out_fh:
            out_fh.write(text)
    except OSError as e:
        raise OutputError(f"Could not write to output file '{out_path}': {e}")

    logger.debug(f"Wrote {len(files)} files to {out_path}")
    return links


def render_report(links: Sequence[FileLink], stats: Stats, options: Options) -> None:
    output_name = options.output_file.name
    for link in links:
        logger.info(f"{link.line}:0 // {link.path}")
        logger.info(f"Ctrl+Click to open: {output_name}:{link.line}:0\n")

    if options.verbose:
        logger.info("Summary:")
        logger.info(f"Total files: {stats.total_files}")
        logger.info(f"Total lines: {stats.total_lines}")
        for ext in sorted(stats.by_extension):
            bucket = stats.by_extension[ext]
            logger.info(f"{ext or '(none)'}: {bucket.files} files, {bucket.lines} lines")
