"""Shared fixtures for sourcesnap tests."""

import logging
from pathlib import Path
from typing import Dict, Union

import pytest

from sourcesnap.config import Options


@pytest.fixture(autouse=True)
def reset_package_logger():
    """The CLI installs a handler on the package logger; drop it after each test."""
    yield
    package_logger = logging.getLogger("sourcesnap")
    for handler in list(package_logger.handlers):
        package_logger.removeHandler(handler)
    package_logger.setLevel(logging.NOTSET)


@pytest.fixture
def make_tree(tmp_path):
    """Create files under ``tmp_path`` from a ``{relative path: content}`` mapping."""

    def _make(files: Dict[str, Union[str, bytes]]) -> Path:
        for rel, content in files.items():
            path = tmp_path / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, str):
                content = content.encode("utf-8")
            path.write_bytes(content)
        return tmp_path

    return _make


@pytest.fixture
def options_for(tmp_path):
    """Options rooted at ``tmp_path`` that allow every file type by default."""

    def _options(**overrides) -> Options:
        values = {"folder_path": tmp_path, "file_types": (), "output_file": tmp_path / "out.txt"}
        values.update(overrides)
        return Options(**values)

    return _options
