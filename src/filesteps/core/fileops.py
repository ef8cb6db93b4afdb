"""File effects performed by the bound steps.

Every function takes an already-resolved directory and a bare file name. I/O
failures are never caught here: they reach the runner as ``OSError``. Failed
checks raise ``AssertionError`` subclasses carrying the offending path.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from pathlib import Path

logger = logging.getLogger(__name__)


class FilePresentError(AssertionError):
    def __init__(self, path: Path) -> None:
        super().__init__(f"expected absence, found presence: {path}")
        self.path = path


class FileMissingError(AssertionError):
    def __init__(self, path: Path) -> None:
        super().__init__(f"expected presence, found absence: {path}")
        self.path = path


class ContentMismatchError(AssertionError):
    def __init__(self, path: Path, expected: str, actual: str) -> None:
        super().__init__(f"content mismatch in {path}: expected {expected!r}, got {actual!r}")
        self.path = path
        self.expected = expected
        self.actual = actual


@dataclass(frozen=True)
class FileTarget:
    directory: Path
    file_name: str

    @property
    def path(self) -> Path:
        return self.directory / self.file_name


def create_file(directory: Path, file_name: str, content: str) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / file_name
    path.write_text(content, encoding="utf-8")
    logger.debug("created %s (%d chars)", path, len(content))
    return path


def delete_file(directory: Path, file_name: str) -> Path:
    path = directory / file_name
    path.unlink()
    logger.debug("deleted %s", path)
    return path


def verify_absent(directory: Path, file_name: str) -> None:
    path = directory / file_name
    try:
        path.stat()
    except FileNotFoundError:
        logger.debug("confirmed absent %s", path)
        return
    raise FilePresentError(path)


def verify_present(directory: Path, file_name: str, content: str | None = None) -> Path:
    path = directory / file_name
    try:
        actual = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise FileMissingError(path) from None
    if content is not None and actual != content:
        raise ContentMismatchError(path, content, actual)
    logger.debug("confirmed present %s", path)
    return path
