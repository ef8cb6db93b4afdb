from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable

from filesteps.core.error_types import StepConfigError

DEFAULT_FEATURES_DIR = Path("features")
FEATURE_SUFFIX = ".feature"


class PathEscapeError(StepConfigError, ValueError):
    error_type = "PATH_ESCAPE"

    def __init__(self, path: str | Path, root: Path) -> None:
        super().__init__(f"path escapes working directory {root}: {path}")
        self.path = str(path)
        self.root = root


def workdir() -> Path:
    override = os.environ.get("FILESTEPS_WORKDIR")
    return Path(override).expanduser() if override else Path.cwd()


def features_dir() -> Path:
    override = os.environ.get("FILESTEPS_FEATURES_DIR")
    return Path(override).expanduser() if override else DEFAULT_FEATURES_DIR


def resolve_in_workdir(root: Path, path: str | Path, *, confine: bool = True) -> Path:
    root = root.expanduser().resolve()
    candidate = Path(path).expanduser()
    resolved = candidate.resolve() if candidate.is_absolute() else (root / candidate).resolve()
    if confine and not resolved.is_relative_to(root):
        raise PathEscapeError(path, root)
    return resolved


def resolve_target(root: Path, directory: str | Path, file_name: str, *, confine: bool = True) -> Path:
    """Resolve ``directory/file_name`` under ``root``.

    Separators inside the file name count as directories and are confined too.
    The last component is left unresolved so a symlinked file is acted on, not its target.
    """
    joined = Path(directory) / file_name
    if joined.name in ("", ".", ".."):
        return resolve_in_workdir(root, joined, confine=confine)
    return resolve_in_workdir(root, joined.parent, confine=confine) / joined.name


def discover_feature_files(targets: Iterable[str | Path]) -> list[Path]:
    """Expand files and directories into a sorted, de-duplicated list of feature files.

    Raises FileNotFoundError for a target that does not exist.
    """
    found: list[Path] = []
    seen: set[Path] = set()
    for target in targets:
        path = Path(target).expanduser()
        if path.is_dir():
            candidates = sorted(path.rglob(f"*{FEATURE_SUFFIX}"))
        elif path.is_file():
            candidates = [path]
        else:
            raise FileNotFoundError(f"Feature path not found: {path}")
        for candidate in candidates:
            key = candidate.resolve()
            if key not in seen:
                seen.add(key)
                found.append(candidate)
    return found
