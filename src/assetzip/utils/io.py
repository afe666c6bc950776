"""Filesystem helper utilities."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterable

from assetzip.utils.paths import to_posix


def ensure_dirs(paths: Iterable[Path]) -> None:
    """Ensure that each provided path exists as a directory."""
    for path in paths:
        path.mkdir(parents=True, exist_ok=True)


def write_bytes(path: Path, content: bytes) -> None:
    """Write binary content to a file, creating parent directories."""
    ensure_dirs([path.parent])
    path.write_bytes(content)


def read_assets(root: Path) -> Dict[str, bytes]:
    """Load every file under ``root`` keyed by its POSIX relative path.

    Keys are sorted so repeated loads of the same tree produce the same
    insertion order.
    """
    if not root.is_dir():
        raise FileNotFoundError(f"Asset directory not found: {root}")
    files = sorted(
        (path for path in root.rglob("*") if path.is_file()),
        key=lambda p: to_posix(str(p.relative_to(root))),
    )
    return {to_posix(str(path.relative_to(root))): path.read_bytes() for path in files}
