"""Work out where the archive is written and under which asset key."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from assetzip.core.config import DEFAULT_EXTENSION, ZipConfig
from assetzip.utils.paths import is_absolute, strip_suffix, to_posix

ZIP_SUFFIX = ".zip"


@dataclass(frozen=True)
class ResolvedOutput:
    directory: str
    file_path: str
    asset_key: str


def _basename(path: str) -> str:
    return os.path.basename(to_posix(path).rstrip("/"))


def resolve_output(
    host_dir: str,
    host_filename: Optional[str],
    config: ZipConfig,
) -> ResolvedOutput:
    """Combine the host's output defaults with the configured overrides.

    ``config.path`` is resolved against ``host_dir`` when relative, so
    ``../zip`` may point above the host root.  The filename falls back from
    ``config.filename`` to ``host_filename`` to the directory's own name;
    one trailing ``.zip`` is dropped before the extension is appended.
    """
    host_dir = os.path.abspath(host_dir)
    if config.path:
        directory = config.path if is_absolute(config.path) else os.path.join(host_dir, config.path)
        directory = os.path.normpath(directory)
    else:
        directory = host_dir

    base = _basename(config.filename or host_filename or directory)
    filename = strip_suffix(base, ZIP_SUFFIX) + "." + (config.extension or DEFAULT_EXTENSION)

    file_path = os.path.join(directory, filename)
    asset_key = to_posix(os.path.relpath(file_path, host_dir))
    return ResolvedOutput(directory=directory, file_path=file_path, asset_key=asset_key)
