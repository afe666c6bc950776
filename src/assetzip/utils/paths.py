"""Path string helpers shared by the selector and the resolver."""

from __future__ import annotations

import os
import posixpath


def to_posix(path: str) -> str:
    """Return ``path`` with forward-slash separators."""
    return path.replace(os.sep, "/") if os.sep != "/" else path


def is_absolute(path: str) -> bool:
    """True for native absolute paths and for anything rooted at ``/``."""
    return os.path.isabs(path) or posixpath.isabs(to_posix(path))


def strip_suffix(name: str, suffix: str) -> str:
    """Drop a literal trailing ``suffix`` unless nothing would be left."""
    if suffix and name.endswith(suffix) and name != suffix:
        return name[: -len(suffix)]
    return name
