"""Choose which assets go into the archive and where they land."""

from __future__ import annotations

import posixpath
import re
from typing import Any, Callable, List, Mapping, Optional, Tuple

from assetzip.core.config import FilterPattern, ZipConfig
from assetzip.core.host import source_bytes
from assetzip.utils.paths import to_posix


def matches(pattern: FilterPattern, name: str) -> bool:
    """Test one asset name against a filter pattern.

    Strings must equal the name, except that a string ending in ``/`` names a
    directory and matches everything below it.  Regexes may match anywhere in
    the name.  A collection matches when any member does.
    """
    if isinstance(pattern, str):
        if pattern.endswith("/"):
            return name.startswith(pattern) or name == pattern.rstrip("/")
        return name == pattern
    if isinstance(pattern, re.Pattern):
        return pattern.search(name) is not None
    return any(matches(member, name) for member in pattern)


def is_selected(
    name: str,
    include: Optional[FilterPattern] = None,
    exclude: Optional[FilterPattern] = None,
) -> bool:
    """Exclude always wins over include."""
    if exclude is not None and matches(exclude, name):
        return False
    return include is None or matches(include, name)


def archive_path(
    name: str,
    path_prefix: Optional[str] = None,
    path_mapper: Optional[Callable[[str], str]] = None,
) -> str:
    """Return the in-archive path for ``name``; never rooted."""
    mapped = to_posix(path_mapper(name) if path_mapper else name)
    joined = posixpath.join(to_posix(path_prefix or ""), mapped.lstrip("/"))
    return posixpath.normpath(joined).lstrip("/")


def select_assets(assets: Mapping[str, Any], config: ZipConfig) -> List[Tuple[str, bytes]]:
    """Return ``(archive path, content)`` pairs in the mapping's order.

    Filters see the original asset name, before prefixing and mapping.
    """
    selected: List[Tuple[str, bytes]] = []
    for name, asset in assets.items():
        if not is_selected(name, config.include, config.exclude):
            continue
        selected.append(
            (archive_path(name, config.path_prefix, config.path_mapper), source_bytes(asset))
        )
    return selected
