"""Plugin configuration.

A :class:`ZipConfig` is built once and shared by every build the plugin
runs.  Everything that can be checked without a build is checked in
``__post_init__``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, Sequence, Union

import yaml

from assetzip.core.archive import ArchiveOptions, FileOptions
from assetzip.core.errors import ConfigurationError
from assetzip.utils.paths import is_absolute

FilterPattern = Union[str, re.Pattern[str], Sequence[Union[str, re.Pattern[str]]]]
PathMapper = Callable[[str], str]

DEFAULT_EXTENSION = "zip"
_REGEX_FLAGS = {"i": re.IGNORECASE, "m": re.MULTILINE, "s": re.DOTALL, "x": re.VERBOSE}


def _check_pattern(label: str, pattern: Any) -> None:
    if pattern is None or isinstance(pattern, (str, re.Pattern)):
        return
    if isinstance(pattern, (list, tuple, set, frozenset)):
        for member in pattern:
            if not isinstance(member, (str, re.Pattern)):
                raise ConfigurationError(
                    f'"{label}" entries must be strings or compiled regexes, got {member!r}'
                )
        return
    raise ConfigurationError(f'"{label}" must be a string, a compiled regex or a list of them')


@dataclass(frozen=True)
class ZipConfig:
    """Immutable settings for one configured plugin instance."""

    include: Optional[FilterPattern] = None
    exclude: Optional[FilterPattern] = None
    path_prefix: Optional[str] = None
    path_mapper: Optional[PathMapper] = None
    path: Optional[str] = None
    filename: Optional[str] = None
    extension: str = DEFAULT_EXTENSION
    file_options: Optional[FileOptions] = None
    zip_options: Optional[ArchiveOptions] = None

    def __post_init__(self) -> None:
        if self.path_prefix and is_absolute(self.path_prefix):
            raise ConfigurationError('"path_prefix" must be a relative path')
        _check_pattern("include", self.include)
        _check_pattern("exclude", self.exclude)
        if self.path_mapper is not None and not callable(self.path_mapper):
            raise ConfigurationError('"path_mapper" must be callable')
        if not self.extension:
            object.__setattr__(self, "extension", DEFAULT_EXTENSION)
        if isinstance(self.file_options, Mapping):
            object.__setattr__(self, "file_options", FileOptions.from_mapping(self.file_options))
        if isinstance(self.zip_options, Mapping):
            object.__setattr__(self, "zip_options", ArchiveOptions.from_mapping(self.zip_options))

    @classmethod
    def from_mapping(cls, cfg: Mapping[str, Any]) -> "ZipConfig":
        """Build a config from plain data such as a parsed YAML section.

        Regexes are spelled ``{"regex": "\\.js$", "flags": "i"}``; bare
        strings stay exact or directory patterns.
        """
        known = {
            "include",
            "exclude",
            "path_prefix",
            "path",
            "filename",
            "extension",
            "file_options",
            "zip_options",
        }
        unknown = sorted(set(cfg) - known)
        if unknown:
            raise ConfigurationError(f"Unknown zip option(s): {', '.join(unknown)}")

        values: Dict[str, Any] = dict(cfg)
        for key in ("include", "exclude"):
            if values.get(key) is not None:
                values[key] = parse_pattern(values[key])
        return cls(**values)


def parse_pattern(raw: Any) -> FilterPattern:
    """Translate a plain-data filter pattern into strings and compiled regexes."""
    if isinstance(raw, (str, re.Pattern)):
        return raw
    if isinstance(raw, Mapping):
        if "regex" not in raw:
            raise ConfigurationError(f"Pattern mapping needs a 'regex' key: {dict(raw)!r}")
        flags = 0
        for letter in str(raw.get("flags", "")):
            if letter not in _REGEX_FLAGS:
                raise ConfigurationError(f"Unsupported regex flag {letter!r}")
            flags |= _REGEX_FLAGS[letter]
        try:
            return re.compile(raw["regex"], flags)
        except re.error as exc:
            raise ConfigurationError(f"Invalid regex {raw['regex']!r}: {exc}") from exc
    if isinstance(raw, (list, tuple)):
        members = []
        for item in raw:
            parsed = parse_pattern(item)
            if isinstance(parsed, list):
                raise ConfigurationError("Filter patterns cannot be nested lists")
            members.append(parsed)
        return members
    raise ConfigurationError(f"Unsupported filter pattern: {raw!r}")


def load_config(path: Path) -> Dict[str, Any]:
    """Read a YAML config file into a dictionary."""
    with open(path, "r", encoding="utf-8") as handle:
        cfg = yaml.safe_load(handle) or {}
    if not isinstance(cfg, dict):
        raise ConfigurationError(f"Config root must be a mapping: {path}")
    return cfg
