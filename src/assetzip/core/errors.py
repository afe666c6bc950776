"""Exception types raised by assetzip."""

from __future__ import annotations


class ConfigurationError(ValueError):
    """Invalid plugin configuration, raised before any build runs."""


class ArchiveError(RuntimeError):
    """The archive builder was misused or could not write the archive."""


class BuildError(RuntimeError):
    """A build invocation failed; the underlying cause is chained."""


class AssetConflictError(ValueError):
    """An asset was emitted twice under one key with different content."""
