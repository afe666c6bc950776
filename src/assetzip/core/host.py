"""Minimal host build model the plugin runs inside.

It keeps only what the plugin touches: an ordered asset map, the default
output directory and filename, a parent/child relation between
compilers and a process-assets hook that is awaited once per build.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Tuple, Union

from assetzip.core.errors import AssetConflictError
from assetzip.utils.io import write_bytes
from assetzip.utils.paths import is_absolute

logger = logging.getLogger(__name__)

ProcessAssetsHook = Callable[["Compilation"], Awaitable[Any]]


def source_bytes(asset: Any) -> bytes:
    """Return the bytes behind a source object or a raw bytes/str value."""
    source = asset.source() if hasattr(asset, "source") else asset
    if isinstance(source, str):
        return source.encode("utf-8")
    if isinstance(source, (bytearray, memoryview)):
        return bytes(source)
    if not isinstance(source, bytes):
        raise TypeError(f"Asset source must be bytes or str, got {type(source).__name__}")
    return source


class RawSource:
    """Asset content held in memory."""

    def __init__(self, data: Union[bytes, str]) -> None:
        self._data = data

    def source(self) -> Union[bytes, str]:
        return self._data

    def buffer(self) -> bytes:
        return source_bytes(self._data)

    def size(self) -> int:
        return len(self.buffer())


class Compilation:
    """The state of one build: its compiler, outputs and asset map."""

    def __init__(self, compiler: "Compiler", assets: Mapping[str, Any]) -> None:
        self.compiler = compiler
        self.assets: Dict[str, Any] = {
            name: value if hasattr(value, "source") else RawSource(value)
            for name, value in assets.items()
        }
        self.emitted: List[str] = []

    @property
    def output_path(self) -> str:
        return self.compiler.output_path

    @property
    def output_filename(self) -> Optional[str]:
        return self.compiler.output_filename

    def is_child(self) -> bool:
        return self.compiler.is_child()

    def emit_asset(self, key: str, source: RawSource) -> None:
        """Add a new asset; keys must be relative to the output directory."""
        if is_absolute(key):
            raise ValueError(f"Asset keys must be relative paths: {key!r}")
        existing = self.assets.get(key)
        if existing is not None and source_bytes(existing) != source_bytes(source):
            raise AssetConflictError(f"Conflict: multiple assets emit different content to {key!r}")
        self.assets[key] = source
        self.emitted.append(key)


class Compiler:
    """Runs builds and awaits the registered process-assets hooks."""

    def __init__(
        self,
        output_path: Union[str, Path],
        output_filename: Optional[str] = None,
        parent: Optional["Compiler"] = None,
    ) -> None:
        self.output_path = str(Path(output_path).resolve())
        self.output_filename = output_filename
        self.parent = parent
        self._process_assets: List[Tuple[str, ProcessAssetsHook]] = []

    def is_child(self) -> bool:
        return self.parent is not None

    def create_child_compiler(self, output_filename: Optional[str] = None) -> "Compiler":
        """A child shares the parent's output directory and registered hooks."""
        child = Compiler(self.output_path, output_filename or self.output_filename, parent=self)
        child._process_assets = list(self._process_assets)
        return child

    def tap_process_assets(self, name: str, hook: ProcessAssetsHook) -> None:
        self._process_assets.append((name, hook))

    async def run(self, assets: Mapping[str, Any]) -> Compilation:
        compilation = Compilation(self, assets)
        for name, hook in self._process_assets:
            logger.debug("Running process-assets hook %s", name)
            await hook(compilation)
        return compilation

    def write_assets(self, compilation: Compilation, names: Optional[List[str]] = None) -> List[Path]:
        """Write assets (all, or only ``names``) below ``output_path``."""
        written: List[Path] = []
        root = Path(self.output_path)
        for name in names if names is not None else list(compilation.assets):
            target = root / name
            write_bytes(target, source_bytes(compilation.assets[name]))
            written.append(target.resolve())
        return written
