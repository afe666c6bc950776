"""The zip plugin: packs a build's assets into a single archive asset."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, List, Mapping, Optional, Tuple

from assetzip.core.archive import ZipArchiveBuilder
from assetzip.core.config import ZipConfig
from assetzip.core.errors import BuildError
from assetzip.core.host import Compilation, Compiler, RawSource
from assetzip.core.resolve import ResolvedOutput, resolve_output
from assetzip.core.select import select_assets

logger = logging.getLogger(__name__)


def _build_archive(entries: List[Tuple[str, bytes]], config: ZipConfig) -> bytes:
    # A fresh builder per build keeps archives from different runs apart.
    builder = ZipArchiveBuilder().open()
    for path, content in entries:
        builder.add_entry(path, content, config.file_options)
    return b"".join(builder.finalize(config.zip_options))


class ZipPlugin:
    """Adds ``<name>.zip`` holding the selected build assets to each build."""

    name = "ZipPlugin"

    def __init__(self, config: Optional[ZipConfig] = None, **options: Any) -> None:
        if config is not None and options:
            raise TypeError("Pass either a ZipConfig or keyword options, not both")
        self.config = config if config is not None else ZipConfig(**options)

    @classmethod
    def from_mapping(cls, cfg: Mapping[str, Any]) -> "ZipPlugin":
        return cls(ZipConfig.from_mapping(cfg))

    def apply(self, compiler: Compiler) -> None:
        compiler.tap_process_assets(self.name, self.process)

    async def process(self, compilation: Compilation) -> Optional[ResolvedOutput]:
        """Build the archive and emit it into ``compilation.assets``.

        Child compilations are skipped: their assets already end up in the
        parent's asset map.
        """
        if compilation.is_child():
            logger.debug("Skipping child compilation")
            return None

        config = self.config
        try:
            entries = select_assets(compilation.assets, config)
            data = await asyncio.to_thread(_build_archive, entries, config)
            resolved = resolve_output(compilation.output_path, compilation.output_filename, config)
            compilation.emit_asset(resolved.asset_key, RawSource(data))
        except Exception as exc:
            raise BuildError(f"{self.name} failed to build the archive: {exc}") from exc

        logger.info(
            "Emitted %s with %d entr%s (%d bytes)",
            resolved.asset_key,
            len(entries),
            "y" if len(entries) == 1 else "ies",
            len(data),
        )
        return resolved
