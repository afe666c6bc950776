"""Orchestrator for packing a directory of build outputs."""

from __future__ import annotations

import asyncio
from datetime import datetime
from pathlib import Path
from typing import Any, Dict

from assetzip.core.config import ZipConfig
from assetzip.core.errors import ConfigurationError
from assetzip.core.host import Compiler
from assetzip.core.plugin import ZipPlugin
from assetzip.core.resolve import resolve_output
from assetzip.core.select import archive_path, is_selected
from assetzip.utils.io import read_assets


def _output_settings(cfg: Dict[str, Any]) -> Dict[str, Any]:
    if "assets" not in cfg:
        raise ConfigurationError("Config needs an 'assets' directory")
    output = cfg.get("output") or {}
    return {
        "assets": Path(cfg["assets"]),
        "path": Path(output.get("path", cfg["assets"])),
        "filename": output.get("filename"),
    }


def _without_previous_archive(assets: Dict[str, bytes], root: Path, archive_file: str) -> Dict[str, bytes]:
    """Drop an archive left in the asset directory by an earlier run."""
    target = Path(archive_file).resolve()
    return {name: content for name, content in assets.items() if (root / name).resolve() != target}


def run_pack(cfg: Dict[str, Any]) -> Dict[str, Any]:
    """Pack the configured asset directory and write the archive to disk."""
    settings = _output_settings(cfg)
    plugin = ZipPlugin.from_mapping(cfg.get("zip") or {})

    compiler = Compiler(settings["path"], settings["filename"])
    resolved = resolve_output(compiler.output_path, compiler.output_filename, plugin.config)
    assets = _without_previous_archive(read_assets(settings["assets"]), settings["assets"], resolved.file_path)
    plugin.apply(compiler)
    compilation = asyncio.run(compiler.run(assets))

    written = compiler.write_assets(compilation, compilation.emitted)
    key = compilation.emitted[0]
    selected = [name for name in assets if is_selected(name, plugin.config.include, plugin.config.exclude)]
    return {
        "id": cfg.get("id", settings["assets"].name),
        "time": datetime.now().isoformat(timespec="seconds"),
        "zip": str(written[0]),
        "key": key,
        "entries": len(selected),
        "bytes": compilation.assets[key].size(),
    }


def plan_pack(cfg: Dict[str, Any]) -> Dict[str, Any]:
    """Report what ``run_pack`` would do without building anything."""
    settings = _output_settings(cfg)
    config = ZipConfig.from_mapping(cfg.get("zip") or {})

    resolved = resolve_output(str(settings["path"]), settings["filename"], config)
    names = list(_without_previous_archive(read_assets(settings["assets"]), settings["assets"], resolved.file_path))
    entries = [
        (name, archive_path(name, config.path_prefix, config.path_mapper))
        for name in names
        if is_selected(name, config.include, config.exclude)
    ]
    return {
        "entries": entries,
        "skipped": [name for name in names if not is_selected(name, config.include, config.exclude)],
        "zip": resolved.file_path,
        "key": resolved.asset_key,
    }
