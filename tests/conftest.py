from __future__ import annotations

import asyncio
import io
import zipfile
from pathlib import Path
from typing import Dict, Optional

import pytest

from assetzip.core.host import Compilation, Compiler
from assetzip.core.plugin import ZipPlugin

BUNDLE_JS = "".join(f"var a{i} = 'b';\nconsole.log(a{i});\n" for i in range(2000)).encode("utf-8")
SPAWNED_JS = b"var foo = 'bar';\n" * 200
BYE_JPG = bytes(range(256)) * 16


@pytest.fixture
def assets() -> Dict[str, bytes]:
    return {
        "bundle.js": BUNDLE_JS,
        "spawned.js": SPAWNED_JS,
        "subdir/bye.jpg": BYE_JPG,
    }


def build(
    assets: Dict[str, bytes],
    out: Path,
    filename: Optional[str] = "bundle.js",
    plugin: Optional[ZipPlugin] = None,
    **options,
) -> Compilation:
    compiler = Compiler(out, filename)
    (plugin or ZipPlugin(**options)).apply(compiler)
    return asyncio.run(compiler.run(assets))


def archive_bytes(compilation: Compilation) -> bytes:
    assert len(compilation.emitted) == 1
    return compilation.assets[compilation.emitted[0]].buffer()


def unzip(data: bytes) -> Dict[str, bytes]:
    with zipfile.ZipFile(io.BytesIO(data)) as archive:
        return {name: archive.read(name) for name in archive.namelist()}
