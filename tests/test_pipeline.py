from __future__ import annotations

import zipfile
from pathlib import Path

import pytest
import yaml
from typer.testing import CliRunner

from assetzip.cli.__main__ import app
from assetzip.core.errors import ConfigurationError
from assetzip.core.pipeline import plan_pack, run_pack
from assetzip.utils.io import read_assets


@pytest.fixture
def dist(tmp_path: Path) -> Path:
    root = tmp_path / "dist"
    (root / "subdir").mkdir(parents=True)
    (root / "bundle.js").write_text("var a = 'b';\n", encoding="utf-8")
    (root / "spawned.js").write_text("var foo = 'bar';\n", encoding="utf-8")
    (root / "subdir" / "bye.jpg").write_bytes(b"\xff\xd8\xff" + b"\x00" * 64)
    return root


def test_read_assets(dist):
    assets = read_assets(dist)
    assert list(assets) == ["bundle.js", "spawned.js", "subdir/bye.jpg"]
    assert assets["bundle.js"] == b"var a = 'b';\n"


def test_read_assets_missing(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_assets(tmp_path / "nope")


def test_run_pack(dist, tmp_path):
    out = tmp_path / "release"
    result = run_pack(
        {
            "assets": str(dist),
            "output": {"path": str(out), "filename": "bundle.js"},
            "zip": {"exclude": {"regex": r"\.jpg$"}, "path_prefix": "app", "path": "zip"},
        }
    )
    archive_file = out / "zip" / "bundle.js.zip"
    assert result["zip"] == str(archive_file.resolve())
    assert result["key"] == "zip/bundle.js.zip"
    assert result["entries"] == 2
    with zipfile.ZipFile(archive_file) as archive:
        assert archive.namelist() == ["app/bundle.js", "app/spawned.js"]
    assert result["bytes"] == archive_file.stat().st_size


def test_plan_pack(dist):
    result = plan_pack({"assets": str(dist), "zip": {"include": "subdir/"}})
    assert result["entries"] == [("subdir/bye.jpg", "subdir/bye.jpg")]
    assert result["skipped"] == ["bundle.js", "spawned.js"]
    assert result["key"] == "dist.zip"


def test_missing_assets_key():
    with pytest.raises(ConfigurationError):
        run_pack({"zip": {}})


def test_cli_pack_and_plan(dist, tmp_path):
    config = tmp_path / "pack.yaml"
    config.write_text(
        yaml.safe_dump({"assets": str(dist), "output": {"path": str(tmp_path / "out")}, "zip": {"filename": "my_app.zip"}}),
        encoding="utf-8",
    )
    runner = CliRunner()

    planned = runner.invoke(app, ["plan", str(config)])
    assert planned.exit_code == 0, planned.output
    assert not (tmp_path / "out" / "my_app.zip").exists()

    packed = runner.invoke(app, ["pack", str(config)])
    assert packed.exit_code == 0, packed.output
    assert (tmp_path / "out" / "my_app.zip").is_file()


def test_cli_reports_config_errors(dist, tmp_path):
    config = tmp_path / "pack.yaml"
    config.write_text(yaml.safe_dump({"assets": str(dist), "zip": {"path_prefix": "/abs"}}), encoding="utf-8")
    result = CliRunner().invoke(app, ["pack", str(config)])
    assert result.exit_code == 1
    assert "relative" in result.output


def test_repeated_pack_skips_previous_archive(dist):
    cfg = {"assets": str(dist)}
    first = run_pack(cfg)
    second = run_pack(cfg)
    assert first["key"] == second["key"] == "dist.zip"
    assert second["entries"] == 3
    with zipfile.ZipFile(dist / "dist.zip") as archive:
        assert archive.namelist() == ["bundle.js", "spawned.js", "subdir/bye.jpg"]
    assert plan_pack(cfg)["skipped"] == []


def test_cli_pack_twice(dist, tmp_path):
    config = tmp_path / "pack.yaml"
    config.write_text(yaml.safe_dump({"assets": str(dist)}), encoding="utf-8")
    runner = CliRunner()
    for _ in range(2):
        result = runner.invoke(app, ["pack", str(config)])
        assert result.exit_code == 0, result.output
    with zipfile.ZipFile(dist / "dist.zip") as archive:
        assert "dist.zip" not in archive.namelist()
