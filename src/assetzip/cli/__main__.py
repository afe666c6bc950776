"""Typer-based CLI for packing build outputs into a ZIP archive."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import typer
from rich import print
from rich.table import Table

from assetzip.core.config import load_config
from assetzip.core.errors import BuildError, ConfigurationError
from assetzip.core.pipeline import plan_pack, run_pack

app = typer.Typer(add_completion=False, help="assetzip CLI")


def _setup_logging(verbose: bool) -> None:
    root_logger = logging.getLogger()
    if not root_logger.handlers:
        logging.basicConfig(
            level=logging.INFO,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
    root_logger.setLevel(logging.DEBUG if verbose else logging.INFO)


@app.command()
def pack(
    config: Path = typer.Argument(..., exists=True, help="YAML config path"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """Pack the configured asset directory into one archive."""
    _setup_logging(verbose)
    try:
        result = run_pack(load_config(config))
    except (ConfigurationError, BuildError, FileNotFoundError) as exc:
        print(f"[red]Error:[/] {exc}")
        raise typer.Exit(code=1) from exc
    print("[green]OK[/] →", json.dumps(result, ensure_ascii=False, indent=2))


@app.command()
def plan(config: Path = typer.Argument(..., exists=True, help="YAML config path")) -> None:
    """Show which assets would be archived, and where, without writing."""
    try:
        result = plan_pack(load_config(config))
    except (ConfigurationError, FileNotFoundError) as exc:
        print(f"[red]Error:[/] {exc}")
        raise typer.Exit(code=1) from exc

    table = Table(title=result["key"])
    table.add_column("Asset")
    table.add_column("Archive path")
    for name, path in result["entries"]:
        table.add_row(name, path)
    for name in result["skipped"]:
        table.add_row(f"[dim]{name}[/]", "[dim]skipped[/]")
    print(table)
    print(f"Archive → {result['zip']}")


if __name__ == "__main__":
    app()
