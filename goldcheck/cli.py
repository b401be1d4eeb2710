"""CLI entry point for goldcheck."""

from __future__ import annotations

import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from goldcheck.ci.context import GOLDCTL_VAR, TASK_ID_VAR, TRYJOB_VAR, ci_context
from goldcheck.ci.publisher import wait_for_uploads
from goldcheck.ci.skia_client import SkiaGoldClient
from goldcheck.compare import compare_image
from goldcheck.diff.pixel_diff import compute_diff
from goldcheck.errors import GoldCheckError
from goldcheck.goldens.store import encode_png, load_image
from goldcheck.models.comparison import OK, PixelComparison
from goldcheck.models.config import DEFAULT_CONFIG_PATH, GoldCheckConfig

console = Console()


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def _load_config(config: Optional[str]) -> GoldCheckConfig:
    if config:
        try:
            return GoldCheckConfig.load(config)
        except FileNotFoundError:
            console.print(f"[red]Config file not found: {config}[/red]")
            console.print("Run 'goldcheck init' to create a default config.")
            sys.exit(1)
    return GoldCheckConfig.from_env()


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """Golden screenshot comparison"""
    setup_logging(verbose)


@cli.command()
@click.argument("screenshot", type=click.Path(exists=True, dir_okay=False))
@click.option("--name", "-n", required=True, help="Golden filename, e.g. button.png")
@click.option("--suffix", default="", help="Suffix inserted before .png")
@click.option("--goldens-dir", default=None, help="Override the goldens directory")
@click.option("--write", is_flag=True, help="Write the screenshot as the new golden")
@click.option("--update-goldens", is_flag=True, help="Bulk update: do not fail when writing goldens")
@click.option("--fuzzy/--precise", default=None, help="Pixel comparison mode (default from config)")
@click.option("--max-diff-rate", type=float, default=None, help="Failure threshold in [0, 1]")
@click.option("--upload/--no-upload", default=True, help="Upload to Skia Gold when running in CI")
@click.option("--config", "-c", default=None, help="Config file path")
def compare(
    screenshot: str,
    name: str,
    suffix: str,
    goldens_dir: Optional[str],
    write: bool,
    update_goldens: bool,
    fuzzy: Optional[bool],
    max_diff_rate: Optional[float],
    upload: bool,
    config: Optional[str],
) -> None:
    """Compare SCREENSHOT against its golden."""
    cfg = _load_config(config)
    if fuzzy is None:
        pixel_comparison = cfg.pixel_comparison
    else:
        pixel_comparison = PixelComparison.FUZZY if fuzzy else PixelComparison.PRECISE
    threshold = cfg.max_diff_rate_failure if max_diff_rate is None else max_diff_rate

    gold_client = None
    if upload and ci_context().is_ci:
        gold_client = SkiaGoldClient(
            cfg.skia_gold_path,
            goldctl=cfg.goldctl,
            instance=cfg.gold_instance,
            dimensions=cfg.gold_dimensions,
        )

    async def _run() -> str:
        result = await compare_image(
            load_image(screenshot),
            update_goldens,
            name,
            pixel_comparison,
            threshold,
            gold_client,
            goldens_dir=goldens_dir,
            filename_suffix=suffix,
            write=write,
            config=cfg,
        )
        await wait_for_uploads()
        return result

    try:
        result = asyncio.run(_run())
    except GoldCheckError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(2)

    if result == OK:
        console.print(f"[green]OK[/green] {name}")
        return
    console.print(result, markup=False, highlight=False)
    sys.exit(1)


@cli.command()
@click.argument("golden", type=click.Path(exists=True, dir_okay=False))
@click.argument("candidate", type=click.Path(exists=True, dir_okay=False))
@click.option("--out", "-o", default=None, help="Write the diff image to this path")
@click.option("--fuzzy/--precise", default=False, help="Pixel comparison mode")
@click.option("--threshold", type=float, default=0.1, help="Fuzzy color distance threshold")
def diff(golden: str, candidate: str, out: Optional[str], fuzzy: bool, threshold: float) -> None:
    """Print the mismatch rate between two images."""
    pixel_comparison = PixelComparison.FUZZY if fuzzy else PixelComparison.PRECISE
    try:
        result = compute_diff(load_image(golden), load_image(candidate), pixel_comparison, threshold)
    except GoldCheckError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(2)

    table = Table(title="Pixel Diff")
    table.add_column("Metric", style="bold")
    table.add_column("Value")
    table.add_row("Mode", pixel_comparison.value)
    table.add_row("Different pixels", f"{result.different_pixels} / {result.total_pixels}")
    table.add_row("Mismatch rate", f"{result.rate * 100:.4f}%")
    console.print(table)

    if out:
        Path(out).parent.mkdir(parents=True, exist_ok=True)
        Path(out).write_bytes(encode_png(result.diff))
        console.print(f"  Diff image: [blue]{out}[/blue]")


@cli.command("ci-context")
def ci_context_command() -> None:
    """Show the CI context detected from the environment."""
    context = ci_context()
    table = Table(title="CI Context")
    table.add_column("Signal", style="bold")
    table.add_column("Present")
    for var in (TASK_ID_VAR, GOLDCTL_VAR, TRYJOB_VAR):
        present = var in os.environ
        table.add_row(var, "[green]yes[/green]" if present else "[yellow]no[/yellow]")
    console.print(table)
    console.print(f"Context: [bold]{context.value}[/bold]")


@cli.command()
@click.option("--goldens-dir", default="./goldens", help="Directory holding golden PNGs")
@click.option("--path", "config_path", default=DEFAULT_CONFIG_PATH, help="Where to write the config")
def init(goldens_dir: str, config_path: str) -> None:
    """Create a default configuration file."""
    path = Path(config_path)
    if path.exists():
        if not click.confirm(f"{path} already exists. Overwrite?"):
            return

    cfg = GoldCheckConfig(goldens_dir=goldens_dir)
    cfg.save(path)
    console.print(f"[green]Created {path}[/green]")
    console.print("\nCompare a screenshot with:")
    console.print("  [blue]goldcheck compare shot.png --name button.png[/blue]")


if __name__ == "__main__":
    cli()
