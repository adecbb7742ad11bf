"""Command-line interface for chunkraster.

Usage:
    chunkraster export diagram.svg [options]
    chunkraster info diagram.svg
    chunkraster init-config
"""

from __future__ import annotations

import logging
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn
from rich.table import Table

from .core.config import ExporterConfig, ExportOptions
from .core.errors import ExportCancelledError, ExportError
from .core.models import ExportProgress
from .export.exporter import export_raster, plan_export
from .scene.scene import VectorScene

console = Console()


def setup_logging(verbose: bool = False) -> None:
    """Configure logging with rich output."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_time=False)],
    )


def _parse_theme(entries: tuple[str, ...]) -> dict[str, str]:
    theme: dict[str, str] = {}
    for entry in entries:
        if "=" not in entry:
            raise click.BadParameter(f"Expected NAME=VALUE, got {entry!r}", param_hint="--theme")
        name, value = entry.split("=", 1)
        theme[name.strip()] = value.strip()
    return theme


def _load_config(config_path: str | None) -> ExporterConfig:
    if config_path:
        return ExporterConfig.from_file(config_path)
    return ExporterConfig.default()


def _build_options(base: ExportOptions, **overrides: object) -> ExportOptions:
    """Apply the CLI flags that were given on top of the configured options."""
    updates = {k: v for k, v in overrides.items() if v is not None}
    return ExportOptions.model_validate({**base.model_dump(), **updates})


def _load_scene(svg_path: str, zoom: float, theme: tuple[str, ...]) -> VectorScene:
    try:
        return VectorScene.from_file(svg_path, zoom=zoom, theme=_parse_theme(theme))
    except ExportError as e:
        console.print(f"[red]Error loading: {e}[/red]")
        raise click.Abort()


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable verbose output")
@click.pass_context
def main(ctx: click.Context, verbose: bool) -> None:
    """chunkraster - High-resolution PNG export for large diagrams."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    setup_logging(verbose)


@main.command()
@click.argument("svg_path", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--output", "-o",
    type=click.Path(dir_okay=False),
    default=None,
    help="Output PNG path (default: next to the input)",
)
@click.option(
    "--config", "-c",
    type=click.Path(exists=True),
    help="Path to config JSON file",
)
@click.option("--scale", "-s", type=float, default=None, help="Preferred scale factor")
@click.option("--padding", "-p", type=int, default=None, help="Padding in output pixels")
@click.option("--grid/--no-grid", default=None, help="Draw the editor grid behind the diagram")
@click.option("--grid-size", type=int, default=None, help="Grid spacing in diagram units")
@click.option("--background", type=str, default=None, help="Background CSS color")
@click.option("--grid-color", type=str, default=None, help="Grid line CSS color")
@click.option("--zoom", type=float, default=1.0, show_default=True, help="Editor zoom the size was measured at")
@click.option(
    "--theme", "-t",
    multiple=True,
    metavar="NAME=VALUE",
    help="Theme variable used to resolve var() references (repeatable)",
)
@click.option(
    "--strict-size",
    is_flag=True,
    default=None,
    help="Fail instead of exporting beyond the size limits",
)
def export(
    svg_path: str,
    output: str | None,
    config: str | None,
    scale: float | None,
    padding: int | None,
    grid: bool | None,
    grid_size: int | None,
    background: str | None,
    grid_color: str | None,
    zoom: float,
    theme: tuple[str, ...],
    strict_size: bool | None,
) -> None:
    """Export an SVG diagram as a high-resolution PNG.

    SVG_PATH: Path to the diagram SVG
    """
    cfg = _load_config(config)
    try:
        options = _build_options(
            cfg.options,
            scale_factor=scale,
            padding=padding,
            include_grid=grid,
            grid_size=grid_size,
            background_color=background,
            grid_color=grid_color,
            fail_on_oversize=strict_size,
        )
    except ValueError as e:
        raise click.BadParameter(str(e))

    scene = _load_scene(svg_path, zoom, theme)
    output_path = Path(output) if output else Path(svg_path).with_suffix(".png")

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        console=console,
    ) as progress:
        task = progress.add_task("Preparing...", total=100)

        def update_progress(p: ExportProgress) -> None:
            progress.update(task, completed=p.percentage, description=p.message)

        try:
            result = export_raster(scene, options, update_progress, limits=cfg.limits)
        except ExportCancelledError:
            console.print("\n[bold yellow]Export cancelled[/bold yellow]")
            raise click.Abort()
        except ExportError as e:
            console.print(f"\n[bold red]Error ({e.kind.value}): {e}[/bold red]")
            raise click.Abort()

    result.save(output_path)

    console.print(f"\n[bold green]Wrote {output_path}[/bold green]")
    console.print(f"  Size: {result.width} x {result.height} px ({result.size_bytes:,} bytes)")
    console.print(f"  Scale: {result.scale_factor:g}")
    console.print(f"  Tiles: {result.tile_count}")
    console.print(f"  Time: {result.duration_ms / 1000:.2f}s")
    if result.scale_factor < options.scale_factor:
        console.print(
            f"[yellow]Scale reduced from {options.scale_factor:g} to fit export limits[/yellow]"
        )
    if not result.clipboard_safe(cfg.limits):
        console.print("[dim]Image is too large to copy to the clipboard[/dim]")


@main.command()
@click.argument("svg_path", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--config", "-c",
    type=click.Path(exists=True),
    help="Path to config JSON file",
)
@click.option("--scale", "-s", type=float, default=None, help="Preferred scale factor")
@click.option("--padding", "-p", type=int, default=None, help="Padding in output pixels")
@click.option("--zoom", type=float, default=1.0, show_default=True, help="Editor zoom the size was measured at")
def info(
    svg_path: str,
    config: str | None,
    scale: float | None,
    padding: int | None,
    zoom: float,
) -> None:
    """Show the export plan for an SVG diagram without rendering it.

    SVG_PATH: Path to the diagram SVG
    """
    cfg = _load_config(config)
    try:
        options = _build_options(cfg.options, scale_factor=scale, padding=padding)
    except ValueError as e:
        raise click.BadParameter(str(e))

    scene = _load_scene(svg_path, zoom, ())

    try:
        plan = plan_export(scene, options, cfg.limits)
    except ExportError as e:
        console.print(f"[red]Error ({e.kind.value}): {e}[/red]")
        raise click.Abort()

    dims = plan.dimensions
    console.print(f"\n[bold]Export Plan: {Path(svg_path).name}[/bold]\n")

    table = Table()
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="green")

    table.add_row("Intrinsic size", f"{dims.width:g} x {dims.height:g}")
    table.add_row("Origin", f"({dims.origin_x:g}, {dims.origin_y:g})")
    table.add_row("Requested scale", f"{plan.requested_scale:g}")
    table.add_row(
        "Scale",
        f"{plan.scale:g}" + (" [yellow](reduced)[/yellow]" if plan.scale_reduced else ""),
    )
    table.add_row("Output size", f"{plan.width:,} x {plan.height:,} px")
    table.add_row("Pixels", f"{plan.total_pixels:,}")
    table.add_row("Buffer memory", f"{plan.total_pixels * 4 / (1024 * 1024):.1f} MiB")
    cols = len({t.x for t in plan.tiles})
    rows = len({t.y for t in plan.tiles})
    table.add_row("Tiles", f"{plan.tile_count} ({cols} x {rows})")
    table.add_row("Needs chunking", "Yes" if plan.chunked else "No")

    console.print(table)


@main.command("init-config")
@click.option(
    "--output", "-o",
    type=click.Path(),
    default="chunkraster_config.json",
    help="Output path for config file",
)
def init_config(output: str) -> None:
    """Generate a default configuration file."""
    cfg = ExporterConfig.default()
    cfg.to_file(output)
    console.print(f"[green]Created config file: {output}[/green]")


if __name__ == "__main__":
    main()
