"""CLI entry point for med2vol."""

from __future__ import annotations

import logging
from pathlib import Path

import typer
from rich.table import Table

from med2vol import __version__
from med2vol._console import console, err_console
from med2vol.core.types import LoaderConfig, SeriesDescriptor
from med2vol.core.volume import Volume

app = typer.Typer(
    name="med2vol",
    help="Assemble DICOM slice series into 3D volumes.",
    add_completion=False,
)


def version_callback(value: bool):
    if value:
        console.print(f"med2vol {__version__}")
        raise typer.Exit()


@app.command()
def main(
    input_path: Path = typer.Argument(
        ...,
        help="Directory containing DICOM files.",
        exists=True,
    ),
    series: str = typer.Option(
        None,
        "--series",
        help="Select specific DICOM series by UID (partial match supported).",
    ),
    do_list_series: bool = typer.Option(
        False,
        "--list-series",
        help="List DICOM series found in input directory and exit.",
    ),
    workers: int = typer.Option(
        None,
        "--workers",
        help="Worker threads for file reading (default: CPU count, max 8).",
        min=1,
    ),
    verbose: bool = typer.Option(
        False,
        "-v",
        "--verbose",
        help="Show detailed processing information.",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
):
    """Assemble a DICOM series into a 3D volume and report its geometry."""
    config = LoaderConfig(
        input_path=input_path,
        series_uid=series,
        workers=workers,
        list_series=do_list_series,
        verbose=verbose,
    )

    log_level = logging.DEBUG if config.verbose else logging.INFO
    logging.basicConfig(level=log_level, format="%(levelname)s: %(message)s")

    try:
        run_from_config(config)
    except FileNotFoundError as e:
        err_console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=4)
    except ValueError as e:
        err_console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1)


def run_from_config(config: LoaderConfig) -> Volume | None:
    """Run a listing or a load as described by *config*."""
    from med2vol.io.catalog import scan_directory
    from med2vol.io.series_loader import load_series, select_series

    series_list = scan_directory(config.input_path, workers=config.workers)

    if config.list_series:
        print_series_table(series_list, config.input_path)
        return None

    if not series_list:
        raise FileNotFoundError(f"No valid DICOM series found in {config.input_path}")

    selected = select_series(series_list, config.series_uid)
    with console.status(f"Loading series: {selected.description or selected.series_uid}..."):
        volume = load_series(selected, workers=config.workers)

    print_volume_summary(volume)
    return volume


def print_series_table(series_list: list[SeriesDescriptor], input_path: Path) -> None:
    """Display a Rich table of the DICOM series in a directory."""
    if not series_list:
        console.print(f"No DICOM series found in {input_path}")
        return

    table = Table(title=f"DICOM Series in {input_path}")
    table.add_column("#", style="bold", justify="right")
    table.add_column("Modality", style="green", min_width=8)
    table.add_column("Description", min_width=12, max_width=40)
    table.add_column("Slices", justify="right")
    table.add_column("Dimensions", justify="right")
    table.add_column("Spacing (mm)", justify="right")
    table.add_column("Study Date", style="cyan")
    table.add_column("Series UID", style="dim", overflow="fold")

    for i, info in enumerate(series_list, 1):
        desc = info.description if info.description else "(no desc)"
        table.add_row(
            str(i),
            info.modality,
            desc,
            str(info.slice_count),
            f"{info.columns}x{info.rows}",
            f"{info.pixel_spacing[0]:g} x {info.pixel_spacing[1]:g}",
            info.study_date,
            info.series_uid,
        )

    console.print(table)


def print_volume_summary(volume: Volume) -> None:
    """Display a Rich table describing a loaded volume's geometry."""
    table = Table(title=f"Volume: {volume.series_description or volume.series_uid}")
    table.add_column("Property", style="bold")
    table.add_column("Value")

    def vec(values) -> str:
        return "(" + ", ".join(f"{v:.4g}" for v in values) + ")"

    orthonormal = (
        "[green]Yes[/green]" if volume.is_orthonormal() else "[red]No[/red]"
    )
    table.add_row("Modality", volume.modality)
    table.add_row("Dimensions", f"{volume.width} x {volume.height} x {volume.depth}")
    table.add_row("Spacing (mm)", vec(volume.spacing))
    table.add_row("Origin (mm, LPS)", vec(volume.origin))
    table.add_row("Row direction", vec(volume.row_direction))
    table.add_row("Column direction", vec(volume.column_direction))
    table.add_row("Slice direction", vec(volume.slice_direction))
    table.add_row("Orthonormal", orthonormal)
    table.add_row("Value range", f"{volume.vmin:g} to {volume.vmax:g}")
    if volume.rescale is not None:
        intercept, slope = volume.rescale
        table.add_row("Rescale", f"intercept {intercept:g}, slope {slope:g}")

    console.print(table)
