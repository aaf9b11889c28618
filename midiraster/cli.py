"""Command-line interface for midiraster.

Provides commands for:
- preprocess: Convert MIDI files to training matrices (.npz)
- info: Show the tracks of a MIDI file and which one would be rasterized
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress, SpinnerColumn, TextColumn, TimeElapsedColumn
from rich.table import Table

app = typer.Typer(
    name="midiraster",
    help="MIDI to training-matrix preprocessing",
    rich_markup_mode="markdown",
)
console = Console()


def _setup_logging(verbose: bool) -> None:
    """Route library logs through rich."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _build_config(
    config_file: Optional[Path],
    overrides: Dict[str, Any],
    width: Optional[int] = None,
    height: Optional[int] = None,
):
    """Config file values, overridden by options given on the command line."""
    from .core import PreprocessConfig

    data = PreprocessConfig().to_dict()
    if config_file is not None:
        data = PreprocessConfig.from_json(config_file).to_dict()
    data.update({key: value for key, value in overrides.items() if value is not None})

    dims = data["dimensions"]
    data["dimensions"] = {
        "x": dims["x"] if width is None else width,
        "y": dims["y"] if height is None else height,
    }
    return PreprocessConfig.from_dict(data).validate()


@app.command()
def preprocess(
    inputs: List[Path] = typer.Argument(
        ..., help="MIDI files, directories or zip archives"
    ),
    output: Path = typer.Option(
        Path("matrices.npz"), "-o", "--output", help="Output .npz file"
    ),
    config_file: Optional[Path] = typer.Option(
        None, "-c", "--config", help="JSON config file; options below override it"
    ),
    width: Optional[int] = typer.Option(
        None, "--width", "-x", help="Time steps per matrix (columns)"
    ),
    height: Optional[int] = typer.Option(
        None, "--height", "-y", help="Pitch rows per matrix"
    ),
    start_octave: Optional[int] = typer.Option(
        None, "--start-octave", help="Octave mapped to row 0 (row 0 = octave * 12)"
    ),
    resolution: Optional[str] = typer.Option(
        None, "--resolution", "-r", help="Quantization grid, e.g. 1/16"
    ),
    measures: Optional[int] = typer.Option(
        None, "--measures", "-m", help="Window length in measures"
    ),
    transpose: Optional[List[int]] = typer.Option(
        None, "--transpose", "-t", help="Extra transposition in semitones (repeatable)"
    ),
    no_transpose: bool = typer.Option(
        False, "--no-transpose", help="Render untransposed windows only"
    ),
    min_notes: Optional[int] = typer.Option(
        None, "--min-notes", help="Minimum non-zero cells per matrix"
    ),
    min_pitches: Optional[int] = typer.Option(
        None, "--min-pitches", help="Minimum occupied pitch rows per matrix"
    ),
    pitch_policy: Optional[str] = typer.Option(
        None, "--pitch-policy", help="Out-of-range pitches: clip or wrap"
    ),
    scale: Optional[float] = typer.Option(
        None, "--scale", help="Intensity of a full-velocity note (1.0 or 255)"
    ),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", help="Seconds allowed to decode one file"
    ),
    workers: int = typer.Option(
        1, "--workers", "-w", help="Worker processes"
    ),
    json_output: bool = typer.Option(
        False, "--json", help="Output results as JSON (for scripting)"
    ),
    verbose: bool = typer.Option(
        False, "-v", "--verbose", help="Verbose output"
    ),
):
    """Convert MIDI files to fixed-size training matrices.

    **Examples:**

        midiraster preprocess songs/ -o train.npz

        midiraster preprocess a.mid b.mid -x 64 -y 64 -r 1/8 -t 7 -t=-7

        midiraster preprocess archive.zip --config config.json --min-pitches 3
    """
    from .core import ConfigError
    from .input import MidiLoader
    from .output import MatrixExporter
    from .pipeline import BatchPreprocessor

    _setup_logging(verbose)

    overrides: Dict[str, Any] = {
        "start_octave": start_octave,
        "horizontal_resolution": resolution,
        "step_size_x": measures,
        "minimum_notes": min_notes,
        "minimum_different_pitches": min_pitches,
        "pitch_policy": pitch_policy,
        "intensity_scale": scale,
        "decode_timeout": timeout,
    }
    if no_transpose:
        overrides["transpositions"] = []
    elif transpose:
        overrides["transpositions"] = list(transpose)

    try:
        config = _build_config(config_file, overrides, width=width, height=height)
    except (ConfigError, FileNotFoundError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    try:
        sources = MidiLoader().load(inputs)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    if not sources:
        console.print("[yellow]No MIDI files found[/yellow]")

    if not json_output:
        console.print(
            f"[blue]Preprocessing {len(sources)} files[/blue] "
            f"({config.dimensions.y}x{config.dimensions.x}, grid {config.horizontal_resolution}, "
            f"shifts {list(config.shifts)})"
        )

    if json_output:
        preprocessor = BatchPreprocessor(config, workers=workers)
        result = preprocessor.run(sources)
    else:
        with Progress(
            SpinnerColumn(),
            TextColumn("{task.description}"),
            TimeElapsedColumn(),
            console=console,
            transient=True,
        ) as progress:
            task = progress.add_task("Starting...", total=None)

            def sink(message: str) -> None:
                progress.update(task, description=message.replace("\n", " | "))

            preprocessor = BatchPreprocessor(config, progress=sink, workers=workers)
            result = preprocessor.run(sources)

    written = MatrixExporter().export(result, output, config=config)

    if json_output:
        console.print_json(data={
            "output": str(written),
            "files": len(sources),
            "succeeded": result.succeeded,
            "failed": [
                {"file": name, "error": type(error).__name__, "message": str(error)}
                for name, error in result.failures
            ],
            "candidates": result.candidates,
            "matrices": len(result.matrices),
            "shape": list(config.dimensions.shape),
            "config": config.to_dict(),
        })
        return

    if verbose or len(result.documents) <= 20:
        _show_documents_table(result)

    console.print(
        f"[green]Wrote {len(result.matrices)} matrices[/green] "
        f"({result.candidates} rendered, {len(result.failures)} files skipped) to {written}"
    )


@app.command()
def info(
    input_file: Path = typer.Argument(..., help="Input MIDI file"),
    measures: int = typer.Option(1, "--measures", "-m", help="Window length in measures"),
):
    """Show the tracks of a MIDI file and which one would be rasterized."""
    from .core import DocumentError
    from .input import MidiDecoder
    from .processing import TrackSelector, ticks_per_measure

    if not input_file.exists():
        console.print(f"[red]Error: File not found: {input_file}[/red]")
        raise typer.Exit(1)

    try:
        document = MidiDecoder().decode(input_file.read_bytes(), name=str(input_file))
    except DocumentError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    selector = TrackSelector()
    try:
        selected = selector.select(document)
    except DocumentError:
        selected = None

    measure = ticks_per_measure(document.ppq, document.time_signature)
    signatures = ", ".join(f"{b}/{u}" for b, u in document.time_signatures) or "none (4/4 assumed)"

    console.print(f"\n[bold]MIDI Info:[/bold] {input_file.name}")
    console.print(f"  PPQ: {document.ppq}")
    console.print(f"  Time signatures: {signatures}")
    console.print(f"  Length: {document.total_duration_ticks:,} ticks ({document.total_duration_ticks / measure:.1f} measures)")
    console.print(f"  Windows of {measures} measure(s): {-(-document.total_duration_ticks // (measure * measures))}")

    _show_tracks_table(document, selector, selected)

    if selected is None:
        console.print("[yellow]No pitched track: this file would be skipped[/yellow]")


def _show_tracks_table(document, selector, selected):
    """Display tracks in a table."""
    table = Table(title="Tracks")
    table.add_column("#", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Program", style="green")
    table.add_column("Drum", style="yellow")
    table.add_column("Notes", style="magenta")
    table.add_column("Pitched", style="blue")
    table.add_column("Selected", style="bold green")

    for index, track in enumerate(document.tracks):
        table.add_row(
            str(index),
            track.name or "-",
            str(track.program),
            "yes" if track.is_drum else "",
            str(track.note_count),
            "yes" if selector.is_pitched(track) else "no",
            "*" if track is selected else "",
        )

    console.print(table)


def _show_documents_table(result):
    """Display per-file results in a table."""
    table = Table(title="Files")
    table.add_column("File", style="cyan")
    table.add_column("Windows", style="green")
    table.add_column("Rendered", style="yellow")
    table.add_column("Kept", style="magenta")
    table.add_column("Status", style="blue")

    for doc in result.documents:
        table.add_row(
            Path(doc.name).name,
            str(doc.windows),
            str(doc.candidates),
            str(doc.accepted),
            "ok" if doc.ok else f"[red]{doc.error}[/red]",
        )

    console.print(table)


def main():
    """Entry point."""
    app()


if __name__ == "__main__":
    main()
