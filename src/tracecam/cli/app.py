"""CLI application entry point for tracecam.

This module provides the main CLI interface using Typer.
"""

from pathlib import Path
from typing import Annotated

import typer

from tracecam import __version__
from tracecam.cli.output import (
    console,
    print_error,
    print_fusion_summary,
    print_header,
    print_input_info,
    print_passes,
    print_step,
    print_success,
)
from tracecam.config import (
    ClearingPattern,
    ClearingSettings,
    CutoutSettings,
    DrillSettings,
    FusionConfig,
    IsolationSettings,
    LoggingConfig,
    OperationType,
    TracecamSettings,
)
from tracecam.core import CamPipeline
from tracecam.exceptions import InputError, OutputWriteError, TracecamError
from tracecam.io import PrimitiveReader, ResultWriter
from tracecam.utils import configure_logging

# Create the Typer app
app = typer.Typer(
    name="tracecam",
    help="Fuse PCB artwork primitives and generate curve-preserving toolpaths.",
    add_completion=False,
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold blue]tracecam[/bold blue] v{__version__}")
        raise typer.Exit()


@app.command()
def fuse(
    input_file: Annotated[
        Path,
        typer.Argument(
            help="Path to input primitive JSON file",
            show_default=False,
        ),
    ],
    output: Annotated[
        Path | None,
        typer.Option(
            "--output",
            "-o",
            help="Output path (default: {name}-toolpaths.json)",
        ),
    ] = None,
    operations: Annotated[
        list[str] | None,
        typer.Option(
            "--operation",
            "-p",
            help="Operation to generate (isolation|clearing|cutout|drill); repeatable",
        ),
    ] = None,
    tool_diameter: Annotated[
        float | None,
        typer.Option(
            "--tool-diameter",
            "-d",
            help="Tool diameter in mm for the selected milling operations",
            min=0.001,
        ),
    ] = None,
    passes: Annotated[
        int,
        typer.Option(
            "--passes",
            "-n",
            help="Isolation passes",
            min=1,
            max=20,
        ),
    ] = 2,
    overlap: Annotated[
        float,
        typer.Option(
            "--overlap",
            help="Pass overlap as percentage of tool diameter (0-99)",
            min=0.0,
            max=99.0,
        ),
    ] = 50.0,
    pattern: Annotated[
        str,
        typer.Option(
            "--pattern",
            help="Clearing raster pattern (parallel|crosshatch)",
        ),
    ] = "parallel",
    tabs: Annotated[
        int,
        typer.Option(
            "--tabs",
            help="Cutout holding tabs",
            min=0,
            max=64,
        ),
    ] = 4,
    tab_width: Annotated[
        float,
        typer.Option(
            "--tab-width",
            help="Cutout tab width in mm",
            min=0.0,
        ),
    ] = 3.0,
    no_arcs: Annotated[
        bool,
        typer.Option(
            "--no-arcs",
            help="Skip arc reconstruction after fusion",
        ),
    ] = False,
    log_file: Annotated[
        Path | None,
        typer.Option(
            "--log-file",
            help="Write detailed logs to file",
        ),
    ] = None,
    log_level: Annotated[
        str,
        typer.Option(
            "--log-level",
            help="Logging level (DEBUG|INFO|WARNING|ERROR)",
        ),
    ] = "WARNING",
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Verbose console output",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Minimal console output",
        ),
    ] = False,
    _version: Annotated[  # noqa: ARG001
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """Fuse artwork primitives and generate toolpaths.

    Unions dark primitives, subtracts clear ones, reconstructs circles and
    arcs from the fused outline and generates the selected offset passes
    with their motion plans.

    Example:
        tracecam board.json -p isolation -p drill

    This will create board-toolpaths.json with the fused geometry, the
    isolation and drill passes and their motion commands.
    """
    if verbose and quiet:
        print_error("Cannot use --verbose and --quiet together")
        raise typer.Exit(code=1)

    if not input_file.exists():
        print_error(
            f"Input file not found: {input_file}",
            details=f"The file '{input_file}' does not exist or is not accessible.",
        )
        raise typer.Exit(code=1)

    try:
        selected = [OperationType(op.lower()) for op in (operations or ["isolation"])]
    except ValueError:
        print_error(
            f"Invalid operation in: {', '.join(operations or [])}",
            details="Valid values: isolation, clearing, cutout, drill",
        )
        raise typer.Exit(code=1)

    try:
        clearing_pattern = ClearingPattern(pattern.lower())
    except ValueError:
        print_error(f"Invalid pattern: {pattern}", details="Valid values: parallel, crosshatch")
        raise typer.Exit(code=1)

    tool = {"tool_diameter": tool_diameter} if tool_diameter is not None else {}
    settings = TracecamSettings(
        fusion=FusionConfig(enable_arc_reconstruction=not no_arcs),
        isolation=IsolationSettings(passes=passes, overlap=overlap, **tool),
        clearing=ClearingSettings(overlap=overlap, pattern=clearing_pattern, **tool),
        cutout=CutoutSettings(tabs=tabs, tab_width=tab_width, **tool),
        drill=DrillSettings(**tool),
        logging=LoggingConfig(
            log_file=log_file,
            log_level=log_level if not quiet else "WARNING",
        ),
    )

    configure_logging(
        log_file=settings.logging.log_file,
        console_level=settings.logging.log_level,
        file_level=settings.logging.file_log_level,
        quiet=quiet,
    )

    if not quiet:
        print_header(__version__)

    output_path = output or ResultWriter.get_output_path(input_file)

    try:
        if not quiet:
            print_step("Loading primitives")
        reader = PrimitiveReader(input_file)
        reader.load()
        primitives = reader.read_primitives()
        drills = reader.read_drills()
        if not quiet:
            print_input_info(str(input_file), len(primitives), len(drills) if drills is not None else None)

        if not quiet:
            print_step("Fusing")
        pipeline = CamPipeline(settings)
        result = pipeline.run(primitives, selected, drill_holes=drills)

        if not quiet:
            print_fusion_summary(result, verbose=verbose)
            print_step("Toolpaths")
            print_passes(result)

        curves = None
        if verbose:
            curves = [
                curve.to_dict()
                for curve_id in range(1, len(pipeline.registry) + 1)
                if (curve := pipeline.registry.get(curve_id)) is not None
            ]
        ResultWriter(output_path).write(result, curves)

        if not quiet:
            print_success(
                output_path=str(output_path),
                total_time_s=result.stats.duration_seconds,
                plans=len(result.plans),
                commands=sum(len(plan.commands) for plan in result.plans),
            )

    except InputError as e:
        print_error(f"Could not load primitives: {e}")
        raise typer.Exit(code=1)
    except OutputWriteError as e:
        print_error(f"Could not write output: {e.reason}")
        raise typer.Exit(code=1)
    except TracecamError as e:
        print_error(str(e))
        raise typer.Exit(code=1)


def cli() -> None:
    """Entry point for the CLI application."""
    app()


def main() -> None:
    """Entry point for the CLI application (alias for cli)."""
    cli()


if __name__ == "__main__":
    cli()
