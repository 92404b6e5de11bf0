"""Rich console output helpers for the CLI.

This module provides user-friendly console output using Rich library
with tables and formatted messages.
"""

from rich.console import Console
from rich.table import Table
from rich.text import Text

from tracecam.core.pipeline import PipelineResult

console = Console()

# Unicode symbols for consistent visual language
SYM_STEP = "▸"  # Step indicator
SYM_OK = "✓"  # Success
SYM_ERR = "✗"  # Error
SYM_WARN = "!"  # Warning
SYM_DOT = "·"  # Separator/secondary info


def print_header(version: str) -> None:
    """Print application header.

    Args:
        version: Application version string
    """
    console.print(f"\n[bold]tracecam[/bold] v{version}")
    console.print("─" * 44)


def print_step(message: str) -> None:
    """Print a processing step indicator."""
    console.print(f"\n{SYM_STEP} {message}")


def print_input_info(input_path: str, primitive_count: int, drill_count: int | None) -> None:
    """Print input file information.

    Args:
        input_path: Path to the primitive file
        primitive_count: Number of primitive records
        drill_count: Number of drill records, None when the file has none
    """
    line = Text("  ")
    line.append(input_path)
    console.print(line)
    drills = f" {SYM_DOT} {drill_count:,} drills" if drill_count is not None else ""
    console.print(f"  {primitive_count:,} primitives{drills}")


def _format_time(seconds: float) -> str:
    """Format seconds into human-readable time string."""
    if seconds < 1:
        return f"{seconds * 1000:.0f}ms"
    elif seconds < 60:
        return f"{seconds:.1f}s"
    else:
        mins = int(seconds // 60)
        secs = seconds % 60
        return f"{mins}m {secs:.1f}s"


def print_fusion_summary(result: PipelineResult, verbose: bool = False) -> None:
    """Print fusion and reconstruction results.

    Args:
        result: Pipeline output
        verbose: Whether to show reconstruction details
    """
    stats = result.stats
    if result.fell_back:
        console.print(f"  [yellow]{SYM_WARN} {result.status}[/yellow]")
    console.print(
        f"  {len(result.fused)} fused shapes {SYM_DOT} {stats.holes_detected} holes "
        f"{SYM_DOT} {stats.primitives_dropped} dropped"
    )
    if stats.curves_registered:
        console.print(
            f"  {stats.full_circles} circles {SYM_DOT} {stats.partial_arcs} arcs "
            f"{SYM_DOT} {stats.curves_registered} curves registered"
        )
        if verbose:
            console.print(f"  average coverage {stats.average_coverage:.1%}")


def print_passes(result: PipelineResult) -> None:
    """Print a table of generated offset passes."""
    table = Table(box=None, padding=(0, 2), show_edge=False)
    table.add_column("Operation")
    table.add_column("Pass", justify="right")
    table.add_column("Offset", justify="right")
    table.add_column("Paths", justify="right")
    table.add_column("Tabs", justify="right")
    for operation, passes in result.passes.items():
        for offset_pass in passes:
            table.add_row(
                operation,
                str(offset_pass.pass_index),
                f"{offset_pass.distance:.3f}",
                str(len(offset_pass.primitives)),
                str(len(offset_pass.tabs)),
            )
    console.print(table)


def print_success(output_path: str, total_time_s: float, plans: int, commands: int) -> None:
    """Print success message with summary.

    Args:
        output_path: Path to output file
        total_time_s: Total processing time in seconds
        plans: Number of motion plans written
        commands: Total motion commands across plans
    """
    console.print(f"\n[bold green]{SYM_OK} Complete[/bold green] in {_format_time(total_time_s)}")
    line = Text("  ")
    line.append(output_path, style="bold")
    console.print(line)
    console.print(f"  {plans} plans {SYM_DOT} {commands:,} motion commands")


def print_error(message: str, details: str | None = None) -> None:
    """Print error message.

    Args:
        message: Main error message
        details: Optional detailed error information
    """
    console.print(f"\n[bold red]{SYM_ERR} Error:[/bold red] {message}")
    if details:
        console.print(f"  {details}")
