"""Command-line interface for tracecam.

This module provides the CLI using Typer with rich output for
user-friendly feedback.

Key features:
- Operation selection (isolation, clearing, cutout, drill)
- Verbose/quiet output modes
- Detailed error reporting
"""

from tracecam.cli.app import cli, main

__all__ = ["cli", "main"]
