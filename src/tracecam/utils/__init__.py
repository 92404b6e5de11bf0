"""Utility functions for tracecam.

This module provides utility functions including:

- Logging setup and configuration
- Pipeline statistics tracking
"""

from tracecam.utils.logging import (
    PipelineLogger,
    PipelineStats,
    configure_logging,
)

__all__ = [
    "PipelineLogger",
    "PipelineStats",
    "configure_logging",
]
