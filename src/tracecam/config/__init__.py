"""Configuration management for tracecam.

This module provides configuration management using Pydantic models.
Configuration can be provided via CLI arguments or defaults.

Key classes:
- FusionConfig: Fixed-point scale, tessellation and reconstruction settings
- IsolationSettings / ClearingSettings / CutoutSettings / DrillSettings:
  Per-operation tool settings
- MachineSettings: Depths and feeds used by the toolpath planner
- LoggingConfig: Logging settings
- TracecamSettings: Main application settings
"""

from tracecam.config.settings import (
    ClearingPattern,
    ClearingSettings,
    CutoutSettings,
    DrillSettings,
    FillRule,
    FusionConfig,
    IsolationSettings,
    LoggingConfig,
    MachineSettings,
    OperationType,
    TracecamSettings,
    get_default_settings,
)

__all__ = [
    "ClearingPattern",
    "ClearingSettings",
    "CutoutSettings",
    "DrillSettings",
    "FillRule",
    "FusionConfig",
    "IsolationSettings",
    "LoggingConfig",
    "MachineSettings",
    "OperationType",
    "TracecamSettings",
    "get_default_settings",
]
