"""
Core modules for Craft Reporter.
"""

from craft_reporter.core.config import ReporterConfig, find_config_file, read_config_table
from craft_reporter.core.errors import (
    CraftReporterError,
    ConfigurationError,
    ReporterStateError,
    ReportWriteError,
    ReportDataError,
)

__all__ = [
    "ReporterConfig",
    "find_config_file",
    "read_config_table",
    "CraftReporterError",
    "ConfigurationError",
    "ReporterStateError",
    "ReportWriteError",
    "ReportDataError",
]
