"""
Custom exceptions for Craft Reporter.
"""


class CraftReporterError(Exception):
    """Base exception for all Craft Reporter errors."""
    pass


class ConfigurationError(CraftReporterError):
    """Raised when configuration is invalid."""
    pass


class ReporterStateError(CraftReporterError):
    """Raised when the run aggregator is driven out of order."""
    pass


class ReportWriteError(CraftReporterError):
    """Raised when report artifacts cannot be written."""
    pass


class ReportDataError(CraftReporterError):
    """Raised when a persisted report data file cannot be read back."""
    pass
