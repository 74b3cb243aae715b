"""
Craft Reporter Package

Collects pytest results into a single-file HTML report with a JSON data companion.
"""

__version__ = "0.1.0"
__author__ = "Craft Reporter Team"

from craft_reporter.core.config import ReporterConfig
from craft_reporter.core.pipeline import ReportPipeline, load_summary

__all__ = [
    "ReporterConfig",
    "ReportPipeline",
    "load_summary",
]
