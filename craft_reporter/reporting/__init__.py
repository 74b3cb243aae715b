"""
Test reporting module for Craft Reporter.

This module provides:
- Outcome and summary data structures
- Annotation to metadata normalization
- Run aggregation with retry collapse and natural ordering
- HTML and JSON report synthesis
"""

from craft_reporter.reporting.models import TestOutcome, TestMetadata, RunSummary, TestStatus
from craft_reporter.reporting.metadata import normalize_metadata
from craft_reporter.reporting.aggregator import RunAggregator, RunState, natural_sort_key
from craft_reporter.reporting.comments import load_comments
from craft_reporter.reporting.generator import ReportGenerator, TemplateBundle, load_template_bundle

__all__ = [
    "TestOutcome",
    "TestMetadata",
    "RunSummary",
    "TestStatus",
    "normalize_metadata",
    "RunAggregator",
    "RunState",
    "natural_sort_key",
    "load_comments",
    "ReportGenerator",
    "TemplateBundle",
    "load_template_bundle",
]
