"""
End-of-run report pipeline.

This module runs the steps that turn a finalized RunSummary into report
artifacts, shared by the pytest plugin and the ``render`` command.
"""

import json
import time
from pathlib import Path

from craft_reporter.core.config import ReporterConfig
from craft_reporter.core.errors import ReportDataError
from craft_reporter.core.logging import get_logger
from craft_reporter.reporting.comments import load_comments
from craft_reporter.reporting.generator import ReportGenerator, ReportPaths, load_template_bundle
from craft_reporter.reporting.models import RunSummary
from craft_reporter.utils.launcher import open_in_viewer


def load_summary(data_path: Path) -> RunSummary:
    """
    Read a persisted report-data.json back into a RunSummary.

    Raises:
        ReportDataError: If the file is missing or malformed
    """
    if not data_path.exists():
        raise ReportDataError(f"Report data not found: {data_path}")
    try:
        data = json.loads(data_path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError(f"expected a JSON object, got {type(data).__name__}")
        return RunSummary.from_dict(data)
    except (OSError, ValueError, KeyError, TypeError) as e:
        raise ReportDataError(f"Failed to read report data {data_path}: {e}") from e


class ReportPipeline:
    """Comments → template → write → open, for one configuration."""

    def __init__(self, config: ReporterConfig):
        """
        Initialize the pipeline with configuration.

        Args:
            config: Reporter configuration
        """
        self.config = config
        self.logger = get_logger(__name__)
        self.generator = ReportGenerator(
            output_dir=config.output_dir,
            output_file=config.output_file,
            title=config.title,
        )

    def prepare(self, summary: RunSummary) -> RunSummary:
        """Attach the comments currently stored next to the report."""
        return summary.with_comments(load_comments(self.config.comments_path))

    def run(self, summary: RunSummary) -> ReportPaths:
        """Attach comments, then write the report artifacts."""
        return self.write(self.prepare(summary))

    def write(self, summary: RunSummary) -> ReportPaths:
        """
        Write the report artifacts for a summary that already carries its comments.

        Returns:
            Paths of the data file and the rendered report

        Raises:
            ReportWriteError: If the artifacts cannot be written
        """
        start_time = time.time()
        bundle = load_template_bundle(self.config.template_candidates(), self.config.logo_path)
        if bundle.source is not None:
            self.logger.debug(f"Using report template from {bundle.source}")

        paths = self.generator.write(summary, bundle)

        duration = time.time() - start_time
        self.logger.debug(f"Report generated in {duration:.2f} seconds")

        if self.config.open:
            open_in_viewer(paths.report_path)
        return paths
