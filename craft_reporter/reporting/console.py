"""
Console rendering of per-test progress and the end-of-run summary.
"""

from pathlib import Path
from typing import Callable, Optional

from craft_reporter.reporting.models import RunSummary, TestOutcome, TestStatus

# write_line(text, **markup) as offered by pytest's TerminalReporter
LineWriter = Callable[..., None]

STATUS_ICONS = {
    TestStatus.PASSED: "✓",
    TestStatus.FAILED: "✗",
    TestStatus.TIMED_OUT: "✗",
    TestStatus.SKIPPED: "○",
    TestStatus.UNKNOWN: "?",
}


def format_progress(outcome: TestOutcome) -> str:
    """One-line progress entry for a concluded attempt."""
    icon = STATUS_ICONS[outcome.status]
    retry_info = f" (retry #{outcome.retries})" if outcome.retries > 0 else ""
    return f"{icon} {outcome.name}{retry_info} {outcome.duration / 1000:.1f}s"


def write_summary(
    summary: RunSummary,
    write_line: LineWriter,
    report_path: Optional[Path] = None,
    run_passed: Optional[bool] = None,
) -> None:
    """Write the run summary block; run_passed defaults to "no failures"."""
    if run_passed is None:
        run_passed = summary.success
    if run_passed:
        write_line("✓ Status:   PASSED", green=True, bold=True)
    else:
        write_line("✗ Status:   FAILED", red=True, bold=True)
    write_line(f"  Total:    {summary.total_tests}", bold=True)
    write_line(f"✓ Passed:   {summary.passed}", green=True)
    write_line(f"✗ Failed:   {summary.failed}", red=True)
    write_line(f"○ Skipped:  {summary.skipped}", yellow=True)
    write_line(f"  Duration: {summary.duration / 1000:.2f}s")
    if report_path is not None:
        write_line(f"  Report:   {report_path}", cyan=True)
