"""
Pytest plugin feeding test outcomes into the Craft report.

Enable with ``--craft-report``, the ``craft_report`` ini option, or
``enabled = true`` in the craft_reporter config table.
"""

import re
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence

import pytest

from craft_reporter.core.config import ReporterConfig
from craft_reporter.core.logging import get_logger, setup_logger
from craft_reporter.core.pipeline import ReportPipeline
from craft_reporter.reporting.aggregator import RunAggregator, RunState
from craft_reporter.reporting.console import format_progress, write_summary
from craft_reporter.reporting.generator import ReportPaths
from craft_reporter.reporting.metadata import normalize_metadata
from craft_reporter.reporting.models import RunSummary, TestOutcome, TestStatus

PLUGIN_NAME = "craft_reporter_plugin"

# Markers whose first argument is the annotation description
LABEL_MARKERS = {
    "epic": "epic(name): epic the test belongs to",
    "feature": "feature(name): feature under test",
    "story": "story(name): user story under test",
    "suite": "suite(name): suite label, overrides the module-derived one",
    "subsuite": "subsuite(name): sub-suite label",
    "parentsuite": "parentsuite(name): parent suite label, overrides the file-derived one",
    "severity": "severity(level): severity label (blocker, critical, normal, minor, trivial)",
    "owner": "owner(name): owner of the test",
    "description": "description(text): long description of the test",
}

ERROR_SEPARATOR = "\n---\n"

_TIMEOUT_PATTERN = re.compile(r"\bTimeout \(?>\s*[\d.]+s")

_INI_OPTIONS = {
    "craft_report": "enable the Craft HTML report (true/false)",
    "craft_report_dir": "directory for Craft report artifacts (default: craft-report)",
    "craft_report_file": "file name of the rendered Craft report (default: report.html)",
    "craft_report_title": "title of the Craft report",
    "craft_report_logo": "image embedded in the Craft report header",
    "craft_report_open": "open the Craft report after the run (true/false)",
    "craft_report_log_file": "file receiving craft_reporter debug logs",
}


def pytest_addoption(parser):
    """Add Craft report command line and ini options."""
    group = parser.getgroup("craft-report", "Craft HTML test report")
    group.addoption("--craft-report", action="store_true", default=None,
                    help="Write the Craft HTML report at the end of the run")
    group.addoption("--craft-report-dir", action="store", default=None,
                    help="Output directory for report artifacts")
    group.addoption("--craft-report-file", action="store", default=None,
                    help="File name of the rendered report")
    group.addoption("--craft-report-title", action="store", default=None,
                    help="Report title")
    group.addoption("--craft-report-logo", action="store", default=None,
                    help="Logo image embedded in the report")
    group.addoption("--craft-report-open", action="store_true", default=None,
                    help="Open the report in the default viewer when done")
    group.addoption("--craft-report-log-file", action="store", default=None,
                    help="Write craft_reporter debug logs to this file")
    for name, help_text in _INI_OPTIONS.items():
        parser.addini(name, help_text)


def _ini_value(config, name: str) -> Optional[str]:
    value = config.getini(name)
    if value in ("", None, []):
        return None
    return str(value)


def _ini_flag(config, name: str) -> Optional[bool]:
    value = _ini_value(config, name)
    if value is None:
        return None
    return value.strip().lower() in ("1", "true", "yes", "on")


def _first_set(*values):
    for value in values:
        if value is not None:
            return value
    return None


def build_config(config) -> ReporterConfig:
    """Resolve reporter options: command line over ini over config file over defaults."""
    return ReporterConfig.load(
        root_dir=config.invocation_params.dir,
        enabled=_first_set(config.getoption("--craft-report"), _ini_flag(config, "craft_report")),
        output_dir=_first_set(config.getoption("--craft-report-dir"), _ini_value(config, "craft_report_dir")),
        output_file=_first_set(config.getoption("--craft-report-file"), _ini_value(config, "craft_report_file")),
        title=_first_set(config.getoption("--craft-report-title"), _ini_value(config, "craft_report_title")),
        logo=_first_set(config.getoption("--craft-report-logo"), _ini_value(config, "craft_report_logo")),
        open=_first_set(config.getoption("--craft-report-open"), _ini_flag(config, "craft_report_open")),
        log_file=_first_set(config.getoption("--craft-report-log-file"), _ini_value(config, "craft_report_log_file")),
    )


def pytest_configure(config):
    """Register markers and, when enabled, the reporter."""
    for description in LABEL_MARKERS.values():
        config.addinivalue_line("markers", description)
    config.addinivalue_line("markers", "tag(*names): free-form tags shown in the Craft report")
    config.addinivalue_line("markers", "annotation(kind, description): arbitrary Craft report annotation")

    # xdist workers only annotate reports; the controller aggregates them
    if hasattr(config, "workerinput"):
        return

    reporter_config = build_config(config)
    if not reporter_config.enabled:
        return
    if reporter_config.log_file is not None:
        setup_logger(log_file=reporter_config.log_file, verbosity=reporter_config.verbosity, console=False)
    get_logger(__name__).debug(f"Craft reporter configuration: {reporter_config.to_dict()}")
    config.pluginmanager.register(CraftReporterPlugin(reporter_config), PLUGIN_NAME)


def pytest_unconfigure(config):
    plugin = config.pluginmanager.get_plugin(PLUGIN_NAME)
    if plugin is not None:
        config.pluginmanager.unregister(plugin, PLUGIN_NAME)
        if plugin.config.log_file is not None:
            logger = get_logger()
            for handler in logger.handlers:
                handler.close()
            logger.handlers.clear()


def marker_annotations(item) -> List[List[str]]:
    """
    Collect (kind, description) annotations from an item's markers.

    Module markers come before class markers before function markers, so the
    closest marker is applied last and wins.
    """
    annotations = []
    for mark in reversed(list(item.iter_markers())):
        if mark.name in LABEL_MARKERS:
            if mark.args:
                annotations.append([mark.name, str(mark.args[0])])
        elif mark.name == "tag":
            annotations.extend(["tag", str(arg)] for arg in mark.args)
        elif mark.name == "annotation":
            kind = mark.args[0] if mark.args else mark.kwargs.get("kind")
            description = mark.args[1] if len(mark.args) > 1 else mark.kwargs.get("description", "")
            if kind:
                annotations.append([str(kind), str(description or "")])
    return annotations


@pytest.hookimpl(wrapper=True)
def pytest_runtest_makereport(item, call):
    report = yield
    report.craft_annotations = marker_annotations(item)
    return report


@pytest.fixture
def annotate(request):
    """Attach a (kind, description) annotation to the running test."""
    def _annotate(kind: str, description: str = "") -> None:
        request.node.user_properties.append((kind, description))
    return _annotate


def _skip_reason(report) -> Optional[str]:
    longrepr = report.longrepr
    if isinstance(longrepr, tuple) and len(longrepr) == 3:
        reason = str(longrepr[2])
        return reason[len("Skipped: "):] if reason.startswith("Skipped: ") else reason
    return None


def _phase_failed(report) -> bool:
    return report.failed or report.outcome == "rerun"


def conclude_attempt(reports: Sequence, retry: int) -> TestOutcome:
    """
    Fold the phase reports of one attempt into a TestOutcome.

    Args:
        reports: setup/call/teardown reports of one attempt, in order
        retry: Attempt number (0 = first run)
    """
    last = reports[-1]
    title_path = last.nodeid.split("::")

    failures = [r for r in reports if _phase_failed(r)]
    if failures:
        timed_out = any(_TIMEOUT_PATTERN.search(r.longreprtext) for r in failures)
        status = TestStatus.TIMED_OUT if timed_out else TestStatus.FAILED
    elif any(r.skipped for r in reports if r.when in ("setup", "call")):
        status = TestStatus.SKIPPED
    elif any(r.passed for r in reports if r.when == "call"):
        status = TestStatus.PASSED
    else:
        status = TestStatus.UNKNOWN

    error_trace = None
    if status.is_failure:
        error_trace = ERROR_SEPARATOR.join(r.longreprtext for r in failures if r.longreprtext) or None

    annotations = [tuple(a) for a in getattr(last, "craft_annotations", None) or []]
    annotations.extend((str(name), str(value)) for name, value in last.user_properties)
    for report in reports:
        if getattr(report, "wasxfail", None):
            annotations.append(("xfail", report.wasxfail))
        elif report.skipped:
            reason = _skip_reason(report)
            if reason:
                annotations.append(("skip", reason))

    starts = [r.start for r in reports if getattr(r, "start", None)]
    start_time = datetime.fromtimestamp(min(starts), tz=timezone.utc) if starts else datetime.now(timezone.utc)

    file_path, lineno, _ = last.location
    return TestOutcome(
        test_id=last.nodeid,
        name=title_path[-1],
        full_title=" > ".join(title_path),
        status=status,
        duration=int(round(sum(r.duration for r in reports) * 1000)),
        file_path=str(file_path),
        line=lineno + 1 if lineno is not None else 0,
        start_time=start_time.isoformat(),
        retries=retry,
        error_trace=error_trace,
        metadata=normalize_metadata(annotations, title_path),
    )


class CraftReporterPlugin:
    """Translates pytest hooks into begin / test concluded / end signals."""

    def __init__(self, config: ReporterConfig):
        self.config = config
        self.logger = get_logger(__name__)
        self.aggregator = RunAggregator()
        self.summary: Optional[RunSummary] = None
        self.paths: Optional[ReportPaths] = None
        self.exitstatus: Optional[int] = None
        self._phases: Dict[str, List] = {}
        self._attempts: Dict[str, int] = {}

    def _begin(self, session) -> None:
        if self.aggregator.state is not RunState.IDLE:
            return
        total = len(session.items)
        self.aggregator.begin(total)
        self.logger.info(f"Running {total} tests...")
        terminal = session.config.pluginmanager.get_plugin("terminalreporter")
        if terminal is not None and total:
            terminal.write_line(f"Running {total} tests...")

    def pytest_collection_finish(self, session):
        self._begin(session)

    @pytest.hookimpl(tryfirst=True)
    def pytest_runtestloop(self, session):
        # xdist controllers never collect, so the run starts here for them
        self._begin(session)

    def pytest_runtest_logreport(self, report):
        if self.aggregator.state is not RunState.COLLECTING:
            return
        if report.when == "teardown" and report.nodeid not in self._phases and report.passed:
            # teardown of an attempt that already concluded as a rerun
            return
        phases = self._phases.setdefault(report.nodeid, [])
        phases.append(report)
        if report.when != "teardown" and report.outcome != "rerun":
            return

        del self._phases[report.nodeid]
        retry = getattr(report, "rerun", None)
        if retry is None:
            retry = self._attempts.get(report.nodeid, 0)
        self._attempts[report.nodeid] = retry + 1

        outcome = conclude_attempt(phases, retry)
        self.aggregator.record_outcome(outcome)
        self.logger.info(format_progress(outcome))

    def pytest_sessionfinish(self, session, exitstatus):
        if self.aggregator.state is not RunState.COLLECTING:
            self.logger.debug("Run never started, no Craft report written")
            return
        self.exitstatus = int(exitstatus)
        pipeline = ReportPipeline(self.config)
        self.summary = pipeline.prepare(self.aggregator.finalize())
        self.paths = pipeline.write(self.summary)

    def pytest_terminal_summary(self, terminalreporter):
        if self.summary is None:
            return
        terminalreporter.write_sep("-", "Craft test report")
        write_summary(
            self.summary,
            terminalreporter.write_line,
            report_path=self.paths.report_path if self.paths else None,
            run_passed=self.exitstatus == 0,
        )
