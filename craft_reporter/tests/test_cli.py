import json
import logging
from pathlib import Path

import pytest
from typer.testing import CliRunner

from craft_reporter.cli import app
from craft_reporter.core.config import CONFIG_ENV_VAR

runner = CliRunner()


@pytest.fixture(autouse=True)
def _reset_logger():
    yield
    logger = logging.getLogger("craft_reporter")
    for handler in logger.handlers:
        if isinstance(handler, logging.FileHandler):
            handler.close()
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)


DATA = {
    "timestamp": "2026-01-01T00:00:01+00:00",
    "totalTests": 2,
    "passed": 1,
    "failed": 1,
    "skipped": 0,
    "duration": 1250,
    "tests": [
        {"testId": "t.py::test_a", "name": "test_a", "fullTitle": "t.py > test_a", "status": "passed",
         "duration": 5, "metadata": {}, "filePath": "t.py", "line": 1,
         "startTime": "2026-01-01T00:00:00+00:00", "retries": 0},
        {"testId": "t.py::test_b", "name": "test_b", "fullTitle": "t.py > test_b", "status": "failed",
         "duration": 7, "errorTrace": "boom", "metadata": {}, "filePath": "t.py", "line": 4,
         "startTime": "2026-01-01T00:00:00+00:00", "retries": 0},
    ],
    "comments": {},
}


@pytest.fixture
def report_dir(tmp_path: Path, monkeypatch) -> Path:
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
    out = tmp_path / "craft-report"
    out.mkdir()
    (out / "report-data.json").write_text(json.dumps(DATA))
    return out


def test_render_refreshes_comments(report_dir: Path) -> None:
    (report_dir / "comments.json").write_text(json.dumps({"t.py::test_b": "tracked in #12"}))

    result = runner.invoke(app, ["render", "--title", "Rerendered"])

    assert result.exit_code == 0, result.output
    assert "Report written to" in result.output
    html = (report_dir / "report.html").read_text(encoding="utf-8")
    assert "<title>Rerendered</title>" in html
    assert "tracked in #12" in html
    data = json.loads((report_dir / "report-data.json").read_text(encoding="utf-8"))
    assert data["comments"] == {"t.py::test_b": "tracked in #12"}


def test_render_missing_data(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.chdir(tmp_path)
    result = runner.invoke(app, ["render", "--output-dir", str(tmp_path / "nothing")])
    assert result.exit_code == 1
    assert "Report data not found" in result.output


def test_render_invalid_output_file(report_dir: Path) -> None:
    result = runner.invoke(app, ["render", "--output-file", "a/b.html"])
    assert result.exit_code == 1
    assert "Invalid configuration" in result.output


def test_summary_exit_code_reflects_failures(report_dir: Path) -> None:
    result = runner.invoke(app, ["summary", "--verbosity", "1"])
    assert result.exit_code == 1
    assert "Total:    2" in result.output
    assert "Failed:   1" in result.output
    assert "Duration: 1.25s" in result.output
    assert "t.py > test_b" in result.output


def test_summary_passes_without_failures(report_dir: Path) -> None:
    data = dict(DATA, failed=0, passed=2, tests=DATA["tests"][:1])
    (report_dir / "report-data.json").write_text(json.dumps(data))
    result = runner.invoke(app, ["summary"])
    assert result.exit_code == 0
    assert "PASSED" in result.output


def test_open_missing_report(report_dir: Path) -> None:
    result = runner.invoke(app, ["open"])
    assert result.exit_code == 1
    assert "Report not found" in result.output


def test_open_existing_report(report_dir: Path, monkeypatch) -> None:
    opened = []
    monkeypatch.setattr("craft_reporter.cli.open_in_viewer", lambda path: opened.append(path) or True)
    (report_dir / "report.html").write_text("<html></html>")

    result = runner.invoke(app, ["open"])

    assert result.exit_code == 0
    assert opened == [report_dir.resolve() / "report.html"]


def test_summary_with_malformed_data_exits_cleanly(report_dir: Path) -> None:
    (report_dir / "report-data.json").write_text(json.dumps(dict(DATA, comments=["x"])))
    result = runner.invoke(app, ["summary"])
    assert result.exit_code == 1
    assert "Failed to read report data" in result.output
    assert not isinstance(result.exception, AttributeError)


def test_log_file_receives_debug_output(report_dir: Path) -> None:
    log_file = report_dir / "render.log"
    result = runner.invoke(app, ["render", "--log-file", str(log_file)])
    assert result.exit_code == 0, result.output
    content = log_file.read_text(encoding="utf-8")
    assert "Configuration:" in content
    assert "Report written to" in content
