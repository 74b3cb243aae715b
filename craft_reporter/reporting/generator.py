"""
Report generator: data file plus self-contained HTML document.
"""

import base64
import json
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

from craft_reporter.core.config import DATA_FILE_NAME
from craft_reporter.core.errors import ReportWriteError
from craft_reporter.core.logging import get_logger
from craft_reporter.reporting.models import RunSummary

TEMPLATE_FILE = "template.html"
STYLES_FILE = "styles.css"
SCRIPT_FILE = "report.js"

STYLES_MARKER = "/* INJECT_STYLES */"
SCRIPT_MARKER = "/* INJECT_SCRIPT */"
DATA_MARKER = "/* INJECT_DATA */"
LOGO_MARKER = "<!-- INJECT_LOGO -->"
TITLE_MARKER = "{{TITLE}}"

_MARKER_PATTERN = re.compile(
    "|".join(re.escape(m) for m in (STYLES_MARKER, SCRIPT_MARKER, DATA_MARKER, LOGO_MARKER, TITLE_MARKER))
)

LOGO_MIME_TYPES = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".svg": "image/svg+xml",
}

DEFAULT_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{{TITLE}}</title>
  <style>/* INJECT_STYLES */</style>
</head>
<body>
  <!-- INJECT_LOGO -->
  <div id="app">Loading report...</div>
  <script>
    const REPORT_DATA = /* INJECT_DATA */;
    /* INJECT_SCRIPT */
  </script>
</body>
</html>
"""

logger = get_logger(__name__)


@dataclass(frozen=True)
class TemplateBundle:
    """Presentation layer pieces injected into the rendered report."""
    template: str
    styles: str = ""
    script: str = ""
    logo_html: str = ""
    source: Optional[Path] = None


@dataclass(frozen=True)
class SynthesizedReport:
    data: Dict[str, Any]
    html: str


@dataclass(frozen=True)
class ReportPaths:
    data_path: Path
    report_path: Path


def _read_optional(path: Path) -> str:
    if path.exists():
        return path.read_text(encoding="utf-8")
    logger.debug(f"Optional report asset not found: {path}")
    return ""


def build_logo_html(logo_path: Optional[Path]) -> str:
    """Embed the logo as a data URI, or return an empty string if it is unavailable."""
    if logo_path is None:
        return ""
    logo_path = Path(logo_path)
    if not logo_path.is_file():
        logger.warning(f"Logo not found, rendering without it: {logo_path}")
        return ""
    encoded = base64.b64encode(logo_path.read_bytes()).decode("ascii")
    mime_type = LOGO_MIME_TYPES.get(logo_path.suffix.lower(), "image/png")
    return f'<img src="data:{mime_type};base64,{encoded}" alt="Logo">'


def load_template_bundle(candidate_dirs: Iterable[Path], logo_path: Optional[Path] = None) -> TemplateBundle:
    """
    Resolve the presentation template.

    The first directory holding template.html wins and also supplies
    styles.css and report.js (empty when missing). Without any candidate the
    built-in minimal template is used.
    """
    logo_html = build_logo_html(logo_path)
    for directory in candidate_dirs:
        template_path = Path(directory) / TEMPLATE_FILE
        if not template_path.is_file():
            logger.debug(f"No report template in {directory}")
            continue
        return TemplateBundle(
            template=template_path.read_text(encoding="utf-8"),
            styles=_read_optional(template_path.parent / STYLES_FILE),
            script=_read_optional(template_path.parent / SCRIPT_FILE),
            logo_html=logo_html,
            source=template_path.parent,
        )
    logger.warning("No report template found, using the built-in template")
    return TemplateBundle(template=DEFAULT_TEMPLATE, logo_html=logo_html)


def _escape_html(text: str) -> str:
    """Escape HTML special characters."""
    return (text.replace("&", "&amp;")
               .replace("<", "&lt;")
               .replace(">", "&gt;")
               .replace('"', "&quot;")
               .replace("'", "&#x27;"))


def _script_safe_json(data: Dict[str, Any]) -> str:
    # "<\/" is a valid JSON escape and cannot terminate the enclosing <script>
    return json.dumps(data, ensure_ascii=False).replace("</", "<\\/")


def render_template(template: str, replacements: Dict[str, str], title: str) -> str:
    """
    Substitute markers in a single pass over the template.

    Each block marker is replaced at its first occurrence only; the title
    marker everywhere. Inserted content is never scanned again, so markers
    that happen to appear inside test data survive untouched.
    """
    used = set()

    def _substitute(match: "re.Match[str]") -> str:
        marker = match.group(0)
        if marker == TITLE_MARKER:
            return title
        if marker in used:
            return marker
        used.add(marker)
        return replacements[marker]

    return _MARKER_PATTERN.sub(_substitute, template)


class ReportGenerator:
    """Merge a RunSummary with the presentation template and persist both documents."""

    def __init__(self, output_dir: Path = Path("craft-report"), output_file: str = "report.html",
                 title: str = "Craft Test Report"):
        self.output_dir = Path(output_dir)
        self.output_file = output_file
        self.title = title

    @property
    def data_path(self) -> Path:
        return self.output_dir / DATA_FILE_NAME

    @property
    def report_path(self) -> Path:
        return self.output_dir / self.output_file

    def synthesize(self, summary: RunSummary, bundle: TemplateBundle) -> SynthesizedReport:
        """Build the data document and the rendered HTML without touching disk."""
        data = summary.to_dict()
        html = render_template(
            bundle.template,
            {
                STYLES_MARKER: bundle.styles,
                SCRIPT_MARKER: bundle.script,
                DATA_MARKER: _script_safe_json(data),
                LOGO_MARKER: bundle.logo_html,
            },
            _escape_html(self.title),
        )
        return SynthesizedReport(data=data, html=html)

    def write(self, summary: RunSummary, bundle: TemplateBundle) -> ReportPaths:
        """
        Synthesize and write report-data.json and the HTML report.

        Raises:
            ReportWriteError: If the output directory or a file cannot be written
        """
        report = self.synthesize(summary, bundle)

        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ReportWriteError(f"Cannot create report directory {self.output_dir}: {e}") from e

        try:
            self.report_path.write_text(report.html, encoding="utf-8")
            self.data_path.write_text(
                json.dumps(report.data, indent=2, ensure_ascii=False), encoding="utf-8"
            )
        except OSError as e:
            raise ReportWriteError(f"Cannot write report to {self.output_dir}: {e}") from e

        logger.info(f"Report written to {self.report_path}")
        return ReportPaths(data_path=self.data_path, report_path=self.report_path)
