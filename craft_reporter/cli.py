"""
Command-line interface for Craft Reporter.

This module provides a subcommand-based CLI using Typer for working with
report artifacts after a run has finished.
"""

import sys
from pathlib import Path
from typing import Optional

import typer

from craft_reporter.core.config import ReporterConfig
from craft_reporter.core.errors import CraftReporterError
from craft_reporter.core.logging import setup_logger
from craft_reporter.core.pipeline import ReportPipeline, load_summary
from craft_reporter.reporting.console import write_summary
from craft_reporter.utils.launcher import open_in_viewer

app = typer.Typer(
    name="craft-report",
    help="Craft test report tools - re-render, summarize and open HTML test reports",
    add_completion=False,
)

_COLORS = {
    "green": typer.colors.GREEN,
    "red": typer.colors.RED,
    "yellow": typer.colors.YELLOW,
    "cyan": typer.colors.CYAN,
}


def get_config(
    verbosity: Optional[int] = None,
    config_file: Optional[Path] = None,
    **kwargs
) -> ReporterConfig:
    """Create ReporterConfig from the config file and the given options, or exit on error."""
    try:
        return ReporterConfig.load(config_file=config_file, verbosity=verbosity, **kwargs)
    except (CraftReporterError, ValueError) as e:
        typer.echo(f"✗ Invalid configuration: {e}", err=True)
        sys.exit(1)


def configure_logging(config: ReporterConfig) -> None:
    """Console logging at the configured verbosity, plus the optional log file."""
    logger = setup_logger(verbosity=config.verbosity, log_file=config.log_file)
    logger.debug(f"Configuration: {config.to_dict()}")


def echo_line(text: str, bold: bool = False, **markup: bool) -> None:
    """typer counterpart of pytest's TerminalReporter.write_line markup."""
    fg = next((color for name, color in _COLORS.items() if markup.get(name)), None)
    typer.secho(text, fg=fg, bold=bold)


@app.command()
def render(
    output_dir: Optional[Path] = typer.Option(None, "--output-dir", "-o", help="Directory holding report-data.json"),
    output_file: Optional[str] = typer.Option(None, "--output-file", help="File name of the rendered report"),
    title: Optional[str] = typer.Option(None, help="Report title"),
    logo: Optional[str] = typer.Option(None, help="Logo image embedded in the report"),
    template_dir: Optional[Path] = typer.Option(None, "--template-dir", help="Directory with template.html, styles.css, report.js"),
    open_report: bool = typer.Option(False, "--open", help="Open the report when done"),
    config_file: Optional[Path] = typer.Option(None, "--config", help="Config file (craft_reporter.toml or pyproject.toml)"),
    log_file: Optional[Path] = typer.Option(None, "--log-file", help="Also write debug logs to this file"),
    verbosity: Optional[int] = typer.Option(None, "--verbosity", "-v", help="Verbosity level (0-3)"),
):
    """Re-render the HTML report from report-data.json with the current comments."""
    config = get_config(
        verbosity=verbosity, config_file=config_file, log_file=log_file,
        output_dir=output_dir, output_file=output_file, title=title, logo=logo,
        template_dir=template_dir, open=open_report or None,
    )
    configure_logging(config)

    try:
        summary = load_summary(config.data_path)
        paths = ReportPipeline(config).run(summary)
    except CraftReporterError as e:
        typer.echo(f"✗ {e}", err=True)
        sys.exit(1)

    typer.echo(f"✓ Report written to {paths.report_path}")
    sys.exit(0)


@app.command()
def summary(
    output_dir: Optional[Path] = typer.Option(None, "--output-dir", "-o", help="Directory holding report-data.json"),
    config_file: Optional[Path] = typer.Option(None, "--config", help="Config file (craft_reporter.toml or pyproject.toml)"),
    log_file: Optional[Path] = typer.Option(None, "--log-file", help="Also write debug logs to this file"),
    verbosity: Optional[int] = typer.Option(None, "--verbosity", "-v", help="Verbosity level (0-3)"),
):
    """Print counts and duration of the last run; exit 1 when it had failures."""
    config = get_config(verbosity=verbosity, config_file=config_file, log_file=log_file, output_dir=output_dir)
    configure_logging(config)

    try:
        run_summary = load_summary(config.data_path)
    except CraftReporterError as e:
        typer.echo(f"✗ {e}", err=True)
        sys.exit(1)

    report_path = config.report_path if config.report_path.exists() else None
    write_summary(run_summary, echo_line, report_path=report_path)

    if config.verbosity >= 1:
        for test in run_summary.get_failed_tests():
            typer.secho(f"  ✗ {test.full_title}", fg=typer.colors.RED)

    sys.exit(0 if run_summary.success else 1)


@app.command(name="open")
def open_report(
    output_dir: Optional[Path] = typer.Option(None, "--output-dir", "-o", help="Directory holding the report"),
    output_file: Optional[str] = typer.Option(None, "--output-file", help="File name of the rendered report"),
    config_file: Optional[Path] = typer.Option(None, "--config", help="Config file (craft_reporter.toml or pyproject.toml)"),
    log_file: Optional[Path] = typer.Option(None, "--log-file", help="Also write debug logs to this file"),
    verbosity: Optional[int] = typer.Option(None, "--verbosity", "-v", help="Verbosity level (0-3)"),
):
    """Open a rendered report in the platform viewer."""
    config = get_config(
        verbosity=verbosity, config_file=config_file, log_file=log_file,
        output_dir=output_dir, output_file=output_file,
    )
    configure_logging(config)

    if not config.report_path.is_file():
        typer.echo(f"✗ Report not found: {config.report_path}", err=True)
        sys.exit(1)

    if not open_in_viewer(config.report_path):
        typer.echo(f"✗ Could not open {config.report_path}", err=True)
        sys.exit(1)
    typer.echo(f"✓ Opened {config.report_path}")


def main():
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
