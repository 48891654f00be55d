"""
Main entry point for the Incident Analysis Engine.

Orchestrates the complete pipeline:
1. Load tickets from a file or the HTTP feed
2. Analyze every ticket
3. Build the daily summary
4. Export analyses to CSV and an Excel report
"""

import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Optional

import click

from .aggregator import AggregationError, build_daily_summary
from .analyzer import TicketAnalyzer
from .config import AppConfig, get_config
from .data_sources import DataSourceError, fetch_tickets, load_tickets_file
from .excel_report import ExcelReportError, generate_report
from .exporter import ExportError, write_csv
from .lexicon import DEFAULT_LEXICON, LexiconError, load_lexicon
from .models import AnalysisReport, DailySummary


def setup_logging(level: str) -> None:
    """
    Configure application logging.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR).
    """
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
    )

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


logger = logging.getLogger(__name__)


class PipelineError(Exception):
    """Error during pipeline execution."""
    pass


def validate_config(config: AppConfig, require_feed: bool = False) -> None:
    """
    Validate configuration before running.

    Args:
        config: Application configuration.
        require_feed: Whether tickets are fetched from the HTTP feed.

    Raises:
        PipelineError: If configuration is invalid.
    """
    errors = config.validate(require_feed=require_feed)
    if errors:
        for error in errors:
            logger.error(f"Configuration error: {error}")
        raise PipelineError(
            f"Configuration validation failed with {len(errors)} error(s)"
        )


def log_summary(summary: DailySummary) -> None:
    """Log the headline figures of a daily summary."""
    logger.info(f"Tickets analyzed: {summary.total_tickets}")
    logger.info(f"Departments: {len(summary.by_department)}")
    for stats in summary.by_department:
        logger.info(
            f"  {stats.department}: {stats.total} "
            f"(critical={stats.critical}, high={stats.high}, "
            f"medium={stats.medium}, low={stats.low})"
        )
    for issue in summary.critical_issues:
        logger.info(f"Critical: [{issue.ticket_code}] {issue.department} - {issue.issue}")
    for recommendation in summary.recommendations:
        logger.info(f"Recommendation: {recommendation}")


def run_pipeline(
    config: Optional[AppConfig] = None,
    tickets_path: Optional[Path] = None,
    write_excel: bool = True,
) -> AnalysisReport:
    """
    Execute the complete incident analysis pipeline.

    Args:
        config: Optional configuration override.
        tickets_path: Ticket file to analyze; the HTTP feed is used when None.
        write_excel: If False, skip the Excel report.

    Returns:
        The AnalysisReport of the run.

    Raises:
        PipelineError: If any step fails.
    """
    if config is None:
        config = get_config()

    setup_logging(config.log_level)
    logger.info("=" * 60)
    logger.info("Starting Incident Analysis Pipeline")
    logger.info("=" * 60)

    validate_config(config, require_feed=tickets_path is None)

    # Step 1: Load tickets
    logger.info("-" * 40)
    logger.info("Step 1: Loading tickets")
    logger.info("-" * 40)

    try:
        if tickets_path is not None:
            tickets = load_tickets_file(tickets_path)
        else:
            tickets = fetch_tickets(config.source)
        logger.info(f"Loaded {len(tickets)} tickets")
    except DataSourceError as e:
        raise PipelineError(f"Ticket loading failed: {e}") from e

    if not tickets:
        raise PipelineError("No ticket to analyze")

    # Step 2: Analyze tickets
    logger.info("-" * 40)
    logger.info("Step 2: Analyzing tickets")
    logger.info("-" * 40)

    try:
        lexicon = DEFAULT_LEXICON
        if config.analysis.lexicon_path:
            lexicon = load_lexicon(config.analysis.lexicon_path)
    except LexiconError as e:
        raise PipelineError(f"Lexicon loading failed: {e}") from e

    analyzer = TicketAnalyzer(lexicon)
    analyses = analyzer.analyze_batch(tickets, progress_interval=config.progress_interval)

    # Step 3: Build the daily summary
    logger.info("-" * 40)
    logger.info("Step 3: Building daily summary")
    logger.info("-" * 40)

    try:
        summary = build_daily_summary(
            tickets,
            analyses,
            critical_issues_limit=config.analysis.critical_issues_limit,
            excerpt_length=config.analysis.issue_excerpt_length,
            critical_threshold=config.analysis.department_critical_threshold,
        )
    except AggregationError as e:
        raise PipelineError(f"Aggregation failed: {e}") from e

    log_summary(summary)

    report = AnalysisReport(
        generated_at=analyses[0].analyzed_at,
        summary=summary,
        detailed_analysis=analyses,
    )

    # Step 4: Export
    logger.info("-" * 40)
    logger.info("Step 4: Exporting results")
    logger.info("-" * 40)

    try:
        csv_path = write_csv(analyses, config.output.output_dir, day=summary.report_date)
        logger.info(f"CSV export: {csv_path}")

        if write_excel:
            report_path = generate_report(report, config.output)
            logger.info(f"Excel report: {report_path}")
        else:
            logger.info("Skipping Excel report (--no-excel flag)")
    except (ExportError, ExcelReportError) as e:
        raise PipelineError(f"Export failed: {e}") from e

    logger.info("=" * 60)
    logger.info("Pipeline completed successfully!")
    logger.info("=" * 60)

    return report


@click.command()
@click.argument(
    "tickets_file",
    required=False,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "--output-dir",
    "-o",
    type=click.Path(file_okay=False, path_type=Path),
    help="Directory receiving the CSV export and Excel report",
)
@click.option(
    "--lexicon",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="YAML file overriding the built-in keyword lexicon",
)
@click.option(
    "--no-excel",
    is_flag=True,
    default=False,
    help="Skip the Excel report",
)
@click.option(
    "--debug",
    is_flag=True,
    default=False,
    help="Enable debug logging",
)
@click.option(
    "--validate-only",
    is_flag=True,
    default=False,
    help="Only validate configuration without running the pipeline",
)
def main(
    tickets_file: Optional[Path],
    output_dir: Optional[Path],
    lexicon: Optional[Path],
    no_excel: bool,
    debug: bool,
    validate_only: bool,
) -> None:
    """
    Incident Analysis Engine.

    Classifies help-desk tickets from TICKETS_FILE (JSON or YAML), or from
    the ticket feed when no file is given, and exports the analyses.
    """
    try:
        config = get_config()

        if debug:
            config = replace(config, log_level="DEBUG")
        if output_dir:
            config = replace(config, output=replace(config.output, output_dir=output_dir))
        if lexicon:
            config = replace(config, analysis=replace(config.analysis, lexicon_path=lexicon))

        if validate_only:
            setup_logging(config.log_level)
            logger.info("Validating configuration...")
            validate_config(config, require_feed=tickets_file is None)
            logger.info("Configuration is valid!")
            return

        run_pipeline(config, tickets_path=tickets_file, write_excel=not no_excel)

    except PipelineError as e:
        click.echo(f"Pipeline failed: {e}", err=True)
        sys.exit(1)
    except KeyboardInterrupt:
        click.echo("\nOperation cancelled by user", err=True)
        sys.exit(130)
    except Exception as e:
        click.echo(f"Unexpected error: {e}", err=True)
        if debug:
            import traceback
            traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
