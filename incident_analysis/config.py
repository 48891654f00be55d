"""
Configuration module for the Incident Analysis Engine.

Handles all configuration through environment variables with secure defaults.
Never stores sensitive data directly in code.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv


# Load environment variables from .env file
load_dotenv()


@dataclass(frozen=True)
class SourceConfig:
    """Configuration for the ticket feed."""

    # HTTP endpoint returning tickets as JSON
    tickets_feed_url: str = field(
        default_factory=lambda: os.getenv("TICKETS_FEED_URL", "")
    )
    tickets_feed_token: str = field(
        default_factory=lambda: os.getenv("TICKETS_FEED_TOKEN", "")
    )

    # Request timeout in seconds
    request_timeout: int = field(
        default_factory=lambda: int(os.getenv("REQUEST_TIMEOUT", "30"))
    )


@dataclass(frozen=True)
class AnalysisConfig:
    """Configuration for classification and aggregation."""

    # Optional YAML file overriding the built-in lexicon
    lexicon_path: Optional[Path] = field(
        default_factory=lambda: (
            Path(os.environ["LEXICON_PATH"]) if os.getenv("LEXICON_PATH") else None
        )
    )

    # Daily summary tuning
    critical_issues_limit: int = field(
        default_factory=lambda: int(os.getenv("CRITICAL_ISSUES_LIMIT", "5"))
    )
    issue_excerpt_length: int = field(
        default_factory=lambda: int(os.getenv("ISSUE_EXCERPT_LENGTH", "100"))
    )
    department_critical_threshold: int = field(
        default_factory=lambda: int(os.getenv("DEPARTMENT_CRITICAL_THRESHOLD", "2"))
    )


@dataclass(frozen=True)
class OutputConfig:
    """Configuration for output files."""

    output_dir: Path = field(
        default_factory=lambda: Path(os.getenv("OUTPUT_DIR", "./output"))
    )
    report_filename: str = field(
        default_factory=lambda: os.getenv(
            "REPORT_FILENAME",
            "incident_analysis_report.xlsx"
        )
    )

    @property
    def report_path(self) -> Path:
        """Get full path to the report file."""
        return self.output_dir / self.report_filename


@dataclass(frozen=True)
class AppConfig:
    """Main application configuration aggregating all config sections."""

    source: SourceConfig = field(default_factory=SourceConfig)
    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)
    output: OutputConfig = field(default_factory=OutputConfig)

    # Logging level
    log_level: str = field(
        default_factory=lambda: os.getenv("LOG_LEVEL", "INFO")
    )

    # Tickets between two progress log lines
    progress_interval: int = field(
        default_factory=lambda: int(os.getenv("PROGRESS_INTERVAL", "25"))
    )

    def validate(self, require_feed: bool = False) -> list[str]:
        """
        Validate configuration and return list of errors.

        Args:
            require_feed: Whether tickets are fetched from the HTTP feed.

        Returns:
            List of validation error messages (empty if valid).
        """
        errors = []

        if require_feed and not self.source.tickets_feed_url:
            errors.append("TICKETS_FEED_URL is required to fetch tickets")
        if self.source.request_timeout <= 0:
            errors.append("REQUEST_TIMEOUT must be positive")

        if self.analysis.lexicon_path and not self.analysis.lexicon_path.is_file():
            errors.append(f"LEXICON_PATH does not exist: {self.analysis.lexicon_path}")
        if self.analysis.critical_issues_limit < 0:
            errors.append("CRITICAL_ISSUES_LIMIT must not be negative")
        if self.analysis.issue_excerpt_length <= 0:
            errors.append("ISSUE_EXCERPT_LENGTH must be positive")

        if self.log_level.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            errors.append(f"LOG_LEVEL is invalid: {self.log_level}")
        if self.progress_interval <= 0:
            errors.append("PROGRESS_INTERVAL must be positive")

        return errors


def get_config() -> AppConfig:
    """
    Get application configuration.

    Returns:
        AppConfig instance with all settings loaded from environment.
    """
    return AppConfig()
