"""
CSV exporter for ticket analyses.

Produces the flat comma-delimited export consumed by the download
mechanism of the reporting UI.

Format notes:
- Only the summary column is quoted (inner quotes doubled); the other
  columns are written as-is, even when they contain a comma.
- Rows are separated by a bare newline.
"""

import logging
from datetime import date
from pathlib import Path
from typing import Optional

from .models import AnalysisRecord


logger = logging.getLogger(__name__)


class ExportError(Exception):
    """Error during analysis export."""
    pass


class NothingToExportError(ExportError):
    """No analysis was given to export."""
    pass


CSV_HEADERS = [
    "Code Ticket",
    "Département",
    "Type Incident",
    "Priorité",
    "Urgence",
    "Impact",
    "Résumé",
    "Temps Estimé",
    "Récurrent",
    "Date Analyse",
]

DELIMITER = ","
LINE_SEPARATOR = "\n"
TIMESTAMP_FORMAT = "%d/%m/%Y %H:%M:%S"


def quote_field(value: str) -> str:
    """Quote a field, doubling inner quote characters."""
    return '"' + value.replace('"', '""') + '"'


def analysis_to_row(analysis: AnalysisRecord) -> list[str]:
    """
    Convert an AnalysisRecord to a row of values.

    Args:
        analysis: The analysis to convert.

    Returns:
        List of cell values matching CSV_HEADERS order.
    """
    return [
        analysis.ticket_code,
        analysis.department,
        analysis.incident_category.value,
        analysis.priority.value,
        analysis.urgency.value,
        analysis.impact.value,
        quote_field(analysis.summary),
        analysis.estimated_resolution_time,
        "Oui" if analysis.is_recurrent else "Non",
        analysis.analyzed_at.strftime(TIMESTAMP_FORMAT),
    ]


def export_csv(analyses: list[AnalysisRecord]) -> str:
    """
    Serialize analyses to delimited text.

    Args:
        analyses: Analyses to export.

    Returns:
        Header line followed by one line per analysis.

    Raises:
        NothingToExportError: If ``analyses`` is empty.
    """
    if not analyses:
        raise NothingToExportError("No analysis to export")

    lines = [DELIMITER.join(CSV_HEADERS)]
    lines.extend(DELIMITER.join(analysis_to_row(a)) for a in analyses)

    logger.debug(f"Serialized {len(analyses)} analyses to CSV")
    return LINE_SEPARATOR.join(lines)


def export_filename(day: Optional[date] = None) -> str:
    """Get the download filename for an export made on ``day``."""
    day = day or date.today()
    return f"incident-analysis-{day.isoformat()}.csv"


def write_csv(
    analyses: list[AnalysisRecord],
    output_dir: Path,
    day: Optional[date] = None,
) -> Path:
    """
    Write the CSV export of analyses to a dated file.

    Args:
        analyses: Analyses to export.
        output_dir: Directory receiving the file (created if missing).
        day: Date embedded in the filename (defaults to today).

    Returns:
        Path to the written file.

    Raises:
        NothingToExportError: If ``analyses`` is empty.
        ExportError: If the file cannot be written.
    """
    content = export_csv(analyses)
    output_path = Path(output_dir) / export_filename(day)

    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(content, encoding="utf-8")
    except OSError as e:
        logger.error(f"Failed to write CSV export: {e}")
        raise ExportError(f"CSV export failed: {e}") from e

    logger.info(f"CSV export saved to: {output_path}")
    return output_path
