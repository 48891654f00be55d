"""
Excel report generator for the Incident Analysis Engine.

Generates formatted Microsoft Excel reports with:
- Bold headers
- Fixed column widths
- Analyses sorted by priority, department and ticket code
- Department statistics and recommendations on separate sheets
"""

import logging
from pathlib import Path
from typing import Any

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from .config import OutputConfig
from .exporter import TIMESTAMP_FORMAT, NothingToExportError
from .models import AnalysisRecord, AnalysisReport, DepartmentStats, Priority


logger = logging.getLogger(__name__)


class ExcelReportError(Exception):
    """Error during Excel generation."""
    pass


# Define column configuration
ANALYSIS_COLUMNS = [
    {"key": "ticket_code", "header": "Code Ticket", "width": 14},
    {"key": "department", "header": "Département", "width": 18},
    {"key": "incident_category", "header": "Type Incident", "width": 16},
    {"key": "priority", "header": "Priorité", "width": 12},
    {"key": "urgency", "header": "Urgence", "width": 12},
    {"key": "impact", "header": "Impact", "width": 12},
    {"key": "summary", "header": "Résumé", "width": 60},
    {"key": "proposed_solutions", "header": "Solutions Proposées", "width": 50},
    {"key": "required_skills", "header": "Compétences", "width": 30},
    {"key": "estimated_resolution_time", "header": "Temps Estimé", "width": 14},
    {"key": "escalation_needed", "header": "Escalade", "width": 10},
    {"key": "analyzed_at", "header": "Date Analyse", "width": 20},
]

DEPARTMENT_COLUMNS = [
    {"key": "department", "header": "Département", "width": 22},
    {"key": "critical", "header": "Critique", "width": 10},
    {"key": "high", "header": "Haute", "width": 10},
    {"key": "medium", "header": "Moyenne", "width": 10},
    {"key": "low", "header": "Basse", "width": 10},
    {"key": "total", "header": "Total", "width": 10},
    {"key": "recurrent_incidents", "header": "Récurrents", "width": 12},
]

RECOMMENDATION_COLUMNS = [
    {"key": "recommendation", "header": "Recommandation", "width": 100},
]


def sort_analyses(analyses: list[AnalysisRecord]) -> list[AnalysisRecord]:
    """
    Sort analyses for the report.

    Sorting order:
    1. priority (critical first)
    2. department (ascending)
    3. ticket_code (ascending)

    Args:
        analyses: List of analyses to sort.

    Returns:
        Sorted list of analyses.
    """
    return sorted(
        analyses,
        key=lambda a: (
            -a.priority.rank,
            a.department,
            a.ticket_code,
        )
    )


def analysis_to_row(analysis: AnalysisRecord) -> list[Any]:
    """
    Convert an AnalysisRecord to a row of values.

    Args:
        analysis: The analysis to convert.

    Returns:
        List of cell values matching ANALYSIS_COLUMNS order.
    """
    return [
        analysis.ticket_code,
        analysis.department,
        analysis.incident_category.value,
        analysis.priority.value,
        analysis.urgency.value,
        analysis.impact.value,
        analysis.summary,
        "\n".join(analysis.proposed_solutions),
        ", ".join(analysis.required_skills),
        analysis.estimated_resolution_time,
        "Oui" if analysis.escalation_needed else "Non",
        analysis.analyzed_at.strftime(TIMESTAMP_FORMAT),
    ]


def department_to_row(stats: DepartmentStats) -> list[Any]:
    """Convert DepartmentStats to a row matching DEPARTMENT_COLUMNS."""
    return [
        stats.department,
        stats.critical,
        stats.high,
        stats.medium,
        stats.low,
        stats.total,
        stats.recurrent_incidents,
    ]


class ExcelReportGenerator:
    """
    Generator for formatted Excel reports.

    Produces one sheet per view of the analysis run:
    - "Analyses": one row per analysed ticket
    - "Départements": department statistics
    - "Recommandations": narrative recommendations
    """

    # Style configuration
    HEADER_FONT = Font(bold=True, color="FFFFFF", size=11)
    HEADER_FILL = PatternFill(start_color="2F5496", end_color="2F5496", fill_type="solid")
    HEADER_ALIGNMENT = Alignment(horizontal="center", vertical="center", wrap_text=True)

    CELL_ALIGNMENT = Alignment(vertical="top", wrap_text=True)
    CELL_BORDER = Border(
        left=Side(style="thin", color="D0D0D0"),
        right=Side(style="thin", color="D0D0D0"),
        top=Side(style="thin", color="D0D0D0"),
        bottom=Side(style="thin", color="D0D0D0"),
    )

    # Alternating row colors for readability
    ROW_FILL_ODD = PatternFill(start_color="F2F2F2", end_color="F2F2F2", fill_type="solid")
    ROW_FILL_EVEN = PatternFill(start_color="FFFFFF", end_color="FFFFFF", fill_type="solid")

    # Critical rows stand out
    CRITICAL_FONT = Font(bold=True, color="C00000")

    def __init__(self, config: OutputConfig):
        """
        Initialize the generator.

        Args:
            config: Output configuration with file paths.
        """
        self._config = config

    def generate(self, report: AnalysisReport) -> Path:
        """
        Generate an Excel report from an analysis report.

        Args:
            report: Report with summary and detailed analyses.

        Returns:
            Path to the generated Excel file.

        Raises:
            NothingToExportError: If the report has no analysis.
            ExcelReportError: If report generation fails.
        """
        if not report.detailed_analysis:
            raise NothingToExportError("No analysis to export")

        try:
            sorted_analyses = sort_analyses(report.detailed_analysis)
            logger.info(f"Sorted {len(sorted_analyses)} analyses for report")

            wb = Workbook()

            ws = wb.active
            ws.title = "Analyses"
            self._write_sheet(
                ws,
                ANALYSIS_COLUMNS,
                [analysis_to_row(a) for a in sorted_analyses],
            )
            self._highlight_critical(ws, sorted_analyses)

            self._write_sheet(
                wb.create_sheet("Départements"),
                DEPARTMENT_COLUMNS,
                [department_to_row(s) for s in report.summary.by_department],
            )

            self._write_sheet(
                wb.create_sheet("Recommandations"),
                RECOMMENDATION_COLUMNS,
                [[r] for r in report.summary.recommendations],
            )

            # Ensure output directory exists
            self._config.output_dir.mkdir(parents=True, exist_ok=True)

            output_path = self._config.report_path
            wb.save(output_path)

            logger.info(f"Excel report saved to: {output_path}")
            return output_path

        except Exception as e:
            logger.error(f"Failed to generate Excel report: {e}")
            raise ExcelReportError(f"Report generation failed: {e}") from e

    def _write_sheet(
        self,
        ws: Worksheet,
        columns: list[dict],
        rows: list[list[Any]],
    ) -> None:
        """Write headers, data rows and column widths to a sheet."""
        self._write_headers(ws, columns)
        self._write_data(ws, rows)
        self._apply_column_widths(ws, columns)

        # Freeze header row
        ws.freeze_panes = "A2"

    def _write_headers(self, ws: Worksheet, columns: list[dict]) -> None:
        """Write and style header row."""
        for col_idx, col_config in enumerate(columns, 1):
            cell = ws.cell(row=1, column=col_idx, value=col_config["header"])
            cell.font = self.HEADER_FONT
            cell.fill = self.HEADER_FILL
            cell.alignment = self.HEADER_ALIGNMENT
            cell.border = self.CELL_BORDER

        ws.row_dimensions[1].height = 30

    def _write_data(self, ws: Worksheet, rows: list[list[Any]]) -> None:
        """Write data rows with styling."""
        for row_idx, row_data in enumerate(rows, 2):
            fill = self.ROW_FILL_ODD if row_idx % 2 == 0 else self.ROW_FILL_EVEN

            for col_idx, value in enumerate(row_data, 1):
                cell = ws.cell(row=row_idx, column=col_idx, value=value)
                cell.alignment = self.CELL_ALIGNMENT
                cell.border = self.CELL_BORDER
                cell.fill = fill

    def _highlight_critical(self, ws: Worksheet, analyses: list[AnalysisRecord]) -> None:
        """Color the priority cell of critical analyses."""
        priority_col = next(
            idx for idx, col in enumerate(ANALYSIS_COLUMNS, 1) if col["key"] == "priority"
        )
        for row_idx, analysis in enumerate(analyses, 2):
            if analysis.priority == Priority.CRITICAL:
                ws.cell(row=row_idx, column=priority_col).font = self.CRITICAL_FONT

    def _apply_column_widths(self, ws: Worksheet, columns: list[dict]) -> None:
        """Apply column widths from configuration."""
        for col_idx, col_config in enumerate(columns, 1):
            column_letter = get_column_letter(col_idx)
            ws.column_dimensions[column_letter].width = col_config["width"]


def generate_report(report: AnalysisReport, config: OutputConfig) -> Path:
    """
    Convenience function to generate an Excel report.

    Args:
        report: Analysis report to render.
        config: Output configuration.

    Returns:
        Path to generated report.
    """
    generator = ExcelReportGenerator(config)
    return generator.generate(report)
