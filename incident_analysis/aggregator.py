"""
Batch aggregation of ticket analyses.

Reduces a list of analyses into per-department statistics, a daily summary
with recommendations, and filtered reports.

Tickets and analyses are paired through ``AnalysisRecord.ticket_id``,
never through list positions.
"""

import logging
from datetime import date, datetime
from typing import Optional

from .models import (
    AnalysisFilters,
    AnalysisRecord,
    AnalysisReport,
    CriticalIssue,
    DailySummary,
    DepartmentStats,
    Priority,
    TicketRecord,
)


logger = logging.getLogger(__name__)


CRITICAL_ISSUES_LIMIT = 5
ISSUE_EXCERPT_LENGTH = 100
DEPARTMENT_CRITICAL_THRESHOLD = 2


class AggregationError(Exception):
    """Error during analysis aggregation."""
    pass


class CardinalityMismatchError(AggregationError):
    """Tickets and analyses do not pair up one to one."""
    pass


def pair_analyses(
    tickets: list[TicketRecord],
    analyses: list[AnalysisRecord],
) -> list[tuple[TicketRecord, AnalysisRecord]]:
    """
    Pair every analysis with its source ticket.

    Args:
        tickets: Source tickets.
        analyses: One analysis per ticket, in any order.

    Returns:
        List of (ticket, analysis) pairs in analysis order.

    Raises:
        CardinalityMismatchError: If the lists differ in length, a ticket id
            is duplicated, or an analysis and a ticket cannot be paired.
    """
    if len(tickets) != len(analyses):
        raise CardinalityMismatchError(
            f"Got {len(tickets)} tickets but {len(analyses)} analyses"
        )

    tickets_by_id: dict[str, TicketRecord] = {}
    for ticket in tickets:
        if ticket.id in tickets_by_id:
            raise CardinalityMismatchError(f"Duplicate ticket id '{ticket.id}'")
        tickets_by_id[ticket.id] = ticket

    pairs = []
    paired_ids: set[str] = set()
    for analysis in analyses:
        ticket = tickets_by_id.get(analysis.ticket_id)
        if ticket is None:
            raise CardinalityMismatchError(
                f"Analysis references unknown ticket '{analysis.ticket_id}'"
            )
        if analysis.ticket_id in paired_ids:
            raise CardinalityMismatchError(
                f"Ticket '{analysis.ticket_id}' has more than one analysis"
            )
        paired_ids.add(analysis.ticket_id)
        pairs.append((ticket, analysis))

    return pairs


def build_department_stats(
    tickets: list[TicketRecord],
    analyses: list[AnalysisRecord],
) -> list[DepartmentStats]:
    """
    Count tickets per department and priority tier.

    Departments are grouped by their exact label. The result is sorted by
    total count, descending; ties keep the order in which departments were
    first encountered.

    Args:
        tickets: Source tickets.
        analyses: One analysis per ticket.

    Returns:
        One DepartmentStats per distinct department.

    Raises:
        CardinalityMismatchError: If tickets and analyses do not pair up.
    """
    counters: dict[str, dict[str, int]] = {}

    for ticket, analysis in pair_analyses(tickets, analyses):
        counts = counters.setdefault(
            ticket.department,
            {priority.value: 0 for priority in Priority} | {"total": 0, "recurrent": 0},
        )
        counts[analysis.priority.value] += 1
        counts["total"] += 1
        if analysis.is_recurrent:
            counts["recurrent"] += 1

    stats = [
        DepartmentStats(
            department=department,
            critical=counts[Priority.CRITICAL.value],
            high=counts[Priority.HIGH.value],
            medium=counts[Priority.MEDIUM.value],
            low=counts[Priority.LOW.value],
            total=counts["total"],
            recurrent_incidents=counts["recurrent"],
        )
        for department, counts in counters.items()
    ]

    # sorted() is stable: equal totals keep first-seen order
    return sorted(stats, key=lambda s: -s.total)


def build_recommendations(
    department_stats: list[DepartmentStats],
    analyses: list[AnalysisRecord],
    critical_threshold: int = DEPARTMENT_CRITICAL_THRESHOLD,
) -> list[str]:
    """
    Build narrative recommendations for a batch.

    Emitted in this order:
      1. One warning per department with more than ``critical_threshold``
         critical tickets, in department-stats order.
      2. One line listing the distinct categories of recurrent incidents.
      3. One line when any ticket needs escalation.

    Args:
        department_stats: Department rollup, already sorted.
        analyses: Analyses of the batch.
        critical_threshold: Critical count a department must exceed.

    Returns:
        List of recommendation strings.
    """
    recommendations = []

    for stats in department_stats:
        if stats.critical > critical_threshold:
            recommendations.append(
                f"⚠️ Département {stats.department}: {stats.critical} incidents critiques. "
                f"Envisager une formation ou une mise à niveau des équipements."
            )

    recurrent_categories = list(dict.fromkeys(
        analysis.incident_category.value
        for analysis in analyses
        if analysis.is_recurrent
    ))
    if recurrent_categories:
        recommendations.append(
            f"🔄 Incidents récurrents détectés: {', '.join(recurrent_categories)}. "
            f"Créer une base de connaissances pour ces problèmes."
        )

    if any(analysis.escalation_needed for analysis in analyses):
        recommendations.append(
            "📈 Plusieurs tickets nécessitent une escalade. "
            "Vérifier la disponibilité des experts."
        )

    return recommendations


def extract_critical_issues(
    analyses: list[AnalysisRecord],
    limit: int = CRITICAL_ISSUES_LIMIT,
    excerpt_length: int = ISSUE_EXCERPT_LENGTH,
) -> list[CriticalIssue]:
    """
    Get excerpts of the first critical analyses, in batch order.

    The summary is hard-cut at ``excerpt_length`` characters, no ellipsis.
    """
    critical = [a for a in analyses if a.priority == Priority.CRITICAL][:limit]
    return [
        CriticalIssue(
            ticket_code=analysis.ticket_code,
            department=analysis.department,
            issue=analysis.summary[:excerpt_length],
        )
        for analysis in critical
    ]


def build_daily_summary(
    tickets: list[TicketRecord],
    analyses: list[AnalysisRecord],
    today: Optional[date] = None,
    critical_issues_limit: int = CRITICAL_ISSUES_LIMIT,
    excerpt_length: int = ISSUE_EXCERPT_LENGTH,
    critical_threshold: int = DEPARTMENT_CRITICAL_THRESHOLD,
) -> DailySummary:
    """
    Build the daily summary of an analysis run.

    Args:
        tickets: Source tickets.
        analyses: One analysis per ticket.
        today: Date stamp of the summary (defaults to today).
        critical_issues_limit: Maximum number of critical excerpts.
        excerpt_length: Maximum length of a critical excerpt.
        critical_threshold: Critical count a department must exceed to
            get a dedicated recommendation.

    Returns:
        DailySummary for the batch.

    Raises:
        CardinalityMismatchError: If tickets and analyses do not pair up.
    """
    department_stats = build_department_stats(tickets, analyses)

    summary = DailySummary(
        report_date=today or date.today(),
        total_tickets=len(tickets),
        by_department=department_stats,
        overall_recurrent_incidents=sum(1 for a in analyses if a.is_recurrent),
        critical_issues=extract_critical_issues(
            analyses, limit=critical_issues_limit, excerpt_length=excerpt_length
        ),
        recommendations=build_recommendations(
            department_stats, analyses, critical_threshold=critical_threshold
        ),
    )

    logger.info(
        f"Daily summary: {summary.total_tickets} tickets, "
        f"{len(summary.by_department)} departments, "
        f"{len(summary.critical_issues)} critical issues, "
        f"{len(summary.recommendations)} recommendations"
    )
    return summary


def _matches_filters(
    ticket: TicketRecord,
    analysis: AnalysisRecord,
    filters: AnalysisFilters,
) -> bool:
    """Check a ticket/analysis pair against every filter criterion."""
    created = ticket.created_at.date()

    if filters.start_date and created < filters.start_date:
        return False
    if filters.end_date and created > filters.end_date:
        return False
    if filters.departments and ticket.department not in filters.departments:
        return False
    if filters.priorities and analysis.priority not in filters.priorities:
        return False
    if filters.statuses and ticket.status not in filters.statuses:
        return False
    if not filters.include_recurrent and analysis.is_recurrent:
        return False
    return True


def apply_filters(
    tickets: list[TicketRecord],
    analyses: list[AnalysisRecord],
    filters: AnalysisFilters,
) -> tuple[list[TicketRecord], list[AnalysisRecord]]:
    """
    Restrict a batch to the pairs matching the filters.

    Args:
        tickets: Source tickets.
        analyses: One analysis per ticket.
        filters: Criteria to apply; date bounds are inclusive.

    Returns:
        Tuple of (tickets, analyses) that match, in analysis order.

    Raises:
        CardinalityMismatchError: If tickets and analyses do not pair up.
    """
    pairs = pair_analyses(tickets, analyses)

    if filters.is_empty():
        return [t for t, _ in pairs], [a for _, a in pairs]

    kept = [(t, a) for t, a in pairs if _matches_filters(t, a, filters)]
    logger.info(f"Filters kept {len(kept)}/{len(pairs)} tickets")
    return [t for t, _ in kept], [a for _, a in kept]


def build_report(
    tickets: list[TicketRecord],
    analyses: list[AnalysisRecord],
    period: str = "daily",
    filters: Optional[AnalysisFilters] = None,
    generated_at: Optional[datetime] = None,
    today: Optional[date] = None,
) -> AnalysisReport:
    """
    Build a complete analysis report for a (filtered) batch.

    Args:
        tickets: Source tickets.
        analyses: One analysis per ticket.
        period: Report period (daily, weekly, monthly or custom).
        filters: Optional criteria restricting the batch.
        generated_at: Report timestamp (defaults to local now).
        today: Date stamp of the embedded summary.

    Returns:
        AnalysisReport with summary and detailed analyses.
    """
    filters = filters or AnalysisFilters()
    kept_tickets, kept_analyses = apply_filters(tickets, analyses, filters)

    return AnalysisReport(
        generated_at=generated_at or datetime.now().astimezone(),
        period=period,
        filters=filters,
        summary=build_daily_summary(kept_tickets, kept_analyses, today=today),
        detailed_analysis=kept_analyses,
    )
