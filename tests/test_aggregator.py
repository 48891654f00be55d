"""Tests for batch aggregation."""

from datetime import date, datetime

import pytest

from incident_analysis.aggregator import (
    CardinalityMismatchError,
    apply_filters,
    build_daily_summary,
    build_department_stats,
    build_recommendations,
    build_report,
    extract_critical_issues,
    pair_analyses,
)
from incident_analysis.analyzer import TicketAnalyzer
from incident_analysis.models import (
    AnalysisFilters,
    IncidentCategory,
    Priority,
    TicketStatus,
)


def batch(make_ticket, make_analysis, rows):
    """Build paired tickets and analyses from (department, priority) rows."""
    tickets, analyses = [], []
    for idx, (department, priority) in enumerate(rows, 1):
        ticket_id = str(idx)
        tickets.append(make_ticket(ticket_id, department=department))
        analyses.append(make_analysis(ticket_id, department=department, priority=priority))
    return tickets, analyses


# =============================================================================
# Pairing
# =============================================================================

class TestPairAnalyses:
    """Tests for ticket/analysis pairing."""

    def test_pairs_by_ticket_id(self, make_ticket, make_analysis):
        """Test pairing ignores list positions."""
        tickets = [make_ticket("a", department="IT"), make_ticket("b", department="RH")]
        analyses = [make_analysis("b"), make_analysis("a")]

        pairs = pair_analyses(tickets, analyses)
        assert [(t.id, a.ticket_id) for t, a in pairs] == [("b", "b"), ("a", "a")]

    def test_length_mismatch(self, make_ticket, make_analysis):
        """Test different lengths fail fast."""
        with pytest.raises(CardinalityMismatchError, match="2 tickets but 1 analyses"):
            pair_analyses([make_ticket("a"), make_ticket("b")], [make_analysis("a")])

    def test_unknown_ticket(self, make_ticket, make_analysis):
        """Test analyses must reference a known ticket."""
        with pytest.raises(CardinalityMismatchError, match="unknown ticket"):
            pair_analyses([make_ticket("a")], [make_analysis("z")])

    def test_duplicate_analysis(self, make_ticket, make_analysis):
        """Test a ticket cannot have two analyses."""
        with pytest.raises(CardinalityMismatchError, match="more than one"):
            pair_analyses(
                [make_ticket("a"), make_ticket("b")],
                [make_analysis("a"), make_analysis("a")],
            )

    def test_duplicate_ticket_id(self, make_ticket, make_analysis):
        """Test ticket ids must be unique."""
        with pytest.raises(CardinalityMismatchError, match="Duplicate"):
            pair_analyses(
                [make_ticket("a"), make_ticket("a")],
                [make_analysis("a"), make_analysis("b")],
            )


# =============================================================================
# Department statistics
# =============================================================================

class TestBuildDepartmentStats:
    """Tests for build_department_stats."""

    def test_counts_per_tier(self, make_ticket, make_analysis):
        """Test tier counters and totals."""
        tickets, analyses = batch(make_ticket, make_analysis, [
            ("IT", Priority.CRITICAL),
            ("IT", Priority.LOW),
            ("RH", Priority.HIGH),
            ("IT", Priority.CRITICAL),
        ])
        stats = build_department_stats(tickets, analyses)

        it = stats[0]
        assert it.department == "IT"
        assert (it.critical, it.high, it.medium, it.low, it.total) == (2, 0, 0, 1, 3)
        assert stats[1].department == "RH"
        assert stats[1].high == 1

    def test_counts_add_up(self, make_ticket, make_analysis):
        """Test counts add up to the batch size and to each total."""
        priorities = list(Priority)
        rows = [
            (f"Dept{idx % 3}", priorities[idx % len(priorities)])
            for idx in range(17)
        ]
        tickets, analyses = batch(make_ticket, make_analysis, rows)
        stats = build_department_stats(tickets, analyses)

        assert sum(s.critical + s.high + s.medium + s.low for s in stats) == len(tickets)
        for s in stats:
            assert s.total == s.critical + s.high + s.medium + s.low

    def test_sorted_by_total_with_stable_ties(self, make_ticket, make_analysis):
        """Test descending totals; equal totals keep first-seen order."""
        tickets, analyses = batch(make_ticket, make_analysis, [
            ("Finance", Priority.LOW),
            ("RH", Priority.LOW),
            ("IT", Priority.LOW),
            ("IT", Priority.LOW),
            ("Marketing", Priority.LOW),
        ])
        stats = build_department_stats(tickets, analyses)
        assert [s.department for s in stats] == ["IT", "Finance", "RH", "Marketing"]

    def test_department_labels_not_normalized(self, make_ticket, make_analysis):
        """Test two spellings make two groups."""
        tickets, analyses = batch(make_ticket, make_analysis, [
            ("Comptabilité", Priority.LOW),
            ("comptabilite", Priority.LOW),
        ])
        assert len(build_department_stats(tickets, analyses)) == 2

    def test_groups_by_ticket_department(self, make_ticket, make_analysis):
        """Test the ticket's department is the grouping key."""
        tickets = [make_ticket("1", department="IT")]
        analyses = [make_analysis("1", department="Ancien libellé")]
        assert build_department_stats(tickets, analyses)[0].department == "IT"

    def test_recurrent_count(self, make_ticket, make_analysis):
        """Test recurrent analyses are counted."""
        tickets = [make_ticket("1"), make_ticket("2")]
        analyses = [make_analysis("1", is_recurrent=True), make_analysis("2")]
        assert build_department_stats(tickets, analyses)[0].recurrent_incidents == 1

    def test_empty_batch(self):
        """Test an empty batch yields no department."""
        assert build_department_stats([], []) == []

    def test_mismatch_raises(self, make_ticket):
        """Test cardinality mismatch propagates."""
        with pytest.raises(CardinalityMismatchError):
            build_department_stats([make_ticket("1")], [])


# =============================================================================
# Recommendations
# =============================================================================

class TestBuildRecommendations:
    """Tests for build_recommendations."""

    def test_two_critical_is_below_threshold(self, make_ticket, make_analysis):
        """Test exactly two critical tickets give no department warning."""
        tickets, analyses = batch(make_ticket, make_analysis, [("IT", Priority.CRITICAL)] * 2)
        recommendations = build_recommendations(
            build_department_stats(tickets, analyses), analyses
        )
        assert not any("Département IT" in r for r in recommendations)

    def test_three_critical_gives_one_warning(self, make_ticket, make_analysis):
        """Test three critical tickets give exactly one warning."""
        tickets, analyses = batch(make_ticket, make_analysis, [("IT", Priority.CRITICAL)] * 3)
        recommendations = build_recommendations(
            build_department_stats(tickets, analyses), analyses
        )
        warnings = [r for r in recommendations if r.startswith("⚠️ Département IT")]
        assert warnings == [
            "⚠️ Département IT: 3 incidents critiques. "
            "Envisager une formation ou une mise à niveau des équipements."
        ]

    def test_emission_order(self, make_ticket, make_analysis):
        """Test department warnings, then recurrence, then escalation."""
        rows = [("RH", Priority.CRITICAL)] * 3 + [("IT", Priority.CRITICAL)] * 4
        tickets, analyses = batch(make_ticket, make_analysis, rows)
        analyses[0] = make_analysis(
            "1", department="RH", priority=Priority.CRITICAL,
            category=IncidentCategory.DATA, is_recurrent=True,
        )

        recommendations = build_recommendations(
            build_department_stats(tickets, analyses), analyses
        )
        assert len(recommendations) == 4
        assert recommendations[0].startswith("⚠️ Département IT: 4")
        assert recommendations[1].startswith("⚠️ Département RH: 3")
        assert recommendations[2].startswith("🔄 Incidents récurrents détectés: Data.")
        assert "escalade" in recommendations[3]

    def test_recurrent_categories_distinct_in_first_seen_order(self, make_analysis):
        """Test recurrent categories are listed once each."""
        analyses = [
            make_analysis("1", priority=Priority.LOW, category=IncidentCategory.EMAIL, is_recurrent=True),
            make_analysis("2", priority=Priority.LOW, category=IncidentCategory.ACCESS, is_recurrent=True),
            make_analysis("3", priority=Priority.LOW, category=IncidentCategory.EMAIL, is_recurrent=True),
        ]
        recommendations = build_recommendations([], analyses)
        assert recommendations == [
            "🔄 Incidents récurrents détectés: Email, Access. "
            "Créer une base de connaissances pour ces problèmes."
        ]

    def test_no_escalation_no_recommendation(self, make_analysis):
        """Test quiet batches give no recommendation."""
        analyses = [make_analysis("1", priority=Priority.LOW)]
        assert build_recommendations([], analyses) == []

    def test_custom_threshold(self, make_ticket, make_analysis):
        """Test the department threshold can be tuned."""
        tickets, analyses = batch(make_ticket, make_analysis, [("IT", Priority.CRITICAL)])
        recommendations = build_recommendations(
            build_department_stats(tickets, analyses), analyses, critical_threshold=0
        )
        assert recommendations[0].startswith("⚠️ Département IT: 1")


# =============================================================================
# Daily summary
# =============================================================================

class TestExtractCriticalIssues:
    """Tests for critical issue excerpts."""

    def test_first_five_in_order(self, make_analysis):
        """Test at most five critical analyses, in batch order."""
        analyses = [
            make_analysis(str(idx), priority=Priority.CRITICAL if idx % 2 else Priority.LOW)
            for idx in range(1, 16)
        ]
        issues = extract_critical_issues(analyses)
        assert [i.ticket_code for i in issues] == ["TK-1", "TK-3", "TK-5", "TK-7", "TK-9"]

    def test_hard_cut_at_100_characters(self, make_analysis):
        """Test summaries are cut without ellipsis."""
        summary = "x" * 99 + "yz"
        issues = extract_critical_issues([
            make_analysis("1", priority=Priority.CRITICAL, summary=summary)
        ])
        assert issues[0].issue == "x" * 99 + "y"


class TestBuildDailySummary:
    """Tests for build_daily_summary."""

    def test_summary_of_sample_batch(self, sample_tickets):
        """Test the rollup of an analysed batch."""
        analyses = TicketAnalyzer().analyze_batch(sample_tickets)
        summary = build_daily_summary(sample_tickets, analyses, today=date(2026, 10, 19))

        assert summary.report_date == date(2026, 10, 19)
        assert summary.total_tickets == 5
        assert [s.department for s in summary.by_department] == ["IT", "Finance", "RH"]
        assert summary.by_department[0].critical == 2
        assert [i.ticket_code for i in summary.critical_issues] == ["TK-1", "TK-3"]
        assert summary.overall_recurrent_incidents == 0
        assert summary.recommendations == [
            "📈 Plusieurs tickets nécessitent une escalade. "
            "Vérifier la disponibilité des experts."
        ]

    def test_defaults_to_today(self, make_ticket, make_analysis):
        """Test the date stamp defaults to today."""
        summary = build_daily_summary([make_ticket("1")], [make_analysis("1")])
        assert summary.report_date == date.today()

    def test_empty_batch(self):
        """Test an empty batch gives an empty summary."""
        summary = build_daily_summary([], [])
        assert summary.total_tickets == 0
        assert summary.by_department == []
        assert summary.recommendations == []

    def test_mismatch_raises(self, make_ticket, make_analysis):
        """Test cardinality mismatch propagates."""
        with pytest.raises(CardinalityMismatchError):
            build_daily_summary([make_ticket("1")], [make_analysis("1"), make_analysis("2")])


# =============================================================================
# Filters and reports
# =============================================================================

class TestApplyFilters:
    """Tests for apply_filters."""

    @pytest.fixture
    def dated_batch(self, make_ticket, make_analysis):
        tickets = [
            make_ticket("1", department="IT", created_at=datetime(2026, 10, 1, 9)),
            make_ticket("2", department="RH", created_at=datetime(2026, 10, 10, 9),
                        status=TicketStatus.CLOSED),
            make_ticket("3", department="IT", created_at=datetime(2026, 10, 19, 9)),
        ]
        analyses = [
            make_analysis("1", department="IT", priority=Priority.CRITICAL),
            make_analysis("2", department="RH", priority=Priority.LOW),
            make_analysis("3", department="IT", priority=Priority.LOW, is_recurrent=True),
        ]
        return tickets, analyses

    def test_no_filter_keeps_everything(self, dated_batch):
        """Test empty filters keep every pair."""
        tickets, analyses = apply_filters(*dated_batch, AnalysisFilters())
        assert [t.id for t in tickets] == ["1", "2", "3"]
        assert [a.ticket_id for a in analyses] == ["1", "2", "3"]

    def test_inclusive_date_range(self, dated_batch):
        """Test date bounds are inclusive."""
        filters = AnalysisFilters(start_date=date(2026, 10, 10), end_date=date(2026, 10, 19))
        tickets, _ = apply_filters(*dated_batch, filters)
        assert [t.id for t in tickets] == ["2", "3"]

    def test_department_and_priority(self, dated_batch):
        """Test department and priority criteria combine."""
        filters = AnalysisFilters(departments=["IT"], priorities=[Priority.LOW])
        _, analyses = apply_filters(*dated_batch, filters)
        assert [a.ticket_id for a in analyses] == ["3"]

    def test_status(self, dated_batch):
        """Test status criterion."""
        filters = AnalysisFilters(statuses=[TicketStatus.CLOSED])
        tickets, _ = apply_filters(*dated_batch, filters)
        assert [t.id for t in tickets] == ["2"]

    def test_exclude_recurrent(self, dated_batch):
        """Test recurrent analyses can be excluded."""
        _, analyses = apply_filters(*dated_batch, AnalysisFilters(include_recurrent=False))
        assert [a.ticket_id for a in analyses] == ["1", "2"]


class TestBuildReport:
    """Tests for build_report."""

    def test_report_envelope(self, sample_tickets):
        """Test the report bundles summary and filtered analyses."""
        analyses = TicketAnalyzer().analyze_batch(sample_tickets)
        stamp = datetime(2026, 10, 19, 18, 0)

        report = build_report(
            sample_tickets,
            analyses,
            period="custom",
            filters=AnalysisFilters(departments=["Finance"]),
            generated_at=stamp,
            today=date(2026, 10, 19),
        )

        assert report.generated_at == stamp
        assert report.period == "custom"
        assert report.summary.total_tickets == 2
        assert [a.ticket_id for a in report.detailed_analysis] == ["2", "5"]
        assert report.export_formats == ["excel", "csv"]
