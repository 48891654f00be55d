"""Shared fixtures for the test suite."""

from datetime import datetime

import pytest

from incident_analysis.models import (
    AnalysisRecord,
    IncidentCategory,
    Priority,
    TicketRecord,
    TicketStatus,
)


ANALYZED_AT = datetime(2026, 10, 19, 14, 3, 5)


def build_ticket(
    ticket_id: str = "t-001",
    motif: str = "",
    description: str = "",
    department: str = "IT",
    status: TicketStatus = TicketStatus.OPEN,
    **kwargs,
) -> TicketRecord:
    """Create a ticket with sensible defaults."""
    values = {
        "id": ticket_id,
        "code": f"TK-{ticket_id}",
        "first_name": "Jean",
        "last_name": "Dupont",
        "department": department,
        "motif": motif,
        "description": description,
        "status": status,
        "created_at": datetime(2026, 10, 19, 8, 30),
    }
    values.update(kwargs)
    return TicketRecord(**values)


def build_analysis(
    ticket_id: str = "t-001",
    department: str = "IT",
    priority: Priority = Priority.MEDIUM,
    category: IncidentCategory = IncidentCategory.OTHER,
    **kwargs,
) -> AnalysisRecord:
    """Create an analysis record with sensible defaults."""
    values = {
        "ticket_id": ticket_id,
        "ticket_code": f"TK-{ticket_id}",
        "department": department,
        "incident_category": category,
        "priority": priority,
        "urgency": priority,
        "impact": priority,
        "summary": f"Résumé du ticket {ticket_id}",
        "estimated_resolution_time": "4-8 heures",
        "escalation_needed": priority in (Priority.CRITICAL, Priority.HIGH),
        "analyzed_at": ANALYZED_AT,
    }
    values.update(kwargs)
    return AnalysisRecord(**values)


@pytest.fixture
def make_ticket():
    """Factory fixture for tickets."""
    return build_ticket


@pytest.fixture
def make_analysis():
    """Factory fixture for analysis records."""
    return build_analysis


@pytest.fixture
def sample_tickets() -> list[TicketRecord]:
    """A small mixed batch across three departments."""
    return [
        build_ticket("1", motif="Panne totale du serveur de production", department="IT"),
        build_ticket("2", motif="Question sur la messagerie", department="Finance",
                     status=TicketStatus.CLOSED),
        build_ticket("3", motif="Virus détecté", description="Antivirus en alerte",
                     department="IT"),
        build_ticket("4", motif="Imprimante bloquée", department="RH"),
        build_ticket("5", motif="Lenteur importante de l'application", department="Finance"),
    ]
