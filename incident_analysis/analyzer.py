"""
Per-ticket analysis.

Runs classification, triage and guidance generation for each ticket and
assembles one AnalysisRecord per ticket.
"""

import logging
from datetime import datetime
from typing import Optional

from .classifier import IncidentClassifier
from .guidance import GuidanceGenerator
from .lexicon import DEFAULT_LEXICON, Lexicon
from .models import AnalysisRecord, TicketRecord
from .triage import derive_triage


logger = logging.getLogger(__name__)


class TicketAnalyzer:
    """
    Analyzer producing an AnalysisRecord per ticket.

    Holds no per-ticket state: analysing one ticket never reads another
    ticket's data, so records can be produced in any order.
    """

    def __init__(
        self,
        lexicon: Optional[Lexicon] = None,
        guidance: Optional[GuidanceGenerator] = None,
    ):
        """
        Initialize the analyzer.

        Args:
            lexicon: Phrase tables for classification and triage.
            guidance: Guidance generator (defaults to the built-in tables).
        """
        self._lexicon = lexicon or DEFAULT_LEXICON
        self._classifier = IncidentClassifier(self._lexicon)
        self._guidance = guidance or GuidanceGenerator()

    def analyze(
        self,
        ticket: TicketRecord,
        analyzed_at: Optional[datetime] = None,
    ) -> AnalysisRecord:
        """
        Analyze a single ticket.

        Args:
            ticket: The ticket to analyze.
            analyzed_at: Analysis timestamp (defaults to local now).

        Returns:
            AnalysisRecord for the ticket.
        """
        text = ticket.combined_text()

        category, priority = self._classifier.classify(ticket)
        triage = derive_triage(text, priority, self._lexicon)

        analysis = AnalysisRecord(
            ticket_id=ticket.id,
            ticket_code=ticket.code,
            department=ticket.department,
            incident_category=category,
            priority=priority,
            urgency=triage.urgency,
            impact=triage.impact,
            summary=self._guidance.build_summary(ticket, category),
            proposed_solutions=self._guidance.propose_solutions(category),
            resolution_steps=self._guidance.resolution_steps(priority),
            required_skills=self._guidance.required_skills(category),
            # No history matching yet: recurrence is never detected
            is_recurrent=False,
            estimated_resolution_time=self._guidance.estimate_resolution_time(priority),
            escalation_needed=self._guidance.needs_escalation(priority),
            related_tickets=(),
            analyzed_at=analyzed_at or datetime.now().astimezone(),
        )

        logger.debug(
            f"Analyzed {ticket.id}: {category.value}, priority={priority.value}, "
            f"urgency={triage.urgency.value}, impact={triage.impact.value}"
        )
        return analysis

    def analyze_batch(
        self,
        tickets: list[TicketRecord],
        progress_interval: int = 25,
    ) -> list[AnalysisRecord]:
        """
        Analyze multiple tickets with progress logging.

        Any failure aborts the whole batch; no partial result is returned.

        Args:
            tickets: Tickets to analyze.
            progress_interval: Number of tickets between progress log lines.

        Returns:
            One AnalysisRecord per ticket, in input order.
        """
        total = len(tickets)
        analyzed_at = datetime.now().astimezone()
        analyses = []

        logger.info(f"Starting analysis of {total} tickets")

        for i, ticket in enumerate(tickets, 1):
            analyses.append(self.analyze(ticket, analyzed_at=analyzed_at))

            if i % progress_interval == 0 or i == total:
                logger.info(f"Progress: {i}/{total} tickets analyzed")

        logger.info(f"Analysis complete: {len(analyses)} tickets processed")
        return analyses
