"""
Keyword-based incident classifier.

Derives the incident category and the priority tier of a ticket from its
free-text fields, using an injected Lexicon.

Matching is plain substring search on lower-cased text: no stemming,
no tokenization, no weighting.
"""

import logging
from typing import Optional

from .lexicon import DEFAULT_LEXICON, Lexicon
from .models import IncidentCategory, Priority, TicketRecord, TicketStatus


logger = logging.getLogger(__name__)


class IncidentClassifier:
    """
    Classifier for help-desk tickets.

    Category inference scores every category by the number of its phrases
    found in the text; the highest score wins, ties going to the category
    defined first in IncidentCategory. Priority inference walks the tiers
    from critical down to low and stops at the first tier with a match.
    """

    FALLBACK_CATEGORY = IncidentCategory.OTHER

    # Tiers are scanned in this order; first match wins
    PRIORITY_SCAN_ORDER = (
        Priority.CRITICAL,
        Priority.HIGH,
        Priority.MEDIUM,
        Priority.LOW,
    )

    def __init__(self, lexicon: Optional[Lexicon] = None):
        """
        Initialize the classifier.

        Args:
            lexicon: Phrase tables to match against (defaults to DEFAULT_LEXICON).
        """
        self._lexicon = lexicon or DEFAULT_LEXICON

    @property
    def lexicon(self) -> Lexicon:
        return self._lexicon

    def score_categories(self, text: str) -> dict[IncidentCategory, int]:
        """
        Count matching phrases per category.

        Args:
            text: Text to score (lower-cased before matching).

        Returns:
            Score per scored category, in canonical category order.
        """
        text = text.lower()
        return {
            category: sum(
                1 for phrase in self._lexicon.phrases_for_category(category)
                if phrase in text
            )
            for category in IncidentCategory.scored()
        }

    def classify_category(self, text: str) -> IncidentCategory:
        """
        Infer the incident category of a text.

        Args:
            text: Ticket text (subject and description).

        Returns:
            Best scoring category, or OTHER when nothing matches.
        """
        scores = self.score_categories(text)
        max_score = max(scores.values(), default=0)

        if max_score == 0:
            return self.FALLBACK_CATEGORY

        # dicts keep insertion order, so the first hit is the canonical tie-break
        for category, score in scores.items():
            if score == max_score:
                return category

        return self.FALLBACK_CATEGORY

    def classify_priority(self, text: str, status: TicketStatus) -> Priority:
        """
        Infer the priority tier of a text.

        Args:
            text: Ticket text (subject and description).
            status: Ticket lifecycle status, used when no phrase matches.

        Returns:
            First tier (critical to low) with a matching phrase, otherwise
            MEDIUM for open tickets and LOW for the rest.
        """
        text = text.lower()

        for priority in self.PRIORITY_SCAN_ORDER:
            if any(phrase in text for phrase in self._lexicon.phrases_for_priority(priority)):
                return priority

        if status == TicketStatus.OPEN:
            return Priority.MEDIUM
        return Priority.LOW

    def classify(self, ticket: TicketRecord) -> tuple[IncidentCategory, Priority]:
        """
        Classify a ticket.

        Args:
            ticket: The ticket to classify.

        Returns:
            Tuple of (category, priority).
        """
        text = ticket.combined_text()
        category = self.classify_category(text)
        priority = self.classify_priority(text, ticket.status)

        logger.debug(f"Classified {ticket.id}: {category.value} / {priority.value}")
        return category, priority
