"""
Unit tests for the keyword-based incident classifier.

Tests cover:
- Category scoring and canonical tie-break
- Priority scan order and status fallback
- Lexicon injection
"""

import pytest

from incident_analysis.classifier import IncidentClassifier
from incident_analysis.lexicon import Lexicon
from incident_analysis.models import IncidentCategory, Priority, TicketStatus


@pytest.fixture
def classifier() -> IncidentClassifier:
    """Create a classifier with the default lexicon."""
    return IncidentClassifier()


# =============================================================================
# Category inference
# =============================================================================

class TestScoreCategories:
    """Tests for category scoring."""

    def test_counts_distinct_phrases(self, classifier: IncidentClassifier):
        """Test each matching phrase counts once."""
        scores = classifier.score_categories("wifi et vpn, encore le wifi")
        assert scores[IncidentCategory.NETWORK] == 2

    def test_substring_matching(self, classifier: IncidentClassifier):
        """Test phrases match inside longer words."""
        # "email" contains both "email" and "mail"
        scores = classifier.score_categories("email")
        assert scores[IncidentCategory.EMAIL] == 2

    def test_case_insensitive(self, classifier: IncidentClassifier):
        """Test text is lower-cased before matching."""
        scores = classifier.score_categories("Problème VPN")
        assert scores[IncidentCategory.NETWORK] == 1

    def test_excludes_fallback(self, classifier: IncidentClassifier):
        """Test the fallback category is never scored."""
        assert IncidentCategory.OTHER not in classifier.score_categories("wifi")


class TestClassifyCategory:
    """Tests for category selection."""

    def test_highest_score_wins(self, classifier: IncidentClassifier):
        """Test the category with most matches is selected."""
        text = "virus et malware détectés par l'antivirus, wifi coupé"
        assert classifier.classify_category(text) == IncidentCategory.SECURITY

    def test_no_match_is_other(self, classifier: IncidentClassifier):
        """Test zero score falls back to OTHER."""
        assert classifier.classify_category("bonjour") == IncidentCategory.OTHER

    def test_empty_text_is_other(self, classifier: IncidentClassifier):
        """Test empty text falls back to OTHER."""
        assert classifier.classify_category("") == IncidentCategory.OTHER

    @pytest.mark.parametrize("text", ["wifi imprimante", "imprimante wifi"])
    def test_tie_goes_to_first_canonical_category(
        self, classifier: IncidentClassifier, text: str
    ):
        """Test ties resolve to the earliest category regardless of text order."""
        assert classifier.classify_category(text) == IncidentCategory.NETWORK

    def test_tie_between_later_categories(self, classifier: IncidentClassifier):
        """Test tie-break between Software and Performance."""
        text = "lenteur de l'application"
        assert classifier.classify_category(text) == IncidentCategory.SOFTWARE

    def test_tie_break_ignores_lexicon_insertion_order(self):
        """Test canonical order applies even if the lexicon lists categories differently."""
        lexicon = Lexicon(categories={
            IncidentCategory.DATA: ["fichier"],
            IncidentCategory.ACCESS: ["compte"],
        })
        classifier = IncidentClassifier(lexicon)
        assert classifier.classify_category("fichier du compte") == IncidentCategory.ACCESS


# =============================================================================
# Priority inference
# =============================================================================

class TestClassifyPriority:
    """Tests for priority tier inference."""

    @pytest.mark.parametrize("status", list(TicketStatus))
    def test_critical_phrase_wins_regardless_of_status(
        self, classifier: IncidentClassifier, status: TicketStatus
    ):
        """Test critical phrases always give critical."""
        assert classifier.classify_priority("panne totale du site", status) == Priority.CRITICAL

    def test_first_matching_tier_wins(self, classifier: IncidentClassifier):
        """Test higher tiers are scanned before lower ones."""
        text = "question: lenteur importante depuis ce matin"
        assert classifier.classify_priority(text, TicketStatus.OPEN) == Priority.HIGH

    def test_medium_phrase(self, classifier: IncidentClassifier):
        """Test medium phrases."""
        text = "problème intermittent sur le poste"
        assert classifier.classify_priority(text, TicketStatus.CLOSED) == Priority.MEDIUM

    def test_low_phrase(self, classifier: IncidentClassifier):
        """Test low phrases give low even for open tickets."""
        text = "demande de documentation"
        assert classifier.classify_priority(text, TicketStatus.OPEN) == Priority.LOW

    def test_case_insensitive(self, classifier: IncidentClassifier):
        """Test phrases match regardless of case."""
        assert classifier.classify_priority("RANSOMWARE", TicketStatus.OPEN) == Priority.CRITICAL

    def test_open_without_match_is_medium(self, classifier: IncidentClassifier):
        """Test open tickets default to medium."""
        assert classifier.classify_priority("bonjour", TicketStatus.OPEN) == Priority.MEDIUM

    @pytest.mark.parametrize(
        "status",
        [TicketStatus.IN_PROGRESS, TicketStatus.RESOLVED, TicketStatus.CLOSED],
    )
    def test_other_status_without_match_is_low(
        self, classifier: IncidentClassifier, status: TicketStatus
    ):
        """Test non-open tickets default to low."""
        assert classifier.classify_priority("", status) == Priority.LOW


class TestClassify:
    """Tests for whole-ticket classification."""

    def test_uses_subject_and_description(self, classifier, make_ticket):
        """Test both text fields contribute."""
        ticket = make_ticket(motif="Souci", description="Le VPN ne répond plus, serveur down")
        category, priority = classifier.classify(ticket)
        assert category == IncidentCategory.NETWORK
        assert priority == Priority.CRITICAL

    def test_injected_lexicon(self, make_ticket):
        """Test a custom lexicon drives classification."""
        lexicon = Lexicon(
            categories={IncidentCategory.HARDWARE: ["badgeuse"]},
            priorities={Priority.HIGH: ["bloquant"]},
        )
        classifier = IncidentClassifier(lexicon)
        ticket = make_ticket(motif="Badgeuse HS", description="bloquant pour l'entrée")

        assert classifier.lexicon is lexicon
        assert classifier.classify(ticket) == (IncidentCategory.HARDWARE, Priority.HIGH)
