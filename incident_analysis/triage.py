"""
Urgency and impact derivation.

Expands a priority tier into separate urgency and impact levels using two
text heuristics: multi-user scope raises impact, production impact raises
urgency. Neither heuristic can lower a level.
"""

from dataclasses import dataclass
from typing import Optional

from .lexicon import DEFAULT_LEXICON, Lexicon
from .models import Priority


@dataclass(frozen=True)
class Triage:
    """Urgency and impact of a ticket."""

    urgency: Priority
    impact: Priority


def mentions_any(text: str, terms: tuple[str, ...]) -> bool:
    """Check whether any term occurs in the text, case-insensitively."""
    text = text.lower()
    return any(term in text for term in terms)


def derive_triage(
    text: str,
    priority: Priority,
    lexicon: Optional[Lexicon] = None,
) -> Triage:
    """
    Derive urgency and impact from a priority tier and the ticket text.

    Rules:
      1. Both levels start at the priority tier.
      2. Scope terms (several users, team, department) raise impact by
         one level; critical stays critical.
      3. Production terms (production, customer, urgent) raise urgency to
         high when the tier is low, to critical otherwise.

    Args:
        text: Ticket text (subject and description).
        priority: Priority tier inferred by the classifier.
        lexicon: Lexicon providing the scope and production terms.

    Returns:
        Triage with the derived urgency and impact.
    """
    lexicon = lexicon or DEFAULT_LEXICON

    urgency = priority
    impact = priority

    if mentions_any(text, lexicon.scope_terms):
        impact = priority.bumped()

    if mentions_any(text, lexicon.production_terms):
        urgency = Priority.HIGH if priority == Priority.LOW else Priority.CRITICAL

    return Triage(urgency=urgency, impact=impact)
