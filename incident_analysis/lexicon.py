"""
Keyword lexicons for incident classification.

A Lexicon bundles the phrase tables used by the classifier and the triage
deriver. It is immutable configuration: build one (or load it from YAML)
and inject it where it is needed.
"""

import logging
from collections.abc import Mapping
from pathlib import Path
from types import MappingProxyType
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from .models import IncidentCategory, Priority


logger = logging.getLogger(__name__)


class LexiconError(Exception):
    """Error when loading a lexicon."""
    pass


def _normalize_phrases(phrases):
    """Lower-case and strip phrases, dropping empty ones."""
    if isinstance(phrases, str) or not isinstance(phrases, (list, tuple, set, frozenset)):
        return phrases
    normalized = (str(phrase).strip().lower() for phrase in phrases if phrase is not None)
    return tuple(phrase for phrase in normalized if phrase)


def _normalize_tables(tables):
    """Normalize the phrases of every entry of a keyed table."""
    if not isinstance(tables, Mapping):
        return tables
    return {key: _normalize_phrases(phrases) for key, phrases in tables.items()}


class Lexicon(BaseModel):
    """
    Phrase tables used for keyword matching.

    Keyed tables are exposed as read-only mappings and phrase lists as
    tuples: a Lexicon, the default one included, cannot be altered once
    built.

    Attributes:
        categories: Characteristic phrases per incident category
        priorities: Characteristic phrases per priority tier
        scope_terms: Terms signalling that several users are affected
        production_terms: Terms signalling a production or customer impact
    """

    categories: Mapping[IncidentCategory, tuple[str, ...]] = Field(
        default_factory=dict, validate_default=True
    )
    priorities: Mapping[Priority, tuple[str, ...]] = Field(
        default_factory=dict, validate_default=True
    )
    scope_terms: tuple[str, ...] = ()
    production_terms: tuple[str, ...] = ()

    model_config = {"frozen": True}

    @field_validator("categories", mode="before")
    @classmethod
    def validate_categories(cls, v):
        """Normalize phrases; the fallback category cannot carry keywords."""
        if isinstance(v, Mapping) and IncidentCategory.OTHER in v:
            raise ValueError("the fallback category 'Other' cannot have keywords")
        return _normalize_tables(v)

    @field_validator("priorities", mode="before")
    @classmethod
    def validate_priorities(cls, v):
        """Normalize priority phrases."""
        return _normalize_tables(v)

    @field_validator("categories", "priorities")
    @classmethod
    def freeze_tables(cls, v: Mapping) -> Mapping:
        """Wrap keyed tables in a read-only view."""
        return MappingProxyType(dict(v))

    @field_validator("scope_terms", "production_terms", mode="before")
    @classmethod
    def validate_terms(cls, v):
        """Normalize heuristic terms."""
        return _normalize_phrases(v)

    def phrases_for_category(self, category: IncidentCategory) -> tuple[str, ...]:
        """Get the phrases of a category (empty if the category has none)."""
        return self.categories.get(category, ())

    def phrases_for_priority(self, priority: Priority) -> tuple[str, ...]:
        """Get the phrases of a priority tier (empty if the tier has none)."""
        return self.priorities.get(priority, ())


DEFAULT_LEXICON = Lexicon(
    categories={
        IncidentCategory.NETWORK: (
            "connexion",
            "réseau",
            "wifi",
            "internet",
            "vpn",
            "routeur",
            "switch",
            "câble",
        ),
        IncidentCategory.HARDWARE: (
            "ordinateur",
            "écran",
            "clavier",
            "souris",
            "imprimante",
            "scanner",
            "disque dur",
            "mémoire",
            "alimentation",
            "serveur",
        ),
        IncidentCategory.SOFTWARE: (
            "application",
            "logiciel",
            "programme",
            "installation",
            "mise à jour",
            "licence",
            "bug",
            "crash",
        ),
        IncidentCategory.ACCESS: (
            "mot de passe",
            "compte",
            "authentification",
            "autorisation",
            "accès",
            "permission",
            "droits",
        ),
        IncidentCategory.EMAIL: (
            "email",
            "courriel",
            "outlook",
            "messagerie",
            "mail",
            "envoi",
            "réception",
        ),
        IncidentCategory.SECURITY: (
            "virus",
            "malware",
            "phishing",
            "sécurité",
            "antivirus",
            "firewall",
            "intrusion",
        ),
        IncidentCategory.DATA: (
            "données",
            "fichier",
            "sauvegarde",
            "restauration",
            "corruption",
            "perte",
            "récupération",
        ),
        IncidentCategory.PERFORMANCE: (
            "lenteur",
            "performance",
            "optimisation",
            "rapidité",
            "vitesse",
            "ralentissement",
        ),
    },
    priorities={
        Priority.CRITICAL: (
            "serveur down",
            "panne totale",
            "système hors ligne",
            "données perdues",
            "sécurité compromise",
            "virus",
            "ransomware",
            "accès bloqué",
            "production arrêtée",
        ),
        Priority.HIGH: (
            "lenteur importante",
            "erreur récurrente",
            "accès limité",
            "fonctionnalité essentielle",
            "plusieurs utilisateurs",
            "département bloqué",
            "perte de connexion",
        ),
        Priority.MEDIUM: (
            "problème intermittent",
            "lenteur occasionnelle",
            "erreur sporadique",
            "un utilisateur",
            "fonctionnalité secondaire",
            "amélioration",
        ),
        Priority.LOW: (
            "question",
            "demande information",
            "formation",
            "documentation",
            "conseil",
            "optimisation",
        ),
    },
    scope_terms=("plusieurs", "tous", "équipe", "département"),
    production_terms=("production", "client", "critique", "urgent"),
)


def _parse_keyed_tables(
    raw: Any,
    enum_cls,
    section: str,
    default: Mapping,
) -> dict:
    """
    Parse a ``{name: [phrases]}`` YAML section into an enum-keyed dict.

    Keys are matched case-insensitively against enum values and names.
    Unknown keys and malformed entries are skipped with a warning.
    """
    if raw is None:
        logger.info(f"No '{section}' section in lexicon file, using defaults")
        return default

    if not isinstance(raw, dict):
        raise LexiconError(f"Section '{section}' must be a mapping")

    lookup = {}
    for member in enum_cls:
        lookup[member.value.lower()] = member
        lookup[member.name.lower()] = member

    tables = {}
    for key, phrases in raw.items():
        member = lookup.get(str(key).strip().lower())
        if member is None:
            logger.warning(f"Skipping unknown {section} key '{key}' in lexicon file")
            continue
        if isinstance(phrases, str):
            phrases = [phrases]
        if not isinstance(phrases, list):
            logger.warning(f"Skipping malformed {section} entry '{key}': expected a list")
            continue
        tables[member] = phrases

    return tables


def _parse_terms(raw: Any, section: str, default: tuple[str, ...]) -> tuple[str, ...]:
    """Parse a flat list of terms, falling back to the default list."""
    if raw is None:
        return default
    if isinstance(raw, str):
        return (raw,)
    if not isinstance(raw, list):
        raise LexiconError(f"Section '{section}' must be a list of terms")
    return tuple(raw)


def parse_lexicon(content: str, base: Optional[Lexicon] = None) -> Lexicon:
    """
    Parse YAML content into a Lexicon.

    Sections missing from the document are taken from ``base``
    (the default lexicon when not given).

    Args:
        content: Raw YAML document.
        base: Lexicon providing values for missing sections.

    Returns:
        Parsed Lexicon.

    Raises:
        LexiconError: If the YAML is invalid or a section is malformed.
    """
    base = base or DEFAULT_LEXICON

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        logger.error(f"YAML parsing error in lexicon: {e}")
        raise LexiconError(f"Invalid YAML: {e}") from e

    if not data:
        logger.warning("Empty lexicon document, using base lexicon")
        return base

    if not isinstance(data, dict):
        raise LexiconError("Lexicon document must be a mapping")

    # Accept documents nested under a top-level "lexicon" key
    if isinstance(data.get("lexicon"), dict):
        data = data["lexicon"]

    try:
        lexicon = Lexicon(
            categories=_parse_keyed_tables(
                data.get("categories"), IncidentCategory, "categories", base.categories
            ),
            priorities=_parse_keyed_tables(
                data.get("priorities"), Priority, "priorities", base.priorities
            ),
            scope_terms=_parse_terms(
                data.get("scope_terms"), "scope_terms", base.scope_terms
            ),
            production_terms=_parse_terms(
                data.get("production_terms"), "production_terms", base.production_terms
            ),
        )
    except ValidationError as e:
        raise LexiconError(f"Invalid lexicon: {e}") from e

    total_phrases = sum(len(phrases) for phrases in lexicon.categories.values())
    logger.info(
        f"Parsed lexicon: {len(lexicon.categories)} categories, "
        f"{total_phrases} category phrases, {len(lexicon.priorities)} priority tiers"
    )
    return lexicon


def load_lexicon(path: Path) -> Lexicon:
    """
    Load a lexicon from a YAML file.

    Args:
        path: Path to the YAML file.

    Returns:
        Parsed Lexicon.

    Raises:
        LexiconError: If the file cannot be read or parsed.
    """
    logger.info(f"Loading lexicon from {path}")
    try:
        content = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        logger.error(f"Cannot read lexicon file {path}: {e}")
        raise LexiconError(f"Cannot read lexicon file: {e}") from e

    return parse_lexicon(content)
