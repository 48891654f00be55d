"""
Remediation guidance for classified tickets.

Produces the summary, proposed solutions, resolution steps, required skills,
estimated resolution time and escalation flag of an analysis from
per-category and per-priority lookup tables.
"""

from .models import IncidentCategory, Priority, TicketRecord


SOLUTIONS_BY_CATEGORY: dict[IncidentCategory, list[str]] = {
    IncidentCategory.NETWORK: [
        "Vérifier les câbles réseau et connexions physiques",
        "Redémarrer les équipements réseau (routeur, switch)",
        "Vérifier la configuration IP (ipconfig /all)",
        "Tester la connectivité avec ping",
        "Vérifier les paramètres DNS",
        "Contacter le support réseau si le problème persiste",
    ],
    IncidentCategory.HARDWARE: [
        "Vérifier les connexions physiques du matériel",
        "Redémarrer l'équipement concerné",
        "Vérifier les pilotes dans le Gestionnaire de périphériques",
        "Tester avec un autre câble/port si possible",
        "Remplacer le matériel défectueux si nécessaire",
    ],
    IncidentCategory.SOFTWARE: [
        "Redémarrer l'application concernée",
        "Vérifier les mises à jour disponibles",
        "Réinstaller l'application si nécessaire",
        "Vérifier les logs d'erreur",
        "Contacter l'éditeur du logiciel",
    ],
    IncidentCategory.ACCESS: [
        "Réinitialiser le mot de passe via le système AD",
        "Vérifier les droits d'accès dans l'annuaire",
        "Débloquer le compte si nécessaire",
        "Créer un nouveau profil utilisateur si corruption",
    ],
    IncidentCategory.EMAIL: [
        "Vérifier les paramètres du compte email",
        "Tester l'envoi/réception avec webmail",
        "Vérifier la taille de la boîte mail",
        "Reconfigurer le client email",
        "Vérifier les règles de messagerie",
    ],
    IncidentCategory.SECURITY: [
        "Lancer un scan antivirus complet",
        "Isoler le poste du réseau si nécessaire",
        "Changer tous les mots de passe",
        "Vérifier les logs de sécurité",
        "Escalader au responsable sécurité",
    ],
    IncidentCategory.DATA: [
        "Vérifier les sauvegardes disponibles",
        "Tenter une restauration de fichiers",
        "Utiliser les outils de récupération de données",
        "Vérifier l'intégrité du disque",
        "Contacter l'équipe backup/restore",
    ],
    IncidentCategory.PERFORMANCE: [
        "Vérifier l'utilisation CPU et mémoire",
        "Fermer les applications inutiles",
        "Nettoyer les fichiers temporaires",
        "Défragmenter le disque si HDD",
        "Ajouter de la mémoire RAM si nécessaire",
    ],
}

GENERIC_SOLUTIONS = [
    "Collecter plus d'informations sur le problème",
    "Reproduire le problème pour mieux le comprendre",
    "Consulter la base de connaissances",
    "Escalader vers un expert si nécessaire",
]

SKILLS_BY_CATEGORY: dict[IncidentCategory, list[str]] = {
    IncidentCategory.NETWORK: ["Administration réseau", "TCP/IP", "Diagnostic réseau"],
    IncidentCategory.HARDWARE: ["Support matériel", "Diagnostic hardware"],
    IncidentCategory.SOFTWARE: ["Support applicatif", "Installation logiciels"],
    IncidentCategory.ACCESS: ["Active Directory", "Gestion des identités"],
    IncidentCategory.EMAIL: ["Administration messagerie", "Exchange/Outlook"],
    IncidentCategory.SECURITY: ["Sécurité informatique", "Analyse malware"],
    IncidentCategory.DATA: ["Backup/Restore", "Récupération de données"],
    IncidentCategory.PERFORMANCE: ["Optimisation système", "Diagnostic performance"],
}

GENERIC_SKILLS = ["Support IT général"]

BASE_RESOLUTION_STEPS = [
    "Contacter l'utilisateur pour confirmer le problème",
    "Collecter les informations détaillées",
    "Appliquer la solution proposée",
    "Tester et valider la résolution",
    "Documenter la solution dans le ticket",
    "Fermer le ticket avec l'accord de l'utilisateur",
]

# Replace the first two baseline steps for critical tickets
CRITICAL_LEADING_STEPS = [
    "🔴 URGENT - Contacter immédiatement l'utilisateur",
    "Évaluer l'impact sur la production",
    "Appliquer la solution de contournement si disponible",
]

RESOLUTION_TIME_BY_PRIORITY: dict[Priority, str] = {
    Priority.CRITICAL: "< 1 heure",
    Priority.HIGH: "2-4 heures",
    Priority.MEDIUM: "4-8 heures",
    Priority.LOW: "1-2 jours",
}

ESCALATION_PRIORITIES = frozenset({Priority.CRITICAL, Priority.HIGH})


class GuidanceGenerator:
    """
    Generator for human-readable remediation guidance.

    Lookup tables are passed at construction so they can be swapped;
    categories without a dedicated entry get the generic lists.
    """

    def __init__(
        self,
        solutions: dict[IncidentCategory, list[str]] | None = None,
        skills: dict[IncidentCategory, list[str]] | None = None,
    ):
        self._solutions = solutions if solutions is not None else SOLUTIONS_BY_CATEGORY
        self._skills = skills if skills is not None else SKILLS_BY_CATEGORY

    def build_summary(self, ticket: TicketRecord, category: IncidentCategory) -> str:
        """
        Build the summary sentence of a ticket.

        Args:
            ticket: The analysed ticket.
            category: Inferred incident category.

        Returns:
            Summary naming requester, department, category, subject and
            creation date (dd/mm/YYYY, local time for aware timestamps).
        """
        created_at = ticket.created_at
        if created_at.tzinfo is not None:
            created_at = created_at.astimezone()
        created = created_at.strftime("%d/%m/%Y")
        return (
            f"L'utilisateur {ticket.requester_name} ({ticket.department}) "
            f"signale un problème de type \"{category.value}\": {ticket.motif}. "
            f"Ticket créé le {created}."
        )

    def propose_solutions(self, category: IncidentCategory) -> list[str]:
        """Get candidate solutions for a category."""
        return list(self._solutions.get(category, GENERIC_SOLUTIONS))

    def required_skills(self, category: IncidentCategory) -> list[str]:
        """Get the skills needed to handle a category."""
        return list(self._skills.get(category, GENERIC_SKILLS))

    def resolution_steps(self, priority: Priority) -> list[str]:
        """Get the ordered resolution steps for a priority tier."""
        if priority == Priority.CRITICAL:
            return CRITICAL_LEADING_STEPS + BASE_RESOLUTION_STEPS[2:]
        return list(BASE_RESOLUTION_STEPS)

    def estimate_resolution_time(self, priority: Priority) -> str:
        """Get the estimated resolution time label; category has no effect."""
        return RESOLUTION_TIME_BY_PRIORITY[priority]

    def needs_escalation(self, priority: Priority) -> bool:
        """Check if the ticket should go to expert handling."""
        return priority in ESCALATION_PRIORITIES
