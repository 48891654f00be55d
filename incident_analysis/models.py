"""
Data models for the Incident Analysis Engine.

Uses Pydantic for robust data validation and serialization.
Engine outputs are immutable value objects: they are created once and
handed over to the caller.
"""

from datetime import date, datetime
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel


class Priority(str, Enum):
    """Ordered severity scale: low < medium < high < critical."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        """Ordinal position on the severity scale (low is 0)."""
        return list(Priority).index(self)

    def bumped(self) -> "Priority":
        """Return the next level up; critical stays critical."""
        levels = list(Priority)
        return levels[min(self.rank + 1, len(levels) - 1)]


class IncidentCategory(str, Enum):
    """
    Incident categories in canonical order.

    The definition order is significant: category score ties are broken
    in favour of the member defined first. OTHER is the fallback and is
    never scored.
    """

    NETWORK = "Network"
    HARDWARE = "Hardware"
    SOFTWARE = "Software"
    ACCESS = "Access"
    EMAIL = "Email"
    SECURITY = "Security"
    DATA = "Data"
    PERFORMANCE = "Performance"
    OTHER = "Other"

    @classmethod
    def scored(cls) -> list["IncidentCategory"]:
        """Categories that take part in keyword scoring, in canonical order."""
        return [category for category in cls if category is not cls.OTHER]


class TicketStatus(str, Enum):
    """Lifecycle status of a ticket in the ticket store."""

    OPEN = "open"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    CLOSED = "closed"


class TicketRecord(BaseModel):
    """
    A support ticket as handed over by the ticket store.

    Accepts both snake_case and the camelCase keys used by the ticket
    store (``firstName``, ``createdAt``...).

    Attributes:
        id: Unique ticket identifier
        code: Short human-readable ticket code
        first_name: Requester first name
        last_name: Requester last name
        department: Requester department, used verbatim as grouping key
        motif: Free-text subject of the ticket
        description: Free-text description of the ticket
        status: Lifecycle status
        created_at: Creation timestamp
    """

    id: str = Field(..., description="Unique ticket identifier")
    code: str = Field(default="", description="Short ticket code")
    first_name: str = Field(default="", description="Requester first name")
    last_name: str = Field(default="", description="Requester last name")
    department: str = Field(..., min_length=1, description="Requester department")
    motif: str = Field(default="", description="Ticket subject")
    description: str = Field(default="", description="Ticket description")
    status: TicketStatus = Field(default=TicketStatus.OPEN, description="Lifecycle status")
    created_at: datetime = Field(..., description="Creation timestamp")

    # Passthrough fields from the ticket store, unused by the analysis
    user_id: str = Field(default="", description="Requester user id")
    email: str = Field(default="", description="Requester email")
    location: str = Field(default="", description="Intervention place")
    phone: str = Field(default="", description="Requester phone")
    intervention_date: Optional[str] = Field(default=None, description="Planned intervention date")
    updated_at: Optional[datetime] = Field(default=None, description="Last update timestamp")

    model_config = {
        "frozen": True,
        "alias_generator": to_camel,
        "populate_by_name": True,
    }

    @field_validator("updated_at", mode="before")
    @classmethod
    def empty_updated_at(cls, v):
        """Treat an empty update timestamp as missing."""
        if v == "":
            return None
        return v

    @property
    def requester_name(self) -> str:
        """Full requester name."""
        return f"{self.first_name} {self.last_name}"

    def combined_text(self) -> str:
        """Get lower-cased subject and description for keyword matching."""
        return f"{self.motif} {self.description}".lower()


class AnalysisRecord(BaseModel):
    """
    Result of the analysis of a single ticket.

    Note: ``is_recurrent`` is always False. Recurrence is modelled but no
    historical matching is implemented, so ``recurrent_reason`` and
    ``related_tickets`` stay empty as well.
    """

    ticket_id: str = Field(..., description="Source ticket id")
    ticket_code: str = Field(default="", description="Source ticket code")
    department: str = Field(..., description="Source ticket department")
    incident_category: IncidentCategory
    priority: Priority
    urgency: Priority
    impact: Priority
    summary: str = Field(default="", description="Human-readable summary")
    proposed_solutions: tuple[str, ...] = ()
    resolution_steps: tuple[str, ...] = ()
    required_skills: tuple[str, ...] = ()
    is_recurrent: bool = False
    recurrent_reason: Optional[str] = None
    estimated_resolution_time: str = ""
    escalation_needed: bool = False
    related_tickets: tuple[str, ...] = ()
    analyzed_at: datetime

    model_config = {"frozen": True}


class TopIssue(BaseModel):
    """Most frequent issue of a department (reserved, never populated)."""

    issue: str
    count: int = Field(default=0, ge=0)

    model_config = {"frozen": True}


class DepartmentStats(BaseModel):
    """Per-department rollup of ticket counts by priority tier."""

    department: str
    critical: int = Field(default=0, ge=0)
    high: int = Field(default=0, ge=0)
    medium: int = Field(default=0, ge=0)
    low: int = Field(default=0, ge=0)
    total: int = Field(default=0, ge=0)
    recurrent_incidents: int = Field(default=0, ge=0)
    average_resolution_time: str = "0h"
    top_issues: list[TopIssue] = Field(default_factory=list)

    model_config = {"frozen": True}

    def count_for(self, priority: Priority) -> int:
        """Get the ticket count for a priority tier."""
        return getattr(self, priority.value)


class CriticalIssue(BaseModel):
    """Excerpt of a critical ticket shown in the daily summary."""

    ticket_code: str
    department: str
    issue: str

    model_config = {"frozen": True}


class DailySummary(BaseModel):
    """Daily rollup of an analysis run."""

    report_date: date
    total_tickets: int = Field(default=0, ge=0)
    by_department: list[DepartmentStats] = Field(default_factory=list)
    overall_recurrent_incidents: int = Field(default=0, ge=0)
    critical_issues: list[CriticalIssue] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)

    model_config = {"frozen": True}


class AnalysisFilters(BaseModel):
    """Optional criteria restricting which tickets enter a report."""

    start_date: Optional[date] = None
    end_date: Optional[date] = None
    departments: Optional[list[str]] = None
    priorities: Optional[list[Priority]] = None
    statuses: Optional[list[TicketStatus]] = None
    include_recurrent: bool = True

    model_config = {"frozen": True}

    def is_empty(self) -> bool:
        """Check if no criterion is set."""
        return (
            self.start_date is None
            and self.end_date is None
            and not self.departments
            and not self.priorities
            and not self.statuses
            and self.include_recurrent
        )


class AnalysisReport(BaseModel):
    """Complete report envelope: summary plus detailed analyses."""

    generated_at: datetime
    period: Literal["daily", "weekly", "monthly", "custom"] = "daily"
    filters: AnalysisFilters = Field(default_factory=AnalysisFilters)
    summary: DailySummary
    detailed_analysis: list[AnalysisRecord] = Field(default_factory=list)
    export_formats: list[Literal["pdf", "excel", "csv"]] = Field(
        default_factory=lambda: ["excel", "csv"]
    )

    model_config = {"frozen": True}
