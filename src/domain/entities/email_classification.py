"""Email classification value objects."""

from dataclasses import dataclass, field
from enum import StrEnum


class ProspectStage(StrEnum):
    COLD_OUTREACH = "cold-outreach"
    INTERESTED = "interested"
    QUALIFIED = "qualified"
    PROPOSAL = "proposal"
    NEGOTIATION = "negotiation"
    CLOSED_WON = "closed-won"
    CLOSED_LOST = "closed-lost"
    FOLLOW_UP = "follow-up"


class UrgencyLevel(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class ClassificationSource(StrEnum):
    LLM = "llm"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class EmailMessage:
    """The parts of an email the classifier looks at."""

    subject: str
    sender: str
    body: str
    snippet: str = ""
    is_read: bool = False


@dataclass(frozen=True)
class EmailClassification:
    prospect_stage: ProspectStage
    confidence: float
    sentiment: float
    needs_follow_up: bool
    follow_up_suggestion: str
    urgency_level: UrgencyLevel
    reasoning: str
    source: ClassificationSource
    suggested_response: str = ""
    key_indicators: list[str] = field(default_factory=list)
