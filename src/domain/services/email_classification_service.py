"""Email classification: one bounded LLM call with a deterministic fallback."""

from typing import Any, Protocol

import orjson
import structlog

from domain.entities.email_classification import (
    ClassificationSource,
    EmailClassification,
    EmailMessage,
    ProspectStage,
    UrgencyLevel,
)

logger = structlog.get_logger()

URGENT_KEYWORDS = ("urgent", "asap", "immediately", "deadline", "time sensitive")
HIGH_KEYWORDS = ("important", "priority", "soon", "quick", "fast")
INDICATOR_KEYWORDS = (
    "interested",
    "budget",
    "timeline",
    "decision",
    "proposal",
    "pricing",
    "demo",
    "meeting",
    "call",
    "schedule",
    "urgent",
    "important",
    "questions",
    "information",
    "details",
    "features",
    "benefits",
)

SYSTEM_PROMPT = (
    "You are an email analyst specializing in sales prospect categorization. "
    "Reply with a single JSON object and nothing else."
)

PROMPT_TEMPLATE = """Analyze the following email.

Email Details:
- Subject: {subject}
- From: {sender}
- Body: {body}
- Snippet: {snippet}

Respond with JSON using exactly these keys:
{{
  "prospectStage": "one of: cold-outreach, interested, qualified, proposal, negotiation, closed-won, closed-lost, follow-up",
  "confidence": 0.0-1.0,
  "sentiment": -1.0-1.0,
  "needsFollowUp": true or false,
  "followUpSuggestion": "suggested follow-up action",
  "suggestedResponse": "template response",
  "urgencyLevel": "one of: low, medium, high, urgent",
  "keyIndicators": ["key", "phrases", "found"],
  "reasoning": "brief explanation"
}}"""


class IChatClient(Protocol):
    """Chat-completion endpoint. Implementations enforce their own timeout."""

    @property
    def configured(self) -> bool:
        ...

    async def complete(self, system: str, prompt: str) -> str:
        """Return the assistant message content."""
        ...


class EmailClassificationService:
    """Classifies inbound emails by prospect stage and urgency.

    Any failure of the LLM path (missing configuration, timeout, HTTP error,
    malformed output) yields the keyword-based fallback instead of an error.
    """

    def __init__(self, chat_client: IChatClient | None = None) -> None:
        self._client = chat_client

    async def classify(self, email: EmailMessage) -> EmailClassification:
        if not self._client or not self._client.configured:
            return self.fallback(email)

        prompt = PROMPT_TEMPLATE.format(
            subject=email.subject,
            sender=email.sender,
            body=email.body,
            snippet=email.snippet,
        )
        try:
            content = await self._client.complete(SYSTEM_PROMPT, prompt)
            return self._parse(content)
        except Exception as exc:
            logger.warning("email_classification_fallback", error=str(exc) or type(exc).__name__)
            return self.fallback(email)

    @staticmethod
    def fallback(email: EmailMessage) -> EmailClassification:
        """Deterministic keyword classification."""
        content = f"{email.subject} {email.body}".lower()

        if any(k in content for k in URGENT_KEYWORDS):
            urgency = UrgencyLevel.URGENT
        elif any(k in content for k in HIGH_KEYWORDS):
            urgency = UrgencyLevel.HIGH
        elif not email.is_read:
            urgency = UrgencyLevel.MEDIUM
        else:
            urgency = UrgencyLevel.LOW

        stage = (
            ProspectStage.INTERESTED
            if "interested" in email.body.lower()
            else ProspectStage.COLD_OUTREACH
        )
        name = email.sender.split("@")[0].split("<")[-1].strip() or "there"

        return EmailClassification(
            prospect_stage=stage,
            confidence=0.5,
            sentiment=0.0,
            needs_follow_up=not email.is_read,
            follow_up_suggestion=f'Follow up on "{email.subject}" within 2-3 business days',
            suggested_response=(
                f"Hi {name.capitalize()},\n\nThank you for your email regarding "
                f'"{email.subject}". I would love to discuss this further.\n\nBest regards'
            ),
            urgency_level=urgency,
            key_indicators=[k for k in INDICATOR_KEYWORDS if k in content],
            reasoning="Keyword analysis of the subject and body.",
            source=ClassificationSource.FALLBACK,
        )

    @staticmethod
    def _parse(content: str) -> EmailClassification:
        """Parse the model output; raises ValueError on anything unexpected."""
        start, end = content.find("{"), content.rfind("}")
        if start == -1 or end <= start:
            raise ValueError("No JSON object in model output")
        data: dict[str, Any] = orjson.loads(content[start : end + 1])

        indicators = data.get("keyIndicators") or []
        if not isinstance(indicators, list):
            raise ValueError("keyIndicators must be a list")

        return EmailClassification(
            prospect_stage=ProspectStage(data["prospectStage"]),
            confidence=min(max(float(data.get("confidence", 0.5)), 0.0), 1.0),
            sentiment=min(max(float(data.get("sentiment", 0.0)), -1.0), 1.0),
            needs_follow_up=bool(data.get("needsFollowUp", False)),
            follow_up_suggestion=str(data.get("followUpSuggestion", "")),
            suggested_response=str(data.get("suggestedResponse", "")),
            urgency_level=UrgencyLevel(data["urgencyLevel"]),
            key_indicators=[str(i) for i in indicators],
            reasoning=str(data.get("reasoning", "")),
            source=ClassificationSource.LLM,
        )
