"""Pydantic schemas for the AI email classification API."""

from pydantic import Field

from api.v1.schemas.common import CamelModel


class ClassifyEmailRequest(CamelModel):
    subject: str = Field(..., max_length=1000)
    sender: str = Field(..., max_length=500)
    body: str = Field(..., max_length=50_000)
    snippet: str = Field("", max_length=2000)
    is_read: bool = False


class ClassifyEmailResponse(CamelModel):
    prospect_stage: str
    confidence: float
    sentiment: float
    needs_follow_up: bool
    follow_up_suggestion: str
    suggested_response: str
    urgency_level: str
    key_indicators: list[str]
    reasoning: str
    source: str
