"""AI assistance API routes."""

from fastapi import APIRouter, Depends, Request

from api.dependencies.auth import CurrentUser
from api.v1.dependencies import get_email_classification_service
from api.v1.schemas.ai import ClassifyEmailRequest, ClassifyEmailResponse
from core.rate_limit import limiter
from domain.entities.email_classification import EmailMessage
from domain.services.email_classification_service import EmailClassificationService

router = APIRouter(prefix="/ai", tags=["ai"])


@router.post(
    "/classify-email",
    response_model=ClassifyEmailResponse,
    summary="Classify an email by prospect stage and urgency",
    responses={
        200: {"description": "Classification; source is 'fallback' when the LLM is unavailable"},
    },
)
@limiter.limit("20/minute")  # type: ignore[untyped-decorator]
async def classify_email(
    request: Request,
    body: ClassifyEmailRequest,
    user: CurrentUser,
    service: EmailClassificationService = Depends(get_email_classification_service),
) -> ClassifyEmailResponse:
    """Never fails on LLM errors: the keyword fallback answers instead."""
    result = await service.classify(
        EmailMessage(
            subject=body.subject,
            sender=body.sender,
            body=body.body,
            snippet=body.snippet,
            is_read=body.is_read,
        )
    )
    return ClassifyEmailResponse(
        prospect_stage=result.prospect_stage.value,
        confidence=result.confidence,
        sentiment=result.sentiment,
        needs_follow_up=result.needs_follow_up,
        follow_up_suggestion=result.follow_up_suggestion,
        suggested_response=result.suggested_response,
        urgency_level=result.urgency_level.value,
        key_indicators=result.key_indicators,
        reasoning=result.reasoning,
        source=result.source.value,
    )
