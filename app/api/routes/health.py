from __future__ import annotations

from fastapi import APIRouter

from app.schemas.ingredient import HealthResponse

router = APIRouter(tags=["Health"])

HEALTH_MESSAGE = "Kosmetik Labor AI backend is running"


@router.get("/health", response_model=HealthResponse)
def health_check() -> HealthResponse:
    """Health check endpoint.

    Always answers 200; it does not probe the AI service.
    """

    return HealthResponse(status="OK", message=HEALTH_MESSAGE)
