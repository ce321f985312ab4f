"""
Router for service health endpoints.

Handles:
- Liveness and API key configuration status
- Live check of the API key against the completion provider
"""

import logging

from fastapi import APIRouter, Depends

# Handle both package imports and standalone imports
try:
    from ..models import HealthResponse, TestKeyResponse
    from ..services.ai import AIService, get_ai_service
except ImportError:
    from models import HealthResponse, TestKeyResponse
    from services.ai import AIService, get_ai_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(
    ai_service: AIService = Depends(get_ai_service),
) -> HealthResponse:
    """Health check endpoint. Reports whether the API key is set, never its value."""
    return HealthResponse(
        status="ok",
        message="Server is running with Groq API",
        api_key_configured=ai_service.api_key_configured,
    )


@router.get(
    "/test-key",
    response_model=TestKeyResponse,
    response_model_exclude_none=True,
)
async def test_key(
    ai_service: AIService = Depends(get_ai_service),
) -> TestKeyResponse:
    """Probe the provider's model listing with the configured API key."""
    result = await ai_service.test_key()
    logger.info("API key check: valid=%s", result.valid)
    return result
