"""
Health check routes for the Smart Advisor backend.

These endpoints are PUBLIC (no authentication required):
- GET /health: liveness for load balancers and deployment checks
- GET /health/integrations: availability of TMDB, Google Books and Gemini
"""

from fastapi import APIRouter

from smart_advisor.schemas.health import HealthResponse, IntegrationsHealthResponse
from smart_advisor.services.integration_service import check_integrations
from smart_advisor.utils.logging import get_logger

logger = get_logger(__name__)

# Create router with no prefix (mounted at root level in main.py)
router = APIRouter(tags=["system"])


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check endpoint",
    description=(
        "Public health check endpoint (no authentication required). "
        "Returns a simple status indicator for monitoring and load balancing."
    ),
    status_code=200,
)
async def health_check() -> HealthResponse:
    """
    Public health check endpoint.

    Example response:
        {
            "status": "ok"
        }
    """
    logger.debug("Health check endpoint called")

    return HealthResponse(status="ok")


@router.get(
    "/health/integrations",
    response_model=IntegrationsHealthResponse,
    summary="External integration status",
    description=(
        "Reports, per external service, whether an API key is configured and "
        "whether the service currently answers. A degraded catalog does not "
        "break recommendations; it only means placeholder art and ratings."
    ),
    status_code=200,
)
async def integrations_health() -> IntegrationsHealthResponse:
    integrations = await check_integrations()
    overall = "ok" if all(i.is_available for i in integrations) else "degraded"
    logger.info(f"Integration check: {overall}")
    return IntegrationsHealthResponse(status=overall, integrations=integrations)
