"""
Health check endpoint schemas.

The health endpoints are PUBLIC (no authentication required).
"""

from typing import List, Optional

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """
    Response model for GET /health endpoint.

    Used by load balancers, monitoring systems, and deployment checks.
    """

    status: str = Field(
        default="ok",
        description="Health status of the API (always 'ok' if responding)",
        examples=["ok"]
    )

    class Config:
        """Pydantic model configuration."""
        json_schema_extra = {
            "example": {
                "status": "ok"
            }
        }


class IntegrationStatus(BaseModel):
    """Availability of one external service the pipeline depends on."""
    service: str = Field(..., examples=["TMDB", "Google Books", "Gemini"])
    is_available: bool
    has_api_key: bool
    error: Optional[str] = None


class IntegrationsHealthResponse(BaseModel):
    status: str = Field(
        ...,
        description="'ok' when every integration is available, else 'degraded'",
        examples=["ok", "degraded"]
    )
    integrations: List[IntegrationStatus]
