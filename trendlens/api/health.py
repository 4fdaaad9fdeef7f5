"""
Health check API endpoints.
Provides service health status for monitoring and load balancing.
"""

from datetime import datetime
from fastapi import APIRouter, Request

from trendlens.models.schemas import HealthResponse
from trendlens.services.narrator import GeminiNarrator
from trendlens.config import get_settings

router = APIRouter(tags=["Health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health Check",
    description="Check the health status of the backend service and its dependencies."
)
async def health_check(request: Request) -> HealthResponse:
    """
    Health check endpoint.

    Checks:
    - Record store reachability
    - Narrator configuration (narration is optional, so its absence is not unhealthy)

    Returns:
        HealthResponse: Service health status with dependency details
    """
    services = {}

    analyzer = getattr(request.app.state, "analyzer", None)
    if analyzer is None:
        services["record_source"] = {"status": "unhealthy", "error": "analyzer not initialised"}
    else:
        try:
            count = analyzer.source.count() if hasattr(analyzer.source, "count") else None
            services["record_source"] = {"status": "healthy", "records": count}
        except Exception as e:
            services["record_source"] = {"status": "unhealthy", "error": str(e)}

    narrator = getattr(analyzer, "narrator", None)
    services["narrator"] = {
        "status": "healthy",
        "provider": "gemini" if isinstance(narrator, GeminiNarrator) else "fallback",
    }

    all_healthy = all(
        svc.get("status") == "healthy"
        for svc in services.values()
    )

    return HealthResponse(
        status="healthy" if all_healthy else "degraded",
        timestamp=datetime.utcnow(),
        version="1.0.0",
        services=services
    )


@router.get(
    "/",
    summary="Root",
    description="API root endpoint with basic service info."
)
async def root():
    """Root endpoint returning basic API information."""
    settings = get_settings()
    return {
        "service": settings.APP_NAME,
        "version": "1.0.0",
        "status": "running",
        "docs": "/docs",
        "health": "/health"
    }
