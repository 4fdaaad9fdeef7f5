"""
FastAPI dependencies shared by the routers.
"""

from typing import Optional

from fastapi import HTTPException, Request

from trendlens.models.schemas import Platform
from trendlens.services.category_analyzer import CategoryAnalyzer


def get_analyzer(request: Request) -> CategoryAnalyzer:
    """Analyzer wired up during application startup."""
    analyzer = getattr(request.app.state, "analyzer", None)
    if analyzer is None:
        raise HTTPException(status_code=503, detail="Analyzer not initialised")
    return analyzer


def parse_platform(platform: Optional[str]) -> Optional[Platform]:
    """Query-string platform, None meaning all platforms."""
    if platform is None or not platform.strip() or platform.strip().lower() == "all":
        return None
    try:
        return Platform.parse(platform)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
