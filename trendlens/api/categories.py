"""
Category analysis API endpoints.

- /api/categories/analysis   per-category metrics, growth, clusters, insights
- /api/categories/emerging   new and fast-growing categories
- /api/categories/relations  correlation matrix, clusters, network view

A window without records answers `status: "no_data"` (HTTP 200); it is an
expected state, not an engine failure.
"""

import logging
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import ValidationError

from trendlens.dependencies import get_analyzer, parse_platform
from trendlens.models.schemas import APIResponse
from trendlens.models.time_window import MAX_YEAR, MIN_YEAR, TimeWindow
from trendlens.services.category_analyzer import CategoryAnalyzer
from trendlens.services.emerging_detector import summarize_emerging
from trendlens.services.errors import DataUnavailable

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/categories", tags=["Category Analysis"])


def _no_data(error: DataUnavailable) -> APIResponse:
    logger.info(f"No data: {error}")
    return APIResponse(status="no_data", data=None, message=str(error))


def _window(kind: str, number: Optional[int], year: Optional[int]) -> Optional[TimeWindow]:
    """Window from query parameters; None when neither part is given."""
    if number is None and year is None:
        return None
    if number is None or year is None:
        raise HTTPException(status_code=400, detail=f"A {kind} window needs both its number and its year")
    if not MIN_YEAR <= year <= MAX_YEAR:
        raise HTTPException(status_code=400, detail=f"Year must be between {MIN_YEAR} and {MAX_YEAR}")
    try:
        return TimeWindow(kind=kind, number=number, year=year)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=f"Invalid {kind} window: {number}/{year}") from e


@router.get("/analysis", response_model=APIResponse)
async def get_category_analysis(
    platform: Optional[str] = Query(default=None, description="YOUTUBE, TIKTOK, X, INSTAGRAM or all"),
    timeframe: Literal["week", "month"] = Query(default="week", description="Window granularity"),
    number: Optional[int] = Query(default=None, ge=1, le=53, description="Week or month number"),
    year: Optional[int] = Query(default=None, description="Year of the window"),
    analyzer: CategoryAnalyzer = Depends(get_analyzer),
):
    """
    Detailed per-category analysis.

    Defaults to the current week or month when no window is given.
    """
    selected = parse_platform(platform)
    window = _window(timeframe, number, year)
    try:
        reports = await analyzer.analyze_categories(selected, timeframe, window)
    except DataUnavailable as e:
        return _no_data(e)

    return APIResponse(
        status="success",
        data={
            "categories": [r.model_dump(mode="json") for r in reports],
            "summary": {
                "total_categories": len(reports),
                "total_views": sum(r.metrics.total_views for r in reports),
                "clustered_categories": sum(1 for r in reports if r.cluster is not None),
                "platform": selected.value if selected else "all",
                "timeframe": timeframe,
            },
        },
    )


@router.get("/emerging", response_model=APIResponse)
async def get_emerging_categories(
    platform: Optional[str] = Query(default=None, description="YOUTUBE, TIKTOK, X, INSTAGRAM or all"),
    limit: int = Query(default=10, ge=1, le=50, description="Maximum categories returned"),
    week: Optional[int] = Query(default=None, ge=1, le=53, description="Last ISO week of the recent span"),
    year: Optional[int] = Query(default=None, description="ISO year of `week`"),
    analyzer: CategoryAnalyzer = Depends(get_analyzer),
):
    """New categories and categories growing faster than the configured threshold."""
    selected = parse_platform(platform)
    anchor = _window("week", week, year)
    try:
        categories = await analyzer.detect_emerging_categories(selected, anchor)
    except DataUnavailable as e:
        return _no_data(e)

    categories = categories[:limit]
    insight = await analyzer.narrate_emerging(categories)
    return APIResponse(
        status="success",
        data={
            "emerging_categories": [c.model_dump(mode="json") for c in categories],
            "summary": summarize_emerging(categories).model_dump(mode="json"),
            "insight": insight,
        },
    )


@router.get("/relations", response_model=APIResponse)
async def get_category_relations(
    platform: Optional[str] = Query(default=None, description="YOUTUBE, TIKTOK, X, INSTAGRAM or all"),
    month: Optional[int] = Query(default=None, ge=1, le=12, description="Month number"),
    year: Optional[int] = Query(default=None, description="Year of the month"),
    analyzer: CategoryAnalyzer = Depends(get_analyzer),
):
    """Category correlation matrix and clusters for one month."""
    selected = parse_platform(platform)
    window = _window("month", month, year)
    try:
        report = await analyzer.analyze_category_relations(selected, window)
    except DataUnavailable as e:
        return _no_data(e)

    data = report.model_dump(mode="json")
    data["summary"] = {
        "total_categories": len({c for e in report.matrix for c in (e.category_a, e.category_b)}),
        "strong_relations": len(report.strong_relations),
        "clusters": len(report.clusters),
        "platform": selected.value if selected else "all",
    }
    return APIResponse(status="success", data=data)
