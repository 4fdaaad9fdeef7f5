"""
Demo Mode API Endpoints.

Seeds the record store with generated trend records for presentations and
testing when no collected data is available.
"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field, field_validator

from trendlens.dependencies import get_analyzer
from trendlens.models.time_window import MAX_YEAR, MIN_YEAR
from trendlens.services.category_analyzer import CategoryAnalyzer
from trendlens.services.demo_generator import DemoDataGenerator, DemoScenario

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/demo", tags=["Demo Mode"])


# === Request/Response Models ===

class DemoSeedRequest(BaseModel):
    """Request model for seeding demo data."""
    scenario: DemoScenario = Field(
        default=DemoScenario.MIXED,
        description="Demo scenario to generate"
    )
    weeks: int = Field(
        default=8,
        ge=1,
        le=52,
        description="Number of weeks to generate"
    )
    anchor: Optional[date] = Field(
        default=None,
        description="Any day of the last generated week (defaults to today)"
    )
    seed: int = Field(default=42, description="Random seed")

    @field_validator("anchor")
    @classmethod
    def _anchor_in_range(cls, value: Optional[date]) -> Optional[date]:
        if value is not None and not MIN_YEAR <= value.year <= MAX_YEAR:
            raise ValueError(f"anchor year must be between {MIN_YEAR} and {MAX_YEAR}")
        return value

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "scenario": "novel_category",
                    "weeks": 8
                }
            ]
        }
    }


class DemoSeedResponse(BaseModel):
    """Response for demo seeding."""
    success: bool
    message: str
    records: int = 0


# === Endpoints ===

@router.post("/seed", response_model=DemoSeedResponse)
async def seed_demo(
    request: DemoSeedRequest,
    analyzer: CategoryAnalyzer = Depends(get_analyzer),
):
    """
    Generate demo trend records and store them in the record source.
    """
    add_records = getattr(analyzer.source, "add_records", None)
    if add_records is None:
        raise HTTPException(status_code=409, detail="Record source is read-only")

    records = DemoDataGenerator(seed=request.seed).generate(
        scenario=request.scenario.value,
        anchor=request.anchor,
        weeks=request.weeks,
    )
    written = add_records(records)
    logger.info(f"Seeded {written} demo records ({request.scenario.value})")
    return DemoSeedResponse(
        success=True,
        message=f"Seeded scenario '{request.scenario.value}'",
        records=written,
    )
