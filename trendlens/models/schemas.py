"""
Pydantic schemas for the category engine and its API.
Defines the record snapshots, analysis results and response envelopes.
"""

from datetime import datetime
from enum import Enum
from typing import Optional, List, Any, Dict, Literal, Union
from pydantic import BaseModel, ConfigDict, Field, field_validator

from trendlens.models.time_window import TimeWindow

OTHER_CATEGORY = "Other"


class Platform(str, Enum):
    """Supported source platforms."""
    YOUTUBE = "YOUTUBE"
    TIKTOK = "TIKTOK"
    X = "X"
    INSTAGRAM = "INSTAGRAM"

    @classmethod
    def parse(cls, value: str) -> "Platform":
        """Case-insensitive lookup; Twitter is reported as X."""
        key = value.strip().upper()
        if key == "TWITTER":
            key = "X"
        try:
            return cls(key)
        except ValueError:
            raise ValueError(f"Unknown platform: {value}") from None


# === Record Snapshot ===

class TrendRecord(BaseModel):
    """One observed piece of content, immutable once retrieved."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Record identifier")
    platform: Platform = Field(description="Source platform")
    category: Optional[str] = Field(default=None, description="Content category")
    title: str = Field(default="", description="Content title")
    hashtags: List[str] = Field(default_factory=list, description="Hashtags in original order")
    views: int = Field(default=0, ge=0, description="Total views")
    likes: int = Field(default=0, ge=0, description="Total likes")
    comments: int = Field(default=0, ge=0, description="Total comments")
    timestamp: datetime = Field(description="When the content was observed")
    week_number: int = Field(ge=1, le=53, description="ISO week bucket")
    month_number: int = Field(ge=1, le=12, description="Month bucket")
    year: int = Field(description="Year bucket")

    @field_validator("platform", mode="before")
    @classmethod
    def _parse_platform(cls, value: Any) -> Any:
        if isinstance(value, str):
            return Platform.parse(value)
        return value

    @field_validator("views", "likes", "comments", mode="before")
    @classmethod
    def _missing_counts_are_zero(cls, value: Any) -> Any:
        return 0 if value is None else value

    @property
    def category_name(self) -> str:
        """Category with missing or blank values folded into 'Other'."""
        if self.category is None or not self.category.strip():
            return OTHER_CATEGORY
        return self.category


def window_keys(timestamp: datetime) -> Dict[str, int]:
    """Bucketing keys for a timestamp: ISO week, month and calendar year."""
    return {
        "week_number": timestamp.isocalendar()[1],
        "month_number": timestamp.month,
        "year": timestamp.year,
    }


# === Analysis Results ===

class CategoryMetrics(BaseModel):
    """Aggregate for one category within one window."""
    category: str
    total_views: int = 0
    avg_views: float = 0.0
    total_likes: int = 0
    total_comments: int = 0
    video_count: int = 0
    growth_rate_percent: float = Field(default=0.0, description="Filled in by growth calculation")
    window: Optional[TimeWindow] = Field(default=None, description="Window the metrics cover")


class CorrelationEntry(BaseModel):
    """Hashtag-vocabulary similarity between two distinct categories."""
    category_a: str
    category_b: str
    score: float = Field(ge=0, le=1, description="Jaccard similarity")
    common_hashtags: List[str] = Field(default_factory=list, description="Up to 3 shared hashtags")


class Cluster(BaseModel):
    """Categories connected transitively by correlation at or above a threshold."""
    categories: List[str] = Field(min_length=2)
    avg_correlation: float = Field(ge=0, le=1)


class EvidenceItem(BaseModel):
    """One piece of supporting evidence for an emerging category."""
    type: Literal["hashtag", "title_pattern", "growth_rate"]
    value: Union[int, float, str]
    description: str


class EmergingCategory(BaseModel):
    """A category flagged as new or fast-growing."""
    name: str
    confidence: float = Field(ge=0, le=0.9)
    evidence: List[EvidenceItem] = Field(default_factory=list)
    estimated_size: int = Field(ge=0, description="Total views in the recent window")
    platforms: List[Platform] = Field(default_factory=list)
    first_detected_at: datetime


class SubCategory(BaseModel):
    """Narrated breakdown of a category."""
    name: str
    percentage: float = Field(ge=0, le=100)
    examples: List[str] = Field(default_factory=list)


class CategoryTrend(BaseModel):
    """Narrated trend spotted inside one category."""
    trend: str
    confidence: float = Field(ge=0, le=1)
    evidence: List[str] = Field(default_factory=list)


class RelatedCategory(BaseModel):
    category: str
    correlation_score: float
    common_hashtags: List[str] = Field(default_factory=list)


class CategoryAnalysisReport(BaseModel):
    """Everything known about one category in the analysed window."""
    category: str
    metrics: CategoryMetrics
    cluster: Optional[Cluster] = Field(default=None, description="Cluster the category belongs to")
    cluster_neighbors: List[str] = Field(default_factory=list)
    related_categories: List[RelatedCategory] = Field(default_factory=list)
    sub_categories: List[SubCategory] = Field(default_factory=list)
    emerging_trends: List[CategoryTrend] = Field(default_factory=list, description="Empty when narration is unavailable")
    insight: str = ""


class StrongRelation(BaseModel):
    category_a: str
    category_b: str
    score: float
    strength: Literal["strong", "moderate"]


class InfluentialCategory(BaseModel):
    category: str
    centrality_score: float


class ClusterProfile(BaseModel):
    categories: List[str]
    avg_correlation: float
    size: int
    dominant_category: str


class NetworkAnalysis(BaseModel):
    network_density: float
    influential_categories: List[InfluentialCategory] = Field(default_factory=list)
    cluster_analysis: List[ClusterProfile] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)


class CategoryRelationsReport(BaseModel):
    """Correlation matrix, clusters and derived network view for one window."""
    window: TimeWindow
    matrix: List[CorrelationEntry] = Field(default_factory=list)
    strong_relations: List[StrongRelation] = Field(default_factory=list)
    clusters: List[Cluster] = Field(default_factory=list)
    network: NetworkAnalysis
    insight: Optional[str] = None


class EmergingOpportunity(BaseModel):
    name: str
    confidence: float
    estimated_size: int


class EmergingSummary(BaseModel):
    total_detected: int
    high_confidence: int
    top_opportunities: List[EmergingOpportunity] = Field(default_factory=list)
    total_estimated_views: int = 0
    average_confidence: float = 0.0
    platform_breakdown: Dict[str, int] = Field(default_factory=dict)
    recommendations: List[str] = Field(default_factory=list)


# === Configuration ===

class AnalysisConfig(BaseModel):
    """Knobs the analyzer accepts explicitly."""
    correlation_threshold: float = Field(default=0.6, ge=0, le=1)
    strong_relation_threshold: float = Field(default=0.5, ge=0, le=1)
    related_limit: int = Field(default=5, ge=0)
    min_video_count: int = Field(default=3, ge=1)
    growth_threshold: float = Field(default=2.0, ge=0)
    emerging_top_n: int = Field(default=10, ge=1)
    lookback_weeks: int = Field(default=4, ge=1)
    narration_timeout: float = Field(default=10.0, gt=0)


# === API Response Wrappers ===

class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(description="Service status (healthy/degraded)")
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    version: str = Field(default="1.0.0", description="API version")
    services: dict = Field(default_factory=dict, description="Service status details")


class APIResponse(BaseModel):
    """Envelope for analysis endpoints."""
    status: Literal["success", "no_data", "error"] = Field(description="Outcome of the request")
    data: Optional[Any] = Field(default=None, description="Response data")
    message: str = Field(default="", description="Response message")
    timestamp: datetime = Field(default_factory=datetime.utcnow)
