"""
Configuration management using Pydantic Settings.
Loads environment variables from .env file; analysis knobs are handed to the
analyzer explicitly through AnalysisConfig.
"""

from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

from trendlens.models.schemas import AnalysisConfig


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Credentials (Gemini API key) are stored in .env file (not committed to git).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # === Service Configuration ===
    APP_NAME: str = Field(
        default="TrendLens Backend",
        description="Application name"
    )
    DEBUG: bool = Field(
        default=False,
        description="Debug mode flag"
    )

    # === Storage ===
    DATABASE_PATH: str = Field(
        default="data/trends.db",
        description="SQLite file holding trend records"
    )

    # === Correlation / Clustering ===
    CORRELATION_THRESHOLD: float = Field(
        default=0.6,
        ge=0.0,
        le=1.0,
        description="Minimum Jaccard score for two categories to be linked in a cluster"
    )
    STRONG_RELATION_THRESHOLD: float = Field(
        default=0.5,
        ge=0.0,
        le=1.0,
        description="Score above which a pair is reported as a strong relation"
    )
    RELATED_CATEGORIES_LIMIT: int = Field(
        default=5,
        ge=0,
        description="Related categories listed per category report"
    )

    # === Emerging Detection ===
    EMERGING_MIN_VIDEO_COUNT: int = Field(
        default=3,
        ge=1,
        description="Minimum items for a new category to be flagged"
    )
    EMERGING_GROWTH_THRESHOLD: float = Field(
        default=2.0,
        ge=0.0,
        description="Growth ratio (2.0 = 200%) above which a category is flagged"
    )
    EMERGING_TOP_N: int = Field(
        default=10,
        ge=1,
        description="Maximum number of emerging categories returned"
    )
    EMERGING_LOOKBACK_WEEKS: int = Field(
        default=4,
        ge=1,
        description="Length in weeks of the recent and older comparison spans"
    )

    # === Narration (Gemini) ===
    NARRATION_TIMEOUT: float = Field(
        default=10.0,
        gt=0,
        description="Seconds to wait for a narrated insight before falling back"
    )
    GEMINI_API_KEY: str = Field(
        default="",
        description="Google Gemini API Key"
    )
    GEMINI_MODEL: str = Field(
        default="gemini-1.5-flash",
        description="Gemini model used for insight narration"
    )
    GEMINI_BASE_URL: str = Field(
        default="https://generativelanguage.googleapis.com",
        description="Gemini API base URL"
    )

    def get_analysis_config(self) -> AnalysisConfig:
        """Build the explicit analysis configuration handed to the analyzer."""
        return AnalysisConfig(
            correlation_threshold=self.CORRELATION_THRESHOLD,
            strong_relation_threshold=self.STRONG_RELATION_THRESHOLD,
            related_limit=self.RELATED_CATEGORIES_LIMIT,
            min_video_count=self.EMERGING_MIN_VIDEO_COUNT,
            growth_threshold=self.EMERGING_GROWTH_THRESHOLD,
            emerging_top_n=self.EMERGING_TOP_N,
            lookback_weeks=self.EMERGING_LOOKBACK_WEEKS,
            narration_timeout=self.NARRATION_TIMEOUT,
        )

    def get_gemini_config(self) -> dict:
        """Get Gemini narrator configuration dictionary."""
        return {
            "api_key": self.GEMINI_API_KEY,
            "model": self.GEMINI_MODEL,
            "base_url": self.GEMINI_BASE_URL,
        }


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
