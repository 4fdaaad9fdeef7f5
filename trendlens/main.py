"""
TrendLens Backend - FastAPI Application Entry Point

Category analytics backend for the social-media trend dashboard.
It provides APIs for:
- Per-category metrics and growth analysis
- Category correlation and cluster detection
- Emerging category detection
- Demo data seeding
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from trendlens.config import get_settings
from trendlens.api import health, categories, demo
from trendlens.services.category_analyzer import CategoryAnalyzer
from trendlens.services.errors import AnalysisError, DataUnavailable, WindowMismatch
from trendlens.services.narrator import GeminiNarrator, NullNarrator
from trendlens.services.record_source import SQLiteRecordSource

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def build_analyzer() -> CategoryAnalyzer:
    """Create the analyzer from settings: SQLite records, Gemini narrator when a key is set."""
    settings = get_settings()
    source = SQLiteRecordSource(settings.DATABASE_PATH)

    if settings.GEMINI_API_KEY:
        narrator = GeminiNarrator(**settings.get_gemini_config())
        logger.info(f"Insight narration enabled: {settings.GEMINI_MODEL}")
    else:
        narrator = NullNarrator()
        logger.warning("GEMINI_API_KEY is empty - insights use templated text")

    return CategoryAnalyzer(
        source=source,
        narrator=narrator,
        config=settings.get_analysis_config(),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Wires the analyzer into app.state unless one was provided already.
    """
    settings = get_settings()
    logger.info(f"Starting {settings.APP_NAME}...")
    logger.info(f"Debug mode: {settings.DEBUG}")

    if getattr(app.state, "analyzer", None) is None:
        app.state.analyzer = build_analyzer()

    yield

    logger.info("Service stopped")


# Create FastAPI application
settings = get_settings()

app = FastAPI(
    title=settings.APP_NAME,
    description="""
## TrendLens Backend API

Category analytics for YouTube, TikTok, X and Instagram trend data.

### Features
- **Category Metrics**: views, likes, comments and growth per category
- **Correlation**: hashtag-vocabulary similarity between categories
- **Clusters**: groups of transitively related categories
- **Emerging Categories**: new or fast-growing categories with confidence scores

### Architecture
```
Record store → Aggregation → Growth / Correlation → Clusters → Narration → JSON
```
    """,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:5173",  # Vite dev server
        "http://localhost:3000",  # Dashboard dev server
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(health.router)
app.include_router(categories.router)
app.include_router(demo.router)


# Error handlers
@app.exception_handler(DataUnavailable)
async def data_unavailable_handler(request: Request, exc: DataUnavailable):
    """No records for the requested period - an expected state."""
    return JSONResponse(
        status_code=200,
        content={"status": "no_data", "data": None, "message": str(exc)}
    )


@app.exception_handler(WindowMismatch)
async def window_mismatch_handler(request: Request, exc: WindowMismatch):
    """Incompatible windows are rejected at the boundary."""
    logger.warning(f"Rejected window comparison: {exc}")
    return JSONResponse(
        status_code=400,
        content={"status": "error", "error": "window_mismatch", "message": str(exc)}
    )


@app.exception_handler(AnalysisError)
async def analysis_error_handler(request: Request, exc: AnalysisError):
    logger.error(f"Analysis error: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"status": "error", "error": "analysis_error", "message": str(exc)}
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler for unhandled errors."""
    logger.error(f"Unhandled error: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "status": "error",
            "error": "Internal server error",
            "detail": str(exc) if settings.DEBUG else "An unexpected error occurred"
        }
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "trendlens.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG
    )
