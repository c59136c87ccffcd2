"""
Store Review Insights FastAPI Application
=========================================

REST API behind the store review dashboard.

Endpoints:
    GET  /api/health                - Health check
    GET  /api/stores                - Store directory filtered by scope
    GET  /api/reviews               - Reviews of the scope's stores
    GET  /api/analysis/qualitative  - Qualitative summary
    GET  /api/analysis/sentiment    - Sentiment analysis
    GET  /api/analysis/dashboard    - Combined analytics

Usage:
    uvicorn src.api.main:app --reload --port 8000

    Or with CLI:
    python -m src.api.main
"""

from dotenv import load_dotenv
load_dotenv()

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging
import os

from src.data import get_settings
from src.orchestrator.logging_config import setup_logging

from .models import HealthResponse
from .review_routes import router as review_router, get_service
from .services import DashboardService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    settings = get_settings()
    setup_logging(
        level=settings.logging.level,
        json_output=settings.logging.json_logs,
        log_file=settings.logging.log_file,
    )

    logger.info("Starting Store Review Insights API...")

    # A service installed before startup is kept
    if getattr(app.state, "service", None) is None:
        app.state.service = DashboardService(settings)

    logger.info(f"Services initialized: {len(app.state.service.directory)} stores")

    yield

    logger.info("Shutting down Store Review Insights API...")


# Create FastAPI app
app = FastAPI(
    title="Store Review Insights API",
    description="Analytics over customer reviews of a physical store network",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS configuration
# In production, set CORS_ORIGINS env var (comma-separated) for the dashboard domains
_default_origins = [
    "http://localhost:3000",
    "http://localhost:5173",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:5173",
]
_extra_origins = os.getenv("CORS_ORIGINS", "")
if _extra_origins:
    _default_origins.extend([o.strip() for o in _extra_origins.split(",") if o.strip()])

app.add_middleware(
    CORSMiddleware,
    allow_origins=_default_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include review routes
app.include_router(review_router)


# ============================================================================
# HEALTH ENDPOINT
# ============================================================================

@app.get("/api/health", response_model=HealthResponse)
async def health_check(service: DashboardService = Depends(get_service)):
    """
    Health check endpoint.

    Reports the store count, the places provider mode (google/sample),
    whether an LLM is configured and per-domain cache statistics.
    """
    return HealthResponse(**service.get_health())


# ============================================================================
# MAIN
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    print("=" * 60)
    print("STORE REVIEW INSIGHTS API SERVER")
    print("=" * 60)
    print()
    print("Starting server at http://localhost:8000")
    print()
    print("API Documentation:")
    print("  - Swagger UI: http://localhost:8000/docs")
    print("  - ReDoc:      http://localhost:8000/redoc")
    print()
    print("Endpoints:")
    print("  GET  /api/health               - Health check")
    print("  GET  /api/stores               - Store directory")
    print("  GET  /api/reviews              - Reviews by scope")
    print("  GET  /api/analysis/qualitative - Qualitative summary")
    print("  GET  /api/analysis/sentiment   - Sentiment analysis")
    print("  GET  /api/analysis/dashboard   - Combined analytics")
    print()
    print("=" * 60)

    uvicorn.run(
        "src.api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info",
    )
