"""
Store Review API Routes
=======================

GET /api/stores                  - directory filtered by scope
GET /api/reviews                 - reviews of the scope's stores
GET /api/analysis/qualitative    - LLM qualitative summary (macro or micro)
GET /api/analysis/sentiment      - sentiment/category distributions, top themes
GET /api/analysis/dashboard      - metrics, rankings, scope analyses, anomalies

Scope query parameters: store_id, team, state, region.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse

from src.data import FetchTimeoutError, Scope, sort_by_code
from src.reviews import ScopeNotFoundError

from .models import (
    DashboardResponse,
    ErrorResponse,
    QualitativeAnalysisResponse,
    ReviewsResponse,
    SentimentAnalysisResponse,
    StoreModel,
    StoresResponse,
)
from .services import DashboardService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Reviews"])

TIMEOUT_SUGGESTION = "Try narrowing the filters (store, team, state or region) to fetch fewer stores."


def get_service(request: Request) -> DashboardService:
    """Service context built in the application lifespan."""
    return request.app.state.service


def scope_params(
    store_id: Optional[str] = Query(None, description="Store id (overrides every other filter)"),
    team: Optional[str] = Query(None, description="Team label"),
    state: Optional[str] = Query(None, description="State code"),
    region: Optional[str] = Query(None, description="Region name"),
) -> Scope:
    return Scope.of(store_id=store_id, team=team, state=state, region=region)


def _error(status_code: int, error: str, details: Optional[str] = None,
           suggestion: Optional[str] = None) -> JSONResponse:
    body = ErrorResponse(error=error, details=details, suggestion=suggestion)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


def _handle_failure(e: Exception, action: str) -> JSONResponse:
    """Map a service exception to its HTTP error response."""
    if isinstance(e, ScopeNotFoundError):
        return _error(404, str(e))
    if isinstance(e, FetchTimeoutError):
        logger.warning(f"Timeout {action}: {e}")
        return _error(
            504,
            "Request timed out while fetching reviews",
            details=str(e),
            suggestion=TIMEOUT_SUGGESTION,
        )
    logger.error(f"Error {action}: {e}")
    return _error(500, f"Error {action}", details=str(e))


# ============================================================================
# STORES
# ============================================================================

@router.get("/stores", response_model=StoresResponse)
async def list_stores(
    scope: Scope = Depends(scope_params),
    service: DashboardService = Depends(get_service),
):
    """Stores of the directory selected by the scope, ordered by store code."""
    stores = sort_by_code(service.get_stores(scope))
    directory = service.directory
    return StoresResponse(
        stores=[
            StoreModel(display_name=s.display_name, **s.to_dict())
            for s in stores
        ],
        total=len(stores),
        regions=directory.regions(),
        states=directory.states(),
        teams=directory.teams(),
    )


# ============================================================================
# REVIEWS
# ============================================================================

@router.get(
    "/reviews",
    response_model=ReviewsResponse,
    responses={404: {"model": ErrorResponse}, 504: {"model": ErrorResponse}},
)
async def get_reviews(
    scope: Scope = Depends(scope_params),
    refresh: bool = Query(False, description="Bypass the cache and re-fetch"),
    service: DashboardService = Depends(get_service),
):
    """Reviews of the scope's stores (cached for one hour)."""
    try:
        result = await service.get_reviews(scope, force_refresh=refresh)
        return ReviewsResponse(**result.to_dict())
    except Exception as e:
        return _handle_failure(e, "fetching reviews")


# ============================================================================
# ANALYSIS
# ============================================================================

@router.get(
    "/analysis/qualitative",
    response_model=QualitativeAnalysisResponse,
    responses={404: {"model": ErrorResponse}, 504: {"model": ErrorResponse}},
)
async def get_qualitative_analysis(
    scope: Scope = Depends(scope_params),
    service: DashboardService = Depends(get_service),
):
    """
    Qualitative summary of the narrowed scope.

    Returns empty lists when no LLM is configured or its answer is unusable.
    """
    try:
        summary = await service.get_qualitative_analysis(scope)
        return QualitativeAnalysisResponse(**summary.to_dict())
    except Exception as e:
        return _handle_failure(e, "generating qualitative analysis")


@router.get(
    "/analysis/sentiment",
    response_model=SentimentAnalysisResponse,
    responses={404: {"model": ErrorResponse}, 504: {"model": ErrorResponse}},
)
async def get_sentiment_analysis(
    scope: Scope = Depends(scope_params),
    service: DashboardService = Depends(get_service),
):
    """Sentiment and category distributions plus top praises/complaints."""
    try:
        analysis = await service.get_sentiment_analysis(scope)
        return SentimentAnalysisResponse(**analysis.to_dict())
    except Exception as e:
        return _handle_failure(e, "generating sentiment analysis")


@router.get(
    "/analysis/dashboard",
    response_model=DashboardResponse,
    responses={404: {"model": ErrorResponse}, 504: {"model": ErrorResponse}},
)
async def get_dashboard(
    scope: Scope = Depends(scope_params),
    kind: str = Query("region", pattern="^(region|state|team)$"),
    granularity: str = Query("day", pattern="^(day|week|month)$"),
    refresh: bool = Query(False),
    service: DashboardService = Depends(get_service),
):
    """Every statistical and heuristic view of the scope's reviews."""
    try:
        payload = await service.get_dashboard(
            scope, kind=kind, granularity=granularity, force_refresh=refresh
        )
        return DashboardResponse(**payload)
    except Exception as e:
        return _handle_failure(e, "building dashboard")
