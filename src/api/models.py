"""
Store Review Insights API Models
================================

Pydantic models for API response serialization.
Field names match the dashboard's TypeScript types; aliases accept the
snake_case names used by the service layer.
"""

from pydantic import BaseModel, Field
from typing import List, Dict, Optional, Any
from datetime import datetime


class StoreModel(BaseModel):
    """A store of the directory."""
    id: str
    name: str
    displayName: str = Field(alias="display_name")
    code: Optional[str] = None
    placeId: str = Field(alias="place_id")
    state: str
    region: str
    team: Optional[str] = None
    city: Optional[str] = None
    address: Optional[str] = None

    class Config:
        populate_by_name = True


class StoresResponse(BaseModel):
    """Directory filtered by scope."""
    stores: List[StoreModel]
    total: int
    regions: List[str]
    states: List[str]
    teams: List[str]


class ReviewModel(BaseModel):
    """A normalized review."""
    id: str
    storeId: str = Field(alias="store_id")
    placeId: str = Field(alias="place_id")
    date: datetime
    rating: int
    comment: Optional[str] = None
    author: Optional[str] = None
    authorUrl: Optional[str] = Field(None, alias="author_url")
    sourceTimestamp: Optional[datetime] = Field(None, alias="source_timestamp")

    class Config:
        populate_by_name = True


class ReviewsResponse(BaseModel):
    """getReviews result."""
    reviews: List[ReviewModel]
    total: int
    storesProcessed: int = Field(alias="stores_processed")
    elapsedSeconds: float = Field(alias="elapsed_seconds")
    cached: bool = False

    class Config:
        populate_by_name = True


class QualitativeAnalysisResponse(BaseModel):
    """Structured qualitative summary (macro or micro)."""
    level: str
    scope: str
    strengths: List[str] = Field(default_factory=list)
    weaknesses: List[str] = Field(default_factory=list)
    trends: List[str] = Field(default_factory=list)
    opportunities: List[str] = Field(default_factory=list)
    summary: str = ""
    frequentComplaints: List[str] = Field(default_factory=list, alias="frequent_complaints")
    positiveHighlights: List[str] = Field(default_factory=list, alias="positive_highlights")
    actionPlan: List[str] = Field(default_factory=list, alias="action_plan")
    commentsAnalyzed: int = Field(0, alias="comments_analyzed")
    generatedAt: datetime = Field(alias="generated_at")

    class Config:
        populate_by_name = True


class SentimentDistributionModel(BaseModel):
    positive: int = 0
    neutral: int = 0
    negative: int = 0
    total: int = 0


class ThemeMentionModel(BaseModel):
    text: str
    mentions: int


class SentimentAnalysisResponse(BaseModel):
    """getSentimentAnalysis result."""
    sentimentDistribution: SentimentDistributionModel = Field(alias="sentiment_distribution")
    categoryDistribution: Dict[str, int] = Field(alias="category_distribution")
    topPraises: List[ThemeMentionModel] = Field(default_factory=list, alias="top_praises")
    topComplaints: List[ThemeMentionModel] = Field(default_factory=list, alias="top_complaints")
    generatedAt: datetime = Field(alias="generated_at")

    class Config:
        populate_by_name = True


class DashboardResponse(BaseModel):
    """
    Combined dashboard payload.

    Nested analytics are plain dicts produced by the analytics models.
    """
    scope: str
    kind: str
    granularity: str
    metrics: Dict[str, Any]
    bestRanking: List[Dict[str, Any]] = Field(alias="best_ranking")
    worstRanking: List[Dict[str, Any]] = Field(alias="worst_ranking")
    storeDistribution: List[Dict[str, Any]] = Field(alias="store_distribution")
    scopeAnalyses: List[Dict[str, Any]] = Field(alias="scope_analyses")
    anomalies: List[Dict[str, Any]]
    perceptions: Dict[str, Any]
    reviews: List[Dict[str, Any]]
    storesProcessed: int = Field(alias="stores_processed")
    generatedAt: datetime = Field(alias="generated_at")

    class Config:
        populate_by_name = True


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    version: str
    stores: int
    placesProvider: str = Field(alias="places_provider")
    llm: str
    cache: Dict[str, Any] = Field(default_factory=dict)

    class Config:
        populate_by_name = True


class ErrorResponse(BaseModel):
    """Error body for 404/500/504."""
    error: str
    details: Optional[str] = None
    suggestion: Optional[str] = None
