"""
Store Review Insights API Services
==================================

Business logic layer for the API.

DashboardService is the process-wide service context: built once at
startup, it owns the store directory, the review fetcher, the summarizer
and one bounded TTL cache per result domain (reviews, qualitative,
sentiment). Routes receive it through a FastAPI dependency.
"""

from typing import Optional, List, Dict, Any
from datetime import datetime, timezone
from dataclasses import dataclass, replace
import logging
import time

from src.ai import ReviewSummarizer, QualitativeSummary, SentimentAnalysis, get_llm_client
from src.cache import TTLCache
from src.data import (
    Deadline,
    ReviewFetcher,
    Review,
    Scope,
    Settings,
    Store,
    StoreDirectory,
    create_places_client,
    get_settings,
)
from src.reviews import (
    ScopeKind,
    ScopeNotFoundError,
    analyze_all_scopes,
    analyze_scope,
    compute_metrics,
    compute_store_rating_distribution,
    detect_anomalies,
    enrich_anomalies,
    enrich_reviews,
    enrich_scope_analysis,
    mine_recurring_perceptions,
    rank,
    resolve_stores,
)
from src.reviews.scope_filter import GRANULARITIES
from src.orchestrator.logging_config import log_duration

logger = logging.getLogger(__name__)


# ============================================================================
# RESULTS
# ============================================================================

@dataclass
class ReviewsResult:
    """getReviews result."""
    reviews: List[Review]
    stores_processed: int
    elapsed_seconds: float
    cached: bool = False

    @property
    def total(self) -> int:
        return len(self.reviews)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "reviews": [r.to_dict() for r in self.reviews],
            "total": self.total,
            "stores_processed": self.stores_processed,
            "elapsed_seconds": self.elapsed_seconds,
            "cached": self.cached,
        }


@dataclass
class ServiceCaches:
    """One bounded cache per result domain."""
    reviews: TTLCache
    qualitative: TTLCache
    sentiment: TTLCache

    def all(self) -> List[TTLCache]:
        return [self.reviews, self.qualitative, self.sentiment]


def build_caches(ttl_seconds: int = 3600, max_entries: int = 10, clock=time.time) -> ServiceCaches:
    return ServiceCaches(
        reviews=TTLCache("reviews", ttl_seconds, max_entries, clock=clock),
        qualitative=TTLCache("qualitative", ttl_seconds, max_entries, clock=clock),
        sentiment=TTLCache("sentiment", ttl_seconds, max_entries, clock=clock),
    )


def build_summarizer(settings: Settings) -> ReviewSummarizer:
    """Summarizer backed by the configured LLM, or an unconfigured one."""
    try:
        llm = get_llm_client(
            provider=settings.llm.provider,
            model=settings.llm.model,
            temperature=settings.llm.temperature,
        )
    except ValueError as e:
        logger.warning(f"LLM not configured ({e}). Qualitative and theme summaries will be empty.")
        return ReviewSummarizer(llm=None)
    logger.info(f"LLM configured: {llm.provider.value}/{llm.model}")
    return ReviewSummarizer(llm=llm)


def reviews_cache_key(stores: List[Store]) -> str:
    return "reviews:" + ",".join(sorted(s.id for s in stores))


# ============================================================================
# SERVICE CONTEXT
# ============================================================================

class DashboardService:
    """Service context shared by every route."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        directory: Optional[StoreDirectory] = None,
        fetcher: Optional[ReviewFetcher] = None,
        summarizer: Optional[ReviewSummarizer] = None,
        caches: Optional[ServiceCaches] = None,
    ):
        self.settings = settings or get_settings()
        if directory is None:
            directory = StoreDirectory.from_json(self.settings.store_directory_path)
        self.directory = directory

        if fetcher is None:
            client = create_places_client(self.settings.places)
            place_cache = TTLCache(
                "places",
                ttl_seconds=self.settings.cache.ttl_seconds,
                max_entries=self.settings.cache.place_max_entries,
            )
            fetcher = ReviewFetcher(client, self.settings.fetch, place_cache)
        self.fetcher = fetcher

        self.summarizer = summarizer or build_summarizer(self.settings)
        self.caches = caches or build_caches(
            self.settings.cache.ttl_seconds, self.settings.cache.max_entries
        )

    # ------------------------------------------------------------------
    # Stores
    # ------------------------------------------------------------------

    def get_stores(self, scope: Scope) -> List[Store]:
        """Directory stores selected by the scope (no error when empty)."""
        return resolve_stores(self.directory.stores, scope)

    def _resolve(self, scope: Scope) -> List[Store]:
        stores = self.get_stores(scope)
        if not stores:
            raise ScopeNotFoundError(
                f"No stores found for scope {scope.descriptor}", scope=scope
            )
        return stores

    def _store_cap(self, scope: Scope, force_refresh: bool) -> int:
        fetch = self.settings.fetch
        if force_refresh:
            return fetch.refresh_store_cap
        if scope.has_filter:
            return fetch.filtered_store_cap
        return fetch.unfiltered_store_cap

    # ------------------------------------------------------------------
    # Reviews
    # ------------------------------------------------------------------

    async def get_reviews(self, scope: Scope, force_refresh: bool = False) -> ReviewsResult:
        """
        Reviews of the scope's stores, cached by the sorted store ids.

        Raises:
            ScopeNotFoundError: If the scope matches no store
            FetchTimeoutError: If the overall fetch budget is exceeded
        """
        scope = scope.resolved()
        stores = self._resolve(scope)

        cap = self._store_cap(scope, force_refresh)
        if len(stores) > cap:
            logger.warning(
                f"Scope {scope.descriptor} matched {len(stores)} stores, "
                f"fetching the first {cap}"
            )
            stores = stores[:cap]

        key = reviews_cache_key(stores)
        if not force_refresh:
            cached = self.caches.reviews.get(key)
            if cached is not None:
                logger.info(f"Reviews cache hit for {scope.descriptor} ({cached.total} reviews)")
                return replace(cached, cached=True)

        started = time.monotonic()
        with log_duration(logger, f"Review fetch for {scope.descriptor}",
                          scope=scope.descriptor, stores=len(stores)):
            reviews = await self.fetcher.fetch_reviews_for_stores(
                stores, Deadline(self.settings.fetch.request_timeout)
            )
        result = ReviewsResult(
            reviews=reviews,
            stores_processed=len(stores),
            elapsed_seconds=round(time.monotonic() - started, 2),
        )
        self.caches.reviews.set(key, result)
        return result

    # ------------------------------------------------------------------
    # Summaries
    # ------------------------------------------------------------------

    async def get_qualitative_analysis(self, scope: Scope) -> QualitativeSummary:
        """
        Qualitative summary of the narrowed scope.

        Micro (single store) when the scope names a store, macro otherwise.
        Empty summaries are not cached.
        """
        narrowed = scope.narrowed()
        key = narrowed.canonical_key()

        cached = self.caches.qualitative.get(key)
        if cached is not None:
            logger.info(f"Qualitative cache hit for {narrowed.descriptor}")
            return cached

        store = None
        if narrowed.store_id:
            store = self.directory.get(narrowed.store_id)
            if store is None:
                raise ScopeNotFoundError(f"Store {narrowed.store_id} not found", scope=narrowed)

        result = await self.get_reviews(narrowed)
        summary = await self.summarizer.summarize(result.reviews, narrowed.descriptor, store=store)

        if summary.comments_analyzed:
            self.caches.qualitative.set(key, summary)
        return summary

    async def get_sentiment_analysis(self, scope: Scope) -> SentimentAnalysis:
        """Sentiment/category distributions with top praises and complaints."""
        resolved = scope.resolved()
        key = resolved.canonical_key()

        cached = self.caches.sentiment.get(key)
        if cached is not None:
            logger.info(f"Sentiment cache hit for {resolved.descriptor}")
            return cached

        result = await self.get_reviews(resolved)
        analysis = await self.summarizer.analyze_sentiment(result.reviews)

        if not analysis.is_empty:
            self.caches.sentiment.set(key, analysis)
        return analysis

    # ------------------------------------------------------------------
    # Dashboard
    # ------------------------------------------------------------------

    async def get_dashboard(
        self,
        scope: Scope,
        kind: str = "region",
        granularity: str = "day",
        force_refresh: bool = False,
    ) -> Dict[str, Any]:
        """
        Every statistical and heuristic view of the scope's reviews.

        Raises:
            ValueError: On an unknown kind or granularity
        """
        kind = ScopeKind(kind)
        if granularity not in GRANULARITIES:
            raise ValueError(f"Unknown granularity: {granularity}")
        scope = scope.resolved()

        result = await self.get_reviews(scope, force_refresh=force_refresh)
        reviews = result.reviews
        stores = self._resolve(scope)
        limit = self.settings.analysis.ranking_limit

        with log_duration(logger, f"Dashboard analytics for {scope.descriptor}",
                          level=logging.DEBUG, scope=scope.descriptor, reviews=len(reviews)):
            selected = getattr(scope, kind.value)
            if selected:
                raw_analyses = [analyze_scope(reviews, stores, selected, kind)]
            else:
                raw_analyses = analyze_all_scopes(reviews, stores, kind)

            anomalies = detect_anomalies(
                reviews, stores, threshold=self.settings.analysis.anomaly_threshold
            )

            payload = {
                "scope": scope.descriptor,
                "kind": kind.value,
                "granularity": granularity,
                "metrics": compute_metrics(reviews, granularity).to_dict(),
                "best_ranking": [e.to_dict() for e in rank(reviews, stores, "best", limit)],
                "worst_ranking": [e.to_dict() for e in rank(reviews, stores, "worst", limit)],
                "store_distribution": [b.to_dict() for b in compute_store_rating_distribution(reviews)],
                "scope_analyses": [
                    enrich_scope_analysis(a, reviews).to_dict() for a in raw_analyses
                ],
                "anomalies": [a.to_dict() for a in enrich_anomalies(anomalies, reviews)],
                "perceptions": mine_recurring_perceptions(reviews, stores).to_dict(),
                "reviews": [r.to_dict() for r in enrich_reviews(reviews, stores)],
                "stores_processed": result.stores_processed,
                "generated_at": datetime.now(timezone.utc),
            }
        return payload

    # ------------------------------------------------------------------
    # Health
    # ------------------------------------------------------------------

    def get_health(self) -> Dict[str, Any]:
        client_stats = self.fetcher.client.get_stats()
        return {
            "status": "healthy" if len(self.directory) else "degraded",
            "version": self.settings.app_version,
            "stores": len(self.directory),
            "places_provider": client_stats.get("mode", "unknown"),
            "llm": "configured" if self.summarizer.is_configured else "not_configured",
            "cache": {c.name: c.get_stats() for c in self.caches.all()},
        }
