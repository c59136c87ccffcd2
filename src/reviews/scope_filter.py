"""
Scope Filter & Aggregator
=========================

Resolves a Scope into a store set, filters reviews to that set and
computes rating metrics.

    stores = resolve_stores(directory.stores, Scope.of(region="Sul"))
    reviews = filter_reviews(all_reviews, stores)
    metrics = compute_metrics(reviews, granularity="week")
"""

import logging
from collections import defaultdict
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from src.data.store_models import Review, Scope, Store, VALID_RATINGS

from .review_models import AggregateMetrics, PeriodBucket, StoreDistributionBucket

logger = logging.getLogger(__name__)


GRANULARITIES = ("day", "week", "month")


class ScopeNotFoundError(Exception):
    """A scope matched zero stores."""

    def __init__(self, message: str, scope: Optional[Scope] = None):
        super().__init__(message)
        self.scope = scope


def resolve_stores(stores: Iterable[Store], scope: Scope) -> List[Store]:
    """
    Stores selected by a scope.

    store_id wins outright (a single store, or none if unknown). Otherwise
    team, state and region are ANDed; unset fields do not constrain.
    """
    if scope.store_id:
        return [s for s in stores if s.id == scope.store_id][:1]

    return [
        s for s in stores
        if (not scope.team or s.team == scope.team)
        and (not scope.state or s.state == scope.state)
        and (not scope.region or s.region == scope.region)
    ]


def filter_reviews(
    reviews: Iterable[Review],
    stores: Iterable[Store],
    scope: Optional[Scope] = None,
) -> List[Review]:
    """
    Reviews belonging to the given stores (narrowed by `scope` when given).

    Reviews of unknown stores are dropped.
    """
    if scope is not None:
        stores = resolve_stores(stores, scope)
    store_ids = {s.id for s in stores}
    return [r for r in reviews if r.store_id in store_ids]


def average_rating(reviews: Iterable[Review]) -> float:
    """Mean rating rounded to 2 decimals; 0 for no reviews."""
    ratings = [r.rating for r in reviews]
    if not ratings:
        return 0.0
    return round(sum(ratings) / len(ratings), 2)


def period_key(date: datetime, granularity: str = "day") -> str:
    """Stable bucket key: YYYY-MM-DD, ISO week YYYY-Www, or YYYY-MM."""
    if granularity == "day":
        return date.strftime("%Y-%m-%d")
    if granularity == "week":
        year, week, _ = date.isocalendar()
        return f"{year}-W{week:02d}"
    if granularity == "month":
        return date.strftime("%Y-%m")
    raise ValueError(f"Unknown granularity: {granularity} (expected one of {GRANULARITIES})")


def compute_metrics(reviews: List[Review], granularity: str = "day") -> AggregateMetrics:
    """
    Average, histogram and time series of a review set.

    An empty set yields average 0, an all-zero histogram and no buckets.
    """
    if granularity not in GRANULARITIES:
        raise ValueError(f"Unknown granularity: {granularity} (expected one of {GRANULARITIES})")

    histogram = {rating: 0 for rating in VALID_RATINGS}
    by_period: Dict[str, List[int]] = defaultdict(list)

    for review in reviews:
        histogram[review.rating] += 1
        by_period[period_key(review.date, granularity)].append(review.rating)

    series = [
        PeriodBucket(
            period=key,
            average=round(sum(ratings) / len(ratings), 2),
            count=len(ratings),
        )
        for key, ratings in sorted(by_period.items())
    ]

    return AggregateMetrics(
        average=average_rating(reviews),
        total=len(reviews),
        histogram=histogram,
        series=series,
    )


def compute_store_rating_distribution(reviews: List[Review]) -> List[StoreDistributionBucket]:
    """
    How many stores share each average rating (rounded to 1 decimal).

    Buckets are sorted by average, best first.
    """
    by_store: Dict[str, List[int]] = defaultdict(list)
    for review in reviews:
        by_store[review.store_id].append(review.rating)

    if not by_store:
        return []

    counts: Dict[float, int] = defaultdict(int)
    for ratings in by_store.values():
        counts[round(sum(ratings) / len(ratings), 1)] += 1

    total_stores = len(by_store)
    return [
        StoreDistributionBucket(
            average=avg,
            count=count,
            percentage=round(count / total_stores * 100, 1),
        )
        for avg, count in sorted(counts.items(), reverse=True)
    ]
