"""
Regional Comparative Analyzer
=============================

Peer statistics for one region, state or team: scope health status,
store tiers, a narrative pattern and outliers.

The scope average is the mean of per-store averages, so a store with
3 reviews weighs as much as one with 300. The anomaly detector's
network baseline is review-weighted instead; both are kept as is.
"""

import logging
from collections import defaultdict
from typing import Dict, Iterable, List, Optional

from src.data.store_models import Review, Store

from .review_models import (
    Outlier,
    Pattern,
    RawScopeAnalysis,
    ScopeKind,
    ScopeStatus,
    StoreScore,
)
from .scope_filter import ScopeNotFoundError

logger = logging.getLogger(__name__)


# Status thresholds
LEADING_AVERAGE = 4.2
PROBLEMATIC_AVERAGE = 3.8
INCONSISTENT_STORE_AVERAGE = 3.5

# Tiering
TOP_TIER_MARGIN = 0.1
WORST_STORE_CEILING = 4.0

# Pattern / outliers
POSITIVE_SHARE = 0.70
NEGATIVE_SHARE = 0.30
OUTLIER_DISTANCE = 0.5


def store_attribute(store: Store, kind: ScopeKind) -> Optional[str]:
    return getattr(store, ScopeKind(kind).value)


def score_stores(reviews: Iterable[Review], stores: Iterable[Store]) -> List[StoreScore]:
    """Per-store average (2 decimals) and count, best first. Stores without reviews are skipped."""
    ratings: Dict[str, List[int]] = defaultdict(list)
    for review in reviews:
        ratings[review.store_id].append(review.rating)

    scores = [
        StoreScore(
            store=store,
            average=round(sum(ratings[store.id]) / len(ratings[store.id]), 2),
            count=len(ratings[store.id]),
        )
        for store in stores
        if ratings.get(store.id)
    ]
    scores.sort(key=lambda s: s.average, reverse=True)
    return scores


def classify_status(average: float, scores: List[StoreScore]) -> ScopeStatus:
    if average >= LEADING_AVERAGE:
        return ScopeStatus.LEADING
    if average < PROBLEMATIC_AVERAGE:
        return ScopeStatus.PROBLEMATIC
    if any(s.average < INCONSISTENT_STORE_AVERAGE for s in scores):
        return ScopeStatus.INCONSISTENT
    return ScopeStatus.BALANCED


def classify_pattern(scope_value: str, average: float, scores: List[StoreScore]):
    """Pattern and its descriptive sentence."""
    if not scores:
        return Pattern.MIXED, f"{scope_value} has no rated stores yet."

    above = sum(1 for s in scores if s.average >= average)
    share = above / len(scores)

    if share >= POSITIVE_SHARE:
        return Pattern.POSITIVE, (
            f"{scope_value} has the best overall ratings, with {above} of "
            f"{len(scores)} stores at or above {average:.2f} stars."
        )
    if share <= NEGATIVE_SHARE:
        return Pattern.NEGATIVE, (
            f"{scope_value} has the weakest ratings and the widest spread "
            f"({scores[-1].average:.1f} to {scores[0].average:.1f})."
        )
    return Pattern.MIXED, (
        f"{scope_value} shows balanced ratings, with moderate variation between stores."
    )


def analyze_scope(
    reviews: Iterable[Review],
    stores: Iterable[Store],
    scope_value: str,
    scope_kind: ScopeKind = ScopeKind.REGION,
) -> RawScopeAnalysis:
    """
    Analyze the stores whose `scope_kind` attribute equals `scope_value`.

    Raises:
        ScopeNotFoundError: If no store belongs to the scope
    """
    scope_kind = ScopeKind(scope_kind)
    members = [s for s in stores if store_attribute(s, scope_kind) == scope_value]
    if not members:
        raise ScopeNotFoundError(f"No stores found for {scope_kind.value} {scope_value}")

    member_ids = {s.id for s in members}
    scores = score_stores((r for r in reviews if r.store_id in member_ids), members)

    average = round(sum(s.average for s in scores) / len(scores), 2) if scores else 0.0
    cutoff = average - TOP_TIER_MARGIN

    last = scores[-1] if scores else None
    worst = last if last is not None and last.average < WORST_STORE_CEILING else None

    top_tier = [s for s in scores if s.average >= cutoff]
    opportunity_tier = [s for s in scores if s.average < cutoff and s is not last]

    pattern, description = classify_pattern(scope_value, average, scores)

    outliers = [
        Outlier(
            store=s.store,
            average=s.average,
            reason=(
                f"Rating {s.average:.1f} pulls the average down"
                if s.average < average
                else f"Rating {s.average:.1f} above average"
            ),
        )
        for s in scores
        if abs(s.average - average) > OUTLIER_DISTANCE
    ]

    logger.debug(
        f"Scope {scope_kind.value}={scope_value}: {len(scores)} rated stores, "
        f"average {average:.2f}"
    )

    return RawScopeAnalysis(
        scope_kind=scope_kind,
        scope_value=scope_value,
        average=average,
        store_count=len(scores),
        status=classify_status(average, scores),
        top_tier=top_tier,
        opportunity_tier=opportunity_tier,
        worst=worst,
        pattern=pattern,
        pattern_description=description,
        outliers=outliers,
    )


def analyze_all_scopes(
    reviews: Iterable[Review],
    stores: Iterable[Store],
    scope_kind: ScopeKind = ScopeKind.REGION,
) -> List[RawScopeAnalysis]:
    """Analyze every distinct value of `scope_kind`, best scope average first."""
    scope_kind = ScopeKind(scope_kind)
    reviews = list(reviews)
    stores = list(stores)

    values: Dict[str, None] = {}
    for store in stores:
        value = store_attribute(store, scope_kind)
        if value:
            values.setdefault(value, None)

    analyses = [analyze_scope(reviews, stores, value, scope_kind) for value in values]
    analyses.sort(key=lambda a: a.average, reverse=True)
    return analyses
