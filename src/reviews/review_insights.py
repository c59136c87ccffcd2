"""
Review Insight Enrichment
=========================

Heuristic-text stage of the pipeline. Takes the statistical results
(RawScopeAnalysis, Anomaly, Review) and returns new enriched objects:

    - enrich_scope_analysis: highlights/problems for tiered stores
    - enrich_anomalies: deep-analysis aspects, pattern and conclusion
    - enrich_reviews: sentiment, category and display name per review

Usage:
    raw = analyze_scope(reviews, stores, "Sul", ScopeKind.REGION)
    enriched = enrich_scope_analysis(raw, reviews)
"""

import logging
from collections import defaultdict
from typing import Dict, Iterable, List, Sequence

from src.data.store_models import Review, Store
from src.data.store_directory import format_store_name

from .review_lexicon import HIGHLIGHT_RULES, PROBLEM_RULES, KeywordRule
from .review_models import (
    Anomaly,
    AnnotatedStore,
    EnrichedAnomaly,
    EnrichedReview,
    EnrichedScopeAnalysis,
    RawScopeAnalysis,
    StoreScore,
)
from .review_signals import categorize_comment, classify_sentiment, deep_analyze_store

logger = logging.getLogger(__name__)


WORST_STORE_FALLBACK = "Needs urgent improvement"


def _group_by_store(reviews: Iterable[Review]) -> Dict[str, List[Review]]:
    grouped: Dict[str, List[Review]] = defaultdict(list)
    for review in reviews:
        grouped[review.store_id].append(review)
    return grouped


def _matched_notes(rules: Sequence[KeywordRule], comments: List[str]) -> List[str]:
    """Names of the rules matched by at least one comment."""
    return [rule.name for rule in rules if any(rule.matches(c) for c in comments)]


def store_highlights(reviews: List[Review], average: float) -> List[str]:
    """Positives found in comments rated >= 4, or a rating-based fallback."""
    comments = [r.comment.lower() for r in reviews if r.comment and r.rating >= 4]
    notes = _matched_notes(HIGHLIGHT_RULES, comments)
    if notes:
        return notes
    if average >= 4.5:
        return ["Excellent overall rating"]
    if average >= 4.3:
        return ["Very positive reviews"]
    return ["Good performance"]


def store_problems(reviews: List[Review], fallback: str) -> List[str]:
    """Problems found in comments rated <= 3, or `fallback`."""
    comments = [r.comment.lower() for r in reviews if r.comment and r.rating <= 3]
    return _matched_notes(PROBLEM_RULES, comments) or [fallback]


def _annotate(score: StoreScore, notes: List[str]) -> AnnotatedStore:
    return AnnotatedStore(
        store=score.store,
        average=score.average,
        count=score.count,
        notes=notes,
    )


def enrich_scope_analysis(analysis: RawScopeAnalysis, reviews: Iterable[Review]) -> EnrichedScopeAnalysis:
    """Attach comment-derived notes to the top, opportunity and worst stores."""
    by_store = _group_by_store(reviews)
    below_scope = f"Below {analysis.scope_kind.value} average"

    worst = None
    if analysis.worst is not None:
        worst = _annotate(
            analysis.worst,
            store_problems(by_store.get(analysis.worst.store.id, []), WORST_STORE_FALLBACK),
        )

    return EnrichedScopeAnalysis(
        scope_kind=analysis.scope_kind,
        scope_value=analysis.scope_value,
        average=analysis.average,
        store_count=analysis.store_count,
        status=analysis.status,
        top_tier=[
            _annotate(s, store_highlights(by_store.get(s.store.id, []), s.average))
            for s in analysis.top_tier
        ],
        opportunity_tier=[
            _annotate(s, store_problems(by_store.get(s.store.id, []), below_scope))
            for s in analysis.opportunity_tier
        ],
        worst=worst,
        pattern=analysis.pattern,
        pattern_description=analysis.pattern_description,
        outliers=list(analysis.outliers),
    )


def enrich_anomalies(anomalies: Iterable[Anomaly], reviews: Iterable[Review]) -> List[EnrichedAnomaly]:
    """Join each anomaly with the deep analysis of its store."""
    by_store = _group_by_store(reviews)
    enriched = []
    for anomaly in anomalies:
        deep = deep_analyze_store(by_store.get(anomaly.store.id, []), anomaly.store)
        enriched.append(EnrichedAnomaly(
            store=anomaly.store,
            average=anomaly.average,
            baseline=anomaly.baseline,
            gap=anomaly.gap,
            count=anomaly.count,
            severity=anomaly.severity,
            reasons=list(anomaly.reasons),
            aspects=deep.aspects,
            pattern=deep.pattern,
            conclusion=deep.conclusion,
        ))
    return enriched


def enrich_reviews(reviews: Iterable[Review], stores: Iterable[Store]) -> List[EnrichedReview]:
    """
    Annotate reviews with sentiment, category and formatted store name.

    Reviews of unknown stores are dropped.
    """
    by_id = {s.id: s for s in stores}
    enriched = []
    for review in reviews:
        store = by_id.get(review.store_id)
        if store is None:
            continue
        enriched.append(EnrichedReview(
            review=review,
            sentiment=classify_sentiment(review.rating),
            category=categorize_comment(review.comment),
            store_name=format_store_name(store),
        ))
    return enriched
