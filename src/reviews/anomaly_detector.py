"""
Anomaly Detector
================

Flags stores whose average rating is both below an absolute threshold and
well below the network baseline (mean of every review in the request).
"""

import logging
from collections import defaultdict
from typing import Dict, Iterable, List

from src.data.store_models import Review, Store

from .review_models import Anomaly, Severity
from .scope_filter import average_rating

logger = logging.getLogger(__name__)


DEFAULT_THRESHOLD = 3.5
MIN_GAP = 0.5
WIDE_GAP = 1.0
LOW_CONFIDENCE_COUNT = 10


def classify_severity(average: float) -> Severity:
    if average < 2.0:
        return Severity.CRITICAL
    if average < 3.0:
        return Severity.HIGH
    return Severity.MEDIUM


def detect_anomalies(
    reviews: Iterable[Review],
    stores: Iterable[Store],
    threshold: float = DEFAULT_THRESHOLD,
) -> List[Anomaly]:
    """
    Stores with average < threshold and (baseline - average) > 0.5.

    Sorted by severity (CRITICAL first), then by gap, widest first.
    """
    reviews = list(reviews)
    baseline = average_rating(reviews)

    ratings: Dict[str, List[int]] = defaultdict(list)
    for review in reviews:
        ratings[review.store_id].append(review.rating)

    anomalies = []
    for store in stores:
        store_ratings = ratings.get(store.id)
        if not store_ratings:
            continue

        average = sum(store_ratings) / len(store_ratings)
        gap = baseline - average
        if not (average < threshold and gap > MIN_GAP):
            continue

        reasons = [f"Rating below {threshold:.1f} stars"]
        if gap > WIDE_GAP:
            reasons.append(f"Gap of {gap:.2f} points vs network average")
        if len(store_ratings) < LOW_CONFIDENCE_COUNT:
            reasons.append(
                f"Fewer than {LOW_CONFIDENCE_COUNT} reviews, low confidence"
            )

        anomalies.append(Anomaly(
            store=store,
            average=round(average, 2),
            baseline=baseline,
            gap=round(gap, 2),
            count=len(store_ratings),
            severity=classify_severity(average),
            reasons=reasons,
        ))

    anomalies.sort(key=lambda a: (a.severity.rank, -a.gap))

    if anomalies:
        logger.info(
            f"Detected {len(anomalies)} anomalies against baseline {baseline:.2f}"
        )
    return anomalies
