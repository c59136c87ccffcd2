"""
Store ranking (best / worst) with deterministic near-tie handling.
"""

import functools
from collections import defaultdict
from typing import Dict, Iterable, List

from src.data.store_models import Review, Store

from .review_models import RankingEntry
from .scope_filter import average_rating

TIE_TOLERANCE = 0.01
DIRECTIONS = ("best", "worst")


def _compare(a: RankingEntry, b: RankingEntry) -> int:
    # Averages within the tolerance are a tie: more reviews ranks higher.
    if abs(a.average - b.average) < TIE_TOLERANCE:
        return b.count - a.count
    return -1 if a.average > b.average else 1


def rank(
    reviews: Iterable[Review],
    stores: Iterable[Store],
    direction: str = "best",
    limit: int = 10,
) -> List[RankingEntry]:
    """
    Rank stores by average rating.

    Stores without reviews (and reviews of unknown stores) are left out.
    Positions are assigned on the full best-first ordering; the "worst"
    direction reverses that list and truncates, so its entries keep their
    best-first positions.
    """
    if direction not in DIRECTIONS:
        raise ValueError(f"direction must be one of {DIRECTIONS}, got: {direction}")

    by_id = {s.id: s for s in stores}
    grouped: Dict[str, List[Review]] = defaultdict(list)
    for review in reviews:
        if review.store_id in by_id:
            grouped[review.store_id].append(review)

    entries = [
        RankingEntry(
            store=by_id[store_id],
            average=average_rating(store_reviews),
            count=len(store_reviews),
            position=0,
        )
        for store_id, store_reviews in grouped.items()
    ]
    entries.sort(key=functools.cmp_to_key(_compare))

    for position, entry in enumerate(entries, start=1):
        entry.position = position

    if direction == "worst":
        entries.reverse()
    return entries[:limit]
