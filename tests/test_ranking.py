"""
Tests for the best/worst store ranking.

Usage:
    pytest tests/test_ranking.py -v
"""

import functools
from datetime import datetime, timezone

import pytest

from src.data.store_models import Review, Store
from src.reviews.ranking import _compare, rank
from src.reviews.review_models import RankingEntry


def make_store(store_id: str) -> Store:
    return Store(id=store_id, name=f"Loja {store_id}", place_id=f"p{store_id}", state="SP", region="Sudeste")


def make_reviews(store_id: str, ratings) -> list:
    return [
        Review(
            id=f"{store_id}-{i}",
            store_id=store_id,
            place_id=f"p{store_id}",
            date=datetime(2024, 5, 1, tzinfo=timezone.utc),
            rating=rating,
        )
        for i, rating in enumerate(ratings)
    ]


STORES = [make_store(str(i)) for i in range(1, 6)]

REVIEWS = (
    make_reviews("1", [5, 5, 4])        # 4.67
    + make_reviews("2", [3, 3])         # 3.0
    + make_reviews("3", [5, 4])         # 4.5, 2 reviews
    + make_reviews("4", [5, 4, 5, 4])   # 4.5, 4 reviews
    + make_reviews("5", [1])            # 1.0
)


class TestRankBest:

    def test_sorted_descending_with_count_tie_break(self):
        entries = rank(REVIEWS, STORES, "best", limit=10)
        assert [e.store.id for e in entries] == ["1", "4", "3", "2", "5"]

    def test_positions_contiguous_from_one(self):
        entries = rank(REVIEWS, STORES, "best", limit=10)
        assert [e.position for e in entries] == [1, 2, 3, 4, 5]

    def test_limit_truncates(self):
        entries = rank(REVIEWS, STORES, "best", limit=2)
        assert [e.store.id for e in entries] == ["1", "4"]

    def test_averages_and_counts(self):
        first = rank(REVIEWS, STORES, "best")[0]
        assert first.average == 4.67
        assert first.count == 3

    def test_stores_without_reviews_left_out(self):
        extra = STORES + [make_store("6")]
        assert len(rank(REVIEWS, extra)) == 5

    def test_empty(self):
        assert rank([], STORES) == []


class TestRankWorst:

    def test_reversed_order_keeps_best_first_positions(self):
        entries = rank(REVIEWS, STORES, "worst", limit=2)
        assert [e.store.id for e in entries] == ["5", "2"]
        assert [e.position for e in entries] == [5, 4]

    def test_invalid_direction(self):
        with pytest.raises(ValueError):
            rank(REVIEWS, STORES, "middle")


class TestTieTolerance:

    def test_near_tie_breaks_on_review_count(self):
        few = RankingEntry(store=make_store("a"), average=4.50, count=5, position=0)
        many = RankingEntry(store=make_store("b"), average=4.49, count=50, position=0)
        ordered = sorted([few, many], key=functools.cmp_to_key(_compare))
        assert ordered == [many, few]

    def test_clear_gap_ignores_count(self):
        high = RankingEntry(store=make_store("a"), average=4.60, count=1, position=0)
        low = RankingEntry(store=make_store("b"), average=4.40, count=500, position=0)
        assert _compare(high, low) < 0
        assert _compare(low, high) > 0
