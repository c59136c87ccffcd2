"""
Tests for the enrichment stage (raw statistics -> annotated results).

Usage:
    pytest tests/test_review_insights.py -v
"""

from datetime import datetime, timezone

from src.data.store_models import Review, Store
from src.reviews.anomaly_detector import detect_anomalies
from src.reviews.regional_analysis import analyze_scope
from src.reviews.review_insights import (
    enrich_anomalies,
    enrich_reviews,
    enrich_scope_analysis,
    store_highlights,
    store_problems,
)
from src.reviews.review_models import ScopeKind, ScopeStatus, Sentiment
from src.reviews.review_signals import BUREAUCRACY_PATTERN


def make_store(store_id: str, code=None) -> Store:
    return Store(
        id=store_id,
        name=f"Loja {store_id}",
        place_id=f"p{store_id}",
        state="PR",
        region="Sul",
        code=code,
    )


_counter = 0


def make_review(store_id: str, rating: int, comment=None) -> Review:
    global _counter
    _counter += 1
    return Review(
        id=f"r{_counter}",
        store_id=store_id,
        place_id=f"p{store_id}",
        date=datetime(2024, 5, 1, tzinfo=timezone.utc),
        rating=rating,
        comment=comment,
    )


class TestStoreNotes:

    def test_highlights_from_positive_comments(self):
        reviews = [
            make_review("1", 5, "Atendimento excelente e muita variedade"),
            make_review("1", 2, "Loja limpo mas atendimento ruim"),
        ]
        assert store_highlights(reviews, 3.5) == ["Outstanding service", "Good product variety"]

    def test_highlight_fallbacks_by_rating(self):
        assert store_highlights([], 4.6) == ["Excellent overall rating"]
        assert store_highlights([], 4.3) == ["Very positive reviews"]
        assert store_highlights([], 4.0) == ["Good performance"]

    def test_problems_from_critical_comments(self):
        reviews = [make_review("1", 2, "Atendimento ruim e preço caro")]
        assert store_problems(reviews, "fallback") == ["Problematic service", "High prices"]

    def test_problem_fallback(self):
        reviews = [make_review("1", 5, "Atendimento ruim")]   # rating too high to count
        assert store_problems(reviews, "fallback") == ["fallback"]


class TestEnrichScopeAnalysis:

    def setup_method(self):
        self.stores = [make_store(str(i)) for i in range(1, 5)]
        self.reviews = [
            make_review("1", 5, "Atendimento excelente, nota dez"),
            make_review("2", 5),
            make_review("3", 4),
            make_review("4", 3, "Sem estoque e falta de tamanhos"),
        ]
        self.raw = analyze_scope(self.reviews, self.stores, "Sul", ScopeKind.REGION)
        self.enriched = enrich_scope_analysis(self.raw, self.reviews)

    def test_statistics_carried_over(self):
        assert self.enriched.average == self.raw.average
        assert self.enriched.status == ScopeStatus.LEADING
        assert self.enriched.pattern == self.raw.pattern

    def test_top_tier_highlights(self):
        notes = {a.store.id: a.notes for a in self.enriched.top_tier}
        assert notes["1"] == ["Outstanding service"]
        assert notes["2"] == ["Excellent overall rating"]

    def test_opportunity_tier_fallback(self):
        assert [a.store.id for a in self.enriched.opportunity_tier] == ["3"]
        assert self.enriched.opportunity_tier[0].notes == ["Below region average"]

    def test_worst_store_problems(self):
        assert self.enriched.worst.store.id == "4"
        assert self.enriched.worst.notes == ["Stock-outs"]

    def test_raw_analysis_untouched(self):
        assert not hasattr(self.raw.top_tier[0], "notes")


class TestEnrichAnomalies:

    def test_joins_deep_analysis(self):
        store_a, store_b = make_store("A"), make_store("B")
        reviews = [
            make_review("A", 5), make_review("A", 5), make_review("A", 5),
            make_review("B", 1, "Atendimento ruim, vendedores conversando"),
            make_review("B", 1, "Produto errado e nunca entregou"),
        ]
        anomalies = detect_anomalies(reviews, [store_a, store_b])
        enriched = enrich_anomalies(anomalies, reviews)

        assert len(enriched) == 1
        anomaly = enriched[0]
        assert anomaly.store is store_b
        assert anomaly.gap == 2.4
        assert anomaly.reasons == anomalies[0].reasons
        assert set(anomaly.aspects) == {"service", "operations"}
        assert anomaly.pattern == BUREAUCRACY_PATTERN


class TestEnrichReviews:

    def test_annotations_and_unknown_store_dropped(self):
        stores = [make_store("1", code="PR41")]
        reviews = [
            make_review("1", 4, "Fila grande"),
            make_review("1", 2),
            make_review("ghost", 5, "Ótimo"),
        ]
        enriched = enrich_reviews(reviews, stores)

        assert len(enriched) == 2
        assert enriched[0].sentiment == Sentiment.POSITIVE
        assert enriched[0].category == "Tempo de Espera"
        assert enriched[0].store_name == "PR41 - Loja 1"
        assert enriched[1].category == "Outros"
        assert enriched[1].sentiment == Sentiment.NEGATIVE

    def test_to_dict_is_json_ready(self):
        enriched = enrich_reviews([make_review("1", 3, "Ok")], [make_store("1")])
        data = enriched[0].to_dict()
        assert data["sentiment"] == "neutral"
        assert data["review"]["date"] == "2024-05-01T00:00:00+00:00"
