"""
Tests for the deterministic review text heuristics.

Tests the keyword-driven classifier:
- Sentiment from rating, comment categories in bucket order
- Recurring perception mining (themes, percentages, stores, severe cases)
- Deep store analysis (aspects, bureaucracy pattern, quotes, conclusion)

Usage:
    pytest tests/test_review_signals.py -v
"""

from datetime import datetime, timezone

from src.data.store_models import Review, Store
from src.reviews.review_lexicon import CATEGORIES, CATEGORY_RULES, KeywordRule, first_match
from src.reviews.review_models import AspectStatus, Sentiment
from src.reviews.review_signals import (
    BUREAUCRACY_PATTERN,
    categorize_comment,
    category_distribution,
    classify_sentiment,
    deep_analyze_store,
    mine_recurring_perceptions,
    sentiment_distribution,
)


# ============================================================================
# TEST DATA
# ============================================================================

def make_store(store_id: str) -> Store:
    return Store(id=store_id, name=f"Loja {store_id}", place_id=f"p{store_id}", state="SP", region="Sudeste")


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


STORES = [make_store("1"), make_store("2")]


# ============================================================================
# SENTIMENT / CATEGORIES
# ============================================================================

class TestClassifySentiment:

    def test_total_function_of_rating(self):
        assert classify_sentiment(5) == Sentiment.POSITIVE
        assert classify_sentiment(4) == Sentiment.POSITIVE
        assert classify_sentiment(3) == Sentiment.NEUTRAL
        assert classify_sentiment(2) == Sentiment.NEGATIVE
        assert classify_sentiment(1) == Sentiment.NEGATIVE

    def test_distribution(self):
        reviews = [make_review("1", r) for r in (5, 4, 3, 2, 1, 1)]
        dist = sentiment_distribution(reviews)
        assert (dist.positive, dist.neutral, dist.negative, dist.total) == (2, 1, 3, 6)


class TestCategorizeComment:

    def test_first_bucket_wins(self):
        # Matches both Service and Price keywords
        assert categorize_comment("Atendimento excelente e preço competitivo") == "Atendimento"

    def test_waiting_time(self):
        assert categorize_comment("Fila enorme no caixa") == "Tempo de Espera"

    def test_conjunctive_environment_rule(self):
        assert categorize_comment("Loja limpa e bonita") == "Ambiente"

    def test_price(self):
        assert categorize_comment("Tudo muito caro") == "Preços"

    def test_no_match_or_no_text(self):
        assert categorize_comment("Comprei ontem") == "Outros"
        assert categorize_comment(None) == "Outros"
        assert categorize_comment("   ") == "Outros"

    def test_category_distribution_lists_every_category(self):
        counts = category_distribution(["Fila enorme", "Muito caro", "", "Bom dia"])
        assert list(counts) == list(CATEGORIES)
        assert counts["Tempo de Espera"] == 1
        assert counts["Preços"] == 1
        assert counts["Outros"] == 1
        assert counts["Produtos"] == 0


class TestKeywordRule:

    def test_any_keyword(self):
        rule = KeywordRule("x", ("caro", "preço"))
        assert rule.matches("muito caro")
        assert not rule.matches("barato")

    def test_all_of_groups(self):
        rule = KeywordRule("x", all_of=(("loja",), ("limpa", "arrumada")))
        assert rule.matches("loja arrumada")
        assert not rule.matches("loja grande")

    def test_first_match_respects_table_order(self):
        rule = first_match(CATEGORY_RULES, "vendedor falou do estoque")
        assert rule.name == "Atendimento"


# ============================================================================
# RECURRING PERCEPTIONS
# ============================================================================

class TestRecurringPerceptions:

    def setup_method(self):
        self.reviews = [
            make_review("1", 5, "Atendimento excelente, vendedor muito prestativo"),
            make_review("2", 4, "Loja bem organizada e com muita variedade de tênis"),
            make_review("1", 1, "Comprei online e nunca entregou, abri protocolo e nada"),
            make_review("2", 2, "Muito caro, preço alto demais para o produto"),
            make_review("1", 5, "Ótimo!"),
        ]
        self.perceptions = mine_recurring_perceptions(self.reviews, STORES)

    def test_positive_themes(self):
        themes = [(p.theme, p.percentage, p.mentions) for p in self.perceptions.positive]
        assert themes == [
            ("Variedade de Marcas", 50, 1),
            ("Atendimento Prestativo", 50, 1),
        ]

    def test_negative_themes_most_frequent_first(self):
        themes = [(p.theme, p.percentage) for p in self.perceptions.negative]
        assert themes == [("Preços Altos", 100), ("Erros Operacionais", 50)]

    def test_description_names_stores(self):
        prices = self.perceptions.negative[0]
        assert prices.problematic_stores == ["Loja 1", "Loja 2"]
        assert prices.description == (
            "Mentioned in 100% of critical reviews. Most affected stores: Loja 1, Loja 2."
        )

    def test_examples_are_snippets(self):
        prices = self.perceptions.negative[0]
        assert prices.examples[1] == "muito caro, preço alto demais para o produto..."

    def test_severe_cases_from_operational_errors(self):
        errors = self.perceptions.negative[1]
        assert len(errors.severe_cases) == 1
        assert errors.severe_cases[0].store == "Loja 1"
        assert "nunca entregou" in errors.severe_cases[0].text

    def test_no_usable_comments(self):
        perceptions = mine_recurring_perceptions([make_review("1", 5, "Ok")], STORES)
        assert perceptions.positive == []
        assert perceptions.negative == []


# ============================================================================
# DEEP STORE ANALYSIS
# ============================================================================

class TestDeepAnalyzeStore:

    def setup_method(self):
        self.store = make_store("1")

    def test_bureaucracy_pattern(self):
        reviews = [
            make_review("1", 1, "Atendimento ruim, funcionários conversando e ninguém ajuda"),
            make_review("1", 1, "Produto errado entregue e nunca entregou o resto"),
            make_review("1", 2, "Vendedores ignoraram a gente, erro no pedido"),
        ]
        deep = deep_analyze_store(reviews, self.store)

        assert deep.average == 1.33
        assert deep.count == 3
        assert deep.aspects["service"].status == AspectStatus.CRITICAL
        assert deep.aspects["service"].description == "Poor (2 of 3 comments negative)"
        assert deep.aspects["service"].percentage == 67
        assert deep.aspects["operations"].status == AspectStatus.CRITICAL
        assert "policy" not in deep.aspects
        assert "structure" not in deep.aspects
        assert deep.pattern == BUREAUCRACY_PATTERN
        assert deep.conclusion == (
            "Problem of MANAGEMENT and SERVICE and PROCESSES and SYSTEMS. "
            "Store cannot execute basic operations adequately."
        )

    def test_quotes_lowest_rated_first(self):
        reviews = [
            make_review("1", 2, "Demorou muito para ser atendido no caixa"),
            make_review("1", 1, "Péssimo, nunca mais volto nesta loja"),
            make_review("1", 1, "Ruim"),
            make_review("1", 4, "Gostei bastante da loja e dos preços"),
        ]
        deep = deep_analyze_store(reviews, self.store)
        assert deep.quotes == [
            "Péssimo, nunca mais volto nesta loja",
            "Demorou muito para ser atendido no caixa",
        ]

    def test_policy_all_negative_is_critical(self):
        reviews = [make_review("1", 2, "Política de troca absurda")]
        deep = deep_analyze_store(reviews, self.store)
        assert deep.aspects["policy"].status == AspectStatus.CRITICAL

    def test_policy_mixed_is_warning(self):
        reviews = [
            make_review("1", 2, "Política de troca absurda"),
            make_review("1", 5, "Fiz a troca sem nenhum problema"),
        ]
        deep = deep_analyze_store(reviews, self.store)
        assert deep.aspects["policy"].status == AspectStatus.WARNING

    def test_healthy_store(self):
        reviews = [make_review("1", 5, "Atendimento excelente e muito educado")]
        deep = deep_analyze_store(reviews, self.store)
        assert deep.aspects["service"].status == AspectStatus.OK
        assert deep.pattern is None
        assert deep.conclusion == "Performance within expectations, with room for improvement."

    def test_rare_structure_praise_is_not_a_problem(self):
        reviews = [make_review("1", 5, "Loja muito limpo e bonita, adorei")]
        reviews += [make_review("1", 5, "Gostei muito da visita de hoje") for _ in range(9)]
        deep = deep_analyze_store(reviews, self.store)

        assert deep.average == 5.0
        assert deep.aspects["structure"].status == AspectStatus.CRITICAL
        assert "STRUCTURE" not in deep.conclusion
        assert deep.conclusion == "Performance within expectations, with room for improvement."

    def test_low_average_without_critical_aspect(self):
        reviews = [make_review("1", 2, "Não gostei da visita de hoje")]
        deep = deep_analyze_store(reviews, self.store)
        assert deep.aspects == {}
        assert deep.conclusion == (
            "Operational and management issues identified. Intervention required."
        )

    def test_no_reviews(self):
        deep = deep_analyze_store([make_review("2", 1, "Outra loja ruim demais")], self.store)
        assert deep.count == 0
        assert deep.conclusion == "Insufficient data for analysis."
