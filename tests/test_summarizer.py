"""
Tests for the LLM summarization orchestrator.

The LLM is always a mock: these tests check prompt routing and that
malformed or failing answers degrade to well-formed empty results.

Usage:
    pytest tests/test_summarizer.py -v
"""

import asyncio
import json
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

from src.ai.summarizer import (
    MAX_THEMES,
    ReviewSummarizer,
    parse_json_object,
    string_list,
    theme_list,
)
from src.data.store_models import Review, Store


def make_store() -> Store:
    return Store(
        id="12",
        name="Curitiba Batel",
        place_id="p12",
        state="PR",
        region="Sul",
        city="Curitiba",
        code="PR41",
    )


def make_review(rating: int, comment=None, index: int = 0) -> Review:
    return Review(
        id=f"r{index}",
        store_id="12",
        place_id="p12",
        date=datetime(2024, 5, 1, tzinfo=timezone.utc),
        rating=rating,
        comment=comment,
    )


def make_llm(answer=None, error=None) -> MagicMock:
    llm = MagicMock()
    llm.complete = AsyncMock(return_value=answer, side_effect=error)
    return llm


REVIEWS = [
    make_review(5, "Atendimento excelente", 1),
    make_review(1, "Nunca entregou meu pedido", 2),
    make_review(3, None, 3),
]

MACRO_ANSWER = json.dumps({
    "strengths": ["Atendimento cordial"],
    "weaknesses": ["Entregas atrasadas"],
    "trends": ["Melhora recente"],
    "opportunities": ["Treinar equipe", 42],
})

MICRO_ANSWER = json.dumps({
    "summary": "Clientes elogiam o atendimento.",
    "strengths": ["Atendimento"],
    "weaknesses": ["Entrega"],
    "frequent_complaints": ["Pedido não entregue"],
    "positive_highlights": ["Equipe simpática"],
    "action_plan": ["Revisar logística"],
})


class TestSummarize:

    def test_macro_summary(self):
        llm = make_llm(MACRO_ANSWER)
        summary = asyncio.run(ReviewSummarizer(llm).summarize(REVIEWS, "region:Sul"))

        assert summary.level == "macro"
        assert summary.scope == "region:Sul"
        assert summary.strengths == ["Atendimento cordial"]
        assert summary.trends == ["Melhora recente"]
        # Non-string items are dropped
        assert summary.opportunities == ["Treinar equipe"]
        assert summary.comments_analyzed == 2

        prompt = llm.complete.call_args.args[0]
        assert "no escopo region:Sul" in prompt
        assert '1. "Atendimento excelente"' in prompt

    def test_network_label(self):
        llm = make_llm(MACRO_ANSWER)
        asyncio.run(ReviewSummarizer(llm).summarize(REVIEWS, "network"))
        assert "em toda a rede" in llm.complete.call_args.args[0]

    def test_micro_summary(self):
        llm = make_llm(MICRO_ANSWER)
        summary = asyncio.run(
            ReviewSummarizer(llm).summarize(REVIEWS, "store:12", store=make_store())
        )

        assert summary.level == "micro"
        assert summary.summary == "Clientes elogiam o atendimento."
        assert summary.frequent_complaints == ["Pedido não entregue"]
        assert summary.action_plan == ["Revisar logística"]
        assert summary.opportunities == ["Revisar logística"]
        assert summary.trends == []
        assert 'sobre a loja "Curitiba Batel" (Curitiba, PR)' in llm.complete.call_args.args[0]

    def test_invalid_json_gives_empty_summary(self):
        llm = make_llm("Desculpe, não consigo responder em JSON.")
        summary = asyncio.run(ReviewSummarizer(llm).summarize(REVIEWS, "network"))

        assert summary.strengths == []
        assert summary.weaknesses == []
        assert summary.trends == []
        assert summary.opportunities == []
        assert summary.comments_analyzed == 0
        assert isinstance(summary.generated_at, datetime)

    def test_llm_error_gives_empty_summary(self):
        llm = make_llm(error=RuntimeError("rate limited"))
        summary = asyncio.run(ReviewSummarizer(llm).summarize(REVIEWS, "network"))
        assert summary.strengths == []
        assert summary.to_dict()["generated_at"]

    def test_no_comments_skips_llm(self):
        llm = make_llm(MACRO_ANSWER)
        summary = asyncio.run(ReviewSummarizer(llm).summarize([make_review(4)], "network"))
        llm.complete.assert_not_called()
        assert summary.strengths == []

    def test_unconfigured_summarizer(self):
        summarizer = ReviewSummarizer(llm=None)
        assert not summarizer.is_configured
        summary = asyncio.run(summarizer.summarize(REVIEWS, "network"))
        assert summary.weaknesses == []


class TestSentimentAnalysis:

    def setup_method(self):
        async def answer(prompt, system=None):
            if "POSITIVOS" in prompt:
                return json.dumps({"items": [{"text": "Atendimento cordial", "mentions": 3}]})
            return "```json\n" + json.dumps({"items": [{"text": "Entrega", "mentions": 2.0}]}) + "\n```"

        self.llm = MagicMock()
        self.llm.complete = AsyncMock(side_effect=answer)

    def test_distributions_and_themes(self):
        analysis = asyncio.run(ReviewSummarizer(self.llm).analyze_sentiment(REVIEWS))

        dist = analysis.sentiment_distribution
        assert (dist.positive, dist.neutral, dist.negative, dist.total) == (1, 1, 1, 3)
        assert analysis.category_distribution["Atendimento"] == 1
        assert [(t.text, t.mentions) for t in analysis.top_praises] == [("Atendimento cordial", 3)]
        assert [(t.text, t.mentions) for t in analysis.top_complaints] == [("Entrega", 2)]
        assert self.llm.complete.await_count == 2

    def test_empty_reviews(self):
        analysis = asyncio.run(ReviewSummarizer(self.llm).analyze_sentiment([]))
        assert analysis.is_empty
        assert analysis.top_praises == []
        self.llm.complete.assert_not_called()

    def test_to_dict(self):
        data = asyncio.run(ReviewSummarizer(self.llm).analyze_sentiment(REVIEWS)).to_dict()
        assert data["sentiment_distribution"]["total"] == 3
        assert data["top_praises"][0] == {"text": "Atendimento cordial", "mentions": 3}


class TestResponseParsing:

    def test_fenced_json(self):
        assert parse_json_object('```json\n{"a": 1}\n```') == {"a": 1}

    def test_non_object_rejected(self):
        assert parse_json_object("[1, 2]") is None
        assert parse_json_object("") is None
        assert parse_json_object(None) is None

    def test_string_list_defaults(self):
        assert string_list({"a": "not a list"}, "a") == []
        assert string_list({}, "a") == []

    def test_theme_list_filters_and_caps(self):
        items = [{"text": f"t{i}", "mentions": i} for i in range(8)]
        items.insert(0, {"mentions": 5})
        items.insert(1, "junk")
        themes = theme_list({"items": items})
        assert len(themes) == MAX_THEMES
        assert themes[0].text == "t0"

    def test_theme_list_bad_mentions(self):
        themes = theme_list({"items": [{"text": "x", "mentions": "many"}]})
        assert themes[0].mentions == 0
