"""
Store Review Summarizer
=======================

Qualitative and sentiment summaries of a scope's reviews, delegated to an
LLM through fixed prompt templates.

The LLM answer is expected to be JSON, but nothing about it is trusted:
every list field defaults to [] and every string field to "" when absent
or malformed, and any LLM error or unparseable answer yields a well-formed
empty result. Summaries never raise.

Two shapes:
- macro (network / region / state / team): strengths, weaknesses,
  trends, opportunities
- micro (single store): summary paragraph, strengths, weaknesses,
  frequent complaints, positive highlights, action plan
"""

import asyncio
import json
import logging
import re
from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from src.data.store_models import Review, Store
from src.reviews.review_models import SentimentDistribution
from src.reviews.review_signals import category_distribution, sentiment_distribution

from .llm_client import LLMClient

logger = logging.getLogger(__name__)


# Comment caps per LLM call (prompt size)
SUMMARY_COMMENT_CAP = 500
THEME_COMMENT_CAP = 200
MAX_THEMES = 5


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class QualitativeSummary:
    """Structured qualitative summary of a scope."""
    level: str                      # "macro" | "micro"
    scope: str                      # "network", "region:Sul", "store:12", ...
    strengths: List[str] = field(default_factory=list)
    weaknesses: List[str] = field(default_factory=list)
    trends: List[str] = field(default_factory=list)
    opportunities: List[str] = field(default_factory=list)
    # Micro only
    summary: str = ""
    frequent_complaints: List[str] = field(default_factory=list)
    positive_highlights: List[str] = field(default_factory=list)
    action_plan: List[str] = field(default_factory=list)
    comments_analyzed: int = 0
    generated_at: datetime = field(default_factory=_now)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["generated_at"] = self.generated_at.isoformat()
        return data


@dataclass
class ThemeMention:
    """A praise or complaint and how many comments mention it."""
    text: str
    mentions: int


@dataclass
class SentimentAnalysis:
    sentiment_distribution: SentimentDistribution
    category_distribution: Dict[str, int]
    top_praises: List[ThemeMention] = field(default_factory=list)
    top_complaints: List[ThemeMention] = field(default_factory=list)
    generated_at: datetime = field(default_factory=_now)

    @property
    def is_empty(self) -> bool:
        return self.sentiment_distribution.total == 0

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["generated_at"] = self.generated_at.isoformat()
        return data


# =============================================================================
# PROMPTS
# =============================================================================

SUMMARY_SYSTEM = (
    "Você é um analista especializado em experiência do cliente e análise de "
    "avaliações de lojas físicas. Sempre responda em formato JSON válido."
)

MACRO_PROMPT = """Analise os seguintes comentários de clientes sobre lojas físicas de varejo esportivo {scope_label}.

Comentários dos clientes:
{comments}

Gere uma análise estruturada com os seguintes elementos:

1. Pontos fortes (até 5 itens): principais aspectos positivos mencionados
2. Pontos fracos (até 5 itens): principais problemas ou reclamações recorrentes
3. Tendências (até 3 itens): padrões de satisfação/insatisfação identificados
4. Oportunidades (até 4 itens): sugestões práticas de melhoria

Responda APENAS com JSON válido, sem markdown, neste formato exato:
{{
  "strengths": ["..."],
  "weaknesses": ["..."],
  "trends": ["..."],
  "opportunities": ["..."]
}}"""

MICRO_PROMPT = """Analise os comentários de clientes sobre a loja "{store_name}" ({location}).

Comentários dos clientes:
{comments}

Gere uma análise detalhada e acionável com os seguintes elementos:

1. Resumo (1 parágrafo): visão geral da percepção dos clientes sobre esta loja
2. Pontos fortes (até 5 itens)
3. Pontos fracos (até 5 itens)
4. Reclamações frequentes (até 5 itens): reclamações que aparecem múltiplas vezes
5. Destaques positivos (até 3 itens): aspectos únicos que os clientes valorizam
6. Plano de ação (até 4 itens): ações práticas e específicas para melhorar

Responda APENAS com JSON válido, sem markdown, neste formato exato:
{{
  "summary": "...",
  "strengths": ["..."],
  "weaknesses": ["..."],
  "frequent_complaints": ["..."],
  "positive_highlights": ["..."],
  "action_plan": ["..."]
}}"""

THEMES_SYSTEM = (
    "Você é um analista especializado em identificar motivos recorrentes em "
    "feedback de clientes. Retorne apenas JSON válido."
)

THEMES_PROMPT = """Analise TODOS os seguintes comentários {tone} de avaliações de uma loja de artigos esportivos.

Identifique os PRINCIPAIS MOTIVOS pelos quais os clientes deixaram avaliações {tone_plural}:
1. Agrupe comentários que mencionam o mesmo aspecto
2. Conte quantos comentários mencionam cada motivo
3. Descreva cada motivo de forma clara e específica
4. Use as categorias: Atendimento, Ambiente, Tempo de Espera, Produtos, Preços, Outros

Comentários:
{comments}

Retorne APENAS um JSON válido (sem markdown) com esta estrutura:
{{
  "items": [
    {{"text": "Atendimento cordial e eficiente", "mentions": 15}}
  ]
}}

No máximo 5 itens, ordenados por número de menções (maior para menor)."""


# =============================================================================
# RESPONSE PARSING
# =============================================================================

_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$")


def parse_json_object(text: Optional[str]) -> Optional[Dict[str, Any]]:
    """JSON object in an LLM answer (markdown fences stripped), or None."""
    if not text:
        return None
    content = _FENCE.sub("", text.strip()).strip()
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        logger.warning(f"LLM did not return valid JSON: {e}")
        return None
    if not isinstance(data, dict):
        logger.warning(f"LLM returned JSON {type(data).__name__}, expected object")
        return None
    return data


def string_list(data: Dict[str, Any], key: str) -> List[str]:
    """String items of data[key]; [] when absent or not a list."""
    value = data.get(key)
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, str)]


def theme_list(data: Dict[str, Any], key: str = "items") -> List[ThemeMention]:
    """Well-formed {text, mentions} items of data[key], at most MAX_THEMES."""
    value = data.get(key)
    if not isinstance(value, list):
        return []
    themes = []
    for item in value:
        if not isinstance(item, dict) or not isinstance(item.get("text"), str):
            continue
        mentions = item.get("mentions")
        if isinstance(mentions, bool) or not isinstance(mentions, (int, float)):
            mentions = 0
        themes.append(ThemeMention(text=item["text"], mentions=int(mentions)))
    return themes[:MAX_THEMES]


def _numbered(comments: List[str]) -> str:
    return "\n".join(f'{i}. "{c}"' for i, c in enumerate(comments, start=1))


def _comments(reviews: List[Review]) -> List[str]:
    return [r.comment for r in reviews if r.comment and r.comment.strip()]


# =============================================================================
# SUMMARIZER
# =============================================================================

class ReviewSummarizer:
    """
    Qualitative/sentiment summarization orchestrator.

    With no LLM configured every summary is the empty result.
    """

    def __init__(self, llm: Optional[LLMClient] = None):
        self.llm = llm

    @property
    def is_configured(self) -> bool:
        return self.llm is not None

    async def _ask(self, prompt: str, system: str) -> Optional[Dict[str, Any]]:
        """LLM answer as a JSON object; None on any failure."""
        if self.llm is None:
            logger.debug("No LLM configured, skipping summarization call")
            return None
        try:
            text = await self.llm.complete(prompt, system=system)
        except Exception as e:
            logger.error(f"Summarization call failed: {e}")
            return None
        return parse_json_object(text)

    async def summarize(
        self,
        reviews: List[Review],
        scope_descriptor: str,
        store: Optional[Store] = None,
    ) -> QualitativeSummary:
        """
        Qualitative summary of `reviews`.

        Micro (single store) when `store` is given, macro otherwise.
        """
        level = "micro" if store is not None else "macro"
        comments = _comments(reviews)[:SUMMARY_COMMENT_CAP]
        empty = QualitativeSummary(level=level, scope=scope_descriptor)

        if not comments:
            return empty

        if store is not None:
            location = ", ".join(p for p in (store.city, store.state) if p)
            prompt = MICRO_PROMPT.format(
                store_name=store.name,
                location=location,
                comments=_numbered(comments),
            )
        else:
            scope_label = (
                "em toda a rede" if scope_descriptor == "network"
                else f"no escopo {scope_descriptor}"
            )
            prompt = MACRO_PROMPT.format(scope_label=scope_label, comments=_numbered(comments))

        data = await self._ask(prompt, SUMMARY_SYSTEM)
        if data is None:
            return empty

        summary = QualitativeSummary(
            level=level,
            scope=scope_descriptor,
            strengths=string_list(data, "strengths"),
            weaknesses=string_list(data, "weaknesses"),
            comments_analyzed=len(comments),
        )
        if level == "macro":
            summary.trends = string_list(data, "trends")
            summary.opportunities = string_list(data, "opportunities")
        else:
            text = data.get("summary")
            summary.summary = text if isinstance(text, str) else ""
            summary.frequent_complaints = string_list(data, "frequent_complaints")
            summary.positive_highlights = string_list(data, "positive_highlights")
            summary.action_plan = string_list(data, "action_plan")
            summary.opportunities = list(summary.action_plan)

        logger.info(
            f"Qualitative summary for {scope_descriptor}: {len(comments)} comments, "
            f"{len(summary.strengths)} strengths, {len(summary.weaknesses)} weaknesses"
        )
        return summary

    async def extract_themes(self, comments: List[str], positive: bool) -> List[ThemeMention]:
        """Most mentioned praises (positive=True) or complaints."""
        comments = comments[:THEME_COMMENT_CAP]
        if not comments:
            return []
        prompt = THEMES_PROMPT.format(
            tone="POSITIVOS" if positive else "NEGATIVOS",
            tone_plural="positivas" if positive else "negativas",
            comments=_numbered(comments),
        )
        data = await self._ask(prompt, THEMES_SYSTEM)
        if data is None:
            return []
        return theme_list(data)

    async def analyze_sentiment(self, reviews: List[Review]) -> SentimentAnalysis:
        """
        Sentiment and category distributions plus top praises/complaints.

        Praises come from comments rated >= 4, complaints from comments
        rated <= 2; both extractions run concurrently.
        """
        praise_comments = [r.comment for r in reviews if r.comment and r.rating >= 4]
        complaint_comments = [r.comment for r in reviews if r.comment and r.rating <= 2]

        praises, complaints = await asyncio.gather(
            self.extract_themes(praise_comments, positive=True),
            self.extract_themes(complaint_comments, positive=False),
        )

        return SentimentAnalysis(
            sentiment_distribution=sentiment_distribution(reviews),
            category_distribution=category_distribution(r.comment for r in reviews if r.comment),
            top_praises=praises,
            top_complaints=complaints,
        )
