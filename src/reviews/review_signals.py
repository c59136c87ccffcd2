"""
Review Signal Classifier (Deterministic)
========================================

Keyword-driven text heuristics over review comments, driven entirely by
the rule tables in review_lexicon. No LLM required: fast, explainable,
reproducible.

Usage:
    classify_sentiment(4)                       # Sentiment.POSITIVE
    categorize_comment("Fila enorme no caixa")  # "Tempo de Espera"
    perceptions = mine_recurring_perceptions(reviews, stores)
    deep = deep_analyze_store(reviews, store)
"""

import logging
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from src.data.store_models import Review, Store

from .review_lexicon import (
    CATEGORIES,
    CATEGORY_RULES,
    NEGATIVE_THEMES,
    OPERATIONAL_ERRORS_THEME,
    OPERATIONS_RULE,
    OTHER_CATEGORY,
    POLICY_NEGATIVE_RULE,
    POLICY_RULE,
    POSITIVE_THEMES,
    SERVICE_NEGATIVE_RULE,
    SERVICE_POSITIVE_RULE,
    SEVERE_CASE_RULE,
    STRUCTURE_RULE,
    KeywordRule,
    first_match,
)
from .review_models import (
    Aspect,
    AspectStatus,
    DeepAnalysis,
    NegativePerception,
    PositivePerception,
    RecurringPerceptions,
    Sentiment,
    SentimentDistribution,
    SevereCase,
)

logger = logging.getLogger(__name__)


# Comments at or below this many characters carry no usable signal
MIN_COMMENT_LENGTH = 10
MAX_HIGHLIGHTED_STORES = 3
MAX_EXAMPLES = 3
MAX_SEVERE_CASES = 2
SNIPPET_WORDS_BEFORE = 5
SNIPPET_WORDS_AFTER = 15
SNIPPET_MAX_CHARS = 100
SEVERE_CASE_MAX_CHARS = 150

MAX_QUOTES = 3
QUOTE_MIN_LENGTH = 20
QUOTE_MAX_RATING = 2

BUREAUCRACY_PATTERN = "Bureaucracy that drives customers away"


# =============================================================================
# SENTIMENT / CATEGORY
# =============================================================================

def classify_sentiment(rating: int) -> Sentiment:
    """>= 4 positive, 3 neutral, <= 2 negative."""
    if rating >= 4:
        return Sentiment.POSITIVE
    if rating == 3:
        return Sentiment.NEUTRAL
    return Sentiment.NEGATIVE


def categorize_comment(text: Optional[str]) -> str:
    """Topic of a comment: first matching category, "Outros" otherwise."""
    if not text or not text.strip():
        return OTHER_CATEGORY
    rule = first_match(CATEGORY_RULES, text.lower())
    return rule.name if rule else OTHER_CATEGORY


def sentiment_distribution(reviews: Iterable[Review]) -> SentimentDistribution:
    dist = SentimentDistribution()
    for review in reviews:
        sentiment = classify_sentiment(review.rating)
        setattr(dist, sentiment.value, getattr(dist, sentiment.value) + 1)
        dist.total += 1
    return dist


def category_distribution(comments: Iterable[str]) -> Dict[str, int]:
    """Comment count per category (every category present, in table order)."""
    counts = {category: 0 for category in CATEGORIES}
    for comment in comments:
        if comment and comment.strip():
            counts[categorize_comment(comment)] += 1
    return counts


# =============================================================================
# RECURRING PERCEPTIONS
# =============================================================================

def _percentage(part: int, whole: int) -> int:
    """Integer percentage, halves rounded up."""
    if whole == 0:
        return 0
    return int(part / whole * 100 + 0.5)


def _usable_comments(reviews: Iterable[Review]) -> List[Tuple[Review, str]]:
    return [
        (r, r.comment.lower())
        for r in reviews
        if r.comment and len(r.comment.strip()) > MIN_COMMENT_LENGTH
    ]


def _snippet(rule: KeywordRule, comment: str) -> str:
    """Words around the first keyword hit, capped at 100 characters."""
    words = comment.split(" ")
    index = rule.first_word_index(words)
    if index is None:
        return comment[:SNIPPET_MAX_CHARS] + "..."
    start = max(0, index - SNIPPET_WORDS_BEFORE)
    window = words[start:index + SNIPPET_WORDS_AFTER]
    return " ".join(window)[:SNIPPET_MAX_CHARS] + "..."


def _top_stores(matches: List[Tuple[Review, str]], names: Dict[str, str]) -> List[str]:
    counts: Dict[str, int] = {}
    for review, _ in matches:
        counts[review.store_id] = counts.get(review.store_id, 0) + 1
    # sorted() is stable: equal counts keep first-seen order
    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    return [names.get(store_id, store_id) for store_id, _ in ranked[:MAX_HIGHLIGHTED_STORES]]


def _scan_themes(
    rules: Sequence[KeywordRule],
    comments: List[Tuple[Review, str]],
) -> List[Tuple[KeywordRule, List[Tuple[Review, str]]]]:
    hits = []
    for rule in rules:
        matches = [(r, text) for r, text in comments if rule.matches(text)]
        if matches:
            hits.append((rule, matches))
    return hits


def mine_recurring_perceptions(
    reviews: Iterable[Review],
    stores: Iterable[Store],
) -> RecurringPerceptions:
    """
    Recurring positive themes (comments rated >= 4) and negative themes
    (comments rated <= 3), most frequent first.
    """
    names = {s.id: s.name for s in stores}
    comments = _usable_comments(reviews)
    if not comments:
        return RecurringPerceptions(positive=[], negative=[])

    positive_comments = [(r, t) for r, t in comments if r.rating >= 4]
    negative_comments = [(r, t) for r, t in comments if r.rating <= 3]

    positive = []
    for rule, matches in _scan_themes(POSITIVE_THEMES, positive_comments):
        pct = _percentage(len(matches), len(positive_comments))
        highlighted = _top_stores(matches, names)
        description = f"Mentioned in {pct}% of positive reviews."
        if highlighted:
            description += f" Highlighted stores: {', '.join(highlighted)}."
        positive.append(PositivePerception(
            theme=rule.name,
            percentage=pct,
            mentions=len(matches),
            highlighted_stores=highlighted,
            examples=[_snippet(rule, text) for _, text in matches[:MAX_EXAMPLES]],
            description=description,
        ))

    negative = []
    for rule, matches in _scan_themes(NEGATIVE_THEMES, negative_comments):
        pct = _percentage(len(matches), len(negative_comments))
        problematic = _top_stores(matches, names)
        description = f"Mentioned in {pct}% of critical reviews."
        if problematic:
            description += f" Most affected stores: {', '.join(problematic)}."

        severe_cases = []
        if rule.name == OPERATIONAL_ERRORS_THEME:
            severe_cases = [
                SevereCase(
                    store=names.get(r.store_id, r.store_id),
                    text=text[:SEVERE_CASE_MAX_CHARS],
                )
                for r, text in matches
                if SEVERE_CASE_RULE.matches(text)
            ][:MAX_SEVERE_CASES]

        negative.append(NegativePerception(
            theme=rule.name,
            percentage=pct,
            mentions=len(matches),
            problematic_stores=problematic,
            examples=[_snippet(rule, text) for _, text in matches[:MAX_EXAMPLES]],
            description=description,
            severe_cases=severe_cases,
        ))

    positive.sort(key=lambda p: p.percentage, reverse=True)
    negative.sort(key=lambda p: p.percentage, reverse=True)
    return RecurringPerceptions(positive=positive, negative=negative)


# =============================================================================
# DEEP STORE ANALYSIS
# =============================================================================

def _structure_aspect(comments: List[str]) -> Optional[Aspect]:
    hits = sum(1 for c in comments if STRUCTURE_RULE.matches(c))
    if hits == 0:
        return None
    ratio = hits / len(comments)
    if ratio > 0.5:
        status, description = AspectStatus.OK, "Excellent"
    elif ratio > 0.2:
        status, description = AspectStatus.WARNING, "Regular"
    else:
        status, description = AspectStatus.CRITICAL, "Needs improvement"
    return Aspect(status=status, description=description, percentage=_percentage(hits, len(comments)))


def _service_aspect(comments: List[str]) -> Optional[Aspect]:
    negative = sum(1 for c in comments if SERVICE_NEGATIVE_RULE.matches(c))
    positive = sum(1 for c in comments if SERVICE_POSITIVE_RULE.matches(c))
    if negative == 0 and positive == 0:
        return None
    if negative > positive * 2:
        status = AspectStatus.CRITICAL
        description = f"Poor ({negative} of {len(comments)} comments negative)"
    elif negative > positive:
        status, description = AspectStatus.WARNING, "Needs improvement"
    else:
        status, description = AspectStatus.OK, "Satisfactory"
    return Aspect(
        status=status,
        description=description,
        percentage=_percentage(negative, len(comments)),
        comments_analyzed=len(comments),
    )


def _policy_aspect(comments: List[str]) -> Optional[Aspect]:
    mentioned = [c for c in comments if POLICY_RULE.matches(c)]
    if not mentioned:
        return None
    negative = sum(1 for c in mentioned if POLICY_NEGATIVE_RULE.matches(c))
    if negative == 0:
        return Aspect(status=AspectStatus.OK, description="Adequate")
    if negative == len(mentioned):
        return Aspect(status=AspectStatus.CRITICAL, description="Outdated and restrictive")
    return Aspect(status=AspectStatus.WARNING, description="Could be improved")


def _operations_aspect(comments: List[str]) -> Optional[Aspect]:
    hits = sum(1 for c in comments if OPERATIONS_RULE.matches(c))
    if hits == 0:
        return None
    if hits / len(comments) > 0.3:
        return Aspect(status=AspectStatus.CRITICAL, description="Chaotic (deliveries, stock management)")
    return Aspect(status=AspectStatus.WARNING, description="Needs attention")


# Aspect builders and the label used in the conclusion when critical.
# Structure counts praise mentions, so it never names a problem.
ASPECTS = (
    ("service", _service_aspect, "MANAGEMENT and SERVICE"),
    ("operations", _operations_aspect, "PROCESSES and SYSTEMS"),
    ("policy", _policy_aspect, "outdated POLICIES"),
    ("structure", _structure_aspect, None),
)


def _conclusion(aspects: Dict[str, Aspect], average: float) -> str:
    critical = [
        label for key, _, label in ASPECTS
        if label and key in aspects and aspects[key].status == AspectStatus.CRITICAL
    ]
    if critical:
        return (
            f"Problem of {' and '.join(critical)}. "
            f"Store cannot execute basic operations adequately."
        )
    if average < 3.5:
        return "Operational and management issues identified. Intervention required."
    return "Performance within expectations, with room for improvement."


def deep_analyze_store(reviews: Iterable[Review], store: Store) -> DeepAnalysis:
    """
    Aspect-by-aspect analysis of one store from its comments.

    Only aspects whose keywords matched at least once are reported.
    """
    store_reviews = [r for r in reviews if r.store_id == store.id]
    if not store_reviews:
        return DeepAnalysis(
            store=store,
            average=0.0,
            count=0,
            aspects={},
            pattern=None,
            quotes=[],
            conclusion="Insufficient data for analysis.",
        )

    average = sum(r.rating for r in store_reviews) / len(store_reviews)
    comments = [text for _, text in _usable_comments(store_reviews)]

    aspects: Dict[str, Aspect] = {}
    if comments:
        for key, build, _ in ASPECTS:
            aspect = build(comments)
            if aspect is not None:
                aspects[key] = aspect

    pattern = None
    if all(
        key in aspects and aspects[key].status == AspectStatus.CRITICAL
        for key in ("service", "operations")
    ):
        pattern = BUREAUCRACY_PATTERN

    quotes = [
        r.comment
        for r in sorted(
            (r for r in store_reviews if r.rating <= QUOTE_MAX_RATING and r.comment),
            key=lambda r: r.rating,
        )
        if len(r.comment) > QUOTE_MIN_LENGTH
    ][:MAX_QUOTES]

    return DeepAnalysis(
        store=store,
        average=round(average, 2),
        count=len(store_reviews),
        aspects=aspects,
        pattern=pattern,
        quotes=quotes,
        conclusion=_conclusion(aspects, average),
    )
