"""
Review Analytics Data Models
============================

Structured outputs of the review aggregation and heuristic-analysis
pipeline. Everything here is derived per request and never persisted.

Scope analyses and anomalies are built in two phases: the statistical
stage produces the Raw* / Anomaly objects, the heuristic-text stage turns
them into Enriched* objects. Nothing is mutated in between.
"""

from dataclasses import dataclass, field, asdict
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from src.data.store_models import Review, Store


class ScopeKind(str, Enum):
    """Store attribute a scope analysis groups by."""
    REGION = "region"
    STATE = "state"
    TEAM = "team"


class ScopeStatus(str, Enum):
    """Health classification of a scope (first match wins)."""
    LEADING = "Leading"
    PROBLEMATIC = "Problematic"
    INCONSISTENT = "Inconsistent"
    BALANCED = "Balanced"


class Pattern(str, Enum):
    POSITIVE = "POSITIVE"
    NEGATIVE = "NEGATIVE"
    MIXED = "MIXED"


class Severity(str, Enum):
    """Anomaly severity, declared in sort order."""
    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"

    @property
    def rank(self) -> int:
        return list(Severity).index(self)


class Sentiment(str, Enum):
    POSITIVE = "positive"
    NEUTRAL = "neutral"
    NEGATIVE = "negative"


class AspectStatus(str, Enum):
    OK = "ok"
    WARNING = "warning"
    CRITICAL = "critical"


def _serialize(value: Any) -> Any:
    """Recursively convert dataclass output (enums, datetimes) to JSON types."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _serialize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_serialize(v) for v in value]
    return value


class _Serializable:
    def to_dict(self) -> Dict[str, Any]:
        return _serialize(asdict(self))


# =============================================================================
# AGGREGATES
# =============================================================================

@dataclass
class PeriodBucket(_Serializable):
    """Reviews of one day/week/month."""
    period: str          # YYYY-MM-DD, YYYY-Www or YYYY-MM
    average: float
    count: int


@dataclass
class AggregateMetrics(_Serializable):
    average: float
    total: int
    histogram: Dict[int, int]       # rating -> count, always keys 1..5
    series: List[PeriodBucket] = field(default_factory=list)


@dataclass
class StoreDistributionBucket(_Serializable):
    """How many stores share one (1-decimal) average rating."""
    average: float
    count: int
    percentage: float    # of stores, 1 decimal


@dataclass
class RankingEntry(_Serializable):
    store: Store
    average: float
    count: int
    position: int        # 1-based, over the full best-first ordering


# =============================================================================
# SCOPE ANALYSIS
# =============================================================================

@dataclass
class StoreScore(_Serializable):
    """A store's average and review count inside a scope."""
    store: Store
    average: float
    count: int


@dataclass
class Outlier(_Serializable):
    store: Store
    average: float
    reason: str


@dataclass
class RawScopeAnalysis(_Serializable):
    """Statistical stage of a region/state/team analysis."""
    scope_kind: ScopeKind
    scope_value: str
    average: float                  # mean of per-store averages
    store_count: int                # stores with at least one review
    status: ScopeStatus
    top_tier: List[StoreScore]
    opportunity_tier: List[StoreScore]
    worst: Optional[StoreScore]
    pattern: Pattern
    pattern_description: str
    outliers: List[Outlier]


@dataclass
class AnnotatedStore(_Serializable):
    """A tiered store plus the highlights or problems found in its comments."""
    store: Store
    average: float
    count: int
    notes: List[str]


@dataclass
class EnrichedScopeAnalysis(_Serializable):
    """Heuristic-text stage of a scope analysis."""
    scope_kind: ScopeKind
    scope_value: str
    average: float
    store_count: int
    status: ScopeStatus
    top_tier: List[AnnotatedStore]
    opportunity_tier: List[AnnotatedStore]
    worst: Optional[AnnotatedStore]
    pattern: Pattern
    pattern_description: str
    outliers: List[Outlier]


# =============================================================================
# ANOMALIES / DEEP ANALYSIS
# =============================================================================

@dataclass
class Anomaly(_Serializable):
    store: Store
    average: float
    baseline: float      # network average (review-weighted)
    gap: float
    count: int
    severity: Severity
    reasons: List[str]


@dataclass
class Aspect(_Serializable):
    """One aspect (structure/service/policy/operations) of a store."""
    status: AspectStatus
    description: str
    percentage: Optional[int] = None        # positive (structure) / negative (service) share
    comments_analyzed: Optional[int] = None


@dataclass
class DeepAnalysis(_Serializable):
    store: Store
    average: float
    count: int
    aspects: Dict[str, Aspect]      # only aspects whose keywords matched
    pattern: Optional[str]
    quotes: List[str]
    conclusion: str


@dataclass
class EnrichedAnomaly(_Serializable):
    store: Store
    average: float
    baseline: float
    gap: float
    count: int
    severity: Severity
    reasons: List[str]
    aspects: Dict[str, Aspect]
    pattern: Optional[str]
    conclusion: str


# =============================================================================
# PERCEPTIONS / SENTIMENT
# =============================================================================

@dataclass
class PositivePerception(_Serializable):
    theme: str
    percentage: int      # of comments rated >= 4
    mentions: int
    highlighted_stores: List[str]
    examples: List[str]
    description: str = ""


@dataclass
class SevereCase(_Serializable):
    store: str
    text: str


@dataclass
class NegativePerception(_Serializable):
    theme: str
    percentage: int      # of comments rated <= 3
    mentions: int
    problematic_stores: List[str]
    examples: List[str]
    description: str = ""
    severe_cases: List[SevereCase] = field(default_factory=list)


@dataclass
class RecurringPerceptions(_Serializable):
    positive: List[PositivePerception]
    negative: List[NegativePerception]


@dataclass
class SentimentDistribution(_Serializable):
    positive: int = 0
    neutral: int = 0
    negative: int = 0
    total: int = 0


@dataclass
class EnrichedReview(_Serializable):
    review: Review
    sentiment: Sentiment
    category: str
    store_name: str
