"""
Store Review Analytics Engine
=============================

Deterministic aggregation and heuristic analysis of store reviews.
No ML required.

Modules:
    review_models     - Result models (metrics, rankings, scope analyses, anomalies)
    scope_filter      - Scope resolution, review filtering and metrics
    ranking           - Best/worst store rankings
    regional_analysis - Region/state/team comparative analysis
    anomaly_detector  - Stores far below the network baseline
    review_lexicon    - Keyword rule tables
    review_signals    - Sentiment, categories, perceptions, deep store analysis
    review_insights   - Enrichment of the statistical results
"""

from .review_models import ScopeKind, Severity, Sentiment, ScopeStatus, Pattern
from .scope_filter import (
    ScopeNotFoundError,
    resolve_stores,
    filter_reviews,
    compute_metrics,
    compute_store_rating_distribution,
)
from .ranking import rank
from .regional_analysis import analyze_scope, analyze_all_scopes
from .anomaly_detector import detect_anomalies
from .review_signals import (
    classify_sentiment,
    categorize_comment,
    mine_recurring_perceptions,
    deep_analyze_store,
)
from .review_insights import enrich_scope_analysis, enrich_anomalies, enrich_reviews
