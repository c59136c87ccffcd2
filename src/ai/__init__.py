"""
Store Review Insights AI Module
===============================

LLM-backed summaries of store reviews:
- Qualitative summaries per scope (macro) or store (micro)
- Top praises and complaints for the sentiment view
"""

from .llm_client import LLMClient, LLMResponse, get_llm_client
from .summarizer import ReviewSummarizer, QualitativeSummary, SentimentAnalysis, ThemeMention

__all__ = [
    "LLMClient",
    "LLMResponse",
    "get_llm_client",
    "ReviewSummarizer",
    "QualitativeSummary",
    "SentimentAnalysis",
    "ThemeMention",
]
