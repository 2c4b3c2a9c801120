"""
Layer 2: Trend Analysis
- Heuristic trend scorer (hashtag/word-frequency topics + momentum score)
- AI and search trend providers (Gemini, Perplexity, Firecrawl)
- Trend unification and a per-user trend cache
"""
from .trend_scorer import TrendScorer, analyze_trending_topics
from .trend_providers import TrendContext, TrendDiscoveryService, unify_trends
from .trend_storage import TrendStorage

__all__ = [
    'TrendScorer',
    'analyze_trending_topics',
    'TrendContext',
    'TrendDiscoveryService',
    'unify_trends',
    'TrendStorage',
]
