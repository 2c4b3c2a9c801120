"""
Trending topics workflow

Two ways to find trends:
1. analyze_sources(): ingest the user's own sources and score topics with
   the heuristic scorer
2. get_trending_topics(): ask the AI/search providers, with a 12-hour cache
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from config.settings import settings
from models.content_item import IngestedContentItem
from models.trend import TrendItem, TrendingTopicAnalysis
from layer_1_ingestion.ingest_sources import SourceIngestionService
from layer_1_ingestion.source_storage import SourceStorage
from layer_2_trend_analysis.trend_providers import TrendContext, TrendDiscoveryService
from layer_2_trend_analysis.trend_scorer import SCORING_VERSION, TrendScorer
from layer_2_trend_analysis.trend_storage import TrendStorage
from layer_4_delivery.user_settings import UserSettingsStorage
from utils.logger import get_logger, log_banner

logger = get_logger(__name__)


def _cached_trend_to_dict(item: TrendItem) -> Dict[str, Any]:
    return {
        "id": item.id,
        "topic": item.title,
        "description": item.summary,
        "score": item.score,
        "source": item.source_type or "database",
        "url": item.metadata.get("url"),
    }


def analyses_to_trend_items(user_id: str, analyses: List[TrendingTopicAnalysis]) -> List[TrendItem]:
    """Cache records for heuristic analyses"""
    discovered_at = datetime.now().isoformat()
    return [
        TrendItem(
            user_id=user_id,
            title=analysis.topic,
            summary=analysis.summary,
            score=analysis.momentum_score,
            source_type="heuristic",
            metadata={
                "query": None,
                "type": "heuristic",
                "scoring_version": SCORING_VERSION,
                "metrics": analysis.metrics.to_dict(),
                "contributing_sources": analysis.contributing_sources,
                "discovered_at": discovered_at,
            },
        )
        for analysis in analyses
    ]


def score_content(items: List[IngestedContentItem]) -> List[TrendingTopicAnalysis]:
    """Run the heuristic scorer and log the top topics"""
    analyses = TrendScorer().analyze(items)
    logger.info(f"Scored {len(analyses)} topics from {len(items)} content items")
    for analysis in analyses[:5]:
        logger.info(
            f"  {analysis.topic}: momentum {analysis.momentum_score:.1f} "
            f"({analysis.metrics.mentions_count} mentions)"
        )
    return analyses


def analyze_sources(user_id: Optional[str] = None,
                    source_ids=None,
                    platforms=None,
                    source_storage: Optional[SourceStorage] = None,
                    ingestion_service: Optional[SourceIngestionService] = None,
                    trend_storage: Optional[TrendStorage] = None) -> Dict[str, Any]:
    """
    Ingest a user's active sources and score their topics

    Returns:
        Dictionary with 'content' (items) and 'analyses' (sorted by momentum)
    """
    user_id = user_id or settings.DEFAULT_USER_ID
    source_storage = source_storage or SourceStorage()
    ingestion_service = ingestion_service or SourceIngestionService()
    trend_storage = trend_storage or TrendStorage()

    log_banner(logger, f"Analyzing sources for user {user_id}")
    sources = source_storage.get_active_sources(user_id, source_ids=source_ids, platforms=platforms)
    content = ingestion_service.ingest_from_sources(sources)
    analyses = score_content(content)

    if analyses:
        trend_storage.save_items(user_id, analyses_to_trend_items(user_id, analyses))

    return {"content": content, "analyses": analyses}


def get_trending_topics(user_id: Optional[str] = None,
                        topic: Optional[str] = None,
                        force: bool = False,
                        source_storage: Optional[SourceStorage] = None,
                        trend_storage: Optional[TrendStorage] = None,
                        discovery_service: Optional[TrendDiscoveryService] = None,
                        settings_storage: Optional[UserSettingsStorage] = None) -> Dict[str, Any]:
    """
    Trending topics for a user or a search topic

    Args:
        user_id: User to look up (defaults to DEFAULT_USER_ID)
        topic: Optional search topic; without one the user's niche is used
        force: Skip the cache and query the providers

    Returns:
        {'trends': [...], 'source': 'none' | 'database' | 'live-aggregated', 'message'?: str}
    """
    user_id = user_id or settings.DEFAULT_USER_ID
    topic = (topic or '').strip() or None
    source_storage = source_storage or SourceStorage()
    trend_storage = trend_storage or TrendStorage()

    if not topic and not source_storage.get_active_sources(user_id):
        logger.info("No topic and no active sources. Returning empty trends.")
        return {
            "trends": [],
            "source": "none",
            "message": "Add sources or search for a topic to see trends",
        }

    if not force:
        cached = trend_storage.get_recent(user_id, query=topic, trend_types=["discovery"])
        if cached:
            logger.info(f"Returning {len(cached)} cached trends for user {user_id}")
            return {"trends": [_cached_trend_to_dict(item) for item in cached], "source": "database"}

    user_settings = (settings_storage or UserSettingsStorage()).get(user_id)
    context = TrendContext(
        niche=user_settings.niche,
        audience=user_settings.audience,
        geo=user_settings.geo,
        topic=topic,
    )
    discovery_service = discovery_service or TrendDiscoveryService()
    trends = discovery_service.discover_trends(context)

    discovered_at = datetime.now().isoformat()
    items = [
        TrendItem(
            user_id=user_id,
            title=trend.topic,
            summary=trend.description,
            score=trend.score,
            source_type=trend.source,
            metadata={"query": topic, "type": "discovery", "url": trend.url, "discovered_at": discovered_at},
        )
        for trend in trends
    ]
    trend_storage.save_items(user_id, items)

    return {"trends": [_cached_trend_to_dict(item) for item in items], "source": "live-aggregated"}


if __name__ == "__main__":
    import sys

    result = get_trending_topics(topic=" ".join(sys.argv[1:]) or None)
    print(f"\nSource: {result['source']}")
    for trend in result["trends"]:
        print(f"  [{trend['score']:.0f}] {trend['topic']} ({trend['source']})")
