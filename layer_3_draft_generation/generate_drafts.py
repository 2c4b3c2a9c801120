"""
"Generate now" workflow

One click from the dashboard (or the scheduler) runs the whole pipeline for a
user: ingest their active sources, score topics, write drafts for the top
topics on every platform and save them for review.
"""
import threading
import time
from typing import Any, Dict, List, Optional, Sequence

from config.settings import settings
from models.draft import DRAFT_PLATFORMS
from layer_1_ingestion.ingest_sources import SourceIngestionService
from layer_1_ingestion.source_storage import SourceStorage
from layer_2_trend_analysis.trending_topics import analyses_to_trend_items, score_content
from layer_2_trend_analysis.trend_storage import TrendStorage
from layer_3_draft_generation.draft_generator import DraftGenerator
from layer_3_draft_generation.draft_storage import DraftStorage
from utils.errors import NoActiveSourcesError, RateLimitError
from utils.logger import get_logger, log_banner

logger = get_logger(__name__)

CONTEXT_SNIPPETS_PER_TOPIC = 3

# user_id -> monotonic time of the last accepted run
_last_run: Dict[str, float] = {}
_last_run_lock = threading.Lock()


def check_rate_limit(user_id: str, now: Optional[float] = None):
    """Allow one run per user per GENERATE_RATE_LIMIT_SECONDS"""
    now = time.monotonic() if now is None else now
    window = settings.GENERATE_RATE_LIMIT_SECONDS
    with _last_run_lock:
        last = _last_run.get(user_id)
        if last is not None and now - last < window:
            raise RateLimitError(retry_after=int(window - (now - last)) + 1)
        _last_run[user_id] = now


def reset_rate_limits():
    with _last_run_lock:
        _last_run.clear()


def _topic_context(topic: str, content) -> List[str]:
    lowered = topic.lower()
    matching = [item.content for item in content if lowered in item.content.lower()]
    return [text[:280] for text in matching[:CONTEXT_SNIPPETS_PER_TOPIC]]


def generate_now(user_id: Optional[str] = None,
                 source_ids: Optional[Sequence[str]] = None,
                 include_platforms: Optional[Sequence[str]] = None,
                 tones: Optional[Sequence[str]] = None,
                 source_storage: Optional[SourceStorage] = None,
                 ingestion_service: Optional[SourceIngestionService] = None,
                 generator: Optional[DraftGenerator] = None,
                 draft_storage: Optional[DraftStorage] = None,
                 trend_storage: Optional[TrendStorage] = None) -> Dict[str, Any]:
    """
    Run ingestion, scoring and draft generation for a user

    Args:
        user_id: User to run for (defaults to DEFAULT_USER_ID)
        source_ids: Restrict to these sources
        include_platforms: Restrict to sources of these types (x, youtube, rss, blog)
        tones: Optional tone labels passed to the generator

    Returns:
        {'ok': True, 'trends': [...], 'drafts': [...], 'message': str}

    Raises:
        RateLimitError: called again within the rate-limit window
        NoActiveSourcesError: nothing active matches the filters
    """
    user_id = user_id or settings.DEFAULT_USER_ID
    check_rate_limit(user_id)

    source_storage = source_storage or SourceStorage()
    ingestion_service = ingestion_service or SourceIngestionService()
    generator = generator or DraftGenerator()
    draft_storage = draft_storage or DraftStorage()
    trend_storage = trend_storage or TrendStorage()

    log_banner(logger, f"Generate now for user {user_id}")

    sources = source_storage.get_active_sources(user_id, source_ids=source_ids, platforms=include_platforms)
    if not sources:
        raise NoActiveSourcesError()
    logger.info(f"Using {len(sources)} active sources")

    content = ingestion_service.ingest_from_sources(sources)
    analyses = score_content(content)
    if analyses:
        trend_storage.save_items(user_id, analyses_to_trend_items(user_id, analyses))

    top = analyses[:settings.MAX_TOPICS_PER_RUN]
    saved = []
    for analysis in top:
        results = generator.generate_drafts(
            analysis.topic,
            platforms=DRAFT_PLATFORMS,
            user_id=user_id,
            tones=tones,
            context=_topic_context(analysis.topic, content),
        )
        for platform, result in results.items():
            if result.get("error"):
                logger.warning(f"Skipping {platform} draft for '{analysis.topic}': {result['error']}")
                continue
            saved.append(draft_storage.save_draft(user_id, {
                "platform": platform,
                "content": result["content"],
                "threads": result.get("threads") or [],
                "original_topic": analysis.topic,
                "title": analysis.topic,
                "metadata": {"momentum_score": analysis.momentum_score, "generated_by": "generate_now"},
            }))

    message = (
        f"Generated {len(saved)} drafts from {len(top)} topics"
        if top else "No trending topics found in your sources yet"
    )
    logger.info(message)
    return {
        "ok": True,
        "trends": [analysis.to_dict() for analysis in top],
        "drafts": saved,
        "message": message,
    }
