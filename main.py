"""
Main entry point for the CreatorPulse pipeline

Runs the daily workflow for one user, layer by layer:
1. Ingest content from the user's active sources (X, YouTube, RSS, blogs)
2. Score trending topics from that content
3. Write drafts for the top topics on X, LinkedIn and Instagram
4. Build the daily digest (preview by default, --send to email it)

Use --topic to skip ingestion and draft straight from a topic of your own.
"""
import argparse
import sys

from config.settings import settings
from layer_1_ingestion.ingest_sources import ingest_user_sources, topic_context
from layer_2_trend_analysis.trending_topics import get_trending_topics, score_content
from layer_3_draft_generation.draft_generator import DraftGenerator
from layer_3_draft_generation.draft_storage import DraftStorage
from layer_3_draft_generation.generate_drafts import generate_now
from layer_4_delivery.deliver_digest import deliver_daily_digest
from utils.errors import CreatorPulseError
from utils.logger import get_logger, log_banner

logger = get_logger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="CreatorPulse daily pipeline")
    parser.add_argument("--user", default=settings.DEFAULT_USER_ID, help="User id to run for")
    parser.add_argument("--topic", help="Draft from this topic instead of the user's sources")
    parser.add_argument("--platforms", nargs="+", choices=["x", "linkedin", "instagram"],
                        help="Platforms to draft for (default: all)")
    parser.add_argument("--trends-only", action="store_true", help="Only print trending topics")
    parser.add_argument("--send", action="store_true", help="Email the digest instead of previewing it")
    return parser.parse_args(argv)


def run_topic(user_id: str, topic: str, platforms=None) -> int:
    """Draft one topic for the given platforms and save the results"""
    log_banner(logger, f"Drafting topic: {topic}")
    results = DraftGenerator().generate_drafts(topic, platforms=platforms, user_id=user_id,
                                               context=topic_context(topic) or None)
    storage = DraftStorage()

    saved = 0
    for platform, result in results.items():
        if result.get("error"):
            logger.error(f"{platform}: {result['error']}")
            continue
        draft = storage.save_draft(user_id, {
            "platform": platform,
            "content": result["content"],
            "threads": result.get("threads") or [],
            "original_topic": topic,
            "title": topic,
        })
        saved += 1
        logger.info(f"\n[{platform}] draft {draft.id}\n{draft.content}\n")

    logger.info(f"✅ Saved {saved}/{len(results)} drafts")
    return 0 if saved else 1


def run_trends(user_id: str) -> int:
    log_banner(logger, "Trending topics")
    content = ingest_user_sources(user_id)
    for analysis in score_content(content)[:settings.MAX_TRENDS]:
        logger.info(f"  [{analysis.momentum_score:5.1f}] {analysis.topic}")

    discovered = get_trending_topics(user_id)
    logger.info(f"Discovered trends ({discovered['source']}):")
    for trend in discovered["trends"]:
        logger.info(f"  [{trend['score']:5.1f}] {trend['topic']} via {trend['source']}")
    return 0


def main(argv=None) -> int:
    """
    Run the pipeline and return a process exit code

    Returns 0 on success, 1 on any error (logged with traceback).
    """
    args = parse_args(argv)
    try:
        log_banner(logger, "CreatorPulse - Starting")
        settings.ensure_directories()

        if args.trends_only:
            return run_trends(args.user)

        if args.topic:
            return run_topic(args.user, args.topic, args.platforms)

        # ============================================================
        # STEPS 1-3: Ingest, score and draft
        # ============================================================
        log_banner(logger, "STEPS 1-3: Ingest sources, score trends, write drafts")
        result = generate_now(args.user)
        logger.info(f"✅ {result['message']}")
        for trend in result["trends"]:
            logger.info(f"  [{trend['momentum_score']:5.1f}] {trend['topic']}")

        # ============================================================
        # STEP 4: Daily digest
        # ============================================================
        log_banner(logger, "STEP 4: Daily digest")
        digest = deliver_daily_digest(args.user, send=args.send)
        if digest["sent"]:
            logger.info("✅ Digest emailed")
        else:
            logger.info("Digest is in preview mode. Use --send (and enable email digests) to email it.")
            logger.info(f"\n{digest['body']}")

        return 0

    except CreatorPulseError as e:
        logger.error(f"{e.message} ({e.status_code})")
        return 1
    except Exception as e:
        logger.error(f"Error in main workflow: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
