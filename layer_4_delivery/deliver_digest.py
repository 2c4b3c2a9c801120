"""
Entry point for the daily digest

Collects the user's drafts from the last 24 hours and their latest trends,
formats the digest email and sends it when the user turned email delivery on.
Every digest is saved under DIGESTS_DIR so a run can be checked afterwards.
"""
import json
import os
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional

from config.settings import settings
from layer_2_trend_analysis.trend_storage import TrendStorage
from layer_3_draft_generation.draft_storage import DraftStorage
from layer_4_delivery.digest_drafter import DigestDrafter, MAX_DIGEST_TRENDS
from layer_4_delivery.email_sender import EmailSender
from layer_4_delivery.user_settings import UserSettingsStorage
from utils.logger import get_logger, log_banner

logger = get_logger(__name__)

DIGEST_WINDOW_HOURS = 24


def _recent_trends(trend_storage: TrendStorage, user_id: str) -> List[Dict[str, Any]]:
    """Best cached trends of the last day, one per topic"""
    seen = set()
    trends = []
    for item in trend_storage.get_recent(user_id, hours=DIGEST_WINDOW_HOURS):
        key = item.title.strip().lower()
        if key in seen:
            continue
        seen.add(key)
        trends.append({"topic": item.title, "description": item.summary, "score": item.score})
        if len(trends) >= MAX_DIGEST_TRENDS:
            break
    return trends


def deliver_daily_digest(user_id: Optional[str] = None,
                         send: bool = False,
                         digest_date: Optional[date] = None,
                         draft_storage: Optional[DraftStorage] = None,
                         trend_storage: Optional[TrendStorage] = None,
                         settings_storage: Optional[UserSettingsStorage] = None,
                         drafter: Optional[DigestDrafter] = None,
                         sender: Optional[EmailSender] = None,
                         digests_dir: Optional[str] = None) -> Dict[str, Any]:
    """
    Build and optionally send a user's daily digest

    Args:
        user_id: User to deliver for (defaults to DEFAULT_USER_ID)
        send: Actually send the email. False is preview mode.
        digest_date: Date printed in the digest (defaults to today)

    Returns:
        Dictionary with the digest content and the send result ('sent' is
        False in preview mode or when the user has email delivery off)
    """
    user_id = user_id or settings.DEFAULT_USER_ID
    digest_date = digest_date or date.today()
    draft_storage = draft_storage or DraftStorage()
    trend_storage = trend_storage or TrendStorage()
    user_settings = (settings_storage or UserSettingsStorage()).get(user_id)
    drafter = drafter or DigestDrafter()
    digests_dir = digests_dir or settings.DIGESTS_DIR

    log_banner(logger, f"Daily digest for user {user_id} ({digest_date.isoformat()})")

    since = datetime.now() - timedelta(hours=DIGEST_WINDOW_HOURS)
    drafts = draft_storage.get_recent_drafts(user_id, since, status="generated")
    trends = _recent_trends(trend_storage, user_id)
    digest = drafter.draft_digest(drafts, trends, digest_date)

    result: Dict[str, Any] = {
        "user_id": user_id,
        "digest_date": digest_date.isoformat(),
        "subject": digest["subject"],
        "body": digest["body"],
        "draft_count": digest["draft_count"],
        "trend_count": digest["trend_count"],
        "draft_ids": [draft.id for draft in drafts],
        "sent": False,
        "send_result": None,
        "generated_at": datetime.now().isoformat(),
    }

    if send and user_settings.email_digest:
        sender = sender or EmailSender()
        send_result = sender.send_email(
            subject=digest["subject"],
            body=digest["body"],
            to_email=user_settings.digest_email,
        )
        sender.log_send_status(f"{user_id}/{digest_date.isoformat()}", send_result)
        result["sent"] = bool(send_result.get("success"))
        result["send_result"] = send_result
    elif send:
        logger.info(f"Email digest is turned off for user {user_id}, preview only")
    else:
        logger.info("Preview mode: digest not sent")

    os.makedirs(digests_dir, exist_ok=True)
    digest_file = os.path.join(digests_dir, f"digest_{user_id}_{digest_date.isoformat()}.json")
    with open(digest_file, 'w', encoding='utf-8') as f:
        json.dump(result, f, indent=2, ensure_ascii=False)
    logger.info(f"Saved digest to {digest_file}")

    return result


if __name__ == "__main__":
    import sys

    outcome = deliver_daily_digest(send="--send" in sys.argv)
    print(f"\nSubject: {outcome['subject']}\n")
    print(outcome["body"])
