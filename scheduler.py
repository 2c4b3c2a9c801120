"""
Scheduler for the daily drafts and digest

Checks every minute; when it is a user's delivery hour in their own timezone
it runs "generate now" and then the digest, once per day per user.
"""
import time
from datetime import datetime
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import schedule

from config.settings import settings
from layer_3_draft_generation.generate_drafts import generate_now
from layer_4_delivery.deliver_digest import deliver_daily_digest
from layer_4_delivery.user_settings import UserSettingsStorage
from models.user_settings import UserSettings
from utils.errors import CreatorPulseError
from utils.logger import get_logger

logger = get_logger(__name__)


def local_now(user_settings: UserSettings, now: Optional[datetime] = None) -> datetime:
    """Current time in the user's timezone (UTC when the zone is unknown)"""
    try:
        tz = ZoneInfo(user_settings.tz)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"Unknown timezone '{user_settings.tz}' for user {user_settings.user_id}, using UTC")
        tz = ZoneInfo("UTC")
    now = now or datetime.now(tz=ZoneInfo("UTC"))
    return now.astimezone(tz)


def is_due(user_settings: UserSettings, now: Optional[datetime] = None) -> bool:
    current = local_now(user_settings, now)
    return (
        current.hour == user_settings.deliver_hour
        and user_settings.last_delivered_on != current.date().isoformat()
    )


def run_daily_delivery(user_id: str, storage: Optional[UserSettingsStorage] = None,
                       now: Optional[datetime] = None):
    """
    Generate drafts and deliver the digest for one user

    The day is recorded as delivered for the local date at ``now`` (the
    time the check ran), not the time the run finished.
    """
    storage = storage or UserSettingsStorage()
    user_settings = storage.get(user_id)
    delivered_on = local_now(user_settings, now).date().isoformat()
    logger.info(f"Scheduled delivery triggered for {user_id} ({delivered_on})")

    try:
        result = generate_now(user_id)
        logger.info(f"✅ {result['message']}")
    except CreatorPulseError as e:
        logger.warning(f"Generate now skipped for {user_id}: {e.message}")
    except Exception as e:
        logger.error(f"Error generating drafts for {user_id}: {e}", exc_info=True)

    try:
        digest = deliver_daily_digest(user_id, send=user_settings.email_digest)
        logger.info(f"✅ Digest for {user_id}: {digest['draft_count']} drafts, sent={digest['sent']}")
    except Exception as e:
        logger.error(f"Error delivering digest for {user_id}: {e}", exc_info=True)

    storage.update(user_id, {"last_delivered_on": delivered_on})


def check_deliveries(storage: Optional[UserSettingsStorage] = None, now: Optional[datetime] = None):
    """Run delivery for every user whose hour has come"""
    storage = storage or UserSettingsStorage()
    user_ids = storage.list_users() or [settings.DEFAULT_USER_ID]
    for user_id in user_ids:
        if is_due(storage.get(user_id), now):
            run_daily_delivery(user_id, storage, now)


def start_scheduler():
    """Start the scheduler"""
    schedule.every(settings.SCHEDULER_CHECK_SECONDS).seconds.do(check_deliveries)

    logger.info(f"Scheduler started. Checking delivery hours every {settings.SCHEDULER_CHECK_SECONDS}s")
    logger.info("Press Ctrl+C to stop")

    while True:
        schedule.run_pending()
        time.sleep(1)


if __name__ == "__main__":
    try:
        start_scheduler()
    except KeyboardInterrupt:
        logger.info("Scheduler stopped by user")
    except Exception as e:
        logger.error(f"Error in scheduler: {e}", exc_info=True)
