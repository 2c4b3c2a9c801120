"""
Trend cache: discovered and heuristic trends kept per user
"""
import json
import os
from datetime import datetime, timedelta
from typing import Iterable, List, Optional

from config.settings import settings
from models.trend import TrendItem
from utils.logger import get_logger

logger = get_logger(__name__)


class TrendStorage:
    """Store of TrendItems, one JSON file per user, trimmed to the retention window on save"""

    def __init__(self, storage_dir: str = None):
        self.storage_dir = storage_dir or settings.TRENDS_DIR
        os.makedirs(self.storage_dir, exist_ok=True)

    def _get_filename(self, user_id: str) -> str:
        return os.path.join(self.storage_dir, f"trends_{user_id}.json")

    def _load(self, user_id: str) -> List[TrendItem]:
        filename = self._get_filename(user_id)
        if not os.path.exists(filename):
            return []
        try:
            with open(filename, 'r', encoding='utf-8') as f:
                data = json.load(f)
            return [TrendItem.from_dict(record) for record in data.get('trend_items', [])]
        except Exception as e:
            logger.error(f"Error loading trends from {filename}: {e}")
            return []

    def _write(self, user_id: str, items: List[TrendItem]):
        with open(self._get_filename(user_id), 'w', encoding='utf-8') as f:
            json.dump({'user_id': user_id, 'trend_items': [item.to_dict() for item in items]},
                      f, indent=2, ensure_ascii=False)

    @staticmethod
    def _retention_cutoff(older_than_days: Optional[int] = None) -> datetime:
        days = settings.TREND_RETENTION_DAYS if older_than_days is None else older_than_days
        return datetime.now() - timedelta(days=days)

    def save_items(self, user_id: str, items: Iterable[TrendItem]) -> int:
        """
        Append trend items and drop ones past TREND_RETENTION_DAYS

        Returns:
            Number of new items saved
        """
        items = list(items)
        if not items:
            return 0
        cutoff = self._retention_cutoff()
        existing = self._load(user_id)
        kept = [item for item in existing if item.created_at >= cutoff]
        try:
            self._write(user_id, kept + items)
            logger.info(f"Saved {len(items)} trends for user {user_id}")
            if len(kept) < len(existing):
                logger.info(f"Pruned {len(existing) - len(kept)} old trends for user {user_id}")
        except Exception as e:
            logger.error(f"Error saving trends to {self._get_filename(user_id)}: {e}")
            return 0
        return len(items)

    def get_recent(self, user_id: str, hours: Optional[int] = None,
                   query: Optional[str] = None,
                   trend_types: Optional[Iterable[str]] = None) -> List[TrendItem]:
        """
        Items created within the last ``hours`` for the same query, best score first

        A query of None (or "") matches items saved without a query.
        """
        hours = settings.TREND_CACHE_HOURS if hours is None else hours
        cutoff = datetime.now() - timedelta(hours=hours)
        types = set(trend_types) if trend_types else None
        wanted_query = query or None

        recent = [
            item for item in self._load(user_id)
            if item.created_at >= cutoff
            and (item.metadata.get('query') or None) == wanted_query
            and (types is None or item.metadata.get('type') in types)
        ]
        return sorted(recent, key=lambda item: item.score, reverse=True)

    def prune(self, user_id: str, older_than_days: Optional[int] = None) -> int:
        """Drop items older than the given number of days (default TREND_RETENTION_DAYS)"""
        cutoff = self._retention_cutoff(older_than_days)
        items = self._load(user_id)
        kept = [item for item in items if item.created_at >= cutoff]
        removed = len(items) - len(kept)
        if removed:
            self._write(user_id, kept)
            logger.info(f"Pruned {removed} old trends for user {user_id}")
        return removed
