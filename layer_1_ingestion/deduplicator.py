"""
Deduplication of ingested content within one run
"""
import re
from typing import Dict, Iterable, List, Set

from models.content_item import IngestedContentItem
from utils.logger import get_logger

logger = get_logger(__name__)

_WHITESPACE = re.compile(r'\s+')


class ContentDeduplicator:
    """
    Drop items seen twice in a batch: same id, or same normalised text

    The same article often arrives through both an RSS feed and a blog
    scrape, and cross-posted tweets repeat word for word.
    """

    def __init__(self):
        self.seen_ids: Set[str] = set()
        self.seen_texts: Set[str] = set()

    @staticmethod
    def normalize_text(text: str) -> str:
        return _WHITESPACE.sub(' ', (text or '').lower()).strip()

    def is_duplicate(self, item: IngestedContentItem) -> bool:
        if item.id in self.seen_ids:
            return True
        text = self.normalize_text(item.content)
        return bool(text) and text in self.seen_texts

    def mark_as_seen(self, item: IngestedContentItem):
        self.seen_ids.add(item.id)
        text = self.normalize_text(item.content)
        if text:
            self.seen_texts.add(text)

    def filter_duplicates(self, items: Iterable[IngestedContentItem]) -> List[IngestedContentItem]:
        """
        Keep the first occurrence of each item, preserving order

        Args:
            items: Ingested content items

        Returns:
            List of unique items
        """
        unique_items = []
        duplicates_count = 0

        for item in items:
            if self.is_duplicate(item):
                duplicates_count += 1
                continue
            unique_items.append(item)
            self.mark_as_seen(item)

        if duplicates_count > 0:
            logger.info(f"Filtered out {duplicates_count} duplicate content items")

        return unique_items

    def get_stats(self) -> Dict:
        return {
            'unique_ids': len(self.seen_ids),
            'unique_texts': len(self.seen_texts),
        }
