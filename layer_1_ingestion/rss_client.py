"""
RSS / Atom feed reader
"""
import calendar
import hashlib
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import feedparser

from config.settings import settings
from utils.errors import UpstreamServiceError
from utils.http_client import request
from utils.logger import get_logger

logger = get_logger(__name__)


def make_item_id(link: str, title: str) -> str:
    """Stable short id for a feed entry"""
    return hashlib.md5(f"{link}{title}".encode('utf-8')).hexdigest()[:16]


def _entry_date(entry) -> str:
    parsed = entry.get('published_parsed') or entry.get('updated_parsed')
    if parsed:
        return datetime.fromtimestamp(calendar.timegm(parsed), tz=timezone.utc).isoformat()
    return datetime.now(timezone.utc).isoformat()


class RSSClient:
    """Fetch a feed over HTTP and turn its entries into plain dicts"""

    def __init__(self, user_agent: Optional[str] = None, timeout: Optional[float] = None):
        self.user_agent = user_agent or settings.RSS_USER_AGENT
        self.timeout = timeout or settings.RSS_TIMEOUT

    def fetch_feed(self, url: str):
        resp = request("GET", url, service="RSS", headers={"User-Agent": self.user_agent}, timeout=self.timeout)
        feed = feedparser.parse(resp.text)
        if feed.bozo and not feed.entries:
            raise UpstreamServiceError("RSS feed could not be parsed", details=str(feed.get('bozo_exception', '')))
        return feed

    def get_latest_articles(self, url: str, max_items: Optional[int] = None) -> List[Dict[str, Any]]:
        """
        Latest entries of a feed

        Entries without a title or link are skipped. Missing dates default to now.
        """
        max_items = max_items or settings.RSS_MAX_ITEMS
        feed = self.fetch_feed(url)

        articles = []
        for entry in feed.entries:
            title = (entry.get('title') or '').strip()
            link = (entry.get('link') or '').strip()
            if not title or not link:
                continue

            content = ''
            if entry.get('content'):
                content = entry['content'][0].get('value', '')
            articles.append({
                'id': make_item_id(link, title),
                'guid': entry.get('id'),
                'title': title,
                'link': link,
                'description': entry.get('summary', entry.get('description', '')),
                'content': content,
                'published_at': _entry_date(entry),
                'author': entry.get('author'),
                'categories': [tag.get('term') for tag in entry.get('tags', []) if tag.get('term')],
            })
            if len(articles) >= max_items:
                break

        logger.info(f"Parsed {len(articles)} items from feed {url}")
        return articles
