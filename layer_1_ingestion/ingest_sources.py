"""
Main ingestion workflow: fetch content from a user's active sources

Each source type has its own fetcher (X, YouTube, RSS, Firecrawl for blogs).
Every fetched post/video/article becomes an IngestedContentItem. A source that
fails is logged and skipped; the rest of the run carries on.
"""
import re
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from config.settings import settings
from models.content_item import EngagementMetrics, IngestedContentItem, parse_timestamp
from models.source import Source
from layer_1_ingestion.deduplicator import ContentDeduplicator
from layer_1_ingestion.firecrawl_client import FirecrawlClient
from layer_1_ingestion.rss_client import RSSClient
from layer_1_ingestion.source_storage import SourceStorage
from layer_1_ingestion.source_validator import SourceValidator
from layer_1_ingestion.x_client import XClient
from layer_1_ingestion.youtube_client import YouTubeClient, extract_channel_id
from utils.errors import SourceValidationError
from utils.logger import get_logger

logger = get_logger(__name__)

HASHTAG_PATTERN = re.compile(r'#(\w+)')
MENTION_PATTERN = re.compile(r'@(\w+)')
URL_PATTERN = re.compile(r'https?://\S+')


def _now() -> datetime:
    return datetime.now(timezone.utc)


class SourceIngestionService:
    """
    Turns sources into content items

    Clients are created on first use so a missing API key only affects
    sources of that type.
    """

    def __init__(self, x_client: Optional[XClient] = None,
                 youtube_client: Optional[YouTubeClient] = None,
                 rss_client: Optional[RSSClient] = None,
                 firecrawl_client: Optional[FirecrawlClient] = None):
        self._x_client = x_client
        self._youtube_client = youtube_client
        self._rss_client = rss_client
        self._firecrawl_client = firecrawl_client

    @property
    def x_client(self) -> XClient:
        if self._x_client is None:
            self._x_client = XClient()
        return self._x_client

    @property
    def youtube_client(self) -> YouTubeClient:
        if self._youtube_client is None:
            self._youtube_client = YouTubeClient()
        return self._youtube_client

    @property
    def rss_client(self) -> RSSClient:
        if self._rss_client is None:
            self._rss_client = RSSClient()
        return self._rss_client

    @property
    def firecrawl_client(self) -> FirecrawlClient:
        if self._firecrawl_client is None:
            self._firecrawl_client = FirecrawlClient()
        return self._firecrawl_client

    # ------------------------------------------------------------------ #
    # Ingestion
    # ------------------------------------------------------------------ #
    def ingest_from_sources(self, sources: Iterable[Source]) -> List[IngestedContentItem]:
        """
        Fetch content from every active source

        Args:
            sources: Sources to ingest; inactive ones are ignored

        Returns:
            De-duplicated content items across all sources
        """
        active_sources = [source for source in sources if source.active is True]
        if not active_sources:
            logger.info("No active sources found for ingestion")
            return []

        logger.info(f"Ingesting from {len(active_sources)} active sources")
        handlers = {
            'x': self._ingest_x_source,
            'youtube': self._ingest_youtube_source,
            'rss': self._ingest_rss_source,
            'blog': self._ingest_blog_source,
        }

        all_content: List[IngestedContentItem] = []
        for source in active_sources:
            handler = handlers.get(source.type)
            if handler is None:
                logger.warning(f"Unsupported source type '{source.type}' for source {source.id}")
                continue
            try:
                items = handler(source)
                logger.info(f"  {source.type} {source.label}: {len(items)} items")
                all_content.extend(items)
            except Exception as e:
                logger.error(f"Error ingesting from source {source.id} ({source.label}): {e}")

        deduplicator = ContentDeduplicator()
        unique = deduplicator.filter_duplicates(all_content)
        stats = deduplicator.get_stats()
        logger.info(f"Ingestion complete: {len(unique)} content items "
                    f"({stats['unique_ids']} ids, {stats['unique_texts']} distinct texts)")
        return unique

    def search_x(self, query: str, max_results: Optional[int] = None) -> List[IngestedContentItem]:
        """
        Recent X posts matching a free-text query

        Used to give topic drafts some live context. Items get the source id
        ``x_search`` since they don't belong to any stored source.
        """
        query = (query or '').strip()
        if not query:
            return []
        tweets = self.x_client.recent_search(query, max_results or settings.X_MAX_TWEETS)
        items = ContentDeduplicator().filter_duplicates(self._tweets_to_items(tweets, 'x_search'))
        logger.info(f"X search '{query}': {len(items)} items")
        return items

    def _ingest_x_source(self, source: Source) -> List[IngestedContentItem]:
        if not source.handle:
            return []
        tweets = self.x_client.get_latest_tweets(source.handle, settings.X_MAX_TWEETS)
        return self._tweets_to_items(tweets, source.id, source.handle)

    def _tweets_to_items(self, tweets: List[Dict[str, Any]], source_id: str,
                         handle: Optional[str] = None) -> List[IngestedContentItem]:
        items = []
        for tweet in tweets:
            text = tweet.get('text', '')
            metrics = tweet.get('public_metrics') or {}
            items.append(IngestedContentItem(
                id=f"x_{tweet.get('id')}",
                source_id=source_id,
                source_type='x',
                content=text,
                published_at=parse_timestamp(tweet.get('created_at')) or _now(),
                engagement_metrics=EngagementMetrics(
                    views=metrics.get('impression_count', 0) or 0,
                    likes=metrics.get('like_count', 0) or 0,
                    retweets=metrics.get('retweet_count', 0) or 0,
                    comments=metrics.get('reply_count', 0) or 0,
                    shares=metrics.get('quote_count', 0) or 0,
                ),
                metadata={
                    'tweet_id': tweet.get('id'),
                    'author_id': tweet.get('author_id'),
                    'handle': handle,
                    'hashtags': HASHTAG_PATTERN.findall(text),
                    'mentions': MENTION_PATTERN.findall(text),
                    'urls': URL_PATTERN.findall(text),
                },
            ))
        return items

    def _ingest_youtube_source(self, source: Source) -> List[IngestedContentItem]:
        channel_id = extract_channel_id(source.handle or '')
        if not channel_id:
            logger.error(f"Invalid YouTube handle: {source.handle}")
            return []
        channel = self.youtube_client.get_channel_with_latest_videos(channel_id)
        if not channel:
            return []

        items = []
        for video in channel.get('latest_videos', []):
            items.append(IngestedContentItem(
                id=f"yt_{video['id']}",
                source_id=source.id,
                source_type='youtube',
                content=f"{video.get('title', '')}\n\n{video.get('description', '')}".strip(),
                title=video.get('title'),
                published_at=parse_timestamp(video.get('published_at')) or _now(),
                engagement_metrics=EngagementMetrics.from_dict({
                    'views': video.get('view_count'),
                    'likes': video.get('like_count'),
                    'comments': video.get('comment_count'),
                }),
                metadata={
                    'video_id': video['id'],
                    'channel_id': video.get('channel_id'),
                    'channel_title': video.get('channel_title'),
                    'duration': video.get('duration'),
                    'tags': video.get('tags', []),
                },
            ))
        return items

    def _ingest_rss_source(self, source: Source) -> List[IngestedContentItem]:
        if not source.url:
            return []
        articles = self.rss_client.get_latest_articles(source.url, settings.RSS_MAX_ITEMS)
        items = []
        for article in articles:
            body = article.get('content') or article.get('description') or ''
            items.append(IngestedContentItem(
                id=f"rss_{article.get('guid') or article['id']}",
                source_id=source.id,
                source_type='rss',
                content=f"{article['title']}\n\n{body}".strip(),
                title=article['title'],
                published_at=parse_timestamp(article.get('published_at')) or _now(),
                metadata={
                    'link': article['link'],
                    'author': article.get('author'),
                    'categories': article.get('categories', []),
                    'content_length': len(body),
                },
            ))
        return items

    def _ingest_blog_source(self, source: Source) -> List[IngestedContentItem]:
        if not source.url:
            return []
        page = self.firecrawl_client.scrape_url(source.url)
        text = page.get('text') or page.get('html') or ''
        if not text.strip():
            logger.warning(f"Blog {source.url} returned no content")
            return []
        scraped_at = _now()
        return [IngestedContentItem(
            id=f"blog_{source.id}",
            source_id=source.id,
            source_type='blog',
            content=text,
            title=page.get('title'),
            published_at=scraped_at,
            metadata={
                'url': source.url,
                'title': page.get('title'),
                'content_length': len(text),
                'scraped_at': scraped_at.isoformat(),
            },
        )]

    # ------------------------------------------------------------------ #
    # Verification
    # ------------------------------------------------------------------ #
    def verify_source(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Check that a source exists and returns content before it is saved

        Returns:
            {'valid': bool, 'message': str}
        """
        try:
            fields = SourceValidator.normalize(data)
        except SourceValidationError as e:
            return {'valid': False, 'message': e.message}

        source_type = fields['type']
        try:
            if source_type == 'x':
                user_id = self.x_client.get_user_id(fields['handle'])
                if not user_id:
                    return {'valid': False, 'message': f"X user @{fields['handle']} was not found"}
                return {'valid': True, 'message': f"Found @{fields['handle']} on X"}

            if source_type == 'youtube':
                channel = self.youtube_client.get_channel_info(fields['handle'])
                if not channel:
                    return {'valid': False, 'message': "YouTube channel was not found"}
                return {'valid': True, 'message': f"Found channel {channel['title']}"}

            if source_type == 'rss':
                articles = self.rss_client.get_latest_articles(fields['url'], 1)
                if not articles:
                    return {'valid': False, 'message': "The feed has no items"}
                return {'valid': True, 'message': f"Feed OK, latest item: {articles[0]['title']}"}

            page = self.firecrawl_client.scrape_url(fields['url'])
            if not (page.get('text') or '').strip():
                return {'valid': False, 'message': "No readable content found at that URL"}
            return {'valid': True, 'message': f"Page OK: {page.get('title') or fields['url']}"}
        except Exception as e:
            logger.warning(f"Verification failed for {source_type} source: {e}")
            return {'valid': False, 'message': f"Could not verify source: {e}"}


def ingest_user_sources(user_id: Optional[str] = None,
                        source_ids: Optional[Iterable[str]] = None,
                        platforms: Optional[Iterable[str]] = None,
                        storage: Optional[SourceStorage] = None,
                        service: Optional[SourceIngestionService] = None) -> List[IngestedContentItem]:
    """
    Load a user's active sources and ingest them

    This is what the CLI and scheduler call.
    """
    user_id = user_id or settings.DEFAULT_USER_ID
    storage = storage or SourceStorage()
    service = service or SourceIngestionService()

    sources = storage.get_active_sources(user_id, source_ids=source_ids, platforms=platforms)
    logger.info(f"User {user_id}: {len(sources)} active sources")
    return service.ingest_from_sources(sources)


def topic_context(topic: str, limit: int = 3,
                  service: Optional[SourceIngestionService] = None) -> List[str]:
    """
    Snippets of recent X posts about a topic, most engaging first

    Returns an empty list when X isn't configured or the search fails, so
    drafting a topic never depends on X being reachable.
    """
    if not settings.X_BEARER_TOKEN or not (topic or '').strip():
        return []
    service = service or SourceIngestionService()
    try:
        items = service.search_x(topic)
    except Exception as e:
        logger.warning(f"X search for '{topic}' failed, drafting without context: {e}")
        return []
    items.sort(key=lambda item: item.engagement_metrics.interactions, reverse=True)
    return [item.content[:280] for item in items[:limit]]


if __name__ == "__main__":
    content = ingest_user_sources()
    print(f"\n✅ Ingested {len(content)} content items")
