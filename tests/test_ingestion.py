"""
Unit tests for Layer 1: Source management and content ingestion
Tests validator, source storage, platform mappers, RSS parsing and dedup
"""
import sys
import os
import tempfile
import shutil
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import httpx
import pytest

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from models.content_item import EngagementMetrics, IngestedContentItem
from models.source import Source
from layer_1_ingestion.deduplicator import ContentDeduplicator
from layer_1_ingestion.ingest_sources import SourceIngestionService, ingest_user_sources, topic_context
from layer_1_ingestion.rss_client import RSSClient, make_item_id
from layer_1_ingestion.source_storage import SourceStorage
from layer_1_ingestion.source_validator import SourceValidator
from layer_1_ingestion.youtube_client import extract_channel_id
from utils.errors import DuplicateSourceError, SourceNotFoundError, SourceValidationError, UpstreamServiceError
from utils import http_client

CHANNEL_ID = "UC" + "a" * 22

SAMPLE_FEED = """<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0">
  <channel>
    <title>Creator News</title>
    <item>
      <title>AI agents go mainstream</title>
      <link>https://example.com/ai-agents</link>
      <description>Everyone is shipping #AIagents</description>
      <pubDate>Mon, 06 Jan 2025 10:00:00 GMT</pubDate>
      <guid>post-1</guid>
    </item>
    <item>
      <title>Untitled link only</title>
    </item>
    <item>
      <title>Creator economy report</title>
      <link>https://example.com/report</link>
      <description>Numbers are in</description>
    </item>
  </channel>
</rss>
"""


def make_item(item_id, content):
    return IngestedContentItem(
        id=item_id,
        source_id="s",
        source_type="rss",
        content=content,
        published_at=datetime.now(timezone.utc),
    )


class TestSourceValidator:
    """Test source input validation"""

    def test_valid_x_handle_normalized(self):
        fields = SourceValidator.normalize({"type": "x", "handle": "@OpenAI_Dev"})
        assert fields == {"type": "x", "handle": "openai_dev", "url": None}

    @pytest.mark.parametrize("handle", ["", "this_handle_is_too_long", "bad-handle", "@"])
    def test_invalid_x_handles(self, handle):
        is_valid, error = SourceValidator.validate({"type": "x", "handle": handle})
        assert not is_valid
        assert error

    def test_x_rejects_url(self):
        is_valid, error = SourceValidator.validate({"type": "x", "handle": "abc", "url": "https://x.com/abc"})
        assert not is_valid
        assert error == SourceValidator.MESSAGES['x_url_forbidden']

    def test_youtube_channel_id(self):
        assert SourceValidator.validate({"type": "youtube", "handle": CHANNEL_ID}) == (True, None)
        assert not SourceValidator.validate({"type": "youtube", "handle": "UCshort"})[0]

    def test_rss_and_blog_need_http_url(self):
        assert SourceValidator.validate({"type": "rss", "url": "https://example.com/feed"}) == (True, None)
        assert not SourceValidator.validate({"type": "blog", "url": "ftp://example.com"})[0]
        assert not SourceValidator.validate({"type": "blog", "url": "https://"})[0]
        assert not SourceValidator.validate({"type": "rss"})[0]

    def test_rss_rejects_handle(self):
        is_valid, error = SourceValidator.validate(
            {"type": "rss", "url": "https://example.com/feed", "handle": "abc"}
        )
        assert not is_valid
        assert error == SourceValidator.MESSAGES['handle_forbidden']

    def test_unknown_type(self):
        is_valid, error = SourceValidator.validate({"type": "myspace", "handle": "tom"})
        assert not is_valid
        assert error == "Please select a valid source type"

    def test_normalize_raises(self):
        with pytest.raises(SourceValidationError) as exc:
            SourceValidator.normalize({"type": "rss", "url": "not a url"})
        assert exc.value.status_code == 400


class TestSourceStorage:
    """Test per-user source storage"""

    def setup_method(self):
        self.temp_dir = tempfile.mkdtemp()
        self.storage = SourceStorage(storage_dir=self.temp_dir)

    def teardown_method(self):
        shutil.rmtree(self.temp_dir)

    def test_create_and_list(self):
        source = self.storage.create_source("u1", {"type": "x", "handle": "@Creator"})
        assert source.active is True
        assert source.handle == "creator"
        assert [s.id for s in self.storage.list_sources("u1")] == [source.id]
        assert self.storage.list_sources("u2") == []

    def test_duplicate_rejected(self):
        self.storage.create_source("u1", {"type": "rss", "url": "https://example.com/feed"})
        with pytest.raises(DuplicateSourceError) as exc:
            self.storage.create_source("u1", {"type": "rss", "url": "https://example.com/feed"})
        assert exc.value.status_code == 409

    def test_same_source_for_other_user_allowed(self):
        self.storage.create_source("u1", {"type": "x", "handle": "creator"})
        self.storage.create_source("u2", {"type": "x", "handle": "creator"})
        assert len(self.storage.list_sources("u2")) == 1

    def test_toggle_and_active_filter(self):
        x = self.storage.create_source("u1", {"type": "x", "handle": "creator"})
        rss = self.storage.create_source("u1", {"type": "rss", "url": "https://example.com/feed"})

        self.storage.toggle_source("u1", x.id, False)
        active = self.storage.get_active_sources("u1")
        assert [s.id for s in active] == [rss.id]

        assert self.storage.get_active_sources("u1", platforms=["x"]) == []
        assert [s.id for s in self.storage.get_active_sources("u1", source_ids=[rss.id])] == [rss.id]

    def test_delete(self):
        source = self.storage.create_source("u1", {"type": "blog", "url": "https://blog.example.com"})
        self.storage.delete_source("u1", source.id)
        assert self.storage.list_sources("u1") == []
        with pytest.raises(SourceNotFoundError):
            self.storage.delete_source("u1", source.id)

    def test_toggle_missing_source(self):
        with pytest.raises(SourceNotFoundError) as exc:
            self.storage.toggle_source("u1", "missing", True)
        assert exc.value.status_code == 404

    def test_invalid_input_not_stored(self):
        with pytest.raises(SourceValidationError):
            self.storage.create_source("u1", {"type": "x", "handle": "no spaces allowed"})
        assert self.storage.list_sources("u1") == []


class TestIngestionService:
    """Test platform payload mapping with mocked clients"""

    def test_x_tweets_mapped(self):
        x_client = MagicMock()
        x_client.get_latest_tweets.return_value = [{
            "id": "123",
            "text": "Big news #AI from @creator https://t.co/abc",
            "created_at": "2025-01-06T10:00:00.000Z",
            "author_id": "42",
            "public_metrics": {"like_count": 10, "retweet_count": 3, "reply_count": 2,
                               "quote_count": 1, "impression_count": 900},
        }]
        service = SourceIngestionService(x_client=x_client)

        items = service.ingest_from_sources([Source(user_id="u1", type="x", handle="creator")])

        assert len(items) == 1
        item = items[0]
        assert item.id == "x_123"
        assert item.source_type == "x"
        assert item.engagement_metrics.likes == 10
        assert item.engagement_metrics.retweets == 3
        assert item.engagement_metrics.comments == 2
        assert item.engagement_metrics.views == 900
        assert item.metadata["hashtags"] == ["AI"]
        assert item.metadata["mentions"] == ["creator"]
        assert item.metadata["urls"] == ["https://t.co/abc"]

    def test_youtube_videos_mapped(self):
        youtube_client = MagicMock()
        youtube_client.get_channel_with_latest_videos.return_value = {
            "id": CHANNEL_ID,
            "latest_videos": [{
                "id": "vid1",
                "title": "Building agents",
                "description": "A walkthrough",
                "published_at": "2025-01-05T08:00:00Z",
                "view_count": "1500",
                "like_count": "120",
                "comment_count": "7",
            }],
        }
        service = SourceIngestionService(youtube_client=youtube_client)

        items = service.ingest_from_sources([Source(user_id="u1", type="youtube", handle=CHANNEL_ID)])

        assert items[0].id == "yt_vid1"
        assert items[0].content == "Building agents\n\nA walkthrough"
        assert items[0].engagement_metrics.views == 1500
        assert items[0].engagement_metrics.likes == 120

    def test_blog_page_mapped(self):
        firecrawl_client = MagicMock()
        firecrawl_client.scrape_url.return_value = {"title": "My Blog", "text": "# Post\n\nBody", "html": ""}
        service = SourceIngestionService(firecrawl_client=firecrawl_client)
        source = Source(user_id="u1", type="blog", url="https://blog.example.com")

        items = service.ingest_from_sources([source])

        assert items[0].id == f"blog_{source.id}"
        assert items[0].metadata["url"] == "https://blog.example.com"

    def test_inactive_sources_skipped(self):
        x_client = MagicMock()
        service = SourceIngestionService(x_client=x_client)
        items = service.ingest_from_sources([Source(user_id="u1", type="x", handle="a", active=False)])
        assert items == []
        x_client.get_latest_tweets.assert_not_called()

    def test_failing_source_does_not_stop_others(self):
        x_client = MagicMock()
        x_client.get_latest_tweets.side_effect = UpstreamServiceError("X down")
        rss_client = MagicMock()
        rss_client.get_latest_articles.return_value = [{
            "id": "abc", "guid": None, "title": "Hello", "link": "https://example.com/hello",
            "description": "World", "content": "", "published_at": None,
        }]
        service = SourceIngestionService(x_client=x_client, rss_client=rss_client)

        items = service.ingest_from_sources([
            Source(user_id="u1", type="x", handle="down"),
            Source(user_id="u1", type="rss", url="https://example.com/feed"),
        ])

        assert [item.id for item in items] == ["rss_abc"]

    def test_verify_source_invalid_input(self):
        result = SourceIngestionService().verify_source({"type": "x", "handle": "bad handle"})
        assert result["valid"] is False

    def test_verify_x_source(self):
        x_client = MagicMock()
        x_client.get_user_id.return_value = None
        service = SourceIngestionService(x_client=x_client)
        assert service.verify_source({"type": "x", "handle": "ghost"})["valid"] is False

        x_client.get_user_id.return_value = "42"
        assert service.verify_source({"type": "x", "handle": "ghost"})["valid"] is True

    def test_ingest_user_sources(self):
        temp_dir = tempfile.mkdtemp()
        try:
            storage = SourceStorage(storage_dir=temp_dir)
            storage.create_source("u1", {"type": "x", "handle": "creator"})
            service = MagicMock()
            service.ingest_from_sources.return_value = []

            ingest_user_sources("u1", storage=storage, service=service)

            sources = service.ingest_from_sources.call_args[0][0]
            assert [s.handle for s in sources] == ["creator"]
        finally:
            shutil.rmtree(temp_dir)

    def test_search_x_maps_recent_posts(self):
        x_client = MagicMock()
        x_client.recent_search.return_value = [
            {"id": "1", "text": "Agents are eating SaaS #AI", "created_at": "2025-01-06T10:00:00.000Z"},
            {"id": "1", "text": "Agents are eating SaaS #AI", "created_at": "2025-01-06T10:00:00.000Z"},
        ]
        service = SourceIngestionService(x_client=x_client)

        items = service.search_x("  AI agents ", max_results=15)

        x_client.recent_search.assert_called_once_with("AI agents", 15)
        assert len(items) == 1
        assert items[0].source_id == "x_search"
        assert items[0].metadata["hashtags"] == ["AI"]
        assert items[0].metadata["handle"] is None

    def test_search_x_empty_query(self):
        x_client = MagicMock()
        service = SourceIngestionService(x_client=x_client)

        assert service.search_x("   ") == []
        x_client.recent_search.assert_not_called()


class TestTopicContext:
    """Test live X context for topic drafts"""

    def _item(self, item_id, content, likes):
        return IngestedContentItem(
            id=item_id, source_id="x_search", source_type="x", content=content,
            published_at=datetime(2025, 1, 6, tzinfo=timezone.utc),
            engagement_metrics=EngagementMetrics(likes=likes),
        )

    def test_most_engaging_first_and_trimmed(self):
        service = MagicMock()
        service.search_x.return_value = [
            self._item("x_1", "quiet take", 1),
            self._item("x_2", "a" * 400, 50),
            self._item("x_3", "popular take", 20),
        ]
        with patch('layer_1_ingestion.ingest_sources.settings') as mock_settings:
            mock_settings.X_BEARER_TOKEN = "token"
            context = topic_context("AI agents", limit=2, service=service)

        assert context == ["a" * 280, "popular take"]

    def test_no_token_skips_search(self):
        service = MagicMock()
        with patch('layer_1_ingestion.ingest_sources.settings') as mock_settings:
            mock_settings.X_BEARER_TOKEN = ""
            assert topic_context("AI agents", service=service) == []
        service.search_x.assert_not_called()

    def test_search_failure_returns_empty(self):
        service = MagicMock()
        service.search_x.side_effect = httpx.ConnectError("down")
        with patch('layer_1_ingestion.ingest_sources.settings') as mock_settings:
            mock_settings.X_BEARER_TOKEN = "token"
            assert topic_context("AI agents", service=service) == []


class TestRSSClient:
    """Test feed parsing"""

    def test_parses_items_with_title_and_link(self):
        with patch('layer_1_ingestion.rss_client.request') as mock_request:
            mock_request.return_value = MagicMock(text=SAMPLE_FEED)
            articles = RSSClient().get_latest_articles("https://example.com/feed")

        assert [a["title"] for a in articles] == ["AI agents go mainstream", "Creator economy report"]
        first = articles[0]
        assert first["id"] == make_item_id("https://example.com/ai-agents", "AI agents go mainstream")
        assert first["guid"] == "post-1"
        assert first["published_at"].startswith("2025-01-06T10:00:00")
        assert articles[1]["published_at"]

    def test_max_items(self):
        with patch('layer_1_ingestion.rss_client.request') as mock_request:
            mock_request.return_value = MagicMock(text=SAMPLE_FEED)
            articles = RSSClient().get_latest_articles("https://example.com/feed", max_items=1)
        assert len(articles) == 1

    def test_sends_user_agent(self):
        with patch('layer_1_ingestion.rss_client.request') as mock_request:
            mock_request.return_value = MagicMock(text=SAMPLE_FEED)
            RSSClient().fetch_feed("https://example.com/feed")
        headers = mock_request.call_args.kwargs["headers"]
        assert headers["User-Agent"] == "CreatorPulse/1.0 (RSS Fetcher)"

    def test_item_id_is_stable(self):
        assert make_item_id("https://a", "b") == make_item_id("https://a", "b")
        assert make_item_id("https://a", "b") != make_item_id("https://a", "c")


class TestYouTubeChannelId:
    """Test channel id extraction"""

    def test_channel_url(self):
        assert extract_channel_id(f"https://www.youtube.com/channel/{CHANNEL_ID}") == CHANNEL_ID

    def test_handle_url(self):
        assert extract_channel_id("https://youtube.com/@creator.tv") == "creator.tv"

    def test_bare_id(self):
        assert extract_channel_id(CHANNEL_ID) == CHANNEL_ID

    def test_unknown(self):
        assert extract_channel_id("not a channel") is None


class TestContentDeduplicator:
    """Test de-duplication by id and text"""

    def test_duplicate_ids_removed(self):
        items = [make_item("1", "first"), make_item("1", "second")]
        assert [i.content for i in ContentDeduplicator().filter_duplicates(items)] == ["first"]

    def test_duplicate_text_removed(self):
        items = [make_item("1", "Same   Text"), make_item("2", "same text")]
        assert [i.id for i in ContentDeduplicator().filter_duplicates(items)] == ["1"]

    def test_order_preserved(self):
        items = [make_item(str(i), f"text {i}") for i in range(5)]
        assert ContentDeduplicator().filter_duplicates(items) == items

    def test_stats(self):
        dedup = ContentDeduplicator()
        dedup.filter_duplicates([make_item("1", "a"), make_item("2", "b")])
        assert dedup.get_stats() == {"unique_ids": 2, "unique_texts": 2}


class TestHttpClient:
    """Test upstream error mapping"""

    def test_status_error_becomes_upstream_error(self):
        req = httpx.Request("GET", "https://api.example.com/x")
        resp = httpx.Response(403, text="forbidden", request=req)
        error = httpx.HTTPStatusError("403", request=req, response=resp)

        with patch('utils.http_client._send', side_effect=error):
            with pytest.raises(UpstreamServiceError) as exc:
                http_client.request("GET", "https://api.example.com/x", service="X")

        assert "403" in exc.value.message
        assert exc.value.details == "forbidden"

    def test_transient_errors(self):
        req = httpx.Request("GET", "https://api.example.com")
        assert http_client._is_transient(httpx.ConnectError("boom", request=req))
        assert http_client._is_transient(
            httpx.HTTPStatusError("429", request=req, response=httpx.Response(429, request=req))
        )
        assert not http_client._is_transient(
            httpx.HTTPStatusError("404", request=req, response=httpx.Response(404, request=req))
        )
