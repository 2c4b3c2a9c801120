"""
YouTube Data API v3 client
"""
import re
from typing import Any, Dict, List, Optional

from config.settings import settings
from utils.http_client import request_json
from utils.logger import get_logger

logger = get_logger(__name__)

CHANNEL_ID_PATTERNS = [
    re.compile(r'youtube\.com/channel/([a-zA-Z0-9_-]+)'),
    re.compile(r'youtube\.com/c/([a-zA-Z0-9_-]+)'),
    re.compile(r'youtube\.com/@([a-zA-Z0-9_.-]+)'),
    re.compile(r'^(UC[a-zA-Z0-9_-]{22})$'),
]


def extract_channel_id(url_or_handle: str) -> Optional[str]:
    """
    Pull a channel identifier out of a channel URL or a bare channel id

    Supports /channel/<id>, /c/<name>, /@<handle> and raw UC... ids.
    """
    value = (url_or_handle or '').strip()
    for pattern in CHANNEL_ID_PATTERNS:
        match = pattern.search(value)
        if match:
            return match.group(1)
    return None


class YouTubeClient:
    """Channel info and latest uploads with statistics"""

    def __init__(self, api_key: Optional[str] = None, base_url: Optional[str] = None):
        self.api_key = api_key or settings.YOUTUBE_API_KEY
        if not self.api_key:
            raise ValueError("YOUTUBE_API_KEY is not set; cannot call the YouTube API.")
        self.base_url = (base_url or settings.YOUTUBE_API_BASE).rstrip('/')

    def _get(self, path: str, params: Dict[str, Any]) -> Dict[str, Any]:
        return request_json("GET", f"{self.base_url}/{path}", service="YouTube",
                            params={**params, "key": self.api_key})

    def get_channel_info(self, channel_id: str) -> Optional[Dict[str, Any]]:
        data = self._get("channels", {"part": "snippet,statistics", "id": channel_id})
        items = data.get("items") or []
        if not items:
            return None
        channel = items[0]
        snippet = channel.get("snippet", {})
        stats = channel.get("statistics", {})
        return {
            "id": channel.get("id", channel_id),
            "title": snippet.get("title", ""),
            "description": snippet.get("description", ""),
            "subscriber_count": stats.get("subscriberCount", "0"),
            "video_count": stats.get("videoCount", "0"),
        }

    def get_latest_videos(self, channel_id: str, max_results: Optional[int] = None) -> List[Dict[str, Any]]:
        """Newest uploads (search) enriched with statistics and duration (videos)"""
        search = self._get("search", {
            "part": "snippet",
            "channelId": channel_id,
            "order": "date",
            "type": "video",
            "maxResults": max_results or settings.YOUTUBE_MAX_VIDEOS,
        })
        video_ids = [item["id"]["videoId"] for item in search.get("items", []) if item.get("id", {}).get("videoId")]
        if not video_ids:
            return []

        details = self._get("videos", {"part": "snippet,statistics,contentDetails", "id": ",".join(video_ids)})
        videos = []
        for video in details.get("items", []):
            snippet = video.get("snippet", {})
            stats = video.get("statistics", {})
            videos.append({
                "id": video.get("id"),
                "title": snippet.get("title", ""),
                "description": snippet.get("description", ""),
                "published_at": snippet.get("publishedAt"),
                "channel_id": snippet.get("channelId", channel_id),
                "channel_title": snippet.get("channelTitle", ""),
                "tags": snippet.get("tags", []),
                "duration": video.get("contentDetails", {}).get("duration"),
                "view_count": stats.get("viewCount", "0"),
                "like_count": stats.get("likeCount", "0"),
                "comment_count": stats.get("commentCount", "0"),
            })
        return videos

    def get_channel_with_latest_videos(self, channel_id: str) -> Optional[Dict[str, Any]]:
        channel = self.get_channel_info(channel_id)
        if not channel:
            logger.warning(f"YouTube channel {channel_id} not found")
            return None
        channel["latest_videos"] = self.get_latest_videos(channel_id)
        logger.info(f"Fetched {len(channel['latest_videos'])} videos from {channel['title'] or channel_id}")
        return channel
