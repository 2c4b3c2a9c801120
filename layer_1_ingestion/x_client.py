"""
X (Twitter) API v2 client
"""
from typing import Any, Dict, List, Optional

from config.settings import settings
from utils.http_client import request_json
from utils.logger import get_logger

logger = get_logger(__name__)

TWEET_FIELDS = "created_at,author_id,public_metrics"


class XClient:
    """Read-only access to users' timelines and recent search"""

    def __init__(self, bearer_token: Optional[str] = None, base_url: Optional[str] = None):
        self.bearer_token = bearer_token or settings.X_BEARER_TOKEN
        if not self.bearer_token:
            raise ValueError("X_BEARER_TOKEN is not set; cannot call the X API.")
        self.base_url = (base_url or settings.X_API_BASE).rstrip('/')

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return request_json(
            "GET",
            f"{self.base_url}{path}",
            service="X",
            headers={"Authorization": f"Bearer {self.bearer_token}"},
            params=params,
        )

    def get_user_id(self, handle: str) -> Optional[str]:
        """Resolve a username (with or without '@') to the numeric user id"""
        data = self._get(f"/users/by/username/{handle.lstrip('@')}")
        user = data.get("data") or {}
        return user.get("id")

    def get_user_tweets(self, user_id: str, max_results: int = 50) -> List[Dict[str, Any]]:
        params = {
            "max_results": max(5, min(max_results, 100)),  # API accepts 5-100
            "tweet.fields": TWEET_FIELDS,
        }
        data = self._get(f"/users/{user_id}/tweets", params=params)
        return data.get("data") or []

    def get_latest_tweets(self, handle: str, max_results: Optional[int] = None) -> List[Dict[str, Any]]:
        """Latest tweets for a handle; unknown handles give an empty list"""
        user_id = self.get_user_id(handle)
        if not user_id:
            logger.warning(f"X user @{handle} not found")
            return []
        tweets = self.get_user_tweets(user_id, max_results or settings.X_MAX_TWEETS)
        logger.info(f"Fetched {len(tweets)} tweets from @{handle}")
        return tweets[: max_results or settings.X_MAX_TWEETS]

    def recent_search(self, query: str, max_results: int = 50) -> List[Dict[str, Any]]:
        params = {
            "query": query,
            "max_results": max(10, min(max_results, 100)),  # search accepts 10-100
            "tweet.fields": TWEET_FIELDS,
        }
        data = self._get("/tweets/search/recent", params=params)
        return data.get("data") or []
