"""
Firecrawl client: blog pages to markdown, and web search for trend discovery
"""
from typing import Any, Dict, List, Optional

from config.settings import settings
from utils.errors import UpstreamServiceError
from utils.http_client import request_json
from utils.logger import get_logger

logger = get_logger(__name__)


class FirecrawlClient:
    def __init__(self, api_key: Optional[str] = None, base_url: Optional[str] = None):
        self.api_key = api_key or settings.FIRECRAWL_API_KEY
        if not self.api_key:
            raise ValueError("FIRECRAWL_API_KEY is not set; cannot call Firecrawl.")
        self.base_url = (base_url or settings.FIRECRAWL_API_BASE).rstrip('/')

    def _post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        data = request_json(
            "POST",
            f"{self.base_url}{path}",
            service="Firecrawl",
            headers={"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"},
            json=payload,
            timeout=max(settings.HTTP_TIMEOUT, 60),
        )
        if data.get("success") is False:
            raise UpstreamServiceError("Firecrawl request failed", details=str(data.get("error")))
        return data

    def scrape_url(self, url: str) -> Dict[str, Any]:
        """Main content of a page as markdown, plus its title"""
        data = self._post("/scrape", {"url": url, "formats": ["markdown"], "onlyMainContent": True})
        page = data.get("data") or {}
        metadata = page.get("metadata") or {}
        return {
            "url": url,
            "title": metadata.get("title") or metadata.get("ogTitle") or "",
            "text": page.get("markdown") or "",
            "html": page.get("html") or "",
        }

    def search(self, query: str, limit: int = 5) -> List[Dict[str, Any]]:
        data = self._post("/search", {"query": query, "limit": limit})
        results = data.get("data") or []
        logger.info(f"Firecrawl search '{query}' returned {len(results)} results")
        return results
