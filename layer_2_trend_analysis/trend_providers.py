"""
Trend providers: ask AI and search services what is trending for a niche

Every provider returns a list of Trend objects and never raises; a failing
provider contributes nothing to the unified result.
"""
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from config.settings import settings
from models.trend import Trend
from layer_1_ingestion.firecrawl_client import FirecrawlClient
from utils.http_client import request_json
from utils.llm_client import LLMClient, parse_json_response
from utils.logger import get_logger

logger = get_logger(__name__)

SOURCE_WEIGHTS = {
    'perplexity': 1.2,
    'firecrawl': 1.1,
    'llm': 1.0,
}


@dataclass
class TrendContext:
    niche: str = settings.DEFAULT_NICHE
    audience: str = settings.DEFAULT_AUDIENCE
    geo: str = settings.DEFAULT_GEO
    topic: Optional[str] = None


def _trends_from_payload(payload: Any, source: str) -> List[Trend]:
    """Map {"trends": [{topic, description, score}]} into Trend objects"""
    if isinstance(payload, dict):
        entries = payload.get('trends') or []
    elif isinstance(payload, list):
        entries = payload
    else:
        entries = []

    trends = []
    for entry in entries:
        if not isinstance(entry, dict) or not entry.get('topic'):
            continue
        try:
            score = float(entry.get('score') or 0)
        except (TypeError, ValueError):
            score = 0.0
        trends.append(Trend(
            topic=str(entry['topic']).strip(),
            description=str(entry.get('description') or '').strip(),
            score=max(0.0, min(score, 100.0)),
            source=source,
            url=entry.get('url'),
        ))
    return trends


class TrendProvider:
    name = 'base'

    def fetch_trends(self, context: TrendContext) -> List[Trend]:
        raise NotImplementedError


class LLMTrendProvider(TrendProvider):
    """Gemini suggests five trending topics"""
    name = 'llm'

    def __init__(self, llm_client: Optional[LLMClient] = None):
        self.llm_client = llm_client or LLMClient()

    def build_prompt(self, context: TrendContext) -> str:
        if context.topic:
            return f"""Identify 5 trending topics related to: '{context.topic}'.
If '{context.topic}' is a general query (e.g. 'what is trending'), find broad global trends.
Return JSON: {{ "trends": [{{"topic": "...", "description": "...", "score": 1-100}}] }}

Return ONLY valid JSON, no markdown or additional text."""
        return f"""Identify 5 trending topics for:
- Niche: {context.niche}
- Audience: {context.audience}
- Geo: {context.geo}
Return JSON: {{ "trends": [{{"topic": "...", "description": "...", "score": 1-100}}] }}

Return ONLY valid JSON, no markdown or additional text."""

    def fetch_trends(self, context: TrendContext) -> List[Trend]:
        try:
            payload = self.llm_client.generate_json(self.build_prompt(context), temperature=0.3)
            return _trends_from_payload(payload, self.name)
        except Exception as e:
            logger.error(f"LLMTrendProvider error: {e}")
            return []


class PerplexityTrendProvider(TrendProvider):
    """Perplexity's search-grounded chat model"""
    name = 'perplexity'

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        self.api_key = api_key or settings.PERPLEXITY_API_KEY
        self.model = model or settings.PERPLEXITY_MODEL

    def fetch_trends(self, context: TrendContext) -> List[Trend]:
        subject = context.topic or context.niche
        prompt = (
            f"Identify 5 currently trending topics for {subject} targeting {context.audience} in {context.geo}. "
            'Return strictly JSON: { "trends": [{"topic": "...", "description": "...", "score": 85}] }'
        )
        try:
            data = request_json(
                "POST",
                f"{settings.PERPLEXITY_API_BASE}/chat/completions",
                service="Perplexity",
                headers={"Authorization": f"Bearer {self.api_key}", "Content-Type": "application/json"},
                json={
                    "model": self.model,
                    "messages": [
                        {"role": "system", "content": "Return JSON only."},
                        {"role": "user", "content": prompt},
                    ],
                    "temperature": 0.1,
                },
                timeout=max(settings.HTTP_TIMEOUT, 60),
            )
            content = ((data.get('choices') or [{}])[0].get('message') or {}).get('content', '')
            return _trends_from_payload(parse_json_response(content), self.name)
        except Exception as e:
            logger.error(f"PerplexityTrendProvider error: {e}")
            return []


class FirecrawlTrendProvider(TrendProvider):
    """Web search for trending news; rank order becomes the score"""
    name = 'firecrawl'

    def __init__(self, firecrawl_client: Optional[FirecrawlClient] = None):
        self.firecrawl_client = firecrawl_client or FirecrawlClient()

    def fetch_trends(self, context: TrendContext) -> List[Trend]:
        query = f"trending news {context.topic or context.niche} {context.geo}"
        try:
            results = self.firecrawl_client.search(query, limit=5)
        except Exception as e:
            logger.error(f"FirecrawlTrendProvider error: {e}")
            return []
        return [
            Trend(
                topic=result.get('title') or 'Unknown',
                description=result.get('description') or 'No description',
                score=80 - index * 5,
                source=self.name,
                url=result.get('url'),
            )
            for index, result in enumerate(results)
        ]


def build_default_providers() -> List[TrendProvider]:
    """Providers whose credentials are configured"""
    providers: List[TrendProvider] = []
    if settings.PERPLEXITY_API_KEY:
        providers.append(PerplexityTrendProvider())
    if settings.FIRECRAWL_API_KEY:
        providers.append(FirecrawlTrendProvider())
    if settings.GEMINI_API_KEY:
        providers.append(LLMTrendProvider())
    return providers


def unify_trends(trends: List[Trend], limit: Optional[int] = None) -> List[Trend]:
    """
    Rank by score x source weight and keep the first trend per topic

    Topics are compared lower-cased and stripped.
    """
    limit = limit or settings.MAX_TRENDS
    ranked = sorted(trends, key=lambda t: t.score * SOURCE_WEIGHTS.get(t.source, 1.0), reverse=True)

    unified: List[Trend] = []
    seen = set()
    for trend in ranked:
        key = trend.topic.lower().strip()
        if key and key not in seen:
            seen.add(key)
            unified.append(trend)
    return unified[:limit]


class TrendDiscoveryService:
    def __init__(self, providers: Optional[List[TrendProvider]] = None):
        self.providers = providers if providers is not None else build_default_providers()

    def discover_trends(self, context: TrendContext) -> List[Trend]:
        logger.info(f"Starting trend discovery with providers: {[p.name for p in self.providers]}")
        all_trends: List[Trend] = []
        for provider in self.providers:
            try:
                found = provider.fetch_trends(context)
            except Exception as e:
                logger.error(f"Error fetching from {provider.name}: {e}")
                found = []
            logger.info(f"  {provider.name}: {len(found)} trends")
            all_trends.extend(found)

        if not all_trends:
            return []
        return unify_trends(all_trends)
