"""
Trend data models

TrendingTopicAnalysis is produced by the heuristic scorer over ingested
content; Trend is what an AI/search provider reports; TrendItem is the
cached record kept per user.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional
import uuid


@dataclass(frozen=True)
class TrendMetrics:
    """Sub-metrics behind a momentum score. Scores are in [0, 100]."""
    engagement_rate: float
    velocity_score: float
    reach_multiplier: float
    mentions_count: int
    sentiment_score: float = 50.0  # not computed yet
    trending_duration: float = 1.0  # not computed yet

    def to_dict(self) -> dict:
        return {
            "engagement_rate": self.engagement_rate,
            "velocity_score": self.velocity_score,
            "reach_multiplier": self.reach_multiplier,
            "mentions_count": self.mentions_count,
            "sentiment_score": self.sentiment_score,
            "trending_duration": self.trending_duration,
        }


@dataclass(frozen=True)
class TrendingTopicAnalysis:
    topic: str
    summary: str
    momentum_score: float
    metrics: TrendMetrics
    contributing_sources: List[str]
    source_type: str = "mixed"
    source_ref: str = ""

    def to_dict(self) -> dict:
        return {
            "topic": self.topic,
            "summary": self.summary,
            "momentum_score": self.momentum_score,
            "metrics": self.metrics.to_dict(),
            "contributing_sources": list(self.contributing_sources),
            "source_type": self.source_type,
            "source_ref": self.source_ref or self.topic,
        }


@dataclass
class Trend:
    """A trend reported by a provider (llm, perplexity, firecrawl, heuristic)"""
    topic: str
    description: str
    score: float
    source: str
    url: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict:
        return {
            "topic": self.topic,
            "description": self.description,
            "score": self.score,
            "source": self.source,
            "url": self.url,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass
class TrendItem:
    """A trend cached for a user so repeated lookups skip the providers"""
    user_id: str
    title: str
    summary: str
    score: float
    source_type: str
    metadata: Dict[str, Any] = field(default_factory=dict)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "title": self.title,
            "summary": self.summary,
            "score": self.score,
            "source_type": self.source_type,
            "metadata": self.metadata,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "TrendItem":
        return cls(
            id=data["id"],
            user_id=data["user_id"],
            title=data.get("title", ""),
            summary=data.get("summary", ""),
            score=float(data.get("score") or 0),
            source_type=data.get("source_type", "unknown"),
            metadata=data.get("metadata") or {},
            created_at=datetime.fromisoformat(data["created_at"]),
        )

    def to_trend(self) -> Trend:
        return Trend(
            topic=self.title,
            description=self.summary,
            score=self.score,
            source=self.source_type,
            url=self.metadata.get("url"),
            timestamp=self.created_at,
        )
