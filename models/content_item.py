"""
Ingested content data model
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional
import json

SOURCE_TYPES = ("x", "youtube", "rss", "blog")


@dataclass(frozen=True)
class EngagementMetrics:
    """Engagement counts reported by the platform (missing counts are 0)"""
    views: int = 0
    likes: int = 0
    retweets: int = 0
    shares: int = 0
    comments: int = 0

    @property
    def interactions(self) -> int:
        """likes + retweets + comments, the engagement the trend scorer averages"""
        return self.likes + self.retweets + self.comments

    def to_dict(self) -> dict:
        return {
            "views": self.views,
            "likes": self.likes,
            "retweets": self.retweets,
            "shares": self.shares,
            "comments": self.comments,
        }

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "EngagementMetrics":
        data = data or {}
        return cls(**{key: _to_int(data.get(key)) for key in ("views", "likes", "retweets", "shares", "comments")})


@dataclass(frozen=True)
class IngestedContentItem:
    """One fetched post, video, article or page. Immutable once produced."""
    id: str
    source_id: str
    source_type: str  # "x", "youtube", "rss" or "blog"
    content: str
    published_at: datetime
    title: Optional[str] = None
    engagement_metrics: EngagementMetrics = field(default_factory=EngagementMetrics)
    metadata: Dict[str, Any] = field(default_factory=dict)
    source_active: bool = True

    def to_dict(self) -> dict:
        """Convert item to dictionary for storage and display"""
        return {
            "id": self.id,
            "source_id": self.source_id,
            "source_type": self.source_type,
            "content": self.content,
            "title": self.title,
            "published_at": self.published_at.isoformat(),
            "engagement_metrics": self.engagement_metrics.to_dict(),
            "metadata": self.metadata,
            "source_active": self.source_active,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "IngestedContentItem":
        """Create item from dictionary"""
        published = data.get("published_at")
        if isinstance(published, str):
            published = parse_timestamp(published)
        return cls(
            id=data["id"],
            source_id=data["source_id"],
            source_type=data["source_type"],
            content=data.get("content") or "",
            title=data.get("title"),
            published_at=published or datetime.now(),
            engagement_metrics=EngagementMetrics.from_dict(data.get("engagement_metrics")),
            metadata=data.get("metadata") or {},
            source_active=data.get("source_active", True),
        )

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)


def parse_timestamp(value: Optional[str]) -> Optional[datetime]:
    """Parse ISO timestamps, including the trailing 'Z' the platform APIs send"""
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def _to_int(value: Any) -> int:
    # YouTube reports statistics as strings
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0
