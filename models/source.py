"""
Source data model
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional
import uuid


@dataclass
class Source:
    """A content origin the user follows: X handle, YouTube channel, RSS feed or blog"""
    user_id: str
    type: str  # "x", "youtube", "rss" or "blog"
    handle: Optional[str] = None
    url: Optional[str] = None
    active: bool = True
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=datetime.now)

    @property
    def label(self) -> str:
        """Human readable identifier for logs and the dashboard"""
        if self.type == "x" and self.handle:
            return f"@{self.handle}"
        return self.handle or self.url or self.id

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "type": self.type,
            "handle": self.handle,
            "url": self.url,
            "active": self.active,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Source":
        created = data.get("created_at")
        return cls(
            id=data["id"],
            user_id=data["user_id"],
            type=data["type"],
            handle=data.get("handle"),
            url=data.get("url"),
            active=bool(data.get("active", True)),
            created_at=datetime.fromisoformat(created) if created else datetime.now(),
        )
