"""
Draft data model
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional
import uuid

DRAFT_PLATFORMS = ("x", "linkedin", "instagram")
DRAFT_STATUSES = ("generated", "reviewed", "accepted", "rejected")


@dataclass
class ThreadPart:
    """One post of an X thread"""
    id: str
    content: str
    character_count: int

    def to_dict(self) -> dict:
        return {"id": self.id, "content": self.content, "character_count": self.character_count}

    @classmethod
    def from_dict(cls, data: dict) -> "ThreadPart":
        content = data.get("content", "")
        return cls(
            id=str(data.get("id", "1")),
            content=content,
            character_count=int(data.get("character_count", data.get("characterCount", len(content)))),
        )


@dataclass
class Draft:
    """A generated, platform-tailored post awaiting review"""
    user_id: str
    platform: str
    content: str
    status: str = "generated"
    title: Optional[str] = None
    first_comment: Optional[str] = None
    threads: List[ThreadPart] = field(default_factory=list)
    original_topic: Optional[str] = None
    image_url: Optional[str] = None
    generated_image_url: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    @property
    def is_thread(self) -> bool:
        return len(self.threads) > 1

    def to_dict(self) -> dict:
        metadata = {
            **self.extra,
            "title": self.title,
            "first_comment": self.first_comment,
            "threads": [part.to_dict() for part in self.threads],
            "original_topic": self.original_topic,
            "image_url": self.image_url,
            "generated_image_url": self.generated_image_url,
        }
        return {
            "id": self.id,
            "user_id": self.user_id,
            "platform": self.platform,
            "content": self.content,
            "status": self.status,
            "metadata": metadata,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Draft":
        metadata = dict(data.get("metadata") or {})
        known = ("title", "first_comment", "threads", "original_topic", "image_url", "generated_image_url")
        return cls(
            id=data["id"],
            user_id=data["user_id"],
            platform=data["platform"],
            content=data.get("content", ""),
            status=data.get("status", "generated"),
            title=metadata.get("title"),
            first_comment=metadata.get("first_comment"),
            threads=[ThreadPart.from_dict(part) for part in metadata.get("threads") or []],
            original_topic=metadata.get("original_topic"),
            image_url=metadata.get("image_url"),
            generated_image_url=metadata.get("generated_image_url"),
            extra={key: value for key, value in metadata.items() if key not in known},
            created_at=datetime.fromisoformat(data["created_at"]),
            updated_at=datetime.fromisoformat(data.get("updated_at") or data["created_at"]),
        )
