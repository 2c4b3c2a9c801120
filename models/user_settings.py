"""
Per-user delivery preferences
"""
from dataclasses import dataclass, asdict
from typing import Optional

from config.settings import settings


@dataclass
class UserSettings:
    user_id: str
    tz: str = settings.DEFAULT_TIMEZONE
    deliver_hour: int = settings.DEFAULT_DELIVER_HOUR  # 0-23 in the user's timezone
    email_digest: bool = False
    digest_email: Optional[str] = None
    niche: str = settings.DEFAULT_NICHE
    audience: str = settings.DEFAULT_AUDIENCE
    geo: str = settings.DEFAULT_GEO
    last_delivered_on: Optional[str] = None  # YYYY-MM-DD of the last scheduled run

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "UserSettings":
        fields = cls.__dataclass_fields__
        return cls(**{key: value for key, value in data.items() if key in fields})
