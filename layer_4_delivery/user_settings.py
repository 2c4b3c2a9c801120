"""
Per-user delivery settings, one JSON file per user
"""
import json
import os
from typing import Any, Dict, List
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from config.settings import settings
from models.user_settings import UserSettings
from utils.errors import SettingsValidationError
from utils.logger import get_logger

logger = get_logger(__name__)


class UserSettingsStorage:
    """Read and update delivery preferences (timezone, hour, email digest)"""

    def __init__(self, storage_dir: str = None):
        self.storage_dir = storage_dir or settings.USER_SETTINGS_DIR
        os.makedirs(self.storage_dir, exist_ok=True)

    def _get_filename(self, user_id: str) -> str:
        return os.path.join(self.storage_dir, f"settings_{user_id}.json")

    def get(self, user_id: str) -> UserSettings:
        """Stored settings, or defaults when the user never saved any"""
        filename = self._get_filename(user_id)
        if not os.path.exists(filename):
            return UserSettings(user_id=user_id)
        try:
            with open(filename, 'r', encoding='utf-8') as f:
                return UserSettings.from_dict({**json.load(f), 'user_id': user_id})
        except Exception as e:
            logger.error(f"Error loading settings from {filename}: {e}")
            return UserSettings(user_id=user_id)

    def save(self, user_settings: UserSettings) -> UserSettings:
        with open(self._get_filename(user_settings.user_id), 'w', encoding='utf-8') as f:
            json.dump(user_settings.to_dict(), f, indent=2, ensure_ascii=False)
        return user_settings

    def update(self, user_id: str, changes: Dict[str, Any]) -> UserSettings:
        """
        Merge changes into the stored settings

        Raises:
            SettingsValidationError: deliver_hour outside 0-23 or unknown timezone
        """
        current = self.get(user_id).to_dict()
        for key, value in changes.items():
            if key == 'user_id' or key not in current:
                continue
            if key == 'deliver_hour':
                try:
                    value = int(value)
                except (TypeError, ValueError):
                    raise SettingsValidationError("Delivery hour must be a whole number between 0 and 23")
                if not 0 <= value <= 23:
                    raise SettingsValidationError("Delivery hour must be between 0 and 23")
            elif key == 'tz':
                try:
                    ZoneInfo(value)
                except (ZoneInfoNotFoundError, ValueError, TypeError):
                    raise SettingsValidationError(f"Unknown timezone '{value}'")
            elif key == 'email_digest':
                value = bool(value)
            current[key] = value

        updated = self.save(UserSettings.from_dict(current))
        logger.info(f"Updated settings for user {user_id}: {', '.join(sorted(changes))}")
        return updated

    def list_users(self) -> List[str]:
        """User ids that have saved settings, used by the scheduler"""
        return sorted(
            name[len('settings_'):-len('.json')]
            for name in os.listdir(self.storage_dir)
            if name.startswith('settings_') and name.endswith('.json')
        )
