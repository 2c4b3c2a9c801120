"""
Validation rules for user-supplied sources
"""
import re
from typing import Dict, Optional
from urllib.parse import urlparse

from models.content_item import SOURCE_TYPES
from utils.errors import SourceValidationError
from utils.logger import get_logger

logger = get_logger(__name__)


class SourceValidator:
    """Check and normalise a source before it is stored"""

    X_HANDLE_PATTERN = re.compile(r'^[a-zA-Z0-9_]{1,15}$')
    YOUTUBE_CHANNEL_PATTERN = re.compile(r'^UC[a-zA-Z0-9_-]{22}$')

    # Friendly messages shown in the dashboard
    MESSAGES = {
        'invalid_type': "Please select a valid source type",
        'x_handle_required': "Please enter an X username",
        'x_handle_invalid': "X usernames are 1-15 characters: letters, numbers and underscores only",
        'x_url_forbidden': "X sources use a username, not a URL",
        'youtube_handle_required': "Please enter a YouTube channel ID",
        'youtube_handle_invalid': "YouTube channel IDs start with 'UC' followed by 22 characters",
        'youtube_url_forbidden': "YouTube sources use a channel ID, not a URL",
        'url_required': "Please enter a URL",
        'url_invalid': "Please enter a valid URL starting with http:// or https://",
        'handle_forbidden': "RSS feeds and blogs use a URL, not a handle",
    }

    @classmethod
    def validate(cls, data: Dict) -> tuple[bool, Optional[str]]:
        """
        Validate source input

        Args:
            data: Dict with 'type' and either 'handle' or 'url'

        Returns:
            Tuple of (is_valid, error_message)
        """
        source_type = (data.get('type') or '').strip().lower()
        handle = (data.get('handle') or '').strip()
        url = (data.get('url') or '').strip()

        if source_type not in SOURCE_TYPES:
            return False, cls.MESSAGES['invalid_type']

        if source_type == 'x':
            handle = handle.lstrip('@')
            if not handle:
                return False, cls.MESSAGES['x_handle_required']
            if not cls.X_HANDLE_PATTERN.match(handle):
                return False, cls.MESSAGES['x_handle_invalid']
            if url:
                return False, cls.MESSAGES['x_url_forbidden']
            return True, None

        if source_type == 'youtube':
            if not handle:
                return False, cls.MESSAGES['youtube_handle_required']
            if not cls.YOUTUBE_CHANNEL_PATTERN.match(handle):
                return False, cls.MESSAGES['youtube_handle_invalid']
            if url:
                return False, cls.MESSAGES['youtube_url_forbidden']
            return True, None

        # rss and blog
        if not url:
            return False, cls.MESSAGES['url_required']
        if not cls.is_http_url(url):
            return False, cls.MESSAGES['url_invalid']
        if handle:
            return False, cls.MESSAGES['handle_forbidden']
        return True, None

    @classmethod
    def normalize(cls, data: Dict) -> Dict:
        """
        Validate and return the canonical {type, handle, url} triple

        X handles lose a leading '@' and are lower-cased; empty fields become None.

        Raises:
            SourceValidationError: when the input fails validation
        """
        is_valid, error = cls.validate(data)
        if not is_valid:
            logger.debug(f"Rejected source input {data}: {error}")
            raise SourceValidationError(error)

        source_type = data['type'].strip().lower()
        handle = (data.get('handle') or '').strip() or None
        url = (data.get('url') or '').strip() or None
        if source_type == 'x' and handle:
            handle = handle.lstrip('@').lower()
        return {'type': source_type, 'handle': handle, 'url': url}

    @staticmethod
    def is_http_url(value: str) -> bool:
        try:
            parsed = urlparse(value)
        except ValueError:
            return False
        return parsed.scheme in ('http', 'https') and bool(parsed.netloc)
