"""
Storage for drafts, one JSON file per user
"""
import json
import os
from datetime import datetime
from typing import Any, Dict, List, Optional

from config.settings import settings
from models.draft import DRAFT_PLATFORMS, DRAFT_STATUSES, Draft, ThreadPart
from utils.errors import DraftNotFoundError, DraftValidationError
from utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_PAGE_SIZE = 20
UPDATABLE_FIELDS = ('platform', 'content', 'title', 'first_comment', 'threads', 'status',
                    'image_url', 'generated_image_url')


def _validate_platform(platform: Any) -> str:
    if platform not in DRAFT_PLATFORMS:
        raise DraftValidationError(f"Platform must be one of: {', '.join(DRAFT_PLATFORMS)}")
    return platform


def _validate_content(content: Any) -> str:
    if not isinstance(content, str) or not content.strip():
        raise DraftValidationError("Content is required")
    return content


def _to_thread_parts(threads: Any) -> List[ThreadPart]:
    parts = []
    for idx, part in enumerate(threads or [], 1):
        if isinstance(part, ThreadPart):
            parts.append(part)
        elif isinstance(part, dict):
            parts.append(ThreadPart.from_dict({'id': str(idx), **part}))
        elif isinstance(part, str):
            parts.append(ThreadPart(id=str(idx), content=part, character_count=len(part)))
    return parts


class DraftStorage:
    """Save, list, update and delete a user's drafts"""

    def __init__(self, storage_dir: str = None):
        self.storage_dir = storage_dir or settings.DRAFTS_DIR
        os.makedirs(self.storage_dir, exist_ok=True)

    def _get_filename(self, user_id: str) -> str:
        return os.path.join(self.storage_dir, f"drafts_{user_id}.json")

    def _load(self, user_id: str) -> List[Draft]:
        filename = self._get_filename(user_id)
        if not os.path.exists(filename):
            return []
        try:
            with open(filename, 'r', encoding='utf-8') as f:
                data = json.load(f)
            return [Draft.from_dict(record) for record in data.get('drafts', [])]
        except Exception as e:
            logger.error(f"Error loading drafts from {filename}: {e}")
            return []

    def _save(self, user_id: str, drafts: List[Draft]):
        with open(self._get_filename(user_id), 'w', encoding='utf-8') as f:
            json.dump(
                {'user_id': user_id, 'total_drafts': len(drafts), 'drafts': [d.to_dict() for d in drafts]},
                f, indent=2, ensure_ascii=False,
            )

    def save_draft(self, user_id: str, payload: Dict[str, Any]) -> Draft:
        """
        Store a new draft with status 'generated'

        Args:
            payload: platform, content and optional title, first_comment,
                threads, original_topic, image_url, generated_image_url and
                any extra metadata under 'metadata'
        """
        draft = Draft(
            user_id=user_id,
            platform=_validate_platform(payload.get('platform')),
            content=_validate_content(payload.get('content')),
            status='generated',
            title=payload.get('title'),
            first_comment=payload.get('first_comment'),
            threads=_to_thread_parts(payload.get('threads')),
            original_topic=payload.get('original_topic'),
            image_url=payload.get('image_url'),
            generated_image_url=payload.get('generated_image_url'),
            extra={**(payload.get('metadata') or {}), 'saved_at': datetime.now().isoformat()},
        )
        drafts = self._load(user_id)
        drafts.append(draft)
        self._save(user_id, drafts)
        logger.info(f"Saved {draft.platform} draft {draft.id} for user {user_id}")
        return draft

    def list_drafts(self, user_id: str, limit: int = DEFAULT_PAGE_SIZE, offset: int = 0,
                    platform: Optional[str] = None) -> Dict[str, Any]:
        """Newest drafts first, with has_more pagination"""
        limit = max(1, int(limit))
        offset = max(0, int(offset))
        drafts = sorted(self._load(user_id), key=lambda d: d.created_at, reverse=True)
        if platform:
            drafts = [d for d in drafts if d.platform == platform]

        page = drafts[offset:offset + limit]
        return {
            'drafts': page,
            'pagination': {
                'limit': limit,
                'offset': offset,
                'total': len(drafts),
                'has_more': offset + limit < len(drafts),
            },
        }

    def get_draft(self, user_id: str, draft_id: str) -> Draft:
        for draft in self._load(user_id):
            if draft.id == draft_id:
                return draft
        raise DraftNotFoundError()

    def update_draft(self, user_id: str, draft_id: str, changes: Dict[str, Any]) -> Draft:
        """
        Apply edits from the review screen

        Only platform, content, title, first_comment, threads, status and the
        image URLs can change.
        """
        drafts = self._load(user_id)
        draft = next((d for d in drafts if d.id == draft_id), None)
        if draft is None:
            raise DraftNotFoundError()

        for key, value in changes.items():
            if key not in UPDATABLE_FIELDS:
                continue
            if key == 'platform':
                value = _validate_platform(value)
            elif key == 'content':
                value = _validate_content(value)
            elif key == 'status' and value not in DRAFT_STATUSES:
                raise DraftValidationError(f"Status must be one of: {', '.join(DRAFT_STATUSES)}")
            elif key == 'threads':
                value = _to_thread_parts(value)
            setattr(draft, key, value)

        draft.updated_at = datetime.now()
        self._save(user_id, drafts)
        logger.info(f"Updated draft {draft_id} ({', '.join(sorted(changes))})")
        return draft

    def delete_draft(self, user_id: str, draft_id: str):
        drafts = self._load(user_id)
        remaining = [d for d in drafts if d.id != draft_id]
        if len(remaining) == len(drafts):
            raise DraftNotFoundError()
        self._save(user_id, remaining)
        logger.info(f"Deleted draft {draft_id} for user {user_id}")

    def get_recent_drafts(self, user_id: str, since: datetime, status: Optional[str] = None) -> List[Draft]:
        """Drafts created after ``since``, used by the daily digest"""
        return [
            d for d in sorted(self._load(user_id), key=lambda d: d.created_at, reverse=True)
            if d.created_at >= since and (status is None or d.status == status)
        ]
