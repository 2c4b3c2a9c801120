"""
Storage for user sources, one JSON file per user
"""
import json
import os
from typing import Dict, Iterable, List, Optional

from config.settings import settings
from models.source import Source
from layer_1_ingestion.source_validator import SourceValidator
from utils.errors import DuplicateSourceError, SourceNotFoundError
from utils.logger import get_logger

logger = get_logger(__name__)


class SourceStorage:
    """Create, list, toggle and delete a user's sources"""

    def __init__(self, storage_dir: str = None):
        """
        Initialize storage

        Args:
            storage_dir: Directory to store source files
        """
        self.storage_dir = storage_dir or settings.SOURCES_DIR
        os.makedirs(self.storage_dir, exist_ok=True)

    def _get_filename(self, user_id: str) -> str:
        return os.path.join(self.storage_dir, f"sources_{user_id}.json")

    def _load(self, user_id: str) -> List[Source]:
        filename = self._get_filename(user_id)
        if not os.path.exists(filename):
            return []
        try:
            with open(filename, 'r', encoding='utf-8') as f:
                data = json.load(f)
            return [Source.from_dict(record) for record in data.get('sources', [])]
        except Exception as e:
            logger.error(f"Error loading sources from {filename}: {e}")
            return []

    def _save(self, user_id: str, sources: List[Source]):
        filename = self._get_filename(user_id)
        with open(filename, 'w', encoding='utf-8') as f:
            json.dump(
                {'user_id': user_id, 'total_sources': len(sources), 'sources': [s.to_dict() for s in sources]},
                f, indent=2, ensure_ascii=False,
            )

    def create_source(self, user_id: str, data: Dict) -> Source:
        """
        Validate and add a new active source

        Raises:
            SourceValidationError: invalid input
            DuplicateSourceError: same type/handle/url already stored
        """
        fields = SourceValidator.normalize(data)
        sources = self._load(user_id)

        for existing in sources:
            if (existing.type, existing.handle, existing.url) == (fields['type'], fields['handle'], fields['url']):
                raise DuplicateSourceError()

        source = Source(user_id=user_id, **fields)
        sources.append(source)
        self._save(user_id, sources)
        logger.info(f"Added {source.type} source {source.label} for user {user_id}")
        return source

    def list_sources(self, user_id: str) -> List[Source]:
        """All sources for a user, newest first"""
        return sorted(self._load(user_id), key=lambda s: s.created_at, reverse=True)

    def get_source(self, user_id: str, source_id: str) -> Source:
        for source in self._load(user_id):
            if source.id == source_id:
                return source
        raise SourceNotFoundError()

    def get_active_sources(self, user_id: str,
                           source_ids: Optional[Iterable[str]] = None,
                           platforms: Optional[Iterable[str]] = None) -> List[Source]:
        """
        Active sources, optionally narrowed to specific ids and/or source types
        """
        ids = set(source_ids) if source_ids else None
        types = {p.lower() for p in platforms} if platforms else None
        return [
            source for source in self.list_sources(user_id)
            if source.active is True
            and (ids is None or source.id in ids)
            and (types is None or source.type in types)
        ]

    def toggle_source(self, user_id: str, source_id: str, active: bool) -> Source:
        sources = self._load(user_id)
        for source in sources:
            if source.id == source_id:
                source.active = bool(active)
                self._save(user_id, sources)
                logger.info(f"Source {source.label} is now {'active' if source.active else 'paused'}")
                return source
        raise SourceNotFoundError()

    def delete_source(self, user_id: str, source_id: str):
        sources = self._load(user_id)
        remaining = [source for source in sources if source.id != source_id]
        if len(remaining) == len(sources):
            raise SourceNotFoundError()
        self._save(user_id, remaining)
        logger.info(f"Deleted source {source_id} for user {user_id}")
