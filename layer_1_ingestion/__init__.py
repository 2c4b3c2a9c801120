"""
Layer 1: Source Management & Content Ingestion
- Source validation and storage (X handles, YouTube channels, RSS feeds, blogs)
- Platform fetchers (X API v2, YouTube Data API v3, RSS, Firecrawl)
- Ingestion service mapping platform payloads to content items
- Deduplication within a run
"""
from .source_validator import SourceValidator
from .source_storage import SourceStorage
from .deduplicator import ContentDeduplicator
from .ingest_sources import SourceIngestionService, ingest_user_sources

__all__ = [
    'SourceValidator',
    'SourceStorage',
    'ContentDeduplicator',
    'SourceIngestionService',
    'ingest_user_sources',
]
