"""
Style samples: the user's own posts, embedded with Gemini and stored in Chroma
so drafts can borrow their voice
"""
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

import chromadb

from config.settings import settings
from utils.embeddings_client import GeminiEmbeddingsClient
from utils.errors import StyleSampleNotFoundError, StyleValidationError
from utils.logger import get_logger

logger = get_logger(__name__)

STYLE_PLATFORMS = ('x', 'linkedin', 'instagram', 'twitter', 'tiktok', 'youtube', 'blog')
EMBED_CHUNK_SIZE = 100


def _where(user_id: str, platform: Optional[str] = None) -> Dict[str, Any]:
    if platform:
        return {"$and": [{"user_id": user_id}, {"platform": platform}]}
    return {"user_id": user_id}


class StyleStore:
    """Vector store of style samples keyed by user and platform"""

    def __init__(self, embeddings_client: Optional[GeminiEmbeddingsClient] = None,
                 chroma_client=None, collection_name: Optional[str] = None):
        self.embeddings_client = embeddings_client or GeminiEmbeddingsClient()
        self.chroma_client = chroma_client or chromadb.PersistentClient(path=settings.CHROMA_DB_DIR)
        self.collection = self.chroma_client.get_or_create_collection(
            name=collection_name or settings.STYLE_COLLECTION,
            metadata={"hnsw:space": "cosine"},
        )

    def add_samples(self, user_id: str, platform: str, lines: Sequence[str]) -> int:
        """
        Embed and store style samples

        Args:
            user_id: Owner of the samples
            platform: One of STYLE_PLATFORMS
            lines: Raw sample texts; blank lines are ignored

        Returns:
            Number of samples stored
        """
        if platform not in STYLE_PLATFORMS:
            raise StyleValidationError(f"Unsupported platform '{platform}'. Use one of: {', '.join(STYLE_PLATFORMS)}")
        if not isinstance(lines, (list, tuple)):
            raise StyleValidationError("Style samples must be a list of texts")
        texts = [line.strip() for line in lines if isinstance(line, str) and line.strip()]
        if not texts:
            raise StyleValidationError("Please provide at least one non-empty style sample")

        created_at = datetime.now().isoformat()
        stored = 0
        for start in range(0, len(texts), EMBED_CHUNK_SIZE):
            chunk = texts[start:start + EMBED_CHUNK_SIZE]
            vectors = self.embeddings_client.embed_texts(chunk)
            self.collection.add(
                ids=[str(uuid.uuid4()) for _ in chunk],
                documents=chunk,
                embeddings=vectors,
                metadatas=[{"user_id": user_id, "platform": platform, "created_at": created_at} for _ in chunk],
            )
            stored += len(chunk)

        logger.info(f"Stored {stored} {platform} style samples for user {user_id}")
        return stored

    def find_similar(self, user_id: str, platform: str, query: str, limit: Optional[int] = None) -> List[str]:
        """Raw texts of the user's samples closest to the query, nearest first"""
        limit = limit or settings.STYLE_FEW_SHOTS
        where = _where(user_id, platform)
        available = len(self.collection.get(where=where, include=[]).get("ids", []))
        if available == 0:
            return []

        result = self.collection.query(
            query_embeddings=[self.embeddings_client.embed_query(query)],
            n_results=min(limit, available),
            where=where,
        )
        documents = result.get("documents") or [[]]
        return list(documents[0])

    def list_samples(self, user_id: str, platform: Optional[str] = None) -> List[Dict[str, Any]]:
        result = self.collection.get(where=_where(user_id, platform), include=["documents", "metadatas"])
        samples = [
            {
                "id": sample_id,
                "raw_text": document,
                "platform": (metadata or {}).get("platform"),
                "created_at": (metadata or {}).get("created_at"),
            }
            for sample_id, document, metadata in zip(
                result.get("ids", []), result.get("documents", []), result.get("metadatas", [])
            )
        ]
        return sorted(samples, key=lambda s: s["created_at"] or "", reverse=True)

    def delete_sample(self, user_id: str, sample_id: str):
        result = self.collection.get(ids=[sample_id], include=["metadatas"])
        metadatas = result.get("metadatas") or []
        if not metadatas or (metadatas[0] or {}).get("user_id") != user_id:
            raise StyleSampleNotFoundError()
        self.collection.delete(ids=[sample_id])
        logger.info(f"Deleted style sample {sample_id} for user {user_id}")
