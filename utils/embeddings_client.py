"""
Embeddings client wrapper for Gemini embeddings.
"""
from __future__ import annotations

import time
from typing import List, Sequence

import google.generativeai as genai

from config.settings import settings
from utils.logger import get_logger

logger = get_logger(__name__)


class GeminiEmbeddingsClient:
    """
    Lightweight wrapper around the Gemini embedding endpoint.

    Texts are sent in chunks of ``batch_size`` (the embedding API caps a
    single request at 100 inputs) and come back as plain Python lists so
    Chroma can store them directly.
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        batch_size: int | None = None,
        retry_attempts: int | None = None,
        retry_delay: float | None = None,
    ):
        self.api_key = api_key or settings.GEMINI_API_KEY
        if not self.api_key:
            raise ValueError("GEMINI_API_KEY is not set; cannot generate embeddings.")

        genai.configure(api_key=self.api_key)

        self.model = model or settings.GEMINI_EMBEDDING_MODEL
        self.batch_size = max(1, min(batch_size or settings.LLM_EMBEDDING_BATCH_SIZE, 100))
        self.retry_attempts = retry_attempts or settings.LLM_RETRY_ATTEMPTS
        self.retry_delay = retry_delay or settings.LLM_RETRY_DELAY_BASE

    def embed_texts(self, texts: Sequence[str]) -> List[List[float]]:
        """
        Generate embeddings for a list of texts.

        Args:
            texts: Sequence of text inputs.

        Returns:
            List of embedding vectors preserving the input order.
        """
        clean_texts = [text if (text and text.strip()) else " " for text in texts]
        if not clean_texts:
            return []

        embeddings: List[List[float]] = []
        total_batches = (len(clean_texts) + self.batch_size - 1) // self.batch_size

        for batch_idx in range(0, len(clean_texts), self.batch_size):
            batch = clean_texts[batch_idx : batch_idx + self.batch_size]
            batch_num = (batch_idx // self.batch_size) + 1
            logger.debug("Embedding batch %s/%s (%s texts)", batch_num, total_batches, len(batch))
            embeddings.extend(self._embed_batch(batch))

        return embeddings

    def embed_query(self, text: str) -> List[float]:
        """Embed a single search query."""
        vectors = self._embed_batch([text or " "], task_type="retrieval_query")
        return vectors[0] if vectors else []

    def _embed_batch(self, batch: List[str], task_type: str = "retrieval_document") -> List[List[float]]:
        """Embed one chunk with retries; the API accepts a list as content."""
        attempts = 0
        while attempts < self.retry_attempts:
            try:
                response = genai.embed_content(model=self.model, content=batch, task_type=task_type)
                embedding = response.get("embedding") if isinstance(response, dict) else getattr(response, "embedding", None)
                if not embedding:
                    raise ValueError("Unexpected embedding response shape.")
                # A single input comes back as a flat vector
                if embedding and not isinstance(embedding[0], (list, tuple)):
                    embedding = [embedding]
                if len(embedding) != len(batch):
                    raise ValueError(f"Expected {len(batch)} embeddings, got {len(embedding)}")
                return [list(vector) for vector in embedding]
            except Exception as exc:
                attempts += 1
                logger.warning(
                    "Embedding call failed (attempt %s/%s): %s",
                    attempts,
                    self.retry_attempts,
                    exc,
                )
                if attempts >= self.retry_attempts:
                    raise
                time.sleep(self.retry_delay * attempts)

        return []
