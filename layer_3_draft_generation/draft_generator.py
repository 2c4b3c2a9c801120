"""
Draft generator

Writes platform-tailored drafts for a topic with Gemini. The user's most
similar style samples are added to the system prompt as few-shots so the
drafts sound like them. X drafts are split into threads afterwards.
"""
import time
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from config.settings import settings
from models.draft import DRAFT_PLATFORMS, Draft
from layer_3_draft_generation.draft_storage import DraftStorage
from layer_3_draft_generation.platform_prompts import (
    OPTIMIZE_PROMPTS,
    build_system_prompt,
    build_user_prompt,
)
from layer_3_draft_generation.style_store import StyleStore
from layer_3_draft_generation.thread_builder import build_thread_parts, sanitize_twitter_output
from utils.errors import DraftValidationError
from utils.llm_client import LLMClient
from utils.logger import get_logger

logger = get_logger(__name__)


class DraftGenerator:
    """Generates and optimizes drafts for X, LinkedIn and Instagram"""

    def __init__(self, llm_client: Optional[LLMClient] = None, style_store: Optional[StyleStore] = None):
        self._llm_client = llm_client
        self._style_store = style_store

    @property
    def llm_client(self) -> LLMClient:
        if self._llm_client is None:
            self._llm_client = LLMClient()
        return self._llm_client

    @property
    def style_store(self) -> StyleStore:
        if self._style_store is None:
            self._style_store = StyleStore()
        return self._style_store

    def _style_few_shots(self, user_id: Optional[str], platform: str, topic: str) -> List[str]:
        if not user_id:
            return []
        try:
            return self.style_store.find_similar(user_id, platform, topic, limit=settings.STYLE_FEW_SHOTS)
        except Exception as e:
            logger.warning(f"Style retrieval failed for {platform}, continuing without samples: {e}")
            return []

    def generate_for_platform(self, platform: str, topic: str,
                              user_id: Optional[str] = None,
                              tones: Optional[Sequence[str]] = None,
                              context: Optional[List[str]] = None) -> Dict[str, Any]:
        """
        Generate one draft

        Returns:
            {'content', 'threads', 'is_thread'}; threads are only built for X
        """
        style_samples = self._style_few_shots(user_id, platform, topic)
        if style_samples:
            logger.info(f"Using {len(style_samples)} style samples for {platform}")

        content = self.llm_client.generate_with_retry(
            build_user_prompt(platform, topic, context),
            system_instruction=build_system_prompt(platform, tones, style_samples),
            temperature=settings.DRAFT_TEMPERATURE,
        ).strip()
        if not content:
            raise ValueError(f"Empty response from model for {platform}")

        if platform != 'x':
            return {"content": content, "threads": [], "is_thread": False}

        content = sanitize_twitter_output(content)
        threads = build_thread_parts(content, topic)
        return {"content": content, "threads": threads, "is_thread": len(threads) > 1}

    def generate_drafts(self, topic: str,
                        platforms: Optional[Sequence[str]] = None,
                        user_id: Optional[str] = None,
                        tones: Optional[Sequence[str]] = None,
                        context: Optional[List[str]] = None) -> Dict[str, Dict[str, Any]]:
        """
        Generate drafts for several platforms

        A failure on one platform is reported as {'error': ...} for that
        platform and does not stop the others.
        """
        if not topic or not topic.strip():
            raise DraftValidationError("Topic is required")
        platforms = list(platforms or DRAFT_PLATFORMS)
        invalid = [p for p in platforms if p not in DRAFT_PLATFORMS]
        if invalid:
            raise DraftValidationError(f"Unsupported platforms: {', '.join(invalid)}")

        results: Dict[str, Dict[str, Any]] = {}
        for idx, platform in enumerate(platforms):
            # Add delay between platform calls
            if idx > 0:
                time.sleep(settings.LLM_BATCH_DELAY)
            try:
                results[platform] = self.generate_for_platform(
                    platform, topic.strip(), user_id=user_id, tones=tones, context=context
                )
                logger.info(f"Generated {platform} draft for '{topic}'")
            except Exception as e:
                logger.error(f"Error generating {platform} draft for '{topic}': {e}")
                results[platform] = {"error": f"Failed to generate {platform} content"}
        return results

    def optimize_content(self, content: str, platform: str) -> str:
        if platform not in OPTIMIZE_PROMPTS:
            raise DraftValidationError(f"Platform must be one of: {', '.join(OPTIMIZE_PROMPTS)}")
        if not content or not content.strip():
            raise DraftValidationError("Content is required")

        optimized = self.llm_client.generate_with_retry(
            f"Please optimize this content for {platform}: {content}",
            system_instruction=OPTIMIZE_PROMPTS[platform],
            temperature=settings.DRAFT_TEMPERATURE,
        ).strip()
        if not optimized:
            raise ValueError(f"Empty optimization response for {platform}")
        return optimized

    def optimize_draft(self, user_id: str, draft_id: str,
                       platform: Optional[str] = None,
                       storage: Optional[DraftStorage] = None) -> Draft:
        """
        Optimize a saved draft and store the result as a new draft

        The new draft keeps a pointer to the one it was based on.
        """
        storage = storage or DraftStorage()
        original = storage.get_draft(user_id, draft_id)
        platform = platform or original.platform
        optimized = self.optimize_content(original.content, platform)

        payload: Dict[str, Any] = {
            "platform": platform,
            "content": optimized,
            "title": original.title,
            "original_topic": original.original_topic,
            "metadata": {
                "original_content": original.content,
                "based_on": original.id,
                "optimized_at": datetime.now().isoformat(),
            },
        }
        if platform == 'x':
            payload["threads"] = build_thread_parts(optimized, original.original_topic or '')
        return storage.save_draft(user_id, payload)
