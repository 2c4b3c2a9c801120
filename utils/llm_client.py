"""
Gemini LLM client used for draft writing, trend suggestions and voice analysis.
"""
from __future__ import annotations

import json
import re
import time
from typing import Any, Dict, Optional

import google.generativeai as genai

from config.settings import settings
from utils.logger import get_logger

logger = get_logger(__name__)


def is_rate_limit_error(error: Exception) -> bool:
    """True when an exception text looks like a quota / 429 response."""
    error_str = str(error)
    return (
        "429" in error_str
        or "quota" in error_str.lower()
        or "rate limit" in error_str.lower()
        or "ResourceExhausted" in error_str
    )


class LLMClient:
    """Wrapper around Gemini text generation with retry and JSON helpers."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        generation_config: Dict[str, Any] | None = None,
    ):
        self.api_key = api_key or settings.GEMINI_API_KEY
        if not self.api_key:
            raise ValueError("GEMINI_API_KEY is not set; cannot initialize LLM client.")

        genai.configure(api_key=self.api_key)

        self.model_name = model or settings.GEMINI_MODEL
        self.generation_config = generation_config or {
            "temperature": settings.DRAFT_TEMPERATURE,
            "top_p": 0.95,
            "max_output_tokens": settings.DRAFT_MAX_OUTPUT_TOKENS,
        }
        self.model = genai.GenerativeModel(
            model_name=self.model_name,
            generation_config=genai.types.GenerationConfig(**self.generation_config),
        )

    def generate(
        self,
        prompt: str,
        system_instruction: Optional[str] = None,
        temperature: Optional[float] = None,
    ) -> str:
        """
        Generate raw text from the Gemini model.

        A system instruction or temperature override builds a one-off model
        for the call; otherwise the shared model is used.
        """
        model = self.model
        if system_instruction or temperature is not None:
            config = dict(self.generation_config)
            if temperature is not None:
                config["temperature"] = temperature
            model = genai.GenerativeModel(
                model_name=self.model_name,
                generation_config=genai.types.GenerationConfig(**config),
                system_instruction=system_instruction,
            )
        response = model.generate_content(prompt)
        return getattr(response, "text", "") or ""

    def generate_with_retry(
        self,
        prompt: str,
        system_instruction: Optional[str] = None,
        temperature: Optional[float] = None,
        max_retries: Optional[int] = None,
    ) -> str:
        """
        Call generate() with exponential backoff.

        Rate-limit errors wait LLM_RATE_LIMIT_DELAY, other errors wait
        LLM_RETRY_DELAY_BASE * 2^(attempt-1). The last error is re-raised.
        """
        max_retries = max_retries or settings.LLM_RETRY_ATTEMPTS
        for attempt in range(1, max_retries + 1):
            try:
                return self.generate(prompt, system_instruction=system_instruction, temperature=temperature)
            except Exception as e:
                if attempt >= max_retries:
                    logger.error(f"Max retries reached for Gemini call: {e}")
                    raise
                if is_rate_limit_error(e):
                    delay = settings.LLM_RATE_LIMIT_DELAY
                    logger.warning(f"Rate limit hit (attempt {attempt}/{max_retries}). Waiting {delay}s...")
                else:
                    delay = settings.LLM_RETRY_DELAY_BASE * (2 ** (attempt - 1))
                    logger.warning(f"Gemini call failed (attempt {attempt}/{max_retries}): {e}. Waiting {delay}s...")
                time.sleep(delay)
        return ""

    def generate_json(self, prompt: str, system_instruction: Optional[str] = None,
                      temperature: Optional[float] = None) -> Any:
        """Generate and parse a JSON payload; returns None when unparseable."""
        raw = self.generate_with_retry(prompt, system_instruction=system_instruction, temperature=temperature)
        return parse_json_response(raw)


def strip_code_fences(text: str) -> str:
    """Remove ```json ... ``` Markdown fences around a model response."""
    cleaned = (text or "").strip()
    if "```" in cleaned:
        match = re.search(r"```(?:json)?\s*(.*?)\s*```", cleaned, re.DOTALL)
        if match:
            cleaned = match.group(1)
    return cleaned.strip()


def parse_json_response(text: str) -> Any:
    """
    Best-effort JSON parsing that ignores Markdown fences and chatter.

    Tries the whole payload first, then the outermost {...} or [...] block.
    """
    cleaned = strip_code_fences(text)
    if not cleaned:
        return None
    try:
        return json.loads(cleaned)
    except json.JSONDecodeError:
        pass

    for pattern in (r"\{.*\}", r"\[.*\]"):
        match = re.search(pattern, cleaned, re.DOTALL)
        if match:
            try:
                return json.loads(match.group(0))
            except json.JSONDecodeError:
                continue

    logger.debug("Failed to parse JSON from model response. Payload: %s", cleaned[:500])
    return None
