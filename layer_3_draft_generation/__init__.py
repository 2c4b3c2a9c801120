"""
Layer 3: Draft Generation
- Platform prompts and Gemini draft writing with style few-shots
- X thread building and draft optimization
- Replicate image generation for LinkedIn/Instagram
- Draft storage, style samples (Chroma) and voice analysis
- "Generate now" orchestration
"""
from .draft_generator import DraftGenerator
from .draft_storage import DraftStorage
from .image_generator import ImageGenerator
from .style_store import StyleStore
from .style_analysis import VoiceAnalyzer
from .thread_builder import create_twitter_thread
from .generate_drafts import generate_now

__all__ = [
    'DraftGenerator',
    'DraftStorage',
    'ImageGenerator',
    'StyleStore',
    'VoiceAnalyzer',
    'create_twitter_thread',
    'generate_now',
]
