"""
Turn generated X copy into a single post or a short numbered thread
"""
import re
from typing import List

from models.draft import ThreadPart

MAX_TWEET_CHARS = 280
MAX_THREAD_POINTS = 3
MIN_POINT_CHARS = 50
MAX_POINT_CHARS = 200

TWEET_LABEL_PATTERN = re.compile(r'^\s*#{0,6}\s*Tweet\s*\d+\s*:\s*', re.IGNORECASE | re.MULTILINE)
SENTENCE_SPLIT_PATTERN = re.compile(r'[.!?]+')

# First keyword found in a point picks its emoji
EMOJI_MAP = {
    'ai': '🤖',
    'technology': '💻',
    'business': '💼',
    'innovation': '🚀',
    'future': '🔮',
    'data': '📊',
    'growth': '📈',
    'success': '🎯',
    'learning': '📚',
    'health': '🏥',
    'finance': '💰',
    'creativity': '🎨',
    'social': '🌐',
    'environment': '🌱',
    'customer': '👥',
    'experience': '💡',
    'emotional': '❤️',
    'empathy': '🤗',
}


def sanitize_twitter_output(text: str) -> str:
    """Strip 'Tweet 1:' / '## Tweet 2:' labels the model sometimes adds"""
    return TWEET_LABEL_PATTERN.sub('', text or '').strip()


def topic_hashtag(topic: str) -> str:
    tag = re.sub(r'[^a-zA-Z0-9]', '', topic or '')
    return f"#{tag}" if tag else ''


def format_twitter_point(content: str, point_number: int, topic: str) -> str:
    """'N/ content', plus an emoji and the topic hashtag when they fit in 280 chars"""
    base = f"{point_number}/ {content}"
    lowered = content.lower()
    emoji = next((symbol for keyword, symbol in EMOJI_MAP.items() if re.search(rf'\b{keyword}', lowered)), '')
    hashtag = topic_hashtag(topic)

    if emoji and hashtag and len(base) + len(emoji) + len(hashtag) + 2 <= MAX_TWEET_CHARS:
        return f"{base} {emoji} {hashtag}"
    if hashtag and len(base) + len(hashtag) + 1 <= MAX_TWEET_CHARS:
        return f"{base} {hashtag}"
    return base


def create_twitter_thread(content: str, topic: str) -> List[str]:
    """
    Split X copy into at most three posts

    Copy that already fits in one post is returned unchanged. Otherwise
    mid-length sentences (50-200 chars) become their own numbered point and
    shorter sentences are merged until they would pass 200 chars.
    """
    sanitized = sanitize_twitter_output(content)
    if len(sanitized) <= MAX_TWEET_CHARS:
        return [sanitized]

    sentences = [s.strip() for s in SENTENCE_SPLIT_PATTERN.split(sanitized) if s.strip()]
    points: List[str] = []
    current = ''

    def add_point(text: str):
        formatted = format_twitter_point(text, len(points) + 1, topic)
        if len(formatted) <= MAX_TWEET_CHARS:
            points.append(formatted)

    for sentence in sentences:
        if len(points) >= MAX_THREAD_POINTS:
            break
        if MIN_POINT_CHARS <= len(sentence) <= MAX_POINT_CHARS:
            add_point(sentence)
        elif len(current) + len(sentence) + 1 <= MAX_POINT_CHARS:
            current = f"{current} {sentence}".strip()
        else:
            if current:
                add_point(current)
            current = sentence

    if current and len(points) < MAX_THREAD_POINTS:
        add_point(current)

    return points or [sanitized]


def build_thread_parts(content: str, topic: str) -> List[ThreadPart]:
    return [
        ThreadPart(id=str(idx), content=post, character_count=len(post))
        for idx, post in enumerate(create_twitter_thread(content, topic), 1)
    ]
