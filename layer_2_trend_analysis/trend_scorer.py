"""
Heuristic trend scorer

Finds candidate topics in ingested content (hashtags plus frequent words)
and gives each one a bounded momentum score from engagement, mention
velocity and reach. Pure and deterministic: no I/O, no randomness.
"""
import re
from collections import Counter
from typing import Iterable, List, Sequence

from models.content_item import IngestedContentItem
from models.trend import TrendMetrics, TrendingTopicAnalysis

SCORING_VERSION = "heuristic-v1"

HASHTAG_PATTERN = re.compile(r"#(\w+)")

STOP_WORDS = frozenset([
    'the', 'and', 'or', 'but', 'in', 'on', 'at', 'to', 'for', 'of', 'with', 'by',
    'is', 'are', 'was', 'were', 'be', 'been', 'have', 'has', 'had', 'do', 'does',
    'did', 'will', 'would', 'could', 'should', 'may', 'might', 'can', 'this',
    'that', 'these', 'those',
])

MIN_WORD_LENGTH = 4  # words must be longer than 3 characters
MIN_WORD_COUNT = 3  # and appear more than twice
MAX_FREQUENT_WORDS = 5

# Momentum weights
ENGAGEMENT_WEIGHT = 0.3
VELOCITY_WEIGHT = 0.25
REACH_WEIGHT = 0.2
VELOCITY_BONUS_WEIGHT = 0.15
BASELINE_WEIGHT = 0.1
BASELINE_SCORE = 50

PLACEHOLDER_SENTIMENT = 50.0
PLACEHOLDER_DURATION = 1.0

SCORE_MIN = 0.0
SCORE_MAX = 100.0


def clamp_score(value: float) -> float:
    """Clamp a score into [0, 100]"""
    return max(SCORE_MIN, min(float(value), SCORE_MAX))


class TrendScorer:
    """Topic extraction and momentum scoring over a batch of content items"""

    def extract_topics(self, items: Sequence[IngestedContentItem]) -> List[str]:
        """
        Candidate topics: hashtags first, then the most frequent words.

        Hashtags and words are lower-cased so the same topic written as
        #AIagents and #aiagents is reported once. Ties in word frequency
        keep first-seen order.
        """
        if not items:
            return []

        all_text = " ".join(item.content or "" for item in items)
        hashtags = [tag.lower() for tag in HASHTAG_PATTERN.findall(all_text)]

        word_counts: Counter = Counter(
            word for word in all_text.lower().split()
            if len(word) >= MIN_WORD_LENGTH and word not in STOP_WORDS
        )
        frequent = [word for word, count in word_counts.items() if count >= MIN_WORD_COUNT]
        frequent = sorted(frequent, key=lambda word: word_counts[word], reverse=True)[:MAX_FREQUENT_WORDS]

        return list(dict.fromkeys(hashtags + frequent))

    def score_topic(self, topic: str, items: Sequence[IngestedContentItem]) -> TrendingTopicAnalysis:
        """Score one topic against the items that mention it (case-insensitive)"""
        needle = topic.lower()
        matching = [item for item in items if needle in (item.content or "").lower()]

        mentions = len(matching)
        total_engagement = sum(item.engagement_metrics.interactions for item in matching)
        avg_engagement = total_engagement / max(mentions, 1)
        reach = sum(item.engagement_metrics.views for item in matching)

        momentum = (
            avg_engagement * ENGAGEMENT_WEIGHT
            + mentions * 10 * VELOCITY_WEIGHT
            + reach / 1000 * REACH_WEIGHT
            + mentions * 2 * VELOCITY_BONUS_WEIGHT
            + BASELINE_SCORE * BASELINE_WEIGHT
        )

        metrics = TrendMetrics(
            engagement_rate=clamp_score(avg_engagement / 100),
            velocity_score=clamp_score(mentions * 10),
            reach_multiplier=clamp_score(reach / 1000),
            mentions_count=mentions,
            sentiment_score=PLACEHOLDER_SENTIMENT,
            trending_duration=PLACEHOLDER_DURATION,
        )

        return TrendingTopicAnalysis(
            topic=topic,
            summary=f"Trending topic identified from {mentions} content pieces",
            momentum_score=clamp_score(momentum),
            metrics=metrics,
            contributing_sources=list(dict.fromkeys(item.source_id for item in matching)),
            source_type="mixed",
            source_ref=topic,
        )

    def analyze(self, items: Iterable[IngestedContentItem]) -> List[TrendingTopicAnalysis]:
        """
        Score every extracted topic, highest momentum first.

        Empty input returns an empty list. Topics no item contains are
        dropped, so every analysis has at least one mention.
        """
        items = list(items)
        analyses = []
        for topic in self.extract_topics(items):
            analysis = self.score_topic(topic, items)
            if analysis.metrics.mentions_count > 0:
                analyses.append(analysis)
        return sorted(analyses, key=lambda analysis: analysis.momentum_score, reverse=True)


def analyze_trending_topics(items: Iterable[IngestedContentItem]) -> List[TrendingTopicAnalysis]:
    """Module-level shortcut used by the pipeline and dashboard"""
    return TrendScorer().analyze(items)
