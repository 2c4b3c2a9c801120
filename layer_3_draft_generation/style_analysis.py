"""
Voice analysis over a user's style samples

Signature vocabulary comes from Gemini (with a phrase-list fallback); tone,
formatting habits and phrase patterns are rule-based.
"""
import re
from collections import Counter
from typing import Any, Dict, List, Optional, Sequence

from utils.llm_client import LLMClient
from utils.logger import get_logger

logger = get_logger(__name__)

VOCABULARY_CATEGORIES = ('business', 'action', 'emotion', 'casual', 'technical', 'pattern', 'phrase')
MAX_VOCABULARY_ITEMS = 25
MAX_PHRASE_PATTERNS = 15
MAX_FREQUENCY_WORDS = 20
MAX_ANALYSIS_CHARS = 4000

BASIC_STOP_WORDS = frozenset([
    'the', 'and', 'for', 'are', 'but', 'not', 'you', 'all', 'can', 'had', 'her', 'was',
    'one', 'our', 'out', 'has', 'his', 'how', 'its', 'may', 'new', 'now', 'old', 'see',
    'two', 'who', 'did', 'get', 'let', 'put', 'say', 'she', 'too', 'use', 'that', 'with',
    'have', 'this', 'will', 'your', 'from', 'they', 'been', 'were', 'what', 'when', 'than',
    'them', 'then', 'there', 'their', 'about', 'would', 'could', 'should', 'which', 'into',
])

FALLBACK_PHRASES = [
    'game changer', 'next level', 'on point', 'spot on',
    'think outside the box', 'break the mold', 'raise the bar',
    'high impact', 'deep dive', 'quick win', 'big picture',
    'hands on', 'cutting edge', 'state of the art', 'best practice',
]

PHRASE_LIBRARY = {
    'idiom': (
        'Common idiomatic expressions',
        ['game changer', 'next level', 'on point', 'spot on', 'hit the nail on the head',
         'think outside the box', 'break the mold', 'raise the bar', 'set the tone',
         'take it to the next level', 'bring your a game', 'crush it', 'nail it',
         'knock it out of the park'],
    ),
    'collocation': (
        'Common word combinations',
        ['high impact', 'deep dive', 'quick win', 'big picture', 'real time',
         'hands on', 'cutting edge', 'state of the art', 'best practice',
         'key insight', 'core value', 'strategic thinking', 'creative solution',
         'innovative approach', 'transformative change', 'breakthrough moment'],
    ),
    'transition': (
        'Transitional phrases',
        ['on the other hand', 'in addition', 'furthermore', 'moreover',
         'however', 'nevertheless', 'despite this', 'in contrast',
         'as a result', 'therefore', 'consequently', 'for this reason',
         'to illustrate', 'for example', 'specifically', 'in particular'],
    ),
    'emphasis': (
        'Emphasis words',
        ['absolutely', 'definitely', 'certainly', 'without a doubt',
         'clearly', 'obviously', 'evidently', 'undoubtedly',
         'remarkably', 'notably', 'significantly', 'substantially',
         'dramatically', 'exponentially', 'radically', 'fundamentally'],
    ),
}

# (name, color, description, [(keywords, points), ...])
TONE_RULES = [
    ("Professional", "#3B82F6", "Clear, authoritative communication with business focus",
     [(('strategy', 'business', 'professional'), 20), (('analysis', 'research', 'data'), 15)]),
    ("Inspirational", "#8B5CF6", "Motivational language that encourages and uplifts others",
     [(('inspire', 'motivate', 'empower'), 25), (('dream', 'vision', 'purpose'), 20)]),
    ("Casual", "#10B981", "Relaxed, conversational tone with personal touches",
     [(('hey', 'cool', 'awesome'), 20), (('you know', 'basically', 'actually'), 15)]),
    ("Technical", "#F59E0B", "Detailed explanations with industry-specific terminology",
     [(('algorithm', 'api', 'framework'), 25), (('integration', 'optimization', 'methodology'), 20)]),
    ("Humorous", "#EF4444", "Light-hearted content with witty observations",
     [(('funny', 'hilarious', 'joke'), 25), (('lol', 'haha', 'witty'), 20)]),
]


def analyze_tone(samples: Sequence[str]) -> List[Dict[str, Any]]:
    """Keyword-scored tone mix; percentages sum to roughly 100 (0 for no samples)"""
    text = " ".join(samples).lower()
    scores = []
    for name, color, description, rules in TONE_RULES:
        score = 0
        if text:
            score = sum(points for keywords, points in rules if any(kw in text for kw in keywords))
        scores.append((name, color, description, score))

    total = max(sum(score for *_, score in scores), 1)
    return [
        {"name": name, "percentage": round(score / total * 100), "color": color, "description": description}
        for name, color, description, score in scores
    ]


def extract_formatting_habits(samples: Sequence[str]) -> List[str]:
    habits: List[str] = []
    for text in samples:
        found = []
        if '**' in text or '__' in text:
            found.append('Uses bold/emphasis formatting')
        if '- ' in text or '• ' in text:
            found.append('Uses bullet points and lists')
        if text.count('?') >= 2:
            found.append('Frequently asks questions')
        if text.count('!') >= 2:
            found.append('Uses exclamation marks for emphasis')
        if '...' in text or '…' in text:
            found.append('Uses ellipsis for dramatic effect')
        if text.count('"') >= 2:
            found.append('Uses quotes and citations')
        if '@' in text or '#' in text:
            found.append('Uses mentions and hashtags')
        if '→' in text or '->' in text:
            found.append('Uses arrows and directional indicators')
        habits.extend(found)
    return list(dict.fromkeys(habits))


def extract_phrase_patterns(samples: Sequence[str]) -> List[Dict[str, Any]]:
    """Known idioms, collocations, transitions and emphasis words, most frequent first"""
    counts: Counter = Counter()
    kinds: Dict[str, tuple] = {}
    for text in samples:
        lowered = text.lower()
        for pattern_type, (context, phrases) in PHRASE_LIBRARY.items():
            for phrase in phrases:
                if phrase in lowered:
                    counts[phrase] += 1
                    kinds.setdefault(phrase, (pattern_type, context))

    return [
        {"text": phrase, "type": kinds[phrase][0], "frequency": frequency, "context": kinds[phrase][1]}
        for phrase, frequency in counts.most_common(MAX_PHRASE_PATTERNS)
    ]


def fallback_vocabulary(content: str) -> List[Dict[str, Any]]:
    lowered = content.lower()
    return [
        {"text": phrase, "frequency": 1, "category": "phrase", "confidence": 0.5,
         "context": "Fallback pattern detection"}
        for phrase in FALLBACK_PHRASES if phrase in lowered
    ]


def word_frequency_vocabulary(content: str) -> List[Dict[str, Any]]:
    """Most used words, for samples with none of the known phrases"""
    words = re.sub(r'[^\w\s]', ' ', content.lower()).split()
    counts = Counter(word for word in words if len(word) >= 3 and word not in BASIC_STOP_WORDS)
    return [
        {"text": word, "frequency": min(count, 10), "category": "business", "confidence": 0.5,
         "context": "Rule-based frequency analysis"}
        for word, count in counts.most_common(MAX_FREQUENCY_WORDS)
    ]


def validate_vocabulary(items: Any) -> List[Dict[str, Any]]:
    """Coerce model output into clean vocabulary entries (max 25)"""
    if not isinstance(items, list):
        return []
    cleaned = []
    for item in items:
        if not isinstance(item, dict) or not isinstance(item.get('text'), str):
            continue
        text = item['text'].strip()
        if not text:
            continue
        try:
            frequency = int(float(item.get('frequency') or 1))
        except (TypeError, ValueError):
            frequency = 1
        try:
            confidence = float(item.get('confidence') if item.get('confidence') is not None else 0.7)
        except (TypeError, ValueError):
            confidence = 0.7
        category = item.get('category')
        cleaned.append({
            "text": text,
            "frequency": max(1, min(10, frequency)),
            "category": category if category in VOCABULARY_CATEGORIES else 'phrase',
            "confidence": max(0.0, min(1.0, confidence)),
            "context": str(item.get('context') or '').strip() or 'Identified through AI analysis',
        })
    return cleaned[:MAX_VOCABULARY_ITEMS]


class VoiceAnalyzer:
    """Builds the style-board summary of a user's voice"""

    def __init__(self, llm_client: Optional[LLMClient] = None):
        self._llm_client = llm_client

    @property
    def llm_client(self) -> LLMClient:
        if self._llm_client is None:
            self._llm_client = LLMClient()
        return self._llm_client

    def _build_vocabulary_prompt(self, content: str, sample_count: int) -> str:
        return f"""You are an expert content analyst identifying signature vocabulary, phrases and writing patterns.

RULES:
- Focus on PHRASES, PATTERNS and COLLOCATIONS, not individual words
- AVOID pronouns, common nouns, place names or generic things
- Look for idiomatic expressions, jargon, creative phrases, transitions and emphasis patterns
- Return only vocabulary that truly represents the author's style

Content ({sample_count} samples):
{content[:MAX_ANALYSIS_CHARS]}

Return a JSON array where each item is:
{{
  "text": "the phrase or pattern",
  "frequency": 1-10,
  "category": "business|action|emotion|casual|technical|pattern|phrase",
  "confidence": 0.0-1.0,
  "context": "why this is signature vocabulary"
}}

Return ONLY the JSON array, no other text."""

    def extract_vocabulary(self, samples: Sequence[str]) -> List[Dict[str, Any]]:
        content = " ".join(samples).strip()
        if not content:
            return []
        try:
            parsed = self.llm_client.generate_json(self._build_vocabulary_prompt(content, len(samples)), temperature=0.3)
            vocabulary = validate_vocabulary(parsed)
            if vocabulary:
                return vocabulary
            logger.warning("Vocabulary analysis returned nothing usable, using fallback phrases")
        except Exception as e:
            logger.error(f"Vocabulary analysis failed, falling back to rule-based: {e}")
        return fallback_vocabulary(content) or word_frequency_vocabulary(content)

    def analyze(self, samples: Sequence[str]) -> Dict[str, Any]:
        """Full voice profile for the style board"""
        return {
            "sample_count": len(samples),
            "vocabulary": self.extract_vocabulary(samples),
            "tone": analyze_tone(samples),
            "formatting_habits": extract_formatting_habits(samples),
            "phrase_patterns": extract_phrase_patterns(samples),
        }
