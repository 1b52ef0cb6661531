"""
Complaint emotion and urgency analysis.

Scores free-text descriptions on four axes (anger, urgency, frustration,
concern) from script-detected language keyword tables plus phrase
detectors, optionally seeded by an external sentiment classifier.
analyze() never raises; failures degrade to a neutral 0.5.
"""
import re
from functools import lru_cache
from typing import Dict, Iterable, Optional

from pydantic import BaseModel, Field

from src.civicstack.analysis import lexicons
from src.civicstack.clients.sentiment import SentimentClient, SentimentResult
from src.civicstack.errors import CollaboratorError
from src.civicstack.models.categories import emotion_multiplier
from src.civicstack.utils.logger import get_logger

logger = get_logger(__name__)

BASELINE_LANGUAGE = "en"

METHOD_AI = "ai-assisted"
METHOD_KEYWORDS = "keyword-only"
METHOD_NO_INPUT = "no-input"
METHOD_DEGRADED = "degraded"

FUSION_WEIGHTS = {"urgency": 0.4, "anger": 0.3, "concern": 0.2, "frustration": 0.1}
KEYWORD_INCREMENT = 0.25

# (first code point, last code point, language); Tamil wins on mixed scripts.
SCRIPT_RANGES = (
    (0x0B80, 0x0BFF, "ta"),
    (0x0900, 0x097F, "hi"),
    (0x0C00, 0x0C7F, "te"),
)


class EmotionScores(BaseModel):
    anger: float = Field(0.0, ge=0, le=1)
    urgency: float = Field(0.0, ge=0, le=1)
    frustration: float = Field(0.0, ge=0, le=1)
    concern: float = Field(0.0, ge=0, le=1)


class EmotionAnalysis(BaseModel):
    """Result of analyzing one complaint description."""

    score: float = Field(..., ge=0, le=1, description="Fused emotion score before category multiplier")
    emotions: EmotionScores
    language: str
    method: str


def _empty() -> Dict[str, float]:
    return {axis: 0.0 for axis in lexicons.EMOTION_AXES}


def detect_language(text: str) -> str:
    """
    Detect language from Unicode script blocks.

    Returns:
        ta, hi, te, or the baseline en
    """
    for low, high, language in SCRIPT_RANGES:
        if any(low <= ord(ch) <= high for ch in text):
            return language
    return BASELINE_LANGUAGE


@lru_cache(maxsize=2048)
def _word_pattern(keyword: str) -> "re.Pattern":
    return re.compile(r"\b" + re.escape(keyword) + r"\b")


def contains(text_lower: str, keyword: str) -> bool:
    """
    Keyword match on lower-cased text.

    ASCII keywords must match whole words ("mad" does not hit "made");
    Indic keywords match as substrings since inflection glues suffixes on.
    """
    keyword = keyword.lower()
    if keyword.isascii():
        return _word_pattern(keyword).search(text_lower) is not None
    return keyword in text_lower


def count_matches(text_lower: str, keywords: Iterable[str]) -> int:
    return sum(1 for keyword in keywords if contains(text_lower, keyword))


def keyword_scores(text: str, language: str) -> Dict[str, float]:
    """
    Per-axis keyword score: +0.25 per matched keyword, capped at 1.

    Tamil complaints that match nothing still get a baseline concern 0.3 /
    urgency 0.2; the lexicon misses a lot of colloquial Tamil.
    """
    table = lexicons.EMOTION_KEYWORDS.get(language, lexicons.EMOTION_KEYWORDS[BASELINE_LANGUAGE])
    text_lower = text.lower()
    emotions = {
        axis: min(KEYWORD_INCREMENT * count_matches(text_lower, table.get(axis, [])), 1.0)
        for axis in lexicons.EMOTION_AXES
    }

    if language == "ta" and len(text.strip()) > 10 and not any(emotions.values()):
        emotions["concern"] = 0.3
        emotions["urgency"] = 0.2
    return emotions


def detect_urgency(text: str) -> float:
    text_lower = text.lower()
    score = (
        0.15 * count_matches(text_lower, lexicons.URGENCY_WORDS)
        + 0.3 * count_matches(text_lower, lexicons.CRITICAL_HEALTH_PHRASES)
        + 0.25 * count_matches(text_lower, lexicons.SAFETY_PHRASES)
    )
    return min(score, 1.0)


def detect_concern(text: str) -> float:
    return min(0.3 * count_matches(text.lower(), lexicons.CONCERN_INDICATORS), 1.0)


def detect_anger(text: str) -> float:
    return min(0.4 * count_matches(text.lower(), lexicons.ANGER_INDICATORS), 1.0)


def detect_safety(text: str) -> float:
    """Safety boost, capped at 0.15."""
    text_lower = text.lower()
    boost = (
        0.08 * count_matches(text_lower, lexicons.CRITICAL_SAFETY_PHRASES)
        + 0.05 * count_matches(text_lower, lexicons.VULNERABLE_GROUPS)
        + 0.03 * count_matches(text_lower, lexicons.TIME_OF_DAY_WORDS)
    )
    return min(boost, 0.15)


def local_scores(text: str, language: str) -> Dict[str, float]:
    """
    Keyword scores with detector boosts layered on by max, not sum.
    """
    emotions = keyword_scores(text, language)
    emotions["urgency"] = max(emotions["urgency"], detect_urgency(text))
    emotions["concern"] = max(emotions["concern"], detect_concern(text), detect_safety(text))
    emotions["anger"] = max(emotions["anger"], detect_anger(text))
    return emotions


def sentiment_scores(sentiment: SentimentResult, text: str, language: str) -> Dict[str, float]:
    """
    Seed the emotion axes from a classifier label.

    negative -> concern + frustration (+ anger when strongly negative),
    positive -> residual urgency only, neutral -> half-weighted urgency.
    """
    emotions = _empty()
    boost = detect_urgency(text)
    s = sentiment.score

    if sentiment.label == "negative":
        emotions["concern"] = s * 0.9
        emotions["frustration"] = s * 0.7
        emotions["urgency"] = min(s * 0.6 + boost, 1.0)
        if s > 0.7:
            emotions["anger"] = s * 0.5
    elif sentiment.label == "positive":
        emotions["urgency"] = boost
        # Hindi and Tamil complaints are routinely misread as positive
        if language in ("hi", "ta"):
            emotions["concern"] = max(0.3, boost)
            emotions["urgency"] = max(0.2, boost)
    else:
        emotions["urgency"] = boost
        emotions["concern"] = boost * 0.5
    return emotions


def fuse_emotions(emotions: Dict[str, float]) -> float:
    """
    0.4 urgency + 0.3 anger + 0.2 concern + 0.1 frustration, amplified by
    1.2 when concern exceeds 0.3. Always within [0, 1].
    """
    score = sum(emotions.get(axis, 0.0) * weight for axis, weight in FUSION_WEIGHTS.items())
    if emotions.get("concern", 0.0) > 0.3:
        score *= 1.2
    return max(0.0, min(score, 1.0))


def apply_category_multiplier(score: float, category: Optional[str]) -> float:
    """Scale a fused score by the category severity multiplier, capped at 1."""
    return max(0.0, min(score * emotion_multiplier(category), 1.0))


def detect_category(text: str) -> str:
    """
    Guess the complaint category from the description.

    Returns:
        Category with the most keyword hits, "other" when none match
    """
    text_lower = (text or "").lower()
    best, best_matches = "other", 0
    for category, keywords in lexicons.CATEGORY_PATTERNS.items():
        matches = count_matches(text_lower, keywords)
        if matches > best_matches:
            best, best_matches = category, matches
    return best


class EmotionAnalyzer:
    """
    Emotion/urgency analyzer with an optional sentiment classifier.

    Example:
        analyzer = EmotionAnalyzer(SentimentClient())
        result = analyzer.analyze("Urgent! Sewage overflowing near the school")
        adjusted = apply_category_multiplier(result.score, "sewage_overflow")
    """

    def __init__(self, sentiment_client: Optional[SentimentClient] = None):
        self.sentiment_client = sentiment_client

    def analyze(self, text: Optional[str], category: Optional[str] = None) -> EmotionAnalysis:
        """
        Analyze a complaint description.

        Args:
            text: Free-text description
            category: Complaint category, only used for logging here

        Returns:
            EmotionAnalysis with the fused score in [0, 1]
        """
        if not text or not text.strip():
            return EmotionAnalysis(
                score=0.0,
                emotions=EmotionScores(),
                language=BASELINE_LANGUAGE,
                method=METHOD_NO_INPUT,
            )

        try:
            language = detect_language(text)
            emotions, method = self._score(text, language)
            score = fuse_emotions(emotions)
        except Exception as e:
            logger.warning(
                "emotion_analysis_degraded",
                error=str(e),
                error_type=type(e).__name__
            )
            return EmotionAnalysis(
                score=0.5,
                emotions=EmotionScores(),
                language="unknown",
                method=METHOD_DEGRADED,
            )

        result = EmotionAnalysis(
            score=round(score, 4),
            emotions=EmotionScores(**{k: round(min(max(v, 0.0), 1.0), 4) for k, v in emotions.items()}),
            language=language,
            method=method,
        )
        logger.debug(
            "emotion_analyzed",
            language=language,
            method=method,
            score=result.score,
            category=category
        )
        return result

    def _score(self, text: str, language: str):
        emotions = local_scores(text, language)

        # Keyword tables beat the classifier on Tamil
        if language == "ta" or not self._sentiment_available():
            return emotions, METHOD_KEYWORDS

        try:
            sentiment = self.sentiment_client.classify(text)
        except CollaboratorError as e:
            logger.warning("sentiment_unavailable_using_keywords", error=e.message)
            return emotions, METHOD_KEYWORDS

        seeded = sentiment_scores(sentiment, text, language)
        merged = {axis: max(seeded[axis], emotions[axis]) for axis in lexicons.EMOTION_AXES}
        return merged, METHOD_AI

    def _sentiment_available(self) -> bool:
        return self.sentiment_client is not None and self.sentiment_client.is_available()
