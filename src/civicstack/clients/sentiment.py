"""
Sentiment Classifier Client

Best-effort text sentiment from the Hugging Face inference API. Models are
tried as an explicit ordered list of named strategies; each gets the same
timeout and the first success wins.
"""
from typing import Any, List, Optional

import requests
from pydantic import BaseModel, Field, ValidationError

from config.settings import settings
from src.civicstack.errors import CollaboratorError
from src.civicstack.utils.logger import get_logger

logger = get_logger(__name__)

NEGATIVE_LABELS = {"negative", "label_0", "1 star", "2 stars"}
NEUTRAL_LABELS = {"neutral", "label_1", "3 stars"}
POSITIVE_LABELS = {"positive", "label_2", "4 stars", "5 stars"}


class SentimentResult(BaseModel):
    """Uniform classifier output regardless of model."""

    label: str = Field(..., description="negative, neutral or positive")
    score: float = Field(..., ge=0, le=1)
    model: str


def normalize_label(raw_label: str) -> Optional[str]:
    """
    Map model-specific labels onto negative / neutral / positive.

    Returns:
        Normalized label, or None when unrecognized
    """
    label = raw_label.strip().lower()
    if label in NEGATIVE_LABELS or "negative" in label:
        return "negative"
    if label in NEUTRAL_LABELS or "neutral" in label:
        return "neutral"
    if label in POSITIVE_LABELS or "positive" in label:
        return "positive"
    return None


def pick_top_prediction(payload: Any) -> Optional[dict]:
    """
    Extract the highest scoring {label, score} from an inference response.

    Accepts [[{...}, ...]], [{...}, ...] and {...}.
    """
    candidates: List[dict] = []
    if isinstance(payload, dict) and "label" in payload:
        candidates = [payload]
    elif isinstance(payload, list) and payload:
        first = payload[0]
        if isinstance(first, list):
            candidates = [c for c in first if isinstance(c, dict)]
        else:
            candidates = [c for c in payload if isinstance(c, dict)]

    candidates = [c for c in candidates if "label" in c and "score" in c]
    if not candidates:
        return None
    return max(candidates, key=lambda c: float(c["score"]))


class HuggingFaceModelStrategy:
    """One hosted model endpoint."""

    def __init__(self, url: str, token: str, session: requests.Session, timeout: int):
        self.url = url
        self.name = url.rstrip("/").split("/")[-1]
        self.token = token
        self.session = session
        self.timeout = timeout

    def classify(self, text: str) -> SentimentResult:
        try:
            response = self.session.post(
                self.url,
                json={"inputs": text},
                headers={"Authorization": f"Bearer {self.token}"},
                timeout=self.timeout,
            )
            response.raise_for_status()
            payload = response.json()
        except requests.RequestException as e:
            raise CollaboratorError("sentiment", f"{self.name}: {e}") from e
        except ValueError as e:
            raise CollaboratorError("sentiment", f"{self.name}: invalid JSON response") from e

        try:
            prediction = pick_top_prediction(payload)
            label = normalize_label(str(prediction["label"])) if prediction else None
            if label is None:
                raise CollaboratorError("sentiment", f"{self.name}: unrecognized response")
            return SentimentResult(
                label=label,
                score=min(1.0, max(0.0, float(prediction["score"]))),
                model=self.name,
            )
        except (TypeError, ValueError, ValidationError) as e:
            raise CollaboratorError("sentiment", f"{self.name}: malformed prediction ({e})") from e


class SentimentClient:
    """
    Ordered fallback over the configured sentiment models.
    """

    def __init__(
        self,
        token: Optional[str] = None,
        model_urls: Optional[List[str]] = None,
        timeout: Optional[int] = None,
    ):
        self.token = token if token is not None else settings.huggingface_api_token
        self.timeout = timeout or settings.sentiment_timeout_seconds
        self.session = requests.Session()
        urls = model_urls if model_urls is not None else settings.sentiment_model_urls
        self.strategies = [
            HuggingFaceModelStrategy(url, self.token or "", self.session, self.timeout)
            for url in urls
        ]
        logger.info(
            "sentiment_client_initialized",
            available=self.is_available(),
            strategies=[s.name for s in self.strategies]
        )

    def is_available(self) -> bool:
        """Token must look like a real Hugging Face token."""
        return bool(
            self.token
            and self.token.startswith("hf_")
            and len(self.token) > 20
            and self.strategies
        )

    def classify(self, text: str) -> SentimentResult:
        """
        Classify text with the first strategy that succeeds.

        Raises:
            CollaboratorError: Unavailable, or every strategy failed
        """
        if not self.is_available():
            raise CollaboratorError("sentiment", "no valid API token configured")

        last_error: Optional[CollaboratorError] = None
        for index, strategy in enumerate(self.strategies, start=1):
            try:
                result = strategy.classify(text)
                logger.debug("sentiment_strategy_succeeded", model=strategy.name, label=result.label)
                return result
            except CollaboratorError as e:
                last_error = e
                logger.warning(
                    "sentiment_strategy_failed",
                    model=strategy.name,
                    attempt=index,
                    total=len(self.strategies),
                    error=e.message
                )

        raise CollaboratorError("sentiment", f"all models failed: {last_error.message}")
