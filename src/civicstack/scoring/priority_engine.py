"""
Priority fusion engine.

Combines infrastructure proximity, image-validation confidence, text
emotion, complaint age, community votes and workflow status into one
bounded score, a discrete level and a readable justification.

Paths, best first:
    comprehensive  (0.55 infra + 0.20 image + 0.10 emotion + 0.10 age + 0.05 votes) x status
    weighted       0.6 location + 0.4 image
    category       static per-category default, tagged [degraded]

fuse() never raises.
"""
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from config.settings import settings
from src.civicstack.analysis.emotion import EmotionAnalysis, EmotionAnalyzer, apply_category_multiplier
from src.civicstack.db.utils import days_since
from src.civicstack.models.complaint import ImageValidation, LocationData
from src.civicstack.models.categories import category_importance, emotion_multiplier, fallback_priority
from src.civicstack.scoring.location_priority import LocationPriority, LocationPriorityEvaluator
from src.civicstack.utils.logger import get_logger

logger = get_logger(__name__)

METHOD_COMPREHENSIVE = "comprehensive"
METHOD_WEIGHTED = "weighted"
METHOD_CATEGORY_DEFAULT = "category-default"

COMPREHENSIVE_WEIGHTS = {
    "infrastructure": 0.55,
    "image": 0.20,
    "emotion": 0.10,
    "age": 0.10,
    "vote": 0.05,
}
WEIGHTED_WEIGHTS = {"location": 0.6, "image": 0.4}

STATUS_MULTIPLIERS = {
    "pending": 1.0,
    "in_progress": 0.9,
    "resolved": 0.0,
    "cancelled": 0.0,
}

VOTES_FOR_FULL_SCORE = 20
DAYS_FOR_FULL_AGE = 60


class PriorityLevel(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class PriorityBreakdown(BaseModel):
    location_score: float = 0.0
    image_score: float = 0.0
    emotion_score: float = 0.0
    category_multiplier: float = 1.0
    adjusted_emotion_score: float = 0.0
    age_score: float = 0.5
    vote_score: float = 0.0
    status_multiplier: float = 1.0


class PriorityAnalysis(BaseModel):
    """Ephemeral scoring result; recomputed on every request."""

    total_score: float = Field(..., ge=0, le=1)
    priority_level: PriorityLevel
    breakdown: PriorityBreakdown
    reasoning: str
    method: str
    degraded: bool = False
    facilities_count: int = 0
    emotion: Optional[EmotionAnalysis] = None
    location: Optional[LocationPriority] = None


def level_for(score: float) -> PriorityLevel:
    if score >= 0.8:
        return PriorityLevel.CRITICAL
    if score >= 0.6:
        return PriorityLevel.HIGH
    if score >= 0.4:
        return PriorityLevel.MEDIUM
    return PriorityLevel.LOW


def to_storage_score(value: Optional[float]) -> Optional[float]:
    """
    Round half-up to 2 decimals and clamp into [0, ceiling].

    Numeric(3, 2) columns overflow at 10.00.
    """
    if value is None:
        return None
    ceiling = Decimal(str(settings.priority_score_ceiling))
    rounded = Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return float(min(max(rounded, Decimal("0")), ceiling))


def age_score(days_open: float) -> float:
    return min(1.0, 0.5 + max(days_open, 0.0) / DAYS_FOR_FULL_AGE)


def vote_score(vote_count: int) -> float:
    return min(1.0, max(vote_count or 0, 0) / VOTES_FOR_FULL_SCORE)


def image_score(image_validation: Optional[ImageValidation]) -> float:
    """Validation confidence; a photo rejected as not a civic issue scores 0."""
    if image_validation is None or not image_validation.is_valid_civic_issue:
        return 0.0
    return min(max(image_validation.confidence, 0.0), 1.0)


def next_steps(level: PriorityLevel) -> List[str]:
    """Citizen-facing guidance returned with a submission."""
    if level == PriorityLevel.CRITICAL:
        return [
            "Your complaint has been marked as CRITICAL priority.",
            "An urgent response team will be notified immediately.",
            "Expect a response within 24 hours.",
            "You can track real-time updates in your dashboard.",
        ]
    if level == PriorityLevel.HIGH:
        return [
            "Your complaint has been marked as HIGH priority.",
            "It will be reviewed by municipal staff within 48 hours.",
            "You will receive updates when your complaint status changes.",
            "Local authorities have been notified about this issue.",
        ]
    if level == PriorityLevel.MEDIUM:
        return [
            "Your complaint has been marked as MEDIUM priority.",
            "It will be assessed within the next 3-5 business days.",
            "Similar complaints in your area will be addressed together for efficiency.",
            "Check back for status updates.",
        ]
    return [
        "Your complaint has been received and will be reviewed shortly.",
        "You can track the status of your complaint in the dashboard.",
        "A citizen representative will be assigned to your case.",
    ]


class PriorityFusionEngine:
    """
    Fuses the scoring signals for a complaint.

    Example:
        engine = PriorityFusionEngine(LocationPriorityEvaluator(), EmotionAnalyzer())
        analysis = engine.fuse(None, LocationData(latitude=13.08, longitude=80.27), "flooding", "Road under water")
    """

    def __init__(
        self,
        location_evaluator: LocationPriorityEvaluator,
        emotion_analyzer: EmotionAnalyzer,
        method: Optional[str] = None,
    ):
        self.location_evaluator = location_evaluator
        self.emotion_analyzer = emotion_analyzer
        self.method = method or settings.priority_method

    def fuse(
        self,
        image_validation: Optional[ImageValidation],
        location_data: Optional[LocationData],
        category: str,
        description: Optional[str],
        created_at=None,
        vote_count: int = 0,
        status: str = "pending",
    ) -> PriorityAnalysis:
        """
        Score a complaint.

        Args:
            image_validation: Vision service verdict, if any
            location_data: Reported location, if any
            category: Complaint category
            description: Complaint text
            created_at: Creation time (None for a new submission)
            vote_count: Current upvotes
            status: Current complaint status

        Returns:
            PriorityAnalysis, always bounded
        """
        try:
            emotion = self.emotion_analyzer.analyze(description, category)
            has_coordinates = location_data is not None and location_data.has_coordinates()

            if has_coordinates and self.method == METHOD_COMPREHENSIVE:
                try:
                    return self._comprehensive(
                        image_validation, location_data, category, emotion,
                        created_at, vote_count, status,
                    )
                except Exception as e:
                    logger.warning(
                        "comprehensive_priority_failed_using_weighted",
                        category=category,
                        error=str(e),
                        error_type=type(e).__name__
                    )

            return self._weighted(image_validation, location_data, category, emotion)

        except Exception as e:
            logger.warning(
                "priority_fusion_degraded",
                category=category,
                error=str(e),
                error_type=type(e).__name__
            )
            return self._category_default(image_validation, category)

    def recalculate(self, complaint) -> PriorityAnalysis:
        """
        Rescore a stored complaint with its current age, votes and status.
        """
        location = None
        if complaint.location_latitude is not None and complaint.location_longitude is not None:
            location = LocationData(
                latitude=complaint.location_latitude,
                longitude=complaint.location_longitude,
                address=complaint.location_address,
            )
        image_validation = None
        if complaint.image_confidence is not None:
            image_validation = ImageValidation(
                is_valid_civic_issue=complaint.verification_status == "verified",
                confidence=complaint.image_confidence,
            )
        return self.fuse(
            image_validation,
            location,
            complaint.category,
            complaint.description,
            created_at=complaint.created_at,
            vote_count=complaint.vote_count or 0,
            status=complaint.status,
        )

    def _comprehensive(
        self,
        image_validation: Optional[ImageValidation],
        location_data: LocationData,
        category: str,
        emotion: EmotionAnalysis,
        created_at,
        vote_count: int,
        status: str,
    ) -> PriorityAnalysis:
        location = self.location_evaluator.evaluate(
            location_data.latitude, location_data.longitude, category, location_data
        )
        multiplier = emotion_multiplier(category)
        breakdown = PriorityBreakdown(
            location_score=location.score,
            image_score=image_score(image_validation),
            emotion_score=emotion.score,
            category_multiplier=multiplier,
            adjusted_emotion_score=apply_category_multiplier(emotion.score, category),
            age_score=age_score(days_since(created_at)),
            vote_score=vote_score(vote_count),
            status_multiplier=STATUS_MULTIPLIERS.get(status, 1.0),
        )

        w = COMPREHENSIVE_WEIGHTS
        total = (
            w["infrastructure"] * breakdown.location_score
            + w["image"] * breakdown.image_score
            + w["emotion"] * breakdown.adjusted_emotion_score
            + w["age"] * breakdown.age_score
            + w["vote"] * breakdown.vote_score
        ) * breakdown.status_multiplier

        return self._build(
            total, breakdown, METHOD_COMPREHENSIVE, category,
            image_validation, emotion, location,
        )

    def _weighted(
        self,
        image_validation: Optional[ImageValidation],
        location_data: Optional[LocationData],
        category: str,
        emotion: EmotionAnalysis,
    ) -> PriorityAnalysis:
        location = None
        if location_data is not None and location_data.has_coordinates():
            location = self.location_evaluator.evaluate(
                location_data.latitude, location_data.longitude, category, location_data
            )

        breakdown = PriorityBreakdown(
            location_score=location.score if location else 0.0,
            image_score=image_score(image_validation),
            emotion_score=emotion.score,
            category_multiplier=emotion_multiplier(category),
            adjusted_emotion_score=apply_category_multiplier(emotion.score, category),
        )
        total = (
            WEIGHTED_WEIGHTS["location"] * breakdown.location_score
            + WEIGHTED_WEIGHTS["image"] * breakdown.image_score
        )
        return self._build(
            total, breakdown, METHOD_WEIGHTED, category,
            image_validation, emotion, location,
        )

    def _category_default(self, image_validation: Optional[ImageValidation], category: str) -> PriorityAnalysis:
        total = fallback_priority(category)
        level = level_for(total)
        return PriorityAnalysis(
            total_score=total,
            priority_level=level,
            breakdown=PriorityBreakdown(image_score=image_score(image_validation)),
            reasoning=(
                f"[degraded] {level.value} priority assigned based on complaint type "
                f"({category}). Location analysis unavailable."
            ),
            method=METHOD_CATEGORY_DEFAULT,
            degraded=True,
        )

    def _build(
        self,
        total: float,
        breakdown: PriorityBreakdown,
        method: str,
        category: str,
        image_validation: Optional[ImageValidation],
        emotion: EmotionAnalysis,
        location: Optional[LocationPriority],
    ) -> PriorityAnalysis:
        total = round(min(max(total, 0.0), 1.0), 4)
        level = level_for(total)
        degraded = bool(location and location.degraded) or emotion.method == "degraded"

        analysis = PriorityAnalysis(
            total_score=total,
            priority_level=level,
            breakdown=breakdown,
            reasoning=self._reasoning(level, breakdown, category, image_validation, emotion, location),
            method=method,
            degraded=degraded,
            facilities_count=location.facilities_count if location else 0,
            emotion=emotion,
            location=location,
        )
        logger.info(
            "priority_fused",
            method=method,
            category=category,
            total_score=total,
            priority_level=level.value,
            degraded=degraded
        )
        return analysis

    def _reasoning(
        self,
        level: PriorityLevel,
        breakdown: PriorityBreakdown,
        category: str,
        image_validation: Optional[ImageValidation],
        emotion: EmotionAnalysis,
        location: Optional[LocationPriority],
    ) -> str:
        parts = [f"{level.value} priority assigned."]

        if location is not None:
            parts.append(f"Location analysis: {breakdown.location_score * 100:.1f}% ({location.reasoning})")
        else:
            parts.append("No coordinates provided.")

        if breakdown.image_score > 0:
            note = f"Image validation: {breakdown.image_score * 100:.1f}%"
            if image_validation is not None and image_validation.is_valid_civic_issue:
                note += " (valid civic issue detected)"
            parts.append(note + ".")

        if breakdown.adjusted_emotion_score > 0:
            parts.append(
                f"Text urgency: {breakdown.adjusted_emotion_score * 100:.1f}% ({emotion.method}, {emotion.language})."
            )

        parts.append(f"Category '{category}' is considered {category_importance(category)}.")
        return " ".join(parts)
