"""
Emotion Router

Standalone description analysis, used by the app while a complaint is
being written.
"""
from fastapi import APIRouter, Depends

from src.civicstack.analysis.emotion import EmotionAnalyzer, apply_category_multiplier, detect_category
from src.civicstack.api.dependencies import get_emotion_analyzer
from src.civicstack.api.schemas import EmotionAnalyzeRequest, EmotionAnalyzeResponse
from src.civicstack.services.complaints import validate_category

router = APIRouter(prefix="/api/emotion", tags=["emotion"])


@router.post("/analyze", response_model=EmotionAnalyzeResponse)
def analyze_text(
    payload: EmotionAnalyzeRequest,
    analyzer: EmotionAnalyzer = Depends(get_emotion_analyzer),
):
    """
    Analyze a description.

    When no category is given one is detected from the text.

    Returns:
        Raw and category-adjusted scores, per-axis emotions, language and method
    """
    detected = not payload.category
    category = detect_category(payload.text) if detected else validate_category(payload.category)

    result = analyzer.analyze(payload.text, category)
    return EmotionAnalyzeResponse(
        score=result.score,
        adjusted_score=round(apply_category_multiplier(result.score, category), 4),
        emotions=result.emotions,
        language=result.language,
        method=result.method,
        category=category,
        category_detected=detected,
    )
