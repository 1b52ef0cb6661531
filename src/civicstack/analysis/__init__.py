"""
Analysis Module

Multilingual emotion and urgency analysis of complaint text.
"""
from src.civicstack.analysis.emotion import (
    EmotionAnalyzer,
    EmotionAnalysis,
    apply_category_multiplier,
    detect_category,
    detect_language,
)

__all__ = [
    "EmotionAnalyzer",
    "EmotionAnalysis",
    "apply_category_multiplier",
    "detect_category",
    "detect_language",
]
