"""
Scoring Module

Location priority evaluation and priority fusion for complaint triage.
"""
from src.civicstack.scoring.location_priority import LocationPriorityEvaluator, LocationPriority
from src.civicstack.scoring.priority_engine import (
    PriorityFusionEngine,
    PriorityAnalysis,
    PriorityLevel,
    level_for,
    to_storage_score,
)

__all__ = [
    "LocationPriorityEvaluator",
    "LocationPriority",
    "PriorityFusionEngine",
    "PriorityAnalysis",
    "PriorityLevel",
    "level_for",
    "to_storage_score",
]
