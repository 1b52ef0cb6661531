"""
Category lookup tables.

Per-category constants used by the emotion multiplier, the location
sensitivity weighting, the category-default fallback score and the
priority reasoning text.
"""
from typing import Dict

from src.civicstack.models.complaint import ComplaintCategory as C


# Emotion severity multipliers: administrative ~1.0, life-safety 1.8-1.9.
CATEGORY_EMOTION_MULTIPLIERS: Dict[str, float] = {
    "gas_leak": 1.9,
    "sewage_overflow": 1.8,
    "water_contamination": 1.8,
    "fire_hazard": 1.8,
    "electrical_danger": 1.7,
    "flooding": 1.6,
    "broken_streetlight": 1.6,
    "traffic_signal": 1.5,
    "water_issue": 1.5,
    "streetlight": 1.4,
    "pothole": 1.4,
    "road_damage": 1.4,
    "water_leakage": 1.4,
    "air_pollution": 1.4,
    "garbage": 1.3,
    "electricity": 1.3,
    "illegal_dumping": 1.3,
    "public_property_damage": 1.2,
    "tree_issue": 1.2,
    "stray_animals": 1.2,
    "noise_pollution": 1.2,
    "other": 1.0,
}

# Static fallback priority when every scoring path failed (0.4-0.9).
CATEGORY_FALLBACK_PRIORITY: Dict[str, float] = {
    "road_damage": 0.7,
    "pothole": 0.65,
    "water_issue": 0.8,
    "water_leakage": 0.7,
    "water_contamination": 0.85,
    "sewage_overflow": 0.85,
    "garbage": 0.6,
    "streetlight": 0.55,
    "broken_streetlight": 0.6,
    "electricity": 0.75,
    "electrical_danger": 0.85,
    "gas_leak": 0.9,
    "fire_hazard": 0.9,
    "public_property_damage": 0.65,
    "tree_issue": 0.5,
    "flooding": 0.9,
    "traffic_signal": 0.8,
    "stray_animals": 0.4,
    "noise_pollution": 0.4,
    "air_pollution": 0.7,
    "illegal_dumping": 0.55,
    "other": 0.5,
}

CATEGORY_IMPORTANCE: Dict[str, str] = {
    "water_issue": "critical",
    "water_contamination": "critical",
    "sewage_overflow": "critical",
    "flooding": "critical",
    "gas_leak": "critical",
    "fire_hazard": "critical",
    "electrical_danger": "critical",
    "road_damage": "high-priority",
    "pothole": "high-priority",
    "water_leakage": "high-priority",
    "electricity": "high-priority",
    "public_property_damage": "high-priority",
    "traffic_signal": "high-priority",
    "air_pollution": "high-priority",
    "garbage": "medium-priority",
    "streetlight": "medium-priority",
    "broken_streetlight": "medium-priority",
    "tree_issue": "medium-priority",
    "illegal_dumping": "medium-priority",
    "stray_animals": "standard",
    "noise_pollution": "standard",
    "other": "standard",
}

# How much nearby infrastructure matters for the category.
CATEGORY_LOCATION_SENSITIVITY: Dict[str, float] = {
    "flooding": 1.5,
    "gas_leak": 1.5,
    "fire_hazard": 1.5,
    "sewage_overflow": 1.4,
    "water_contamination": 1.4,
    "electrical_danger": 1.4,
    "water_issue": 1.3,
    "traffic_signal": 1.3,
    "road_damage": 1.2,
    "pothole": 1.2,
    "water_leakage": 1.2,
    "broken_streetlight": 1.2,
    "streetlight": 1.1,
    "electricity": 1.1,
    "air_pollution": 1.1,
    "noise_pollution": 0.9,
}

CATEGORY_DISPLAY_NAMES: Dict[str, str] = {
    "road_damage": "Road Damage",
    "pothole": "Potholes",
    "water_issue": "Water Supply",
    "water_leakage": "Water Leakage",
    "water_contamination": "Water Contamination",
    "sewage_overflow": "Sewage Overflow",
    "garbage": "Garbage Collection",
    "streetlight": "Street Lighting",
    "broken_streetlight": "Broken Streetlights",
    "electricity": "Electricity",
    "electrical_danger": "Electrical Hazards",
    "gas_leak": "Gas Leaks",
    "fire_hazard": "Fire Hazards",
    "public_property_damage": "Public Property Damage",
    "tree_issue": "Tree Issues",
    "flooding": "Flooding",
    "traffic_signal": "Traffic Signals",
    "stray_animals": "Stray Animals",
    "noise_pollution": "Noise Pollution",
    "air_pollution": "Air Pollution",
    "illegal_dumping": "Illegal Dumping",
    "other": "Other Issues",
}


def _key(category) -> str:
    return category.value if isinstance(category, C) else str(category or "")


def fallback_priority(category) -> float:
    """Category default score, capped below 1."""
    return min(CATEGORY_FALLBACK_PRIORITY.get(_key(category), 0.5), 0.999)


def category_importance(category) -> str:
    return CATEGORY_IMPORTANCE.get(_key(category), "standard")


def location_sensitivity(category) -> float:
    return CATEGORY_LOCATION_SENSITIVITY.get(_key(category), 1.0)


def emotion_multiplier(category) -> float:
    return CATEGORY_EMOTION_MULTIPLIERS.get(_key(category), 1.0)


def display_name(category) -> str:
    key = _key(category)
    return CATEGORY_DISPLAY_NAMES.get(key, key.replace("_", " ").title())
