"""
Location priority evaluation.

Scores a complaint coordinate by how close it is to critical
infrastructure, then weights the result by category sensitivity and by
how trustworthy the reported position is.
"""
from collections import defaultdict
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from config.settings import settings
from src.civicstack.clients.facilities import Facility, FacilityLookupClient
from src.civicstack.models.complaint import LocationData, PrivacyLevel
from src.civicstack.models.categories import location_sensitivity
from src.civicstack.utils.logger import get_logger

logger = get_logger(__name__)

FACILITY_WEIGHTS: Dict[str, float] = {
    "hospital": 1.0,
    "fire_station": 0.9,
    "clinic": 0.85,
    "school": 0.8,
    "water_works": 0.8,
    "power_station": 0.8,
    "police": 0.7,
    "college": 0.6,
    "bus_station": 0.5,
    "place_of_worship": 0.4,
    "marketplace": 0.3,
}

EXTRA_FACILITY_BONUS = 0.05
MAX_EXTRA_BONUS = 0.15
IMPRECISE_LOCATION_FACTOR = 0.85
IMPRECISE_ACCURACY_M = 500


class LocationPriority(BaseModel):
    score: float = Field(..., ge=0, le=1)
    facilities_count: int = 0
    facilities_by_type: Dict[str, int] = Field(default_factory=dict)
    reasoning: str
    degraded: bool = False


def distance_decay(distance_m: float, radius_m: float) -> float:
    """Linear decay from 1 at the point to 0 at the radius."""
    if radius_m <= 0 or distance_m >= radius_m:
        return 0.0
    return 1.0 - max(distance_m, 0.0) / radius_m


def type_contribution(weight: float, distances: List[float], radius_m: float) -> float:
    """
    Strongest facility of a type, plus a small bonus per extra facility.

    Capped at the type weight so clustering never beats proximity.
    """
    decays = sorted((distance_decay(d, radius_m) for d in distances), reverse=True)
    in_range = [d for d in decays if d > 0]
    if not in_range:
        return 0.0
    bonus = min(EXTRA_FACILITY_BONUS * (len(in_range) - 1), MAX_EXTRA_BONUS)
    return min(weight * in_range[0] + bonus, weight)


def combine(contributions: List[float]) -> float:
    """Probabilistic union: 1 - prod(1 - c)."""
    remaining = 1.0
    for c in contributions:
        remaining *= 1.0 - min(max(c, 0.0), 1.0)
    return 1.0 - remaining


def is_imprecise(context: Optional[LocationData]) -> bool:
    if context is None:
        return False
    if context.privacy_level == PrivacyLevel.APPROXIMATE:
        return True
    return context.accuracy is not None and context.accuracy > IMPRECISE_ACCURACY_M


class LocationPriorityEvaluator:
    """
    Infrastructure-proximity scorer.

    Never raises: a failing facility lookup yields score 0 and degraded=True.
    """

    def __init__(self, facility_client: Optional[FacilityLookupClient] = None, radius_m: Optional[int] = None):
        self.facility_client = facility_client or FacilityLookupClient()
        self.radius_m = radius_m or settings.facility_search_radius_m

    def evaluate(
        self,
        latitude: float,
        longitude: float,
        category: Optional[str] = None,
        context: Optional[LocationData] = None,
    ) -> LocationPriority:
        """
        Score a coordinate.

        Args:
            latitude: Complaint latitude
            longitude: Complaint longitude
            category: Complaint category (sensitivity weighting)
            context: Reported location metadata (privacy, accuracy)

        Returns:
            LocationPriority
        """
        try:
            facilities = self.facility_client.find_nearby(latitude, longitude, self.radius_m)
        except Exception as e:
            logger.warning(
                "location_priority_degraded",
                latitude=latitude,
                longitude=longitude,
                error=str(e)
            )
            return LocationPriority(
                score=0.0,
                reasoning=f"Location analysis unavailable: {e}",
                degraded=True,
            )

        return self.score_facilities(facilities, category, context)

    def score_facilities(
        self,
        facilities: List[Facility],
        category: Optional[str] = None,
        context: Optional[LocationData] = None,
    ) -> LocationPriority:
        relevant = [
            f for f in facilities
            if f.type in FACILITY_WEIGHTS and f.distance_m < self.radius_m
        ]

        distances_by_type: Dict[str, List[float]] = defaultdict(list)
        for facility in relevant:
            distances_by_type[facility.type].append(facility.distance_m)

        contributions = [
            type_contribution(FACILITY_WEIGHTS[t], distances, self.radius_m)
            for t, distances in distances_by_type.items()
        ]
        score = min(combine(contributions) * location_sensitivity(category), 1.0)
        if is_imprecise(context):
            score *= IMPRECISE_LOCATION_FACTOR

        counts = {t: len(d) for t, d in sorted(distances_by_type.items(), key=lambda i: -FACILITY_WEIGHTS[i[0]])}
        result = LocationPriority(
            score=round(score, 4),
            facilities_count=len(relevant),
            facilities_by_type=counts,
            reasoning=self._reasoning(relevant, counts),
        )
        logger.debug(
            "location_priority_evaluated",
            score=result.score,
            facilities=result.facilities_count,
            category=category
        )
        return result

    def _reasoning(self, facilities: List[Facility], counts: Dict[str, int]) -> str:
        radius = int(self.radius_m)
        if not facilities:
            return f"No critical infrastructure within {radius} m."

        summary = ", ".join(f"{n} {t}(s)" for t, n in counts.items())
        nearest = min(facilities, key=lambda f: f.distance_m)
        label = nearest.name or nearest.type.replace("_", " ")
        return (
            f"{len(facilities)} critical facilities within {radius} m: {summary}. "
            f"Nearest: {label} ({int(round(nearest.distance_m))} m)."
        )
