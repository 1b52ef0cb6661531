"""
Facility Lookup Client

Finds critical infrastructure near a coordinate using the OpenStreetMap
Overpass API.
"""
from typing import Dict, List, Optional

import requests
from pydantic import BaseModel, Field

from config.settings import settings
from src.civicstack.errors import CollaboratorError
from src.civicstack.utils.geo_utils import haversine_distance
from src.civicstack.utils.logger import get_logger

logger = get_logger(__name__)


# OSM tag key -> {tag value: facility type}
TAG_TYPE_MAP: Dict[str, Dict[str, str]] = {
    "amenity": {
        "hospital": "hospital",
        "clinic": "clinic",
        "doctors": "clinic",
        "school": "school",
        "kindergarten": "school",
        "college": "college",
        "university": "college",
        "fire_station": "fire_station",
        "police": "police",
        "bus_station": "bus_station",
        "marketplace": "marketplace",
        "place_of_worship": "place_of_worship",
    },
    "power": {
        "plant": "power_station",
        "substation": "power_station",
    },
    "man_made": {
        "water_works": "water_works",
        "water_tower": "water_works",
        "wastewater_plant": "water_works",
    },
}


class Facility(BaseModel):
    """Infrastructure near a complaint location."""

    type: str = Field(..., description="Normalized facility type")
    name: Optional[str] = Field(None, description="OSM name tag")
    latitude: float
    longitude: float
    distance_m: float = Field(..., ge=0, description="Distance from the query point")


def classify_tags(tags: Dict[str, str]) -> Optional[str]:
    """
    Map OSM tags to a facility type.

    Returns:
        Facility type or None when the element is not of interest
    """
    for key, values in TAG_TYPE_MAP.items():
        facility_type = values.get(tags.get(key, ""))
        if facility_type:
            return facility_type
    return None


def build_overpass_query(latitude: float, longitude: float, radius_m: int, timeout: int) -> str:
    around = f"(around:{radius_m},{latitude},{longitude})"
    parts = []
    for key, values in TAG_TYPE_MAP.items():
        pattern = "|".join(values)
        parts.append(f'node["{key}"~"^({pattern})$"]{around};')
        parts.append(f'way["{key}"~"^({pattern})$"]{around};')
    return f"[out:json][timeout:{timeout}];({''.join(parts)});out center;"


class FacilityLookupClient:
    """
    Client for the Overpass API.

    Returns facilities sorted by distance from the query point.
    """

    def __init__(self, base_url: Optional[str] = None, timeout: Optional[int] = None):
        """
        Initialize the facility lookup client.

        Args:
            base_url: Override the Overpass interpreter URL (for testing)
            timeout: Request timeout in seconds
        """
        self.base_url = base_url or settings.overpass_api_url
        self.timeout = timeout or settings.facility_timeout_seconds
        self.session = requests.Session()
        logger.info("facility_client_initialized", base_url=self.base_url)

    def find_nearby(
        self,
        latitude: float,
        longitude: float,
        radius_m: Optional[int] = None,
    ) -> List[Facility]:
        """
        Fetch critical facilities within radius_m of a point.

        Args:
            latitude: Query latitude
            longitude: Query longitude
            radius_m: Search radius in meters

        Returns:
            Facilities ordered by distance

        Raises:
            CollaboratorError: Transport, HTTP or parse failure
        """
        radius_m = radius_m or settings.facility_search_radius_m
        query = build_overpass_query(latitude, longitude, radius_m, self.timeout)

        try:
            response = self.session.post(self.base_url, data={"data": query}, timeout=self.timeout)
            response.raise_for_status()
            payload = response.json()
        except requests.RequestException as e:
            logger.warning("facility_lookup_failed", error=str(e), error_type=type(e).__name__)
            raise CollaboratorError("facilities", str(e)) from e
        except ValueError as e:
            logger.warning("facility_lookup_invalid_json", error=str(e))
            raise CollaboratorError("facilities", "invalid JSON response") from e

        facilities = self._parse_elements(payload.get("elements", []), latitude, longitude, radius_m)
        logger.info(
            "facility_lookup_complete",
            latitude=latitude,
            longitude=longitude,
            radius_m=radius_m,
            facilities=len(facilities)
        )
        return facilities

    def _parse_elements(
        self,
        elements: List[dict],
        latitude: float,
        longitude: float,
        radius_m: int,
    ) -> List[Facility]:
        facilities = []
        for element in elements:
            facility_type = classify_tags(element.get("tags") or {})
            if not facility_type:
                continue

            center = element.get("center") or {}
            lat = element.get("lat", center.get("lat"))
            lon = element.get("lon", center.get("lon"))
            if lat is None or lon is None:
                continue

            distance = haversine_distance(latitude, longitude, lat, lon)
            if distance > radius_m:
                continue

            facilities.append(Facility(
                type=facility_type,
                name=(element.get("tags") or {}).get("name"),
                latitude=lat,
                longitude=lon,
                distance_m=round(distance, 1),
            ))

        facilities.sort(key=lambda f: f.distance_m)
        return facilities
