"""
Complaint Domain Models

Enumerations and value objects shared by the scoring, voting and
workflow layers.
"""
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class ComplaintCategory(str, Enum):
    """Civic-issue types a complaint can be filed under."""

    ROAD_DAMAGE = "road_damage"
    POTHOLE = "pothole"
    WATER_ISSUE = "water_issue"
    WATER_LEAKAGE = "water_leakage"
    WATER_CONTAMINATION = "water_contamination"
    SEWAGE_OVERFLOW = "sewage_overflow"
    GARBAGE = "garbage"
    STREETLIGHT = "streetlight"
    BROKEN_STREETLIGHT = "broken_streetlight"
    ELECTRICITY = "electricity"
    ELECTRICAL_DANGER = "electrical_danger"
    GAS_LEAK = "gas_leak"
    FIRE_HAZARD = "fire_hazard"
    PUBLIC_PROPERTY_DAMAGE = "public_property_damage"
    TREE_ISSUE = "tree_issue"
    FLOODING = "flooding"
    TRAFFIC_SIGNAL = "traffic_signal"
    STRAY_ANIMALS = "stray_animals"
    NOISE_POLLUTION = "noise_pollution"
    AIR_POLLUTION = "air_pollution"
    ILLEGAL_DUMPING = "illegal_dumping"
    OTHER = "other"


class ComplaintStatus(str, Enum):
    """Aggregate complaint status, derived from stage statuses."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    RESOLVED = "resolved"
    CANCELLED = "cancelled"


TERMINAL_STATUSES = frozenset({ComplaintStatus.RESOLVED, ComplaintStatus.CANCELLED})


class StageStatus(str, Enum):
    """Status of a single workflow stage."""

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class VoteType(str, Enum):
    UPVOTE = "upvote"
    DOWNVOTE = "downvote"


class VerificationStatus(str, Enum):
    VERIFIED = "verified"
    UNVERIFIED = "unverified"


class PrivacyLevel(str, Enum):
    EXACT = "exact"
    APPROXIMATE = "approximate"


class LocationData(BaseModel):
    """
    Reported complaint location.

    Attributes:
        latitude: WGS84 latitude
        longitude: WGS84 longitude
        address: Free-text address, optional
        accuracy: Reported GPS accuracy in meters
        privacy_level: exact or approximate (user blurred the pin)
    """

    latitude: Optional[float] = Field(None, ge=-90, le=90, description="WGS84 latitude")
    longitude: Optional[float] = Field(None, ge=-180, le=180, description="WGS84 longitude")
    address: Optional[str] = Field(None, description="Street address")
    accuracy: Optional[float] = Field(None, ge=0, description="GPS accuracy in meters")
    privacy_level: PrivacyLevel = Field(PrivacyLevel.EXACT, alias="privacyLevel")

    model_config = {"populate_by_name": True, "str_strip_whitespace": True}

    @field_validator("address")
    @classmethod
    def blank_address_to_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None

    def has_coordinates(self) -> bool:
        """Check if location has usable coordinates."""
        return self.latitude is not None and self.longitude is not None


class ImageValidation(BaseModel):
    """Result of the external image-validation service."""

    is_valid_civic_issue: bool = Field(False, alias="isValidCivicIssue")
    confidence: float = Field(0.0, ge=0, le=1)
    priority_score: Optional[float] = Field(None, alias="priorityScore")

    model_config = {"populate_by_name": True}
