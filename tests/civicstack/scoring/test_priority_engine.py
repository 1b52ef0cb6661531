"""
Tests for priority fusion.

Covers the comprehensive formula, the weighted and category-default
fallbacks, and storage rounding.
"""
from datetime import timedelta
from types import SimpleNamespace

import pytest

from src.civicstack.analysis.emotion import EmotionAnalyzer
from src.civicstack.db.utils import utcnow
from src.civicstack.errors import CollaboratorError
from src.civicstack.models.complaint import ImageValidation, LocationData
from src.civicstack.scoring.location_priority import LocationPriorityEvaluator
from src.civicstack.scoring.priority_engine import (
    METHOD_CATEGORY_DEFAULT,
    METHOD_COMPREHENSIVE,
    METHOD_WEIGHTED,
    PriorityFusionEngine,
    PriorityLevel,
    age_score,
    level_for,
    to_storage_score,
    vote_score,
)

LOCATION = LocationData(latitude=13.0827, longitude=80.2707)


class ExplodingAnalyzer:
    def analyze(self, text, category=None):
        raise RuntimeError("analyzer crashed")


class TestHelpers:

    @pytest.mark.parametrize("score,level", [
        (0.0, PriorityLevel.LOW),
        (0.39, PriorityLevel.LOW),
        (0.4, PriorityLevel.MEDIUM),
        (0.6, PriorityLevel.HIGH),
        (0.79, PriorityLevel.HIGH),
        (0.8, PriorityLevel.CRITICAL),
        (1.0, PriorityLevel.CRITICAL),
    ])
    def test_level_thresholds(self, score, level):
        """Score thresholds for each priority level."""
        assert level_for(score) == level

    @pytest.mark.parametrize("value,expected", [
        (None, None),
        (0.615, 0.62),
        (0.614, 0.61),
        (0.999, 1.0),
        (-0.3, 0.0),
        (12.5, 9.99),
    ])
    def test_storage_score_rounds_half_up_and_clamps(self, value, expected):
        """Stored scores round half up and clamp to the column range."""
        assert to_storage_score(value) == expected

    def test_age_and_vote_scores(self):
        """Age and vote components saturate at 1."""
        assert age_score(0) == 0.5
        assert age_score(30) == pytest.approx(1.0)
        assert age_score(365) == 1.0
        assert vote_score(0) == 0.0
        assert vote_score(10) == pytest.approx(0.5)
        assert vote_score(500) == 1.0


class TestComprehensiveFusion:
    """Scenario tests for the default scoring path."""

    def test_flooding_near_hospital_is_high(self, priority_engine, facility_client, facility):
        """Reference scenario for the comprehensive formula."""
        facility_client.facilities = [facility("hospital", 100.0)]

        analysis = priority_engine.fuse(None, LOCATION, "flooding", "Road flooded, dangerous for patients")

        assert analysis.method == METHOD_COMPREHENSIVE
        assert analysis.breakdown.location_score == 1.0
        assert analysis.breakdown.adjusted_emotion_score == pytest.approx(0.16)
        assert analysis.breakdown.age_score == 0.5
        assert analysis.total_score == pytest.approx(0.616)
        assert analysis.priority_level == PriorityLevel.HIGH
        assert analysis.facilities_count == 1
        assert analysis.degraded is False

    def test_valid_image_pushes_to_critical(self, priority_engine, facility_client, facility):
        """A valid image adds its full weight."""
        facility_client.facilities = [facility("hospital", 100.0)]
        image = ImageValidation(is_valid_civic_issue=True, confidence=1.0)

        analysis = priority_engine.fuse(image, LOCATION, "flooding", "Road flooded, dangerous for patients")

        assert analysis.total_score == pytest.approx(0.816)
        assert analysis.priority_level == PriorityLevel.CRITICAL
        assert "(valid civic issue detected)" in analysis.reasoning

    def test_rejected_image_adds_nothing(self, priority_engine, facility_client, facility):
        """A confident rejection must not raise the score."""
        facility_client.facilities = [facility("hospital", 100.0)]
        rejected = ImageValidation(is_valid_civic_issue=False, confidence=0.95)

        analysis = priority_engine.fuse(rejected, LOCATION, "flooding", "Road flooded, dangerous for patients")
        baseline = priority_engine.fuse(None, LOCATION, "flooding", "Road flooded, dangerous for patients")

        assert analysis.breakdown.image_score == 0.0
        assert analysis.total_score == pytest.approx(baseline.total_score)

    def test_noise_complaint_is_low(self, priority_engine):
        """Low-impact complaints stay low."""
        analysis = priority_engine.fuse(None, LOCATION, "noise_pollution", "just a bit annoying")

        assert analysis.total_score == pytest.approx(0.05)
        assert analysis.priority_level == PriorityLevel.LOW
        assert "No critical infrastructure within 1000 m." in analysis.reasoning

    def test_terminal_status_zeroes_score(self, priority_engine, facility_client, facility):
        """Resolved complaints score 0."""
        facility_client.facilities = [facility("hospital", 100.0)]

        analysis = priority_engine.fuse(None, LOCATION, "flooding", "dangerous", status="resolved")

        assert analysis.total_score == 0.0
        assert analysis.priority_level == PriorityLevel.LOW

    def test_location_failure_marks_degraded(self, priority_engine, facility_client):
        """Facility lookup failure degrades but keeps the method."""
        facility_client.error = CollaboratorError("facilities", "overpass timeout")

        analysis = priority_engine.fuse(None, LOCATION, "pothole", "Big pothole")

        assert analysis.method == METHOD_COMPREHENSIVE
        assert analysis.degraded is True
        assert analysis.breakdown.location_score == 0.0
        assert "Location analysis unavailable" in analysis.reasoning

    def test_recalculate_uses_age_and_votes(self, priority_engine, facility_client, facility):
        """Rescoring uses stored age and votes."""
        facility_client.facilities = [facility("hospital", 100.0)]
        complaint = SimpleNamespace(
            location_latitude=13.0827,
            location_longitude=80.2707,
            location_address="Anna Salai",
            image_confidence=None,
            verification_status="unverified",
            category="flooding",
            description="Road flooded, dangerous for patients",
            created_at=utcnow() - timedelta(days=60),
            vote_count=20,
            status="pending",
        )

        analysis = priority_engine.recalculate(complaint)

        assert analysis.breakdown.age_score == 1.0
        assert analysis.breakdown.vote_score == 1.0
        assert analysis.total_score == pytest.approx(0.716)


class TestFallbacks:

    def test_no_coordinates_uses_weighted(self, priority_engine, facility_client):
        """No coordinates switches to the weighted formula."""
        image = ImageValidation(is_valid_civic_issue=True, confidence=0.5)

        analysis = priority_engine.fuse(image, None, "pothole", "Big pothole")

        assert analysis.method == METHOD_WEIGHTED
        assert analysis.total_score == pytest.approx(0.2)
        assert "No coordinates provided." in analysis.reasoning
        assert facility_client.calls == []

    def test_weighted_method_setting(self, facility_client, facility):
        """The weighted formula can be selected by setting."""
        facility_client.facilities = [facility("hospital", 500.0)]
        engine = PriorityFusionEngine(
            LocationPriorityEvaluator(facility_client, radius_m=1000),
            EmotionAnalyzer(),
            method="weighted",
        )

        analysis = engine.fuse(None, LOCATION, "other", "Broken bench")

        assert analysis.method == METHOD_WEIGHTED
        assert analysis.total_score == pytest.approx(0.3)

    def test_category_default_when_scoring_fails(self, facility_client):
        """Analyzer crashes fall back to the category default."""
        engine = PriorityFusionEngine(
            LocationPriorityEvaluator(facility_client, radius_m=1000),
            ExplodingAnalyzer(),
        )

        analysis = engine.fuse(None, LOCATION, "flooding", "Road flooded")

        assert analysis.method == METHOD_CATEGORY_DEFAULT
        assert analysis.degraded is True
        assert analysis.total_score == pytest.approx(0.9)
        assert analysis.priority_level == PriorityLevel.CRITICAL
        assert analysis.reasoning.startswith(
            "[degraded] CRITICAL priority assigned based on complaint type (flooding)"
        )

    def test_category_default_for_unknown_category(self, facility_client):
        """Unknown categories default to medium."""
        engine = PriorityFusionEngine(
            LocationPriorityEvaluator(facility_client, radius_m=1000),
            ExplodingAnalyzer(),
        )

        analysis = engine.fuse(None, None, "mystery", "???")

        assert analysis.total_score == pytest.approx(0.5)
        assert analysis.priority_level == PriorityLevel.MEDIUM
