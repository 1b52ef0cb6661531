"""
Shared fixtures for the CivicStack test suite.

Collaborators are faked here so no test reaches Overpass, Hugging Face or
the image validation service.
"""
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from src.civicstack.analysis.emotion import EmotionAnalyzer
from src.civicstack.clients.facilities import Facility
from src.civicstack.clients.sentiment import SentimentResult
from src.civicstack.db.base import Base
from src.civicstack.db.models import Complaint
from src.civicstack.errors import CollaboratorError
from src.civicstack.scoring.location_priority import LocationPriorityEvaluator
from src.civicstack.scoring.priority_engine import PriorityFusionEngine
from src.civicstack.services.workflow import WorkflowService


class FakeFacilityClient:
    """Returns a fixed facility list, or raises when `error` is set."""

    def __init__(self, facilities=None, error=None):
        self.facilities = list(facilities or [])
        self.error = error
        self.calls = []

    def find_nearby(self, latitude, longitude, radius_m=None):
        self.calls.append((latitude, longitude, radius_m))
        if self.error is not None:
            raise self.error
        return list(self.facilities)


class FakeSentimentClient:
    """Sentiment classifier double with a canned result."""

    def __init__(self, label="negative", score=0.9, available=True, fail=False):
        self.label = label
        self.score = score
        self.available = available
        self.fail = fail
        self.calls = 0

    def is_available(self):
        return self.available

    def classify(self, text):
        self.calls += 1
        if self.fail:
            raise CollaboratorError("sentiment", "every strategy failed")
        return SentimentResult(label=self.label, score=self.score, model="fake")


class FakeImageClient:
    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error

    def is_configured(self):
        return True

    def validate(self, image_url, category=None):
        if self.error is not None:
            raise self.error
        return self.result


def make_facility(facility_type="hospital", distance_m=100.0, name=None):
    return Facility(
        type=facility_type,
        name=name,
        latitude=13.0827,
        longitude=80.2707,
        distance_m=distance_m,
    )


@pytest.fixture
def facility():
    """Factory for Facility records at a given distance."""
    return make_facility


@pytest.fixture
def facility_client():
    return FakeFacilityClient()


@pytest.fixture
def sentiment_client():
    return FakeSentimentClient()


@pytest.fixture
def image_client():
    return FakeImageClient()


@pytest.fixture
def fake_clients():
    """The fake collaborator classes, for tests that need several instances."""
    return {
        "facilities": FakeFacilityClient,
        "sentiment": FakeSentimentClient,
        "image": FakeImageClient,
    }


@pytest.fixture
def priority_engine(facility_client):
    """Comprehensive fusion engine over the fake facility client, keyword-only emotions."""
    return PriorityFusionEngine(
        LocationPriorityEvaluator(facility_client, radius_m=1000),
        EmotionAnalyzer(),
        method="comprehensive",
    )


@pytest.fixture(scope="function")
def session():
    """Create an in-memory SQLite database for testing."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)

    Session = sessionmaker(bind=engine, expire_on_commit=False)
    sess = Session()

    yield sess

    sess.close()
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def make_complaint(session):
    """Insert a complaint with its three workflow stages."""

    def _make(**overrides):
        values = {
            "title": "Water logging on main road",
            "description": "Road flooded after rain",
            "category": "flooding",
            "status": "pending",
            "location_latitude": 13.0827,
            "location_longitude": 80.2707,
            "vote_count": 0,
        }
        values.update(overrides)
        complaint = Complaint(**values)
        session.add(complaint)
        session.flush()
        WorkflowService(session).create_stages(complaint)
        session.commit()
        return complaint

    return _make
