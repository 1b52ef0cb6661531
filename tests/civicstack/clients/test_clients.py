"""
Unit tests for the external collaborator clients
"""
import pytest
import requests
from unittest.mock import Mock, patch

from src.civicstack.clients.facilities import FacilityLookupClient, classify_tags
from src.civicstack.clients.image_validation import ImageValidationClient
from src.civicstack.clients.sentiment import (
    SentimentClient,
    normalize_label,
    pick_top_prediction,
)
from src.civicstack.errors import CollaboratorError

VALID_TOKEN = "hf_" + "x" * 30


def json_response(payload):
    response = Mock()
    response.json.return_value = payload
    response.raise_for_status.return_value = None
    return response


class TestFacilityLookupClient:
    """Tests for the Overpass facility client"""

    def test_classify_tags(self):
        """OSM tags map to facility types."""
        assert classify_tags({"amenity": "hospital"}) == "hospital"
        assert classify_tags({"amenity": "doctors"}) == "clinic"
        assert classify_tags({"power": "substation"}) == "power_station"
        assert classify_tags({"shop": "bakery"}) is None

    def test_find_nearby_parses_and_sorts(self):
        """Elements are typed, located and sorted by distance."""
        client = FacilityLookupClient(base_url="http://overpass.test/api/interpreter")
        client.session = Mock()
        client.session.post.return_value = json_response({
            "elements": [
                {"type": "way", "center": {"lat": 13.0860, "lon": 80.2707},
                 "tags": {"amenity": "school", "name": "Corporation School"}},
                {"type": "node", "lat": 13.0830, "lon": 80.2710,
                 "tags": {"amenity": "hospital", "name": "General Hospital"}},
                {"type": "node", "lat": 13.0828, "lon": 80.2707, "tags": {"shop": "bakery"}},
                {"type": "node", "lat": 13.1000, "lon": 80.2707, "tags": {"amenity": "hospital"}},
                {"type": "way", "tags": {"amenity": "police"}},
            ]
        })

        facilities = client.find_nearby(13.0827, 80.2707, radius_m=1000)

        assert [f.type for f in facilities] == ["hospital", "school"]
        assert facilities[0].name == "General Hospital"
        assert facilities[0].distance_m < facilities[1].distance_m < 1000
        url = client.session.post.call_args[0][0]
        assert url == "http://overpass.test/api/interpreter"
        query = client.session.post.call_args[1]["data"]["data"]
        assert "around:1000,13.0827,80.2707" in query

    @pytest.mark.parametrize("failure", [
        requests.ConnectionError("refused"),
        requests.Timeout("timed out"),
    ])
    def test_transport_failure(self, failure):
        """Connection errors become collaborator errors."""
        client = FacilityLookupClient(base_url="http://overpass.test")
        client.session = Mock()
        client.session.post.side_effect = failure

        with pytest.raises(CollaboratorError) as exc_info:
            client.find_nearby(13.08, 80.27)

        assert exc_info.value.collaborator == "facilities"

    def test_http_error(self):
        """HTTP errors become collaborator errors."""
        client = FacilityLookupClient(base_url="http://overpass.test")
        client.session = Mock()
        response = Mock()
        response.raise_for_status.side_effect = requests.HTTPError("429 Too Many Requests")
        client.session.post.return_value = response

        with pytest.raises(CollaboratorError):
            client.find_nearby(13.08, 80.27)

    def test_invalid_json(self):
        """Non-JSON bodies become collaborator errors."""
        client = FacilityLookupClient(base_url="http://overpass.test")
        client.session = Mock()
        response = Mock()
        response.raise_for_status.return_value = None
        response.json.side_effect = ValueError("Expecting value")
        client.session.post.return_value = response

        with pytest.raises(CollaboratorError) as exc_info:
            client.find_nearby(13.08, 80.27)

        assert "invalid JSON" in exc_info.value.message


class TestSentimentParsing:

    @pytest.mark.parametrize("raw,label", [
        ("NEGATIVE", "negative"),
        ("LABEL_0", "negative"),
        ("1 star", "negative"),
        ("LABEL_1", "neutral"),
        ("3 stars", "neutral"),
        ("POSITIVE", "positive"),
        ("5 stars", "positive"),
        ("joy", None),
    ])
    def test_normalize_label(self, raw, label):
        """Model labels map to three sentiment classes."""
        assert normalize_label(raw) == label

    def test_pick_top_prediction_shapes(self):
        """Nested, flat and single predictions are all read."""
        nested = [[{"label": "POSITIVE", "score": 0.2}, {"label": "NEGATIVE", "score": 0.8}]]
        flat = [{"label": "POSITIVE", "score": 0.6}, {"label": "NEGATIVE", "score": 0.4}]

        assert pick_top_prediction(nested)["label"] == "NEGATIVE"
        assert pick_top_prediction(flat)["label"] == "POSITIVE"
        assert pick_top_prediction({"label": "neutral", "score": 0.5})["label"] == "neutral"
        assert pick_top_prediction({"error": "loading"}) is None
        assert pick_top_prediction([]) is None


class TestSentimentClient:

    @pytest.mark.parametrize("token", [None, "", "abc", "hf_short"])
    def test_requires_real_token(self, token):
        """Missing or malformed tokens disable the client."""
        client = SentimentClient(token=token, model_urls=["http://hf.test/models/a"])

        assert client.is_available() is False
        with pytest.raises(CollaboratorError):
            client.classify("Road flooded")

    @patch("src.civicstack.clients.sentiment.requests.Session")
    def test_falls_back_to_next_model(self, mock_session):
        """A failing model hands over to the next."""
        session = mock_session.return_value
        session.post.side_effect = [
            requests.ConnectionError("model a down"),
            json_response([[{"label": "LABEL_0", "score": 0.93}, {"label": "LABEL_2", "score": 0.07}]]),
        ]
        client = SentimentClient(
            token=VALID_TOKEN,
            model_urls=["http://hf.test/models/model-a", "http://hf.test/models/model-b"],
        )

        result = client.classify("Sewage everywhere, nobody cares")

        assert result.label == "negative"
        assert result.score == pytest.approx(0.93)
        assert result.model == "model-b"
        assert session.post.call_count == 2
        headers = session.post.call_args[1]["headers"]
        assert headers == {"Authorization": f"Bearer {VALID_TOKEN}"}

    @pytest.mark.parametrize("payload", [
        [{"label": "NEGATIVE", "score": None}],
        [{"label": "NEGATIVE", "score": "high"}],
        [[{"label": "NEGATIVE", "score": 0.9}, {"label": "POSITIVE", "score": [1]}]],
    ])
    @patch("src.civicstack.clients.sentiment.requests.Session")
    def test_malformed_score_moves_to_next_model(self, mock_session, payload):
        """A malformed prediction counts as a failed model, not a crash."""
        session = mock_session.return_value
        session.post.side_effect = [
            json_response(payload),
            json_response([{"label": "LABEL_1", "score": 0.66}]),
        ]
        client = SentimentClient(
            token=VALID_TOKEN,
            model_urls=["http://hf.test/models/model-a", "http://hf.test/models/model-b"],
        )

        result = client.classify("Drain blocked")

        assert (result.label, result.model) == ("neutral", "model-b")

    @patch("src.civicstack.clients.sentiment.requests.Session")
    def test_malformed_score_on_last_model(self, mock_session):
        """Every model returning junk is reported as a collaborator failure."""
        session = mock_session.return_value
        session.post.return_value = json_response([{"label": "NEGATIVE", "score": None}])
        client = SentimentClient(token=VALID_TOKEN, model_urls=["http://hf.test/models/model-a"])

        with pytest.raises(CollaboratorError) as exc_info:
            client.classify("Drain blocked")

        assert "malformed prediction" in exc_info.value.message

    @patch("src.civicstack.clients.sentiment.requests.Session")
    def test_all_models_fail(self, mock_session):
        """Exhausting every model raises."""
        session = mock_session.return_value
        session.post.side_effect = [
            json_response({"error": "Model is loading"}),
            requests.Timeout("timed out"),
        ]
        client = SentimentClient(
            token=VALID_TOKEN,
            model_urls=["http://hf.test/models/model-a", "http://hf.test/models/model-b"],
        )

        with pytest.raises(CollaboratorError) as exc_info:
            client.classify("Road flooded")

        assert "all models failed" in exc_info.value.message


class TestImageValidationClient:

    def test_unconfigured(self):
        """No base URL means no validation."""
        client = ImageValidationClient()
        client.base_url = None

        assert client.is_configured() is False
        with pytest.raises(CollaboratorError):
            client.validate("https://img.example/a.jpg")

    def test_validate(self):
        """Request carries the image, category and key."""
        client = ImageValidationClient(base_url="http://vision.test/validate", api_key="secret")
        client.session = Mock()
        client.session.post.return_value = json_response(
            {"isValidCivicIssue": True, "confidence": 0.91, "priorityScore": 0.7}
        )

        result = client.validate("https://img.example/a.jpg", "pothole")

        assert result.is_valid_civic_issue is True
        assert result.confidence == pytest.approx(0.91)
        kwargs = client.session.post.call_args[1]
        assert kwargs["json"] == {"imageUrl": "https://img.example/a.jpg", "category": "pothole"}
        assert kwargs["headers"] == {"Authorization": "Bearer secret"}

    def test_out_of_range_confidence_rejected(self):
        """Confidence outside 0-1 is an invalid response."""
        client = ImageValidationClient(base_url="http://vision.test/validate")
        client.session = Mock()
        client.session.post.return_value = json_response({"isValidCivicIssue": True, "confidence": 5})

        with pytest.raises(CollaboratorError) as exc_info:
            client.validate("https://img.example/a.jpg")

        assert exc_info.value.message == "invalid response"
