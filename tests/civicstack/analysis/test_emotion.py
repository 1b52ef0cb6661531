"""
Tests for the multilingual emotion analyzer.
"""
from unittest.mock import Mock, patch

import pytest

from src.civicstack.analysis.emotion import (
    METHOD_AI,
    METHOD_DEGRADED,
    METHOD_KEYWORDS,
    METHOD_NO_INPUT,
    EmotionAnalyzer,
    apply_category_multiplier,
    contains,
    detect_category,
    detect_language,
    fuse_emotions,
    keyword_scores,
)
from src.civicstack.clients.sentiment import SentimentClient


class TestLanguageDetection:
    """Script-block language detection."""

    def test_english_is_baseline(self):
        """Latin script is English."""
        assert detect_language("Streetlight broken for a week") == "en"

    def test_hindi(self):
        """Devanagari is Hindi."""
        assert detect_language("सड़क पर पानी भरा है") == "hi"

    def test_tamil(self):
        """Tamil script is Tamil."""
        assert detect_language("சாலை சரியில்லை இங்கே") == "ta"

    def test_telugu(self):
        """Telugu script is Telugu."""
        assert detect_language("రోడ్డు పాడైంది") == "te"


class TestKeywordMatching:

    def test_ascii_keywords_match_whole_words(self):
        """ASCII keywords do not match inside other words."""
        assert contains("he made a mess", "mad") is False
        assert contains("i am mad about this", "mad") is True

    def test_annoying_does_not_hit_annoyed(self):
        """Near-miss inflections do not count."""
        scores = keyword_scores("just a bit annoying", "en")
        assert scores["anger"] == 0.0

    def test_each_keyword_adds_a_quarter(self):
        """Each hit adds 0.25 to its axis."""
        scores = keyword_scores("urgent and dangerous, an emergency", "en")
        assert scores["urgency"] == pytest.approx(0.75)

    def test_keyword_score_capped_at_one(self):
        """Axis scores cap at 1."""
        text = "urgent emergency immediate dangerous critical accident death fatal"
        assert keyword_scores(text, "en")["urgency"] == 1.0

    def test_tamil_baseline_when_nothing_matches(self):
        """Tamil text gets a baseline when nothing matches."""
        scores = keyword_scores("சாலை சரியில்லை இங்கே", "ta")
        assert scores["concern"] == 0.3
        assert scores["urgency"] == 0.2


class TestFusion:

    def test_weights(self):
        """Urgency carries the largest weight."""
        emotions = {"urgency": 1.0, "anger": 0.0, "concern": 0.0, "frustration": 0.0}
        assert fuse_emotions(emotions) == pytest.approx(0.4)

    def test_concern_amplifier(self):
        """Concern amplifies the fused score."""
        emotions = {"urgency": 0.5, "anger": 0.0, "concern": 0.5, "frustration": 0.0}
        assert fuse_emotions(emotions) == pytest.approx((0.2 + 0.1) * 1.2)

    def test_fused_score_never_exceeds_one(self):
        """Fused score caps at 1."""
        emotions = {"urgency": 1.0, "anger": 1.0, "concern": 1.0, "frustration": 1.0}
        assert fuse_emotions(emotions) == 1.0

    @pytest.mark.parametrize("score,category,expected", [
        (0.5, "other", 0.5),
        (0.5, "gas_leak", 0.95),
        (0.7, "gas_leak", 1.0),
        (0.0, "sewage_overflow", 0.0),
        (0.5, "not_a_category", 0.5),
    ])
    def test_category_multiplier_clamped(self, score, category, expected):
        """Multiplied scores stay within 0-1."""
        assert apply_category_multiplier(score, category) == pytest.approx(expected)


class TestEmotionAnalyzer:
    """End-to-end analyzer behavior."""

    @pytest.mark.parametrize("text", [None, "", "   "])
    def test_empty_input(self, text):
        """Blank text scores 0."""
        result = EmotionAnalyzer().analyze(text)

        assert result.score == 0.0
        assert result.method == METHOD_NO_INPUT
        assert result.language == "en"

    def test_keyword_only_without_classifier(self):
        """No classifier means keyword scoring."""
        result = EmotionAnalyzer().analyze("Road flooded, dangerous for patients")

        assert result.method == METHOD_KEYWORDS
        assert result.emotions.urgency == pytest.approx(0.25)
        assert result.score == pytest.approx(0.1)

    def test_tamil_skips_classifier(self, sentiment_client):
        """Tamil text never reaches the classifier."""
        result = EmotionAnalyzer(sentiment_client).analyze("சாலை சரியில்லை இங்கே")

        assert sentiment_client.calls == 0
        assert result.language == "ta"
        assert result.method == METHOD_KEYWORDS
        assert result.score == pytest.approx(0.14)

    def test_negative_sentiment_seeds_axes(self, sentiment_client):
        """Negative sentiment seeds concern and anger."""
        result = EmotionAnalyzer(sentiment_client).analyze("The drain near my house is blocked")

        assert result.method == METHOD_AI
        assert result.emotions.concern == pytest.approx(0.81)
        assert result.emotions.anger == pytest.approx(0.45)
        assert result.score == pytest.approx(0.6912)

    def test_classifier_failure_falls_back_to_keywords(self, fake_clients):
        """A failing classifier falls back to keywords."""
        client = fake_clients["sentiment"](fail=True)
        result = EmotionAnalyzer(client).analyze("Road flooded, dangerous for patients")

        assert client.calls == 1
        assert result.method == METHOD_KEYWORDS
        assert result.score == pytest.approx(0.1)

    @patch("src.civicstack.clients.sentiment.requests.Session")
    def test_malformed_classifier_response_keeps_keyword_signal(self, mock_session):
        """A junk classifier score falls back to keywords instead of the neutral default."""
        response = Mock()
        response.json.return_value = [{"label": "NEGATIVE", "score": None}]
        mock_session.return_value.post.return_value = response
        client = SentimentClient(token="hf_" + "x" * 30, model_urls=["http://hf.test/models/model-a"])
        text = "Urgent! dangerous open drain, I am furious"

        result = EmotionAnalyzer(client).analyze(text)

        assert result.method == METHOD_KEYWORDS
        assert result.score == EmotionAnalyzer().analyze(text).score

    def test_unavailable_classifier_is_not_called(self, fake_clients):
        """Unconfigured classifiers are skipped."""
        client = fake_clients["sentiment"](available=False)
        EmotionAnalyzer(client).analyze("Streetlight broken")
        assert client.calls == 0

    def test_internal_failure_degrades_to_neutral(self, monkeypatch):
        """Unexpected errors return the neutral default."""
        analyzer = EmotionAnalyzer()

        def explode(text, language):
            raise KeyError("lexicon")

        monkeypatch.setattr(analyzer, "_score", explode)
        result = analyzer.analyze("Road flooded")

        assert result.method == METHOD_DEGRADED
        assert result.score == 0.5

    @pytest.mark.parametrize("text", [
        "URGENT!!! deaths accidents emergency, furious and fed up, worried and scared, women safety at night",
        "तुरंत मदद चाहिए, बहुत गुस्सा, डर लगता है, लड़कियों की सुरक्षा सुनिश्चित नहीं",
        "அவசரம் ஆபத்து கோபம் கவலை பயம் மரணம் விபத்து",
        "x" * 5000,
    ])
    def test_scores_stay_in_bounds(self, text):
        """Extreme inputs stay within 0-1."""
        result = EmotionAnalyzer().analyze(text)

        assert 0.0 <= result.score <= 1.0
        for value in result.emotions.model_dump().values():
            assert 0.0 <= value <= 1.0


class TestCategoryDetection:

    def test_sewage(self):
        """Sewage keywords win."""
        assert detect_category("Sewage overflowing near the school, dirty water everywhere") == "sewage_overflow"

    def test_pothole(self):
        """Pothole keywords win."""
        assert detect_category("Huge potholes on the highway") == "pothole"

    def test_defaults_to_other(self):
        """No match is other."""
        assert detect_category("Something is wrong here") == "other"
        assert detect_category("") == "other"
