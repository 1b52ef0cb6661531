"""
Civic assistant chat.

Keyword-matched answers about using CivicStack, with per-session history
held in a bounded in-memory cache.
"""
from __future__ import annotations

import re
from collections import OrderedDict
from datetime import datetime
from threading import Lock
from typing import Any, Dict, List, Optional

from config.settings import settings
from src.civicstack.db.utils import utcnow
from src.civicstack.utils.logger import get_logger

logger = get_logger(__name__)

GENERIC_MATCH_THRESHOLD = 0.3
MULTI_MATCH_BONUS = 0.2
FOLLOW_UP_BOOST = 0.2
CONTEXT_WINDOW = 5
EXPLORING_AFTER_MESSAGES = 5

GREETING_WORDS = ["hi", "hello", "hey", "namaste"]
FOLLOW_UP_INDICATORS = ["what about", "how about", "what if", "can i also", "and", "but"]
MORE_DETAIL_WORDS = ["more", "details", "explain", "tell me", "how"]


def _action(action_type: str, label: str, **extra: str) -> Dict[str, str]:
    return {"type": action_type, "label": label, **extra}


KNOWLEDGE_BASE: Dict[str, Dict[str, Any]] = {
    "app_features": {
        "keywords": ["features", "what can", "how to use", "navigate", "app overview", "main features"],
        "text": (
            "**CivicStack Main Features:**\n\n"
            "**Submit Complaints** - Report civic issues with AI validation\n"
            "**Interactive Map** - View all complaints on a live map\n"
            "**Feed View** - Nearby issues as a scrolling feed\n"
            "**Voting System** - Upvote important complaints\n"
            "**Priority Scoring** - Automatic urgency assessment\n"
            "**Voice Input** - Multi-language speech recognition\n"
            "**Personal Reports** - Track the progress of your complaints"
        ),
        "confidence": 0.95,
        "category": "app_overview",
        "actions": [
            _action("submit_complaint", "Submit Complaint"),
            _action("view_map", "View Map"),
            _action("view_feed", "View Feed"),
        ],
    },
    "submit_complaint": {
        "keywords": [
            "submit", "report", "complaint", "how to submit", "file complaint", "report issue",
            "pothole", "pot hole", "road damage", "road issue", "broken road",
        ],
        "text": (
            "**How to Submit a Complaint:**\n\n"
            "1. **Select Category** - Fire Hazard, Electrical Danger, Pothole and more\n"
            "2. **Auto Location** - Your location is used for priority assessment\n"
            "3. **Add Title & Description** - Voice input is available\n"
            "4. **Take Photo** - The photo is checked for a real civic issue\n"
            "5. **Priority Score** - You get an instant priority score\n"
            "6. **Track Progress** - Follow every stage in 'My Reports'"
        ),
        "confidence": 0.98,
        "category": "submission_guide",
        "actions": [
            _action("submit_complaint", "Start Submission"),
            _action("navigate", "My Reports", screen="PersonalReports"),
        ],
    },
    "pothole_reporting": {
        "keywords": ["pothole", "pot hole", "road hole", "road damage", "broken road", "street damage", "pavement damage"],
        "text": (
            "**Reporting Potholes:**\n\n"
            "1. Tap 'Submit Complaint'\n"
            "2. Select the 'Pothole' category\n"
            "3. Take a clear photo showing the hole\n"
            "4. Describe it and confirm the location\n"
            "5. Submit and it is routed to the road department\n\n"
            "**Tips:** photograph from more than one angle and include a size reference."
        ),
        "confidence": 0.95,
        "category": "pothole_guide",
        "actions": [
            _action("submit_complaint", "Report Pothole Now"),
            _action("view_map", "See Other Potholes"),
        ],
    },
    "civic_issues": {
        "keywords": ["civic issues", "categories", "what can report", "types of complaints", "issue types"],
        "text": (
            "**Civic Issues You Can Report:**\n\n"
            "**Urgent:** Fire Hazard, Electrical Danger, Gas Leak, Sewage Overflow\n"
            "**Safety:** Broken Streetlight, Traffic Signal, Road Damage\n"
            "**General:** Potholes, Garbage, Water Leakage, Tree Issues, Flooding, Other\n\n"
            "Each category carries a different base priority."
        ),
        "confidence": 0.92,
        "category": "civic_categories",
        "actions": [
            _action("submit_complaint", "Report Urgent Issue"),
            _action("view_feed", "See Examples"),
        ],
    },
    "voting": {
        "keywords": ["vote", "voting", "upvote", "support", "priority", "how voting works"],
        "text": (
            "**How Voting Works:**\n\n"
            "**Upvote Complaints** - Support issues that affect you\n"
            "**Vote Count** - More votes raise priority\n"
            "**Smart Priority** - Votes are combined with location and description analysis\n"
            "**Fair System** - One vote per person per complaint, tap again to remove it"
        ),
        "confidence": 0.90,
        "category": "voting_system",
        "actions": [
            _action("view_feed", "Start Voting"),
            _action("view_map", "Find Issues to Vote On"),
        ],
    },
    "voice_input": {
        "keywords": ["voice", "speech", "language", "hindi", "tamil", "telugu", "speak", "microphone"],
        "text": (
            "**Voice Input:**\n\n"
            "Speak your complaint in English, Hindi, Tamil, Telugu and other Indian languages. "
            "Tap the microphone next to the description field and speak clearly."
        ),
        "confidence": 0.88,
        "category": "voice_features",
        "actions": [_action("submit_complaint", "Try Voice Input")],
    },
    "location_privacy": {
        "keywords": ["location", "privacy", "gps", "tracking", "address", "where", "safety"],
        "text": (
            "**Location & Privacy:**\n\n"
            "**Exact** location is used for urgent issues such as fire or electrical danger.\n"
            "**Approximate** location is used for general issues.\n\n"
            "Location is used only for routing and priority and is never sold or shared."
        ),
        "confidence": 0.94,
        "category": "location_privacy",
        "actions": [_action("submit_complaint", "Test Location Capture")],
    },
    "image_validation": {
        "keywords": ["image", "photo", "ai", "validation", "picture", "camera", "upload"],
        "text": (
            "**Image Validation:**\n\n"
            "Photos are checked to confirm they show a real civic issue. "
            "The check returns a confidence score, and a clear photo raises the priority of your complaint."
        ),
        "confidence": 0.89,
        "category": "image_ai",
        "actions": [_action("submit_complaint", "Try Image Upload")],
    },
    "map_features": {
        "keywords": ["map", "location view", "see complaints", "nearby issues", "visual", "markers"],
        "text": (
            "**Complaint Map:**\n\n"
            "Markers are colored by status: red for pending, yellow for in progress, green for resolved. "
            "Tap a marker for details."
        ),
        "confidence": 0.91,
        "category": "map_guide",
        "actions": [
            _action("view_map", "Open Map"),
            _action("submit_complaint", "Add to Map"),
        ],
    },
    "feed_features": {
        "keywords": ["feed", "social", "instagram", "scroll", "posts", "timeline", "nearby"],
        "text": (
            "**Complaint Feed:**\n\n"
            "Browse complaints near you, see their status and upvote directly from the feed. "
            "Pull down to refresh."
        ),
        "confidence": 0.87,
        "category": "feed_guide",
        "actions": [
            _action("view_feed", "Open Feed"),
            _action("submit_complaint", "Add to Feed"),
        ],
    },
    "transparency": {
        "keywords": ["admin", "transparency", "government", "municipal", "authority", "response"],
        "text": (
            "**Transparency & Accountability:**\n\n"
            "Municipal staff work from a priority queue and move complaints through "
            "Verification, Assignment and Resolution. The public dashboard shows resolution "
            "rates, average resolution time and monthly trends."
        ),
        "confidence": 0.86,
        "category": "transparency",
        "actions": [
            _action("view_feed", "See Public Data"),
            _action("personal_reports", "Track My Reports"),
        ],
    },
    "troubleshooting": {
        "keywords": ["help", "problem", "error", "not working", "bug", "issue", "fix", "troubleshoot"],
        "text": (
            "**Troubleshooting:**\n\n"
            "**Location not working** - Enable GPS and check permissions\n"
            "**Camera issues** - Grant camera permission\n"
            "**Voice input failing** - Allow microphone access\n"
            "**Map not loading** - Check your network and refresh"
        ),
        "confidence": 0.92,
        "category": "troubleshooting",
        "actions": [_action("submit_complaint", "Try Again")],
    },
    "emergency": {
        "keywords": ["emergency", "urgent", "fire", "electrical", "danger", "safety", "critical"],
        "text": (
            "**Emergency Reporting:**\n\n"
            "Fire Hazard, Electrical Danger, Gas Leak and Sewage Overflow are scored as urgent. "
            "Use exact location and attach a photo. For immediate danger to life, call 112 first."
        ),
        "confidence": 0.96,
        "category": "emergency_guide",
        "actions": [_action("submit_complaint", "Report Emergency")],
    },
}

GREETING_RESPONSE = {
    "text": (
        "Hello! I'm the CivicStack Assistant. I can help you with submitting complaints, "
        "using the map, voting, voice input, image validation and troubleshooting.\n\n"
        "What would you like to know?"
    ),
    "confidence": 0.8,
    "category": "greeting",
    "actions": [
        _action("submit_complaint", "Submit Complaint"),
        _action("view_feed", "View Feed"),
    ],
}

GENERIC_RESPONSE = {
    "text": (
        "I'm not sure about that one, but I can help with:\n\n"
        "**App Features**, **Complaint Submission**, **Civic Issues**, "
        "**Voting**, **Voice Input** and **Troubleshooting**.\n\n"
        "Try asking about any of these topics!"
    ),
    "confidence": 0.5,
    "category": "generic_help",
    "actions": [
        _action("submit_complaint", "How to Submit?"),
        _action("view_feed", "App Features?"),
    ],
}

FOLLOW_UP_SUGGESTIONS: Dict[str, List[str]] = {
    "app_overview": [
        "How do I submit my first complaint?",
        "What civic issues can I report?",
        "How does the voting system work?",
    ],
    "submission_guide": [
        "What happens after I submit?",
        "How is priority calculated?",
        "Can I track my complaint status?",
    ],
    "civic_categories": [
        "Which issues are most urgent?",
        "How long does resolution take?",
        "Can I report multiple issues?",
    ],
    "voting_system": [
        "How many votes make a difference?",
        "Can I change my vote?",
        "Do votes affect response time?",
    ],
}

FOLLOW_UP_RESPONSES: Dict[str, str] = {
    "submission_guide": (
        "**More about Complaint Submission:**\n\n"
        "After submission your complaint gets an id and three workflow stages. "
        "Track progress in 'My Reports'. Urgent issues are handled first."
    ),
    "voting_system": (
        "**More about Voting:**\n\n"
        "Each person has one vote per complaint and can withdraw it at any time. "
        "Highly voted issues rise in the municipal priority queue."
    ),
    "civic_categories": (
        "**More about Civic Issues:**\n\n"
        "Urgent categories skip ahead of the normal queue. "
        "Everything else is handled in priority order and status updates are recorded on the complaint timeline."
    ),
    "location_privacy": (
        "**More about Privacy:**\n\n"
        "Location data is never shared with third parties and is used only for routing and priority. "
        "You choose between exact and approximate location."
    ),
}
DEFAULT_FOLLOW_UP = "I'd be happy to explain more! What specific aspect would you like to know about?"


def match_score(message: str, keywords: List[str]) -> float:
    """Sum of matched keyword lengths over message length, plus a bonus for several matches."""
    message = message.lower()
    if not message:
        return 0.0

    total = 0.0
    matches = 0
    for keyword in keywords:
        if keyword.lower() in message:
            total += len(keyword) / len(message)
            matches += 1

    bonus = MULTI_MATCH_BONUS if matches > 1 else 0.0
    return min(total + bonus, 1.0)


def is_greeting(message: str) -> bool:
    words = set(re.findall(r"[a-z]+", message.lower()))
    return any(word in words for word in GREETING_WORDS)


def is_follow_up(message: str) -> bool:
    message = message.lower()
    return any(i in message for i in FOLLOW_UP_INDICATORS) or any(w in message for w in MORE_DETAIL_WORDS)


def time_greeting(hour: int) -> str:
    if hour < 12:
        return "Good morning"
    if hour < 17:
        return "Good afternoon"
    return "Good evening"


class ConversationCache:
    """
    Bounded per-session message history.

    Sessions are evicted oldest-created first once capacity is exceeded.
    """

    def __init__(self, capacity: Optional[int] = None):
        self.capacity = capacity or settings.chat_session_capacity
        self._sessions: "OrderedDict[str, Dict[str, Any]]" = OrderedDict()
        self._lock = Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    def get(self, session_id: str) -> Optional[Dict[str, Any]]:
        return self._sessions.get(session_id)

    def get_or_create(self, session_id: str) -> Dict[str, Any]:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                session = {"messages": [], "start_time": utcnow()}
                self._sessions[session_id] = session
                self._evict()
            return session

    def append(self, session_id: str, message: Dict[str, Any]) -> None:
        session = self.get_or_create(session_id)
        with self._lock:
            session["messages"].append(message)

    def delete(self, session_id: str) -> bool:
        with self._lock:
            return self._sessions.pop(session_id, None) is not None

    def sessions(self) -> List[Dict[str, Any]]:
        with self._lock:
            return list(self._sessions.values())

    def _evict(self) -> None:
        while len(self._sessions) > self.capacity:
            evicted, _ = self._sessions.popitem(last=False)
            logger.debug("chat_session_evicted", session_id=evicted)


class ChatAssistant:
    """Answers user messages from the keyword knowledge base."""

    def __init__(self, cache: ConversationCache, knowledge_base: Optional[Dict[str, Dict[str, Any]]] = None):
        self.cache = cache
        self.knowledge_base = knowledge_base or KNOWLEDGE_BASE

    def find_best_match(self, message: str) -> Dict[str, Any]:
        """
        Best knowledge base entry for a message.

        Falls back to the greeting or generic help response when no entry
        scores at least the match threshold.
        """
        best = None
        best_score = 0.0
        for entry in self.knowledge_base.values():
            score = match_score(message, entry["keywords"])
            if score > best_score:
                best, best_score = entry, score

        if best is None or best_score < GENERIC_MATCH_THRESHOLD:
            return GREETING_RESPONSE if is_greeting(message) else GENERIC_RESPONSE
        return best

    def reply(self, session_id: str, message: str, now: Optional[datetime] = None) -> Dict[str, Any]:
        """
        Answer a message and record both sides in the session history.

        Args:
            session_id: Conversation key, "anonymous" when the client sends none
            message: User text
            now: Reference time for the greeting

        Returns:
            reply, confidence, category, suggested actions and follow-up suggestions
        """
        now = now or utcnow()
        session = self.cache.get_or_create(session_id)
        self.cache.append(session_id, {"type": "user", "text": message, "timestamp": now.isoformat()})

        lowered = message.lower()
        match = self.find_best_match(lowered)
        text = match["text"]
        confidence = match["confidence"]

        history = session["messages"]
        if len(history) > 1:
            last_bot = next((m for m in reversed(history[-CONTEXT_WINDOW - 1:]) if m["type"] == "bot"), None)
            if last_bot is not None and is_follow_up(lowered):
                text = FOLLOW_UP_RESPONSES.get(last_bot["category"], DEFAULT_FOLLOW_UP)
                confidence = min(confidence + FOLLOW_UP_BOOST, 1.0)

        if len(history) > EXPLORING_AFTER_MESSAGES:
            text += "\n\n*I notice you're exploring the app - feel free to ask me anything else!*"

        if is_greeting(lowered):
            text = f"{time_greeting(now.hour)}! {text}"

        category = match["category"]
        self.cache.append(session_id, {
            "type": "bot",
            "text": text,
            "confidence": confidence,
            "category": category,
            "timestamp": now.isoformat(),
        })

        logger.info("chat_reply", session_id=session_id, category=category, confidence=confidence)
        return {
            "reply": text,
            "confidence": confidence,
            "category": category,
            "suggested_actions": list(match.get("actions", [])),
            "follow_up_suggestions": FOLLOW_UP_SUGGESTIONS.get(category, []),
            "session_id": session_id,
        }

    def history(self, session_id: str, limit: Optional[int] = None) -> Dict[str, Any]:
        limit = limit or settings.chat_history_limit
        session = self.cache.get(session_id)
        if session is None:
            return {"messages": [], "session_exists": False, "start_time": None}
        return {
            "messages": session["messages"][-limit:],
            "session_exists": True,
            "start_time": session["start_time"].isoformat(),
        }

    def clear(self, session_id: str) -> bool:
        cleared = self.cache.delete(session_id)
        logger.info("chat_history_cleared", session_id=session_id, existed=cleared)
        return cleared

    def analytics(self, now: Optional[datetime] = None) -> Dict[str, Any]:
        """Session and category counts across every cached conversation."""
        now = now or utcnow()
        sessions = self.cache.sessions()
        categories: Dict[str, int] = {}
        confidences: List[float] = []
        total_messages = 0

        for session in sessions:
            total_messages += len(session["messages"])
            for msg in session["messages"]:
                if msg["type"] != "bot":
                    continue
                categories[msg["category"]] = categories.get(msg["category"], 0) + 1
                if msg.get("confidence"):
                    confidences.append(msg["confidence"])

        average = sum(confidences) / len(confidences) if confidences else 0.0
        popular = sorted(categories.items(), key=lambda item: -item[1])[:5]
        return {
            "total_sessions": len(sessions),
            "total_messages": total_messages,
            "average_confidence": round(average, 2),
            "category_distribution": categories,
            "popular_categories": [{"category": c, "count": n} for c, n in popular],
            "timestamp": now.isoformat(),
        }
