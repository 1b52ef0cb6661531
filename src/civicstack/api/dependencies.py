"""
FastAPI Dependencies

Provides dependency injection for database sessions, scoring components,
collaborator clients and services.
"""
from functools import lru_cache
from typing import Generator

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from src.civicstack.analysis.emotion import EmotionAnalyzer
from src.civicstack.clients.facilities import FacilityLookupClient
from src.civicstack.clients.image_validation import ImageValidationClient
from src.civicstack.clients.sentiment import SentimentClient
from src.civicstack.db.session import get_session_factory
from src.civicstack.scoring.location_priority import LocationPriorityEvaluator
from src.civicstack.scoring.priority_engine import PriorityFusionEngine
from src.civicstack.services.chat import ChatAssistant, ConversationCache
from src.civicstack.services.complaints import ComplaintService
from src.civicstack.services.feedback import FeedbackService
from src.civicstack.services.votes import VoteLedger
from src.civicstack.services.workflow import WorkflowService


def get_db() -> Generator[Session, None, None]:
    """
    Database session dependency.

    Yields:
        SQLAlchemy database session
    """
    db = get_session_factory()()
    try:
        yield db
    finally:
        db.close()


@lru_cache(maxsize=1)
def get_emotion_analyzer() -> EmotionAnalyzer:
    return EmotionAnalyzer(SentimentClient())


@lru_cache(maxsize=1)
def get_priority_engine() -> PriorityFusionEngine:
    """Process-wide fusion engine; the collaborators it holds are stateless."""
    return PriorityFusionEngine(
        LocationPriorityEvaluator(FacilityLookupClient()),
        get_emotion_analyzer(),
    )


@lru_cache(maxsize=1)
def get_image_client() -> ImageValidationClient:
    return ImageValidationClient()


def get_conversation_cache(request: Request) -> ConversationCache:
    """The app-scoped chat session cache created at startup."""
    return request.app.state.conversation_cache


def get_complaint_service(
    db: Session = Depends(get_db),
    engine: PriorityFusionEngine = Depends(get_priority_engine),
    image_client: ImageValidationClient = Depends(get_image_client),
) -> ComplaintService:
    return ComplaintService(db, engine, image_client)


def get_vote_ledger(db: Session = Depends(get_db)) -> VoteLedger:
    return VoteLedger(db)


def get_workflow_service(db: Session = Depends(get_db)) -> WorkflowService:
    return WorkflowService(db)


def get_feedback_service(db: Session = Depends(get_db)) -> FeedbackService:
    return FeedbackService(db)


def get_chat_assistant(cache: ConversationCache = Depends(get_conversation_cache)) -> ChatAssistant:
    return ChatAssistant(cache)
