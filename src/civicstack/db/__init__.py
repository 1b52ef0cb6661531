"""
Database Package

Database models, connection management, and data persistence layer.
"""
from src.civicstack.db.base import Base
from src.civicstack.db.session import (
    get_engine,
    get_session_factory,
    get_db_session,
    close_connections,
)
from src.civicstack.db.models import (
    Complaint,
    ComplaintFeedback,
    ComplaintVote,
    ComplaintStage,
    ComplaintUpdate,
)
from src.civicstack.db.repository import (
    BaseRepository,
    ComplaintRepository,
    VoteRepository,
    StageRepository,
    UpdateRepository,
    FeedbackRepository,
)

__all__ = [
    # Base
    "Base",
    # Session
    "get_engine",
    "get_session_factory",
    "get_db_session",
    "close_connections",
    # Models
    "Complaint",
    "ComplaintFeedback",
    "ComplaintVote",
    "ComplaintStage",
    "ComplaintUpdate",
    # Repositories
    "BaseRepository",
    "ComplaintRepository",
    "VoteRepository",
    "StageRepository",
    "UpdateRepository",
    "FeedbackRepository",
]
