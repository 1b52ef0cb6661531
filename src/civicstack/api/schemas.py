"""
Pydantic Schemas for API Request/Response Models

These schemas define the JSON structure for API endpoints. Field names are
snake_case in Python and camelCase on the wire.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from src.civicstack.analysis.emotion import EmotionScores
from src.civicstack.models.complaint import ImageValidation, LocationData


class CamelModel(BaseModel):
    """Base schema: camelCase aliases, accepts either spelling, reads ORM attributes."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


# Requests

class SubmitComplaintRequest(CamelModel):
    """Complaint submission. Required fields are checked by the service so the error carries its code."""
    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    location_data: Optional[LocationData] = None
    image_url: Optional[str] = None
    image_validation: Optional[ImageValidation] = None


class CalculatePriorityRequest(CamelModel):
    description: Optional[str] = None
    category: str
    location_data: Optional[LocationData] = None
    image_validation: Optional[ImageValidation] = None


class VoteRequest(CamelModel):
    complaint_id: str


class GuestVoteRequest(CamelModel):
    complaint_id: str
    device_id: Optional[str] = None


class StageUpdateRequest(CamelModel):
    status: str
    notes: Optional[str] = None
    assigned_to: Optional[str] = None
    estimated_cost: Optional[float] = Field(None, ge=0)


class StatusOverrideRequest(CamelModel):
    status: str
    notes: Optional[str] = None


class EmotionAnalyzeRequest(CamelModel):
    text: str
    category: Optional[str] = None


class FeedbackRequest(CamelModel):
    complaint_id: str
    rating: Optional[int] = None
    feedback: Optional[str] = None
    improvements: Optional[str] = None
    submitted_at: Optional[datetime] = None


class ChatMessageRequest(CamelModel):
    message: str = Field(..., min_length=1)
    user_id: str = "anonymous"


# Complaint views

class ComplaintOut(CamelModel):
    id: str
    title: str
    description: str
    category: str
    status: str
    location_latitude: Optional[float] = None
    location_longitude: Optional[float] = None
    location_address: Optional[str] = None
    image_urls: Optional[List[str]] = None
    verification_status: str
    priority_score: Optional[float] = None
    priority_level: Optional[str] = None
    priority_reasoning: Optional[str] = None
    location_score: Optional[float] = None
    emotion_score: Optional[float] = None
    image_confidence: Optional[float] = None
    vote_count: int = 0
    user_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None
    user_voted: Optional[bool] = None


class StageOut(CamelModel):
    id: str
    stage_order: int
    stage_name: str
    status: str
    assigned_to: Optional[str] = None
    estimated_cost: Optional[float] = None
    notes: Optional[str] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class TimelineEntryOut(CamelModel):
    id: str
    old_status: Optional[str] = None
    new_status: str
    updated_by: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime


class PriorityBreakdownOut(CamelModel):
    location_score: float
    image_score: float
    emotion_score: float
    category_multiplier: float
    adjusted_emotion_score: float
    age_score: float
    vote_score: float
    status_multiplier: float


class PriorityAnalysisOut(CamelModel):
    total_score: float
    priority_level: str
    breakdown: PriorityBreakdownOut
    reasoning: str
    method: str
    degraded: bool
    facilities_count: int


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    pages: int


# Responses

class SubmitComplaintResponse(CamelModel):
    success: bool = True
    complaint: ComplaintOut
    priority_analysis: PriorityAnalysisOut
    next_steps: List[str]


class PriorityPreviewResponse(CamelModel):
    success: bool = True
    priority_analysis: PriorityAnalysisOut


class ComplaintListResponse(CamelModel):
    success: bool = True
    complaints: List[ComplaintOut]
    pagination: Pagination


class ComplaintDetailResponse(CamelModel):
    success: bool = True
    complaint: ComplaintOut


class WorkflowDetailResponse(CamelModel):
    success: bool = True
    complaint: ComplaintOut
    stages: List[StageOut]
    timeline: List[TimelineEntryOut]


class PersonalReport(CamelModel):
    complaint: ComplaintOut
    stages: List[StageOut]


class PersonalReportsResponse(CamelModel):
    success: bool = True
    reports: List[PersonalReport]
    summary: Dict[str, int]


class PriorityQueueResponse(CamelModel):
    success: bool = True
    complaints: List[ComplaintOut]


class DeleteComplaintResponse(CamelModel):
    success: bool = True
    complaint_id: str
    deleted: Dict[str, int]


class VoteResponse(CamelModel):
    success: bool = True
    action: str
    vote_count: int
    user_voted: bool
    message: str


class GuestVoteStatusResponse(CamelModel):
    success: bool = True
    complaint_id: str
    vote_count: int
    user_voted: bool


class VoteReconcileResponse(CamelModel):
    success: bool = True
    complaint_id: str
    previous_count: int
    vote_count: int


class StageUpdateResponse(CamelModel):
    success: bool = True
    stage_id: int
    stage_name: str
    stage_status: str
    complaint_status: str
    complaint_status_changed: bool


class StageAdvanceResponse(CamelModel):
    success: bool = True
    advanced: bool
    message: str
    stage_id: Optional[int] = None
    complaint_status: str


class StatusOverrideResponse(CamelModel):
    success: bool = True
    complaint_id: str
    old_status: str
    status: str


class EmotionAnalyzeResponse(CamelModel):
    success: bool = True
    score: float
    adjusted_score: float
    emotions: EmotionScores
    language: str
    method: str
    category: str
    category_detected: bool


class StatisticsSummary(CamelModel):
    total: int
    pending: int
    in_progress: int
    resolved: int
    cancelled: int


class StatisticsSummaryResponse(CamelModel):
    success: bool = True
    data: StatisticsSummary


class FeedbackOut(CamelModel):
    feedback_id: str
    complaint_id: str
    rating: int
    submitted_at: datetime


class FeedbackResponse(CamelModel):
    success: bool = True
    message: str = "Feedback submitted successfully"
    data: FeedbackOut


class FeedbackStats(CamelModel):
    total_feedback: int
    average_rating: float
    rating_distribution: Dict[str, int]
    recent_feedback: List[Dict[str, Any]]


class FeedbackStatsResponse(CamelModel):
    success: bool = True
    data: FeedbackStats


class AdminOverview(CamelModel):
    overview: Dict[str, Any]
    stage_progress: Dict[str, Dict[str, int]]
    cost_analysis: Dict[str, Any]
    top_priority_complaints: List[ComplaintOut]
    last_updated: str


class AdminOverviewResponse(CamelModel):
    success: bool = True
    data: AdminOverview


class ChatReplyResponse(CamelModel):
    success: bool = True
    reply: str
    confidence: float
    category: str
    suggested_actions: List[Dict[str, Any]]
    follow_up_suggestions: List[str]
    session_id: str


class ChatHistoryResponse(CamelModel):
    success: bool = True
    messages: List[Dict[str, Any]]
    session_exists: bool
    start_time: Optional[str] = None


class ChatAnalytics(CamelModel):
    total_sessions: int
    total_messages: int
    average_confidence: float
    category_distribution: Dict[str, int]
    popular_categories: List[Dict[str, Any]]
    timestamp: str


class ChatAnalyticsResponse(CamelModel):
    success: bool = True
    analytics: ChatAnalytics


class MessageResponse(CamelModel):
    success: bool = True
    message: str


class HealthCheck(BaseModel):
    """Health check response."""
    status: str
    version: str
    database: str
    cache: str
    timestamp: datetime
