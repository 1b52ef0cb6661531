"""
Complaints Router

Submission, priority preview, listing and personal reports.
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from src.civicstack.api.auth import get_current_user_id, get_optional_user_id
from src.civicstack.api.cache import invalidate_cache
from src.civicstack.api.schemas import (
    CalculatePriorityRequest,
    ComplaintDetailResponse,
    ComplaintListResponse,
    ComplaintOut,
    PersonalReportsResponse,
    PriorityAnalysisOut,
    PriorityPreviewResponse,
    SubmitComplaintRequest,
    SubmitComplaintResponse,
)
from src.civicstack.api.dependencies import get_complaint_service
from src.civicstack.scoring.priority_engine import PriorityAnalysis, next_steps
from src.civicstack.services.complaints import ComplaintService
from src.civicstack.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api/complaints", tags=["complaints"])

DASHBOARD_CACHE_PREFIX = "transparency"


def analysis_out(analysis: PriorityAnalysis) -> PriorityAnalysisOut:
    return PriorityAnalysisOut.model_validate(analysis.model_dump(mode="json"))


@router.post("/submit", response_model=SubmitComplaintResponse, status_code=201)
def submit_complaint(
    payload: SubmitComplaintRequest,
    user_id: Optional[str] = Depends(get_optional_user_id),
    service: ComplaintService = Depends(get_complaint_service),
):
    """
    Submit a complaint.

    Scores it, stores it with its three workflow stages and records the
    reporter's own upvote.

    Returns:
        Created complaint, priority breakdown and next steps
    """
    complaint, analysis = service.submit(
        title=payload.title,
        description=payload.description,
        category=payload.category,
        location=payload.location_data,
        image_url=payload.image_url,
        image_validation=payload.image_validation,
        user_id=user_id,
    )
    invalidate_cache(DASHBOARD_CACHE_PREFIX)

    return SubmitComplaintResponse(
        complaint=ComplaintOut.model_validate(complaint),
        priority_analysis=analysis_out(analysis),
        next_steps=next_steps(analysis.priority_level),
    )


@router.post("/calculate-priority", response_model=PriorityPreviewResponse)
def calculate_priority(
    payload: CalculatePriorityRequest,
    service: ComplaintService = Depends(get_complaint_service),
):
    """Priority preview before submission; nothing is stored."""
    analysis = service.calculate_priority(
        payload.description,
        payload.category,
        payload.location_data,
        payload.image_validation,
    )
    return PriorityPreviewResponse(priority_analysis=analysis_out(analysis))


@router.get("", response_model=ComplaintListResponse)
def list_complaints(
    page: int = Query(1, ge=1, description="Page number"),
    limit: int = Query(20, ge=1, le=100, description="Complaints per page"),
    status: Optional[str] = Query(None, description="Filter by status"),
    category: Optional[str] = Query(None, description="Filter by category"),
    user_id: Optional[str] = Query(None, description="Filter by reporter"),
    sort_by: str = Query("created_at", pattern="^(created_at|priority_score|vote_count)$"),
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
    latitude: Optional[float] = Query(None, ge=-90, le=90),
    longitude: Optional[float] = Query(None, ge=-180, le=180),
    radius: Optional[float] = Query(None, gt=0, description="Radius in metres around latitude/longitude"),
    viewer_id: Optional[str] = Depends(get_optional_user_id),
    service: ComplaintService = Depends(get_complaint_service),
):
    """
    List complaints with filtering, sorting and pagination.

    Authenticated callers also get a userVoted flag per complaint.
    """
    result = service.list_complaints(
        page=page,
        limit=limit,
        status=status,
        category=category,
        user_id=user_id,
        latitude=latitude,
        longitude=longitude,
        radius=radius,
        sort_by=sort_by,
        sort_order=sort_order,
        viewer_id=viewer_id,
    )

    complaints = []
    for complaint in result["complaints"]:
        item = ComplaintOut.model_validate(complaint)
        if viewer_id:
            item.user_voted = result["user_voted"].get(complaint.id, False)
        complaints.append(item)

    return ComplaintListResponse(complaints=complaints, pagination=result["pagination"])


@router.get("/mine", response_model=PersonalReportsResponse)
def personal_reports(
    user_id: str = Depends(get_current_user_id),
    service: ComplaintService = Depends(get_complaint_service),
):
    """The caller's own complaints with stage tracking."""
    result = service.personal_reports(user_id)
    return PersonalReportsResponse(reports=result["reports"], summary=result["summary"])


@router.get("/{complaint_id}", response_model=ComplaintDetailResponse)
def get_complaint(
    complaint_id: str,
    service: ComplaintService = Depends(get_complaint_service),
):
    return ComplaintDetailResponse(complaint=ComplaintOut.model_validate(service.get(complaint_id)))


@router.post("/{complaint_id}/recalculate-priority", response_model=PriorityPreviewResponse)
def recalculate_priority(
    complaint_id: str,
    actor: str = Depends(get_current_user_id),
    service: ComplaintService = Depends(get_complaint_service),
):
    """Rescore a stored complaint with its current age, votes and status."""
    analysis = service.recalculate(complaint_id)
    logger.info("priority_recalculation_requested", complaint_id=complaint_id, actor=actor)
    return PriorityPreviewResponse(priority_analysis=analysis_out(analysis))
