"""
Admin Router

Workflow stage management, status overrides, the priority queue and
maintenance operations for municipal staff. Role checks belong to the
external auth service; every call here needs a valid token and the
caller is recorded as the actor.
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from src.civicstack.api.auth import get_current_user_id
from src.civicstack.api.cache import invalidate_cache
from src.civicstack.api.dependencies import get_complaint_service, get_db, get_vote_ledger, get_workflow_service
from src.civicstack.api.schemas import (
    AdminOverview,
    AdminOverviewResponse,
    DeleteComplaintResponse,
    PriorityQueueResponse,
    StageAdvanceResponse,
    StageUpdateRequest,
    StageUpdateResponse,
    StatusOverrideRequest,
    StatusOverrideResponse,
    VoteReconcileResponse,
    WorkflowDetailResponse,
)
from src.civicstack.services.complaints import ComplaintService
from src.civicstack.services.dashboards import admin_overview, fetch_complaint_rows, fetch_stage_rows
from src.civicstack.services.votes import VoteLedger
from src.civicstack.services.workflow import WorkflowService
from src.civicstack.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/api/admin/complaints", tags=["admin"])
dashboard_router = APIRouter(prefix="/api/admin/dashboard", tags=["admin"])

DASHBOARD_CACHE_PREFIX = "transparency"
TOP_PRIORITY_LIMIT = 10


@router.get("/priority-queue", response_model=PriorityQueueResponse)
def priority_queue(
    limit: int = Query(50, ge=1, le=500, description="Number of open complaints to return"),
    actor: str = Depends(get_current_user_id),
    service: ComplaintService = Depends(get_complaint_service),
):
    """Open complaints, highest priority first, then most voted, then oldest."""
    return PriorityQueueResponse(complaints=service.priority_queue(limit=limit))


@router.get("/{complaint_id}/details", response_model=WorkflowDetailResponse)
def complaint_details(
    complaint_id: str,
    actor: str = Depends(get_current_user_id),
    workflow: WorkflowService = Depends(get_workflow_service),
):
    """Complaint with its stages and timeline. Missing stages are created."""
    return WorkflowDetailResponse(**workflow.get_workflow(complaint_id))


@router.put("/{complaint_id}/stage/{stage_id}", response_model=StageUpdateResponse)
def update_stage(
    complaint_id: str,
    stage_id: int,
    payload: StageUpdateRequest,
    actor: str = Depends(get_current_user_id),
    workflow: WorkflowService = Depends(get_workflow_service),
):
    """
    Set one stage's status and reconcile the complaint status.

    Args:
        complaint_id: Complaint id
        stage_id: Stage order (1 Initial Review, 2 Assessment, 3 Resolution)
        payload: New status with optional notes, assignee and estimated cost
    """
    result = workflow.update_stage(
        complaint_id,
        stage_id,
        payload.status,
        notes=payload.notes,
        actor=actor,
        assigned_to=payload.assigned_to,
        estimated_cost=payload.estimated_cost,
    )
    if result["complaint_status_changed"]:
        invalidate_cache(DASHBOARD_CACHE_PREFIX)
    return StageUpdateResponse(**result)


@router.post("/{complaint_id}/stage/next", response_model=StageAdvanceResponse)
def advance_stage(
    complaint_id: str,
    actor: str = Depends(get_current_user_id),
    workflow: WorkflowService = Depends(get_workflow_service),
):
    """Activate the next pending stage."""
    result = workflow.advance(complaint_id, actor=actor)
    if result["advanced"]:
        invalidate_cache(DASHBOARD_CACHE_PREFIX)
    return StageAdvanceResponse(**result)


@router.put("/{complaint_id}/status", response_model=StatusOverrideResponse)
def override_status(
    complaint_id: str,
    payload: StatusOverrideRequest,
    actor: str = Depends(get_current_user_id),
    workflow: WorkflowService = Depends(get_workflow_service),
):
    """Reject, resolve or reopen a complaint directly; stages are rewritten to match."""
    result = workflow.override_status(complaint_id, payload.status, actor=actor, notes=payload.notes)
    invalidate_cache(DASHBOARD_CACHE_PREFIX)
    return StatusOverrideResponse(**result)


@router.post("/{complaint_id}/votes/reconcile", response_model=VoteReconcileResponse)
def reconcile_votes(
    complaint_id: str,
    actor: str = Depends(get_current_user_id),
    ledger: VoteLedger = Depends(get_vote_ledger),
):
    """Recount upvote rows and repair the stored vote count."""
    return VoteReconcileResponse(**ledger.reconcile_count(complaint_id))


@router.delete("/{complaint_id}", response_model=DeleteComplaintResponse)
def delete_complaint(
    complaint_id: str,
    actor: str = Depends(get_current_user_id),
    service: ComplaintService = Depends(get_complaint_service),
):
    """Hard delete a complaint with its votes, timeline and stages."""
    deleted = service.delete(complaint_id)
    invalidate_cache(DASHBOARD_CACHE_PREFIX)
    logger.info("complaint_deleted", complaint_id=complaint_id, actor=actor)
    return DeleteComplaintResponse(complaint_id=complaint_id, deleted=deleted)


@dashboard_router.get("/overview", response_model=AdminOverviewResponse)
def dashboard_overview(
    actor: str = Depends(get_current_user_id),
    db: Session = Depends(get_db),
    service: ComplaintService = Depends(get_complaint_service),
):
    """
    Staff overview.

    Workload headline numbers, per-stage progress, the estimated cost
    recorded on stages and the ten highest priority open complaints.
    """
    overview = admin_overview(fetch_complaint_rows(db), fetch_stage_rows(db))
    return AdminOverviewResponse(data=AdminOverview(
        **overview,
        top_priority_complaints=service.priority_queue(limit=TOP_PRIORITY_LIMIT),
    ))
