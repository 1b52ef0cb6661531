"""
Workflow stage reconciliation.

Each complaint moves through three ordered stages. The complaint's own
status is derived from the stage statuses after every stage write; the
explicit override is the only way to set it directly, and it rewrites
the stages so both views agree.
"""
from __future__ import annotations

from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from src.civicstack.db.models import Complaint, ComplaintStage, ComplaintUpdate
from src.civicstack.db.repository import ComplaintRepository, StageRepository, UpdateRepository
from src.civicstack.db.utils import utcnow
from src.civicstack.errors import ComplaintNotFound, ValidationFailed, WorkflowNotFound
from src.civicstack.models.complaint import TERMINAL_STATUSES, ComplaintStatus, StageStatus
from src.civicstack.utils.logger import get_logger

logger = get_logger(__name__)

STAGE_NAMES = ("Initial Review", "Assessment", "Resolution")
SYSTEM_ACTOR = "system"


def derive_complaint_status(
    stage_statuses: Iterable[str],
    last_changed: Optional[str] = None,
) -> ComplaintStatus:
    """
    Complaint status as a pure function of stage statuses.

    - all completed -> resolved
    - any in_progress -> in_progress
    - none completed and the latest change was a cancellation -> cancelled
      (with no latest change known, any cancelled stage counts)
    - otherwise -> pending

    Args:
        stage_statuses: Statuses of the three stages, in order
        last_changed: Status written by the most recent stage update

    Returns:
        Derived ComplaintStatus
    """
    statuses = [StageStatus(s) for s in stage_statuses]
    completed = [s == StageStatus.COMPLETED for s in statuses]

    if statuses and all(completed):
        return ComplaintStatus.RESOLVED
    if StageStatus.IN_PROGRESS in statuses:
        return ComplaintStatus.IN_PROGRESS
    if not any(completed):
        if last_changed is not None:
            if StageStatus(last_changed) == StageStatus.CANCELLED:
                return ComplaintStatus.CANCELLED
        elif StageStatus.CANCELLED in statuses:
            return ComplaintStatus.CANCELLED
    return ComplaintStatus.PENDING


def reconciled_status(current: str, derived: ComplaintStatus) -> ComplaintStatus:
    """
    Status to persist after a stage write.

    Terminal complaints stay terminal, and in_progress never slides back
    to pending; only override_status can do either.
    """
    current = ComplaintStatus(current)
    if current in TERMINAL_STATUSES:
        return current
    if current == ComplaintStatus.IN_PROGRESS and derived == ComplaintStatus.PENDING:
        return current
    return derived


class WorkflowService:
    """Stage updates, advancement, overrides and workflow reads."""

    def __init__(self, session: Session):
        self.session = session
        self.complaints = ComplaintRepository()
        self.stages = StageRepository()
        self.updates = UpdateRepository()

    def create_stages(self, complaint: Complaint) -> List[ComplaintStage]:
        stages = [
            ComplaintStage(
                complaint_id=complaint.id,
                stage_order=order,
                stage_name=name,
                status=StageStatus.PENDING.value,
            )
            for order, name in enumerate(STAGE_NAMES, start=1)
        ]
        self.session.add_all(stages)
        self.session.flush()
        return stages

    def ensure_stages(self, complaint: Complaint) -> List[ComplaintStage]:
        """Stages for a complaint, created on first access if missing."""
        stages = self.stages.for_complaint(self.session, complaint.id)
        if len(stages) == len(STAGE_NAMES):
            return stages

        existing = {s.stage_order for s in stages}
        for order, name in enumerate(STAGE_NAMES, start=1):
            if order not in existing:
                self.session.add(ComplaintStage(
                    complaint_id=complaint.id,
                    stage_order=order,
                    stage_name=name,
                    status=StageStatus.PENDING.value,
                ))
        self.session.flush()
        logger.info("workflow_stages_backfilled", complaint_id=complaint.id, existing=sorted(existing))
        return self.stages.for_complaint(self.session, complaint.id)

    def record_update(
        self,
        complaint_id: str,
        old_status: Optional[str],
        new_status: str,
        actor: Optional[str],
        notes: Optional[str],
    ) -> ComplaintUpdate:
        entry = ComplaintUpdate(
            complaint_id=complaint_id,
            old_status=old_status,
            new_status=new_status,
            updated_by=actor,
            notes=notes,
        )
        self.session.add(entry)
        return entry

    def update_stage(
        self,
        complaint_id: str,
        stage_order: int,
        status: str,
        notes: Optional[str] = None,
        actor: Optional[str] = None,
        assigned_to: Optional[str] = None,
        estimated_cost: Optional[float] = None,
    ) -> dict:
        """
        Write one stage's status and reconcile the complaint status.

        Raises:
            ValidationFailed: Bad stage number or status
            ComplaintNotFound: Unknown complaint
        """
        if stage_order not in range(1, len(STAGE_NAMES) + 1):
            raise ValidationFailed("Invalid stage ID. Must be 1, 2, or 3", code="INVALID_STAGE")
        try:
            new_status = StageStatus(status)
        except ValueError:
            raise ValidationFailed(
                f'Invalid status: "{status}". Must be pending, in_progress, completed, or cancelled',
                code="INVALID_STATUS",
            )

        complaint = self._get_complaint(complaint_id)
        stages = self.ensure_stages(complaint)
        stage = next((s for s in stages if s.stage_order == stage_order), None)
        if stage is None:
            raise WorkflowNotFound(f"Stage {stage_order} not found for complaint {complaint_id}")
        old_status = stage.status

        self._set_stage_status(stage, new_status)
        if notes is not None:
            stage.notes = notes
        if assigned_to is not None:
            stage.assigned_to = assigned_to
        if estimated_cost is not None:
            stage.estimated_cost = estimated_cost

        self.record_update(
            complaint.id,
            old_status,
            new_status.value,
            actor,
            f"{stage.stage_name}: {notes or 'Status updated'}",
        )
        previous, current = self._reconcile(complaint, stages, last_changed=new_status.value, actor=actor)
        self.session.commit()

        logger.info(
            "workflow_stage_updated",
            complaint_id=complaint.id,
            stage=stage_order,
            old_status=old_status,
            new_status=new_status.value,
            complaint_status=current.value
        )
        return {
            "stage_id": stage_order,
            "stage_name": stage.stage_name,
            "stage_status": new_status.value,
            "complaint_status": current.value,
            "complaint_status_changed": previous != current,
        }

    def advance(self, complaint_id: str, actor: Optional[str] = None) -> dict:
        """
        Activate the next stage.

        Nothing changes while a stage is in progress. Otherwise the first
        pending stage after the completed prefix becomes in_progress.
        """
        complaint = self._get_complaint(complaint_id)
        if ComplaintStatus(complaint.status) in TERMINAL_STATUSES:
            return {"advanced": False, "message": "Complaint is already at final stage", "complaint_status": complaint.status}

        stages = self.ensure_stages(complaint)
        active = next((s for s in stages if s.status == StageStatus.IN_PROGRESS.value), None)
        if active is not None:
            return {
                "advanced": False,
                "message": f"{active.stage_name} stage is already in progress",
                "complaint_status": complaint.status,
            }

        candidate = next((s for s in stages if s.status != StageStatus.COMPLETED.value), None)
        if candidate is None or candidate.status != StageStatus.PENDING.value:
            return {"advanced": False, "message": "No pending stage to activate", "complaint_status": complaint.status}

        result = self.update_stage(
            complaint.id,
            candidate.stage_order,
            StageStatus.IN_PROGRESS.value,
            notes="Stage activated",
            actor=actor,
        )
        return {
            "advanced": True,
            "message": f"{candidate.stage_name} stage activated",
            "stage_id": candidate.stage_order,
            "complaint_status": result["complaint_status"],
        }

    def override_status(
        self,
        complaint_id: str,
        status: str,
        actor: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> dict:
        """
        Set the complaint status directly (reject / resolve / reopen) and
        rewrite the stages to a consistent view.
        """
        try:
            new_status = ComplaintStatus(status)
        except ValueError:
            raise ValidationFailed(
                f'Invalid status: "{status}". Must be pending, in_progress, resolved, or cancelled',
                code="INVALID_STATUS",
            )

        complaint = self._get_complaint(complaint_id)
        stages = self.ensure_stages(complaint)
        old_status = complaint.status

        if new_status == ComplaintStatus.RESOLVED:
            for stage in stages:
                self._set_stage_status(stage, StageStatus.COMPLETED)
        elif new_status == ComplaintStatus.CANCELLED:
            for stage in stages:
                if stage.status != StageStatus.COMPLETED.value:
                    self._set_stage_status(stage, StageStatus.CANCELLED)
        elif new_status == ComplaintStatus.IN_PROGRESS:
            first_open = True
            for stage in stages:
                if stage.status == StageStatus.COMPLETED.value:
                    continue
                self._set_stage_status(stage, StageStatus.IN_PROGRESS if first_open else StageStatus.PENDING)
                first_open = False
            if first_open:
                # every stage was completed; reopen the last one
                self._set_stage_status(stages[-1], StageStatus.IN_PROGRESS)
        else:
            for stage in stages:
                self._set_stage_status(stage, StageStatus.PENDING)

        self._set_complaint_status(complaint, new_status)
        self.record_update(complaint.id, old_status, new_status.value, actor, notes or "Status overridden")
        self.session.commit()

        logger.info(
            "complaint_status_overridden",
            complaint_id=complaint.id,
            old_status=old_status,
            new_status=new_status.value,
            actor=actor
        )
        return {"complaint_id": complaint.id, "old_status": old_status, "status": new_status.value}

    def get_workflow(self, complaint_id: str) -> dict:
        complaint = self._get_complaint(complaint_id)
        stages = self.ensure_stages(complaint)
        self.session.commit()
        return {
            "complaint": complaint,
            "stages": stages,
            "timeline": self.updates.for_complaint(self.session, complaint.id),
        }

    def _get_complaint(self, complaint_id: str) -> Complaint:
        complaint = self.complaints.get_by_id(self.session, complaint_id)
        if complaint is None:
            raise ComplaintNotFound(complaint_id)
        return complaint

    def _set_stage_status(self, stage: ComplaintStage, status: StageStatus) -> None:
        now = utcnow()
        stage.status = status.value
        if status == StageStatus.IN_PROGRESS and stage.started_at is None:
            stage.started_at = now
        if status == StageStatus.COMPLETED:
            stage.started_at = stage.started_at or now
            stage.completed_at = now
        elif status == StageStatus.PENDING:
            stage.started_at = None
            stage.completed_at = None
        else:
            stage.completed_at = None

    def _set_complaint_status(self, complaint: Complaint, status: ComplaintStatus) -> None:
        complaint.status = status.value
        complaint.resolved_at = utcnow() if status == ComplaintStatus.RESOLVED else None

    def _reconcile(self, complaint: Complaint, stages: List[ComplaintStage], last_changed: str, actor: Optional[str]):
        previous = ComplaintStatus(complaint.status)
        derived = derive_complaint_status([s.status for s in stages], last_changed)
        target = reconciled_status(complaint.status, derived)

        if target != previous:
            self._set_complaint_status(complaint, target)
            self.record_update(
                complaint.id,
                previous.value,
                target.value,
                actor or SYSTEM_ACTOR,
                "Complaint status derived from workflow stages",
            )
        elif derived != target:
            logger.info(
                "workflow_status_held",
                complaint_id=complaint.id,
                status=target.value,
                derived=derived.value
            )
        return previous, target
