"""
Approvals routes: pending steps, workflow creation and step decisions.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import Optional

from ..database import get_db
from ..models.user import User
from ..auth import get_required_user
from ..messages import t
from ..responses import success
from ..schemas.approval import (
    ApproveRequest,
    RejectRequest,
    WorkflowCreate,
    WorkflowDetail,
    PendingStepResponse,
)
from .. import workflow as approvals

router = APIRouter(prefix="/api/approvals", tags=["approvals"])


@router.get("")
def get_pending_approvals(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_required_user),
):
    """Get the steps waiting on the current user's decision."""
    steps = approvals.list_pending_steps(db, current_user)
    return success(
        approvals=[PendingStepResponse.model_validate(step).model_dump(mode="json") for step in steps],
        count=len(steps),
    )


@router.post("")
def create_workflow(
    data: WorkflowCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_required_user),
):
    """Create an approval workflow for a resource (admins and owners only)."""
    workflow = approvals.create_workflow(db, current_user, data)
    return success(
        t("workflow_created", current_user.locale),
        workflow_id=workflow.id,
    )


@router.get("/workflows/{workflow_id}", response_model=WorkflowDetail)
def get_workflow(
    workflow_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_required_user),
):
    """Get a workflow of the current user's organization with its steps and comments."""
    return approvals.get_workflow(db, current_user, workflow_id)


@router.post("/{step_id}/approve")
def approve(
    step_id: int,
    body: Optional[ApproveRequest] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_required_user),
):
    """Approve a pending step assigned to the current user."""
    message = approvals.approve_step(db, step_id, current_user, body.comments if body else None)
    return success(message)


@router.post("/{step_id}/reject")
def reject(
    step_id: int,
    body: Optional[RejectRequest] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_required_user),
):
    """Reject a pending step assigned to the current user. A reason is required."""
    message = approvals.reject_step(db, step_id, current_user, body.comments if body else None)
    return success(message)
