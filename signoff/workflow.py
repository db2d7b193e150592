"""
Approval workflow operations.

Deciding a step moves it from pending to approved or rejected exactly once.
The pending guard is enforced twice: a read for a precise error message, then
a conditional UPDATE that only matches pending rows, so two concurrent
deciders cannot both win. The step update, the audit comment and the
activity entry are committed together or not at all.
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from .logging_config import approvals_logger as logger
from .messages import t
from .models.activity import Activity
from .models.approval import (
    ApprovalComment,
    ApprovalStep,
    ApprovalWorkflow,
    STEP_APPROVED,
    STEP_PENDING,
    STEP_REJECTED,
)
from .models.user import User
from .responses import (
    AlreadyDecided,
    Forbidden,
    InvalidInput,
    NotFound,
    Unauthenticated,
    Unexpected,
    require_text,
)
from .schemas.approval import WorkflowCreate


def log_activity(
    db: Session,
    actor: User,
    organization_id: int,
    action: str,
    description: str,
    metadata: Optional[Dict[str, Any]] = None,
) -> Activity:
    """Stage an audit entry in the current transaction. The caller commits."""
    activity = Activity(
        organization_id=organization_id,
        user_id=actor.id,
        action=action,
        description=description,
        extra_data=metadata,
    )
    db.add(activity)
    return activity


# ============================================================
# STEP DECISIONS
# ============================================================

def _load_decidable_step(db: Session, step_id: int, actor: Optional[User], verb: str) -> ApprovalStep:
    if actor is None:
        raise Unauthenticated(t("unauthenticated"))

    step = (
        db.query(ApprovalStep)
        .options(joinedload(ApprovalStep.workflow))
        .filter(ApprovalStep.id == step_id)
        .first()
    )
    if not step:
        raise NotFound(t("step_not_found", actor.locale))

    if step.approver_id != actor.id:
        logger.warning(
            "Decision refused: actor is not the approver",
            step_id=step_id,
            actor_id=actor.id,
            approver_id=step.approver_id,
            decision=verb,
        )
        raise Forbidden(t(f"not_approver_{verb}", actor.locale))

    if step.status != STEP_PENDING:
        logger.warning(
            "Decision refused: step already decided",
            step_id=step_id,
            actor_id=actor.id,
            status=step.status,
            decision=verb,
        )
        raise AlreadyDecided(t("already_decided", actor.locale))

    return step


def _transition(db: Session, step_id: int, status: str, comments: Optional[str]) -> bool:
    """Conditionally move a pending step to `status`. Returns False if it was no longer pending."""
    changed = (
        db.query(ApprovalStep)
        .filter(ApprovalStep.id == step_id, ApprovalStep.status == STEP_PENDING)
        .update(
            {
                ApprovalStep.status: status,
                ApprovalStep.decision_date: datetime.now(timezone.utc),
                ApprovalStep.comments: comments,
            },
            synchronize_session=False,
        )
    )
    return changed == 1


def _decide(
    db: Session,
    step: ApprovalStep,
    actor: User,
    status: str,
    comments: Optional[str],
    comment_text: Optional[str],
    action: str,
    description: str,
    metadata: Dict[str, Any],
    failure_message: str,
) -> None:
    workflow = step.workflow
    try:
        changed = _transition(db, step.id, status, comments)
        if changed:
            if comment_text:
                db.add(ApprovalComment(workflow_id=workflow.id, user_id=actor.id, comment=comment_text))
            log_activity(db, actor, workflow.organization_id, action, description, metadata)
            db.commit()
        else:
            db.rollback()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(
            "Failed to record approval decision",
            error=e,
            step_id=step.id,
            workflow_id=workflow.id,
            actor_id=actor.id,
            decision=status,
        )
        raise Unexpected(failure_message) from e

    if not changed:
        logger.warning(
            "Decision lost race: step left pending before update",
            step_id=step.id,
            actor_id=actor.id,
            decision=status,
        )
        raise AlreadyDecided(t("already_decided", actor.locale))

    logger.info(
        f"Step {status}",
        step_id=step.id,
        workflow_id=workflow.id,
        organization_id=workflow.organization_id,
        actor_id=actor.id,
    )


def approve_step(db: Session, step_id: int, actor: Optional[User], comments: Optional[str] = None) -> str:
    """Approve a pending step. Comments are optional. Returns the success message."""
    step = _load_decidable_step(db, step_id, actor, "approve")
    workflow = step.workflow
    locale = actor.locale
    comments = comments or None

    _decide(
        db,
        step,
        actor,
        status=STEP_APPROVED,
        comments=comments,
        comment_text=t("approve_marker", locale, comments=comments) if comments else None,
        action="approval_approved",
        description=t("activity_approved", locale, name=workflow.name),
        metadata={
            "workflow_id": workflow.id,
            "step_id": step.id,
            "resource_type": workflow.resource_type,
            "resource_id": workflow.resource_id,
        },
        failure_message=t("approve_failed", locale),
    )
    return t("approve_success", locale)


def reject_step(db: Session, step_id: int, actor: Optional[User], comments: Optional[str]) -> str:
    """Reject a pending step. A non-blank reason is mandatory. Returns the success message."""
    if actor is None:
        raise Unauthenticated(t("unauthenticated"))
    require_text(comments, t("reject_comment_required", actor.locale), "comments")

    step = _load_decidable_step(db, step_id, actor, "reject")
    workflow = step.workflow
    locale = actor.locale

    _decide(
        db,
        step,
        actor,
        status=STEP_REJECTED,
        comments=comments,
        comment_text=t("reject_marker", locale, comments=comments),
        action="approval_rejected",
        description=t("activity_rejected", locale, name=workflow.name),
        metadata={
            "workflow_id": workflow.id,
            "step_id": step.id,
            "resource_type": workflow.resource_type,
            "resource_id": workflow.resource_id,
            "reason": comments,
        },
        failure_message=t("reject_failed", locale),
    )
    return t("reject_success", locale)


# ============================================================
# WORKFLOW REGISTRY
# ============================================================

def list_pending_steps(db: Session, actor: User) -> List[ApprovalStep]:
    """Steps waiting on `actor`, newest first."""
    return (
        db.query(ApprovalStep)
        .options(joinedload(ApprovalStep.workflow).joinedload(ApprovalWorkflow.creator))
        .filter(ApprovalStep.approver_id == actor.id, ApprovalStep.status == STEP_PENDING)
        .order_by(ApprovalStep.created_at.desc(), ApprovalStep.id.desc())
        .all()
    )


def create_workflow(db: Session, actor: User, data: WorkflowCreate) -> ApprovalWorkflow:
    """Create a workflow with one pending step per approver, restricted to org admins."""
    locale = actor.locale
    if not data.resource_type or not data.resource_id or not data.approver_ids:
        raise InvalidInput(t("workflow_missing_fields", locale))

    if not actor.organization_id:
        raise NotFound(t("organization_not_found", locale))

    if not actor.can_manage_workflows:
        raise Forbidden(t("workflow_admin_only", locale))

    approver_ids = list(dict.fromkeys(data.approver_ids))
    members = {
        user_id
        for (user_id,) in db.query(User.id).filter(
            User.id.in_(approver_ids),
            User.organization_id == actor.organization_id,
            User.is_active.is_(True),
        )
    }
    unknown = [approver_id for approver_id in approver_ids if approver_id not in members]
    if unknown:
        raise InvalidInput(
            t("workflow_unknown_approvers", locale, ids=", ".join(str(i) for i in unknown)),
            details={"approver_ids": unknown},
        )

    if not 1 <= data.required_approvers <= len(approver_ids):
        raise InvalidInput(t("workflow_bad_required", locale, count=len(approver_ids)))

    name = data.name or t("workflow_default_name", locale, resource_type=data.resource_type)
    workflow = ApprovalWorkflow(
        organization_id=actor.organization_id,
        resource_type=data.resource_type,
        resource_id=data.resource_id,
        name=name,
        description=data.description,
        required_approvers=data.required_approvers,
        approval_order=data.approval_order,
        created_by=actor.id,
        steps=[
            ApprovalStep(approver_id=approver_id, step_order=position)
            for position, approver_id in enumerate(approver_ids, start=1)
        ],
    )

    try:
        db.add(workflow)
        db.flush()
        log_activity(
            db,
            actor,
            actor.organization_id,
            "approval_workflow_created",
            t("activity_workflow_created", locale, name=name),
            {
                "workflow_id": workflow.id,
                "resource_type": workflow.resource_type,
                "resource_id": workflow.resource_id,
                "approver_count": len(approver_ids),
            },
        )
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Failed to create approval workflow", error=e, actor_id=actor.id)
        raise Unexpected(t("workflow_create_failed", locale)) from e

    db.refresh(workflow)
    logger.info(
        "Workflow created",
        workflow_id=workflow.id,
        organization_id=workflow.organization_id,
        approver_count=len(approver_ids),
    )
    return workflow


def get_workflow(db: Session, actor: User, workflow_id: int) -> ApprovalWorkflow:
    """Fetch a workflow of the actor's organization with its steps and comments."""
    workflow = None
    if actor.organization_id:
        workflow = (
            db.query(ApprovalWorkflow)
            .options(
                joinedload(ApprovalWorkflow.steps),
                joinedload(ApprovalWorkflow.comments),
                joinedload(ApprovalWorkflow.creator),
            )
            .filter(
                ApprovalWorkflow.id == workflow_id,
                ApprovalWorkflow.organization_id == actor.organization_id,
            )
            .first()
        )
    if not workflow:
        raise NotFound(t("workflow_not_found", actor.locale))
    return workflow
