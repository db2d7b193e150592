"""
Approval workflow models: a workflow per resource, one step per approver,
and an append-only comment trail.
"""
from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
from ..database import Base

RESOURCE_TYPES = ("invoice", "quote", "project", "document", "expense")
APPROVAL_ORDERS = ("any", "sequential")

STEP_PENDING = "pending"
STEP_APPROVED = "approved"
STEP_REJECTED = "rejected"


class ApprovalWorkflow(Base):
    __tablename__ = "approval_workflows"

    id = Column(Integer, primary_key=True, index=True)
    organization_id = Column(Integer, ForeignKey("organizations.id", ondelete="CASCADE"), nullable=False, index=True)
    resource_type = Column(String(20), nullable=False)  # invoice, quote, project, document, expense
    resource_id = Column(String(100), nullable=False)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    required_approvers = Column(Integer, default=1, nullable=False)
    approval_order = Column(String(20), default="any", nullable=False)  # any, sequential
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    # Relationships
    organization = relationship("Organization", back_populates="workflows")
    creator = relationship("User", foreign_keys=[created_by])
    steps = relationship(
        "ApprovalStep",
        back_populates="workflow",
        cascade="all, delete-orphan",
        order_by="ApprovalStep.step_order",
    )
    comments = relationship(
        "ApprovalComment",
        back_populates="workflow",
        cascade="all, delete-orphan",
        order_by="ApprovalComment.id",
    )

    @property
    def status(self) -> str:
        """Overall status derived from the steps, never stored."""
        statuses = [step.status for step in self.steps]
        if STEP_REJECTED in statuses:
            return STEP_REJECTED
        if statuses.count(STEP_APPROVED) >= self.required_approvers:
            return STEP_APPROVED
        return STEP_PENDING


class ApprovalStep(Base):
    __tablename__ = "approval_steps"

    id = Column(Integer, primary_key=True, index=True)
    workflow_id = Column(Integer, ForeignKey("approval_workflows.id", ondelete="CASCADE"), nullable=False, index=True)
    approver_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    step_order = Column(Integer, default=1, nullable=False)
    status = Column(String(20), default=STEP_PENDING, nullable=False, index=True)  # pending, approved, rejected
    decision_date = Column(DateTime, nullable=True)
    comments = Column(Text, nullable=True)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    # Relationships
    workflow = relationship("ApprovalWorkflow", back_populates="steps")
    approver = relationship("User", back_populates="approval_steps")


class ApprovalComment(Base):
    __tablename__ = "approval_comments"

    id = Column(Integer, primary_key=True, index=True)
    workflow_id = Column(Integer, ForeignKey("approval_workflows.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    comment = Column(Text, nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))

    # Relationships
    workflow = relationship("ApprovalWorkflow", back_populates="comments")
    user = relationship("User")
