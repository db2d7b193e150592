from pydantic import BaseModel, Field
from datetime import datetime
from typing import List, Literal, Optional

from ..models.approval import APPROVAL_ORDERS, RESOURCE_TYPES


class ApproveRequest(BaseModel):
    comments: Optional[str] = None


class RejectRequest(BaseModel):
    # Required, but validated by the coordinator so a blank reason is a 400
    comments: Optional[str] = None


class WorkflowCreate(BaseModel):
    resource_type: Optional[Literal[RESOURCE_TYPES]] = None
    resource_id: Optional[str] = None
    name: Optional[str] = Field(default=None, max_length=200)
    description: Optional[str] = None
    approver_ids: List[int] = []
    required_approvers: int = 1
    approval_order: Literal[APPROVAL_ORDERS] = "any"


class CreatorSummary(BaseModel):
    email: str
    full_name: Optional[str] = None

    class Config:
        from_attributes = True


class WorkflowSummary(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    resource_type: str
    resource_id: str
    status: str
    required_approvers: int
    approval_order: str
    created_at: datetime
    creator: Optional[CreatorSummary] = None

    class Config:
        from_attributes = True


class StepResponse(BaseModel):
    id: int
    workflow_id: int
    approver_id: int
    step_order: int
    status: str
    decision_date: Optional[datetime] = None
    comments: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class PendingStepResponse(StepResponse):
    workflow: WorkflowSummary


class CommentResponse(BaseModel):
    id: int
    user_id: Optional[int] = None
    comment: str
    created_at: datetime

    class Config:
        from_attributes = True


class WorkflowDetail(WorkflowSummary):
    organization_id: int
    steps: List[StepResponse] = []
    comments: List[CommentResponse] = []
