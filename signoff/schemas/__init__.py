from .approval import (
    ApproveRequest,
    RejectRequest,
    WorkflowCreate,
    WorkflowDetail,
    PendingStepResponse,
)
from .activity import ActivityResponse
from .auth import UserCreate, UserLogin, UserResponse

__all__ = [
    "ApproveRequest", "RejectRequest", "WorkflowCreate", "WorkflowDetail", "PendingStepResponse",
    "ActivityResponse",
    "UserCreate", "UserLogin", "UserResponse",
]
