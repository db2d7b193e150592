from .organization import Organization
from .user import User
from .approval import ApprovalWorkflow, ApprovalStep, ApprovalComment
from .activity import Activity

__all__ = [
    "Organization",
    "User",
    "ApprovalWorkflow",
    "ApprovalStep",
    "ApprovalComment",
    "Activity",
]
