from .approvals import router as approvals_router
from .activity import router as activity_router
from .auth import router as auth_router

__all__ = [
    "approvals_router",
    "activity_router",
    "auth_router",
]
