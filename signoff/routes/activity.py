"""
Activity routes for reading the organization audit log.
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional

from ..database import get_db
from ..models.activity import Activity
from ..models.user import User
from ..auth import get_required_user
from ..schemas.activity import ActivityResponse

router = APIRouter(prefix="/api/activity", tags=["activity"])


def _organization_activities(db: Session, user: User):
    return db.query(Activity).filter(Activity.organization_id == user.organization_id)


@router.get("", response_model=List[ActivityResponse])
def get_activities(
    action: Optional[str] = None,
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_required_user),
):
    """Get the audit log of the current user's organization, newest first."""
    if not current_user.organization_id:
        return []

    query = _organization_activities(db, current_user)
    if action:
        query = query.filter(Activity.action == action)

    return query.order_by(Activity.created_at.desc(), Activity.id.desc()).offset(offset).limit(limit).all()


@router.get("/recent", response_model=List[ActivityResponse])
def get_recent_activity(
    limit: int = Query(default=5, ge=1, le=20),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_required_user),
):
    """Get recent activity for the dashboard widget."""
    if not current_user.organization_id:
        return []

    return (
        _organization_activities(db, current_user)
        .order_by(Activity.created_at.desc(), Activity.id.desc())
        .limit(limit)
        .all()
    )
