"""
User model for authentication and organization membership.
"""
from sqlalchemy import Column, Integer, String, DateTime, Boolean, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
from ..database import Base

WORKFLOW_MANAGER_ROLES = ("owner", "admin")


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    full_name = Column(String(100))
    organization_id = Column(Integer, ForeignKey("organizations.id", ondelete="SET NULL"), nullable=True, index=True)
    role = Column(String(20), default="member", nullable=False)  # owner, admin, member, viewer
    locale = Column(String(5), default="fr", nullable=False)  # fr, en
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime, default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    # Relationships
    organization = relationship("Organization", back_populates="members")
    approval_steps = relationship("ApprovalStep", back_populates="approver")

    @property
    def can_manage_workflows(self) -> bool:
        return self.role in WORKFLOW_MANAGER_ROLES
