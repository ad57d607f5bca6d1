from sqlalchemy import Column, Integer, String, Boolean, DateTime, func
from searchtool.database import Base

PERMISSION_FLAGS = (
    "can_edit_consultant",
    "can_delete_consultant",
    "can_manage_users",
    "can_add_review",
    "can_rate",
    "can_edit_experience",
)

class Permission(Base):
    __tablename__ = "permissions"
    __mapper_args__ = {"eager_defaults": True}

    id = Column(Integer, primary_key=True, index=True)
    role = Column(String, unique=True, nullable=False)  # admin | editor | viewer
    can_edit_consultant = Column(Boolean, default=False)
    can_delete_consultant = Column(Boolean, default=False)
    can_manage_users = Column(Boolean, default=False)
    can_add_review = Column(Boolean, default=True)
    can_rate = Column(Boolean, default=True)
    can_edit_experience = Column(Boolean, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
