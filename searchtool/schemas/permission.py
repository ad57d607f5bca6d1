from pydantic import BaseModel
from typing import Optional

class PermissionResponse(BaseModel):
    role: str
    can_edit_consultant: bool
    can_delete_consultant: bool
    can_manage_users: bool
    can_add_review: bool
    can_rate: bool
    can_edit_experience: bool

    model_config = {"from_attributes": True}

class PermissionUpdate(BaseModel):
    can_edit_consultant: Optional[bool] = None
    can_delete_consultant: Optional[bool] = None
    can_manage_users: Optional[bool] = None
    can_add_review: Optional[bool] = None
    can_rate: Optional[bool] = None
    can_edit_experience: Optional[bool] = None
