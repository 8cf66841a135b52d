from pydantic import BaseModel
from typing import Any, Optional
from datetime import datetime

from taskdesk.core.roles import UserRole


class AdminUserUpdate(BaseModel):
    role: Optional[UserRole] = None
    is_active: Optional[bool] = None
    manager_id: Optional[str] = None


class ManagerAssign(BaseModel):
    manager_id: Optional[str] = None


class ManagerDemotion(BaseModel):
    next_role: UserRole = UserRole.user


class UserOut(BaseModel):
    id: str
    name: str
    email: str
    role: UserRole
    manager_id: Optional[str] = None
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class DemotionOut(BaseModel):
    user: UserOut
    deleted: dict[str, int]
    unassigned_users_count: int

    class Config:
        from_attributes = True


class AuditLogOut(BaseModel):
    id: str
    admin_id: str
    target_user_id: Optional[str] = None
    action: str
    details: Optional[Any] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
