from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

from taskdesk.models.productivity import TaskStatusEnum, TaskPriorityEnum


class TaskBase(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=5000)
    priority: TaskPriorityEnum = TaskPriorityEnum.medium
    status: TaskStatusEnum = TaskStatusEnum.not_started
    due_date: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    estimated_minutes: int = Field(default=30, ge=1, le=10080)


class TaskCreate(TaskBase):
    list_id: str
    category_id: Optional[str] = None
    # create on behalf of another user (admin, or manager for a team member)
    user_id: Optional[str] = None


class TaskUpdate(BaseModel):
    list_id: Optional[str] = None
    category_id: Optional[str] = None
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=5000)
    priority: Optional[TaskPriorityEnum] = None
    status: Optional[TaskStatusEnum] = None
    due_date: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    estimated_minutes: Optional[int] = Field(default=None, ge=1, le=10080)


class TaskOut(TaskBase):
    id: str
    user_id: str
    created_by_user_id: str
    list_id: str
    category_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
