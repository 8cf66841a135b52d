from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class ReminderCreate(BaseModel):
    message: str = Field(min_length=1, max_length=500)
    remind_at: datetime
    task_id: Optional[str] = None
    event_id: Optional[str] = None
    user_id: Optional[str] = None


class ReminderUpdate(BaseModel):
    task_id: Optional[str] = None
    event_id: Optional[str] = None
    message: Optional[str] = Field(default=None, min_length=1, max_length=500)
    remind_at: Optional[datetime] = None
    is_sent: Optional[bool] = None
    sent_at: Optional[datetime] = None


class ReminderOut(BaseModel):
    id: str
    user_id: str
    created_by_user_id: str
    task_id: Optional[str] = None
    event_id: Optional[str] = None
    message: str
    remind_at: datetime
    is_sent: bool
    sent_at: Optional[datetime] = None

    class Config:
        from_attributes = True
