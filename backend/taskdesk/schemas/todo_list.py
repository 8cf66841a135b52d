from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class ListCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=5000)
    # create on behalf of another user (admin, or manager for a team member)
    user_id: Optional[str] = None


class ListUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=5000)


class ListOut(BaseModel):
    id: str
    user_id: str
    title: str
    description: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
