from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


# -------------------------
# NOTES
# -------------------------
class NoteCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    content: str = Field(min_length=1)
    pinned: bool = False
    category_id: Optional[str] = None
    user_id: Optional[str] = None


class NoteUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    content: Optional[str] = Field(default=None, min_length=1)
    pinned: Optional[bool] = None
    category_id: Optional[str] = None


class NoteOut(BaseModel):
    id: str
    user_id: str
    created_by_user_id: str
    category_id: Optional[str] = None
    title: str
    content: str
    pinned: bool

    class Config:
        from_attributes = True


# -------------------------
# CALENDAR EVENTS
# -------------------------
class EventCreate(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = None
    starts_at: datetime
    ends_at: datetime
    location: Optional[str] = None
    task_id: Optional[str] = None
    user_id: Optional[str] = None


class EventUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None
    location: Optional[str] = None
    task_id: Optional[str] = None


class EventOut(BaseModel):
    id: str
    user_id: str
    created_by_user_id: str
    task_id: Optional[str] = None
    title: str
    description: Optional[str] = None
    starts_at: datetime
    ends_at: datetime
    location: Optional[str] = None

    class Config:
        from_attributes = True


# -------------------------
# CATEGORIES
# -------------------------
class CategoryCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    color: str = Field(default="#2563eb", pattern=r"^#[0-9a-fA-F]{6}$")
    user_id: Optional[str] = None


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    color: Optional[str] = Field(default=None, pattern=r"^#[0-9a-fA-F]{6}$")


class CategoryOut(BaseModel):
    id: str
    user_id: str
    created_by_user_id: str
    name: str
    color: str

    class Config:
        from_attributes = True
