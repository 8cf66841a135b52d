# backend/taskdesk/models/productivity.py

import enum

from sqlalchemy import (
    Column, String, Text, Integer, Boolean, TIMESTAMP, ForeignKey, UniqueConstraint, Enum as SAEnum,
)
from sqlalchemy.orm import declared_attr
from sqlalchemy.sql import func, false

from taskdesk.core.database import Base
from taskdesk.models.user import new_id


class TaskStatusEnum(str, enum.Enum):
    not_started = "not_started"
    in_progress = "in_progress"
    done = "done"


class TaskPriorityEnum(str, enum.Enum):
    low = "low"
    medium = "medium"
    high = "high"


class OwnedResourceMixin:
    """
    Columns shared by every team-scoped resource.

    ``user_id`` is whose data the row is; ``created_by_user_id`` is who wrote it.
    They differ when a manager or admin created the row for someone else.
    """

    # server-side timestamps are read back at flush, not lazily after commit
    __mapper_args__ = {"eager_defaults": True}

    @declared_attr
    def user_id(cls):
        return Column(String(36), ForeignKey("user.id", ondelete="CASCADE"), nullable=False, index=True)

    @declared_attr
    def created_by_user_id(cls):
        return Column(String(36), ForeignKey("user.id", ondelete="CASCADE"), nullable=False, index=True)

    @property
    def is_delegated(self) -> bool:
        return self.created_by_user_id != self.user_id


class TodoList(Base):
    __tablename__ = "todo_lists"
    __mapper_args__ = {"eager_defaults": True}

    id = Column(String(36), primary_key=True, default=new_id)
    user_id = Column(String(36), ForeignKey("user.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(Text, nullable=False)
    description = Column(Text)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now())


class Category(OwnedResourceMixin, Base):
    __tablename__ = "categories"

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(Text, nullable=False)
    color = Column(Text, nullable=False, default="#2563eb", server_default="#2563eb")
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint("user_id", "name", name="categories_user_name_uq"),
    )


class Task(OwnedResourceMixin, Base):
    __tablename__ = "tasks"

    id = Column(String(36), primary_key=True, default=new_id)
    list_id = Column(String(36), ForeignKey("todo_lists.id", ondelete="CASCADE"), nullable=False, index=True)
    category_id = Column(String(36), ForeignKey("categories.id", ondelete="SET NULL"))
    title = Column(Text, nullable=False)
    description = Column(Text)
    priority = Column(
        SAEnum(TaskPriorityEnum, name="task_priority", native_enum=False),
        nullable=False,
        default=TaskPriorityEnum.medium,
        server_default=TaskPriorityEnum.medium.value,
    )
    status = Column(
        SAEnum(TaskStatusEnum, name="task_status", native_enum=False),
        nullable=False,
        default=TaskStatusEnum.not_started,
        server_default=TaskStatusEnum.not_started.value,
        index=True,
    )
    due_date = Column(TIMESTAMP(timezone=True), index=True)
    completed_at = Column(TIMESTAMP(timezone=True))
    estimated_minutes = Column(Integer, nullable=False, default=30, server_default="30")
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now())


class Note(OwnedResourceMixin, Base):
    __tablename__ = "notes"

    id = Column(String(36), primary_key=True, default=new_id)
    category_id = Column(String(36), ForeignKey("categories.id", ondelete="SET NULL"))
    title = Column(Text, nullable=False)
    content = Column(Text, nullable=False)
    pinned = Column(Boolean, nullable=False, default=False, server_default=false())
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now())


class CalendarEvent(OwnedResourceMixin, Base):
    __tablename__ = "calendar_events"

    id = Column(String(36), primary_key=True, default=new_id)
    task_id = Column(String(36), ForeignKey("tasks.id", ondelete="SET NULL"))
    title = Column(Text, nullable=False)
    description = Column(Text)
    starts_at = Column(TIMESTAMP(timezone=True), nullable=False, index=True)
    ends_at = Column(TIMESTAMP(timezone=True), nullable=False)
    location = Column(Text)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now())


class Reminder(OwnedResourceMixin, Base):
    __tablename__ = "reminders"

    id = Column(String(36), primary_key=True, default=new_id)
    task_id = Column(String(36), ForeignKey("tasks.id", ondelete="SET NULL"))
    event_id = Column(String(36), ForeignKey("calendar_events.id", ondelete="SET NULL"))
    message = Column(Text, nullable=False)
    remind_at = Column(TIMESTAMP(timezone=True), nullable=False, index=True)
    is_sent = Column(Boolean, nullable=False, default=False, server_default=false())
    sent_at = Column(TIMESTAMP(timezone=True))
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now())
