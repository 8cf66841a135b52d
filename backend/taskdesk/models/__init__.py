from .user import User, Session
from .audit_log import AdminAuditLog
from .productivity import (
    TodoList,
    Category,
    Task,
    Note,
    CalendarEvent,
    Reminder,
    TaskStatusEnum,
    TaskPriorityEnum,
)
from ..core.database import Base
__all__ = [
    "User",
    "Session",
    "AdminAuditLog",
    "TodoList",
    "Category",
    "Task",
    "Note",
    "CalendarEvent",
    "Reminder",
    "TaskStatusEnum",
    "TaskPriorityEnum",
    "Base"
]
