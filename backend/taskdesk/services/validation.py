# backend/taskdesk/services/validation.py

from typing import Any

from taskdesk.core.errors import ServiceError


def required_columns(model) -> frozenset:
    return frozenset(column.name for column in model.__table__.columns if not column.nullable)


def reject_nulls(model, fields: dict[str, Any], label: str) -> None:
    """Explicit None for a NOT NULL column is a 400, not a database error."""
    nulls = sorted(name for name in required_columns(model) if name in fields and fields[name] is None)
    if nulls:
        raise ServiceError.validation(f"{label.capitalize()} fields cannot be null", {"fields": nulls})
