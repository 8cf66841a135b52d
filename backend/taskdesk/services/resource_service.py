# backend/taskdesk/services/resource_service.py

"""
Ownership-aware create/update/delete for notes, calendar events and
categories. These types have no owner-editable fields under the creation
lock, so a user cannot change or remove one their manager wrote for them.
"""

from dataclasses import dataclass
from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taskdesk.core.auth import Actor
from taskdesk.core.errors import ServiceError, returns_result
from taskdesk.core.logger import get_logger
from taskdesk.core.utils import as_utc
from taskdesk.models import Note, CalendarEvent, Category, Task
from taskdesk.services.ownership import (
    assert_can_access,
    assert_unlocked_fields,
    is_locked_for_user,
    resolve_target_user_id,
)
from taskdesk.services.validation import reject_nulls

log = get_logger("resources")


@dataclass(frozen=True)
class ResourceKind:
    name: str
    model: type
    fields: frozenset
    required: frozenset
    # (field, model) pairs whose referenced row must share the owner
    references: tuple = ()


RESOURCE_KINDS = {
    "note": ResourceKind(
        name="note",
        model=Note,
        fields=frozenset({"category_id", "title", "content", "pinned"}),
        required=frozenset({"title", "content"}),
        references=(("category_id", Category),),
    ),
    "event": ResourceKind(
        name="event",
        model=CalendarEvent,
        fields=frozenset({"task_id", "title", "description", "starts_at", "ends_at", "location"}),
        required=frozenset({"title", "starts_at", "ends_at"}),
        references=(("task_id", Task),),
    ),
    "category": ResourceKind(
        name="category",
        model=Category,
        fields=frozenset({"name", "color"}),
        required=frozenset({"name"}),
    ),
}


def get_kind(kind: str) -> ResourceKind:
    try:
        return RESOURCE_KINDS[kind]
    except KeyError:
        raise ServiceError.validation("Unknown resource type", {"kind": kind})


def _check_fields(kind_def: ResourceKind, fields: dict[str, Any], creating: bool) -> None:
    unknown = set(fields) - kind_def.fields
    if unknown:
        raise ServiceError.validation(f"Unknown {kind_def.name} fields", {"fields": sorted(unknown)})
    reject_nulls(kind_def.model, fields, kind_def.name)

    required = kind_def.required if creating else kind_def.required & set(fields)
    missing = sorted(name for name in required if fields.get(name) in (None, ""))
    if missing:
        raise ServiceError.validation(f"Missing {kind_def.name} fields", {"fields": missing})


async def _check_references(db: AsyncSession, kind_def: ResourceKind, owner_id: str, fields: dict[str, Any]) -> None:
    for name, model in kind_def.references:
        value = fields.get(name)
        if value is None:
            continue
        found = await db.scalar(select(model.id).where(model.id == value, model.user_id == owner_id))
        if not found:
            raise ServiceError.validation(f"Referenced {name} does not exist for {kind_def.name} owner")


def _check_event_window(kind_def: ResourceKind, resource, fields: dict[str, Any]) -> None:
    if kind_def.name != "event":
        return
    starts_at = fields.get("starts_at", getattr(resource, "starts_at", None))
    ends_at = fields.get("ends_at", getattr(resource, "ends_at", None))
    if starts_at and ends_at and as_utc(ends_at) < as_utc(starts_at):
        raise ServiceError.validation("Event cannot end before it starts")


async def _check_category_name(db: AsyncSession, kind_def: ResourceKind, owner_id: str, fields: dict[str, Any], exclude_id=None) -> None:
    if kind_def.name != "category" or "name" not in fields:
        return
    q = select(Category.id).where(Category.user_id == owner_id, Category.name == fields["name"])
    if exclude_id:
        q = q.where(Category.id != exclude_id)
    if await db.scalar(q):
        raise ServiceError.validation("Category with this name already exists")


async def _get(db: AsyncSession, kind_def: ResourceKind, resource_id: str):
    model = kind_def.model
    resource = await db.scalar(
        select(model).where(model.id == resource_id).with_for_update().execution_options(populate_existing=True)
    )
    if not resource:
        raise ServiceError.not_found(f"{kind_def.name.capitalize()} not found")
    return resource


@returns_result
async def create_resource(db: AsyncSession, actor: Actor, kind: str, fields: dict[str, Any], target_user_id: Optional[str] = None):
    kind_def = get_kind(kind)
    _check_fields(kind_def, fields, creating=True)
    _check_event_window(kind_def, None, fields)

    async with db.begin():
        owner_id = (await resolve_target_user_id(db, actor, target_user_id)).unwrap()
        await _check_references(db, kind_def, owner_id, fields)
        await _check_category_name(db, kind_def, owner_id, fields)

        resource = kind_def.model(user_id=owner_id, created_by_user_id=actor.id, **fields)
        db.add(resource)
        await db.flush()

    if owner_id != actor.id:
        log.info(f"Delegated {kind_def.name} created", extra={"user_id": actor.id, "target_user_id": owner_id})
    return resource


@returns_result
async def update_resource(db: AsyncSession, actor: Actor, kind: str, resource_id: str, changes: dict[str, Any]):
    kind_def = get_kind(kind)
    if not changes:
        raise ServiceError.validation("At least one field is required for update")
    _check_fields(kind_def, changes, creating=False)

    async with db.begin():
        resource = await _get(db, kind_def, resource_id)
        await assert_can_access(db, actor, resource)
        assert_unlocked_fields(actor, kind_def.name, resource, changes.keys())

        _check_event_window(kind_def, resource, changes)
        await _check_references(db, kind_def, resource.user_id, changes)
        await _check_category_name(db, kind_def, resource.user_id, changes, exclude_id=resource.id)

        for name, value in changes.items():
            setattr(resource, name, value)
        await db.flush()
    return resource


@returns_result
async def delete_resource(db: AsyncSession, actor: Actor, kind: str, resource_id: str) -> dict:
    kind_def = get_kind(kind)

    async with db.begin():
        resource = await _get(db, kind_def, resource_id)
        await assert_can_access(db, actor, resource)
        if is_locked_for_user(actor, resource.user_id, resource.created_by_user_id):
            raise ServiceError.forbidden(f"User cannot delete manager-created {kind_def.name}")

        await db.delete(resource)
        await db.flush()
    return {"id": resource_id}
