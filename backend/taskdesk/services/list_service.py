# backend/taskdesk/services/list_service.py

"""
Todo lists, scoped to their owner. Lists carry no author column, so the
creation lock does not apply to their fields; a member still cannot drop
a list that holds tasks their manager wrote for them.
"""

from typing import Any, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taskdesk.core.auth import Actor
from taskdesk.core.errors import ServiceError, returns_result
from taskdesk.core.logger import get_logger
from taskdesk.core.roles import UserRole, UnknownRoleError
from taskdesk.models import Task, TodoList
from taskdesk.services.ownership import assert_can_access, resolve_target_user_id
from taskdesk.services.validation import reject_nulls

log = get_logger("lists")

LIST_FIELDS = frozenset({"title", "description"})


def _check_fields(fields: dict[str, Any]) -> None:
    unknown = set(fields) - LIST_FIELDS
    if unknown:
        raise ServiceError.validation("Unknown list fields", {"fields": sorted(unknown)})
    reject_nulls(TodoList, fields, "list")
    if "title" in fields and not fields["title"].strip():
        raise ServiceError.validation("List title must not be empty")


async def _get_list(db: AsyncSession, list_id: str) -> TodoList:
    todo = await db.scalar(
        select(TodoList).where(TodoList.id == list_id).with_for_update().execution_options(populate_existing=True)
    )
    if not todo:
        raise ServiceError.not_found("List not found")
    return todo


@returns_result
async def list_lists(db: AsyncSession, actor: Actor, q: Optional[str] = None, target_user_id: Optional[str] = None) -> List[TodoList]:
    async with db.begin():
        owner_id = (await resolve_target_user_id(db, actor, target_user_id)).unwrap()
        query = select(TodoList).where(TodoList.user_id == owner_id)
        if q:
            query = query.where(TodoList.title.ilike(f"%{q}%"))
        rows = await db.scalars(query.order_by(TodoList.created_at, TodoList.id))
        return rows.all()


@returns_result
async def create_list(db: AsyncSession, actor: Actor, fields: dict[str, Any], target_user_id: Optional[str] = None) -> TodoList:
    _check_fields(fields)
    if "title" not in fields:
        raise ServiceError.validation("List title is required")

    async with db.begin():
        owner_id = (await resolve_target_user_id(db, actor, target_user_id)).unwrap()
        todo = TodoList(user_id=owner_id, **fields)
        db.add(todo)
        await db.flush()

    if owner_id != actor.id:
        log.info("Delegated list created", extra={"user_id": actor.id, "target_user_id": owner_id})
    return todo


@returns_result
async def update_list(db: AsyncSession, actor: Actor, list_id: str, changes: dict[str, Any]) -> TodoList:
    if not changes:
        raise ServiceError.validation("At least one field is required for update")
    _check_fields(changes)

    async with db.begin():
        todo = await _get_list(db, list_id)
        await assert_can_access(db, actor, todo)
        for name, value in changes.items():
            setattr(todo, name, value)
        await db.flush()
    return todo


@returns_result
async def delete_list(db: AsyncSession, actor: Actor, list_id: str) -> dict:
    async with db.begin():
        todo = await _get_list(db, list_id)
        await assert_can_access(db, actor, todo)

        if actor.role is UserRole.user:
            foreign = await db.scalar(
                select(Task.id)
                .where(Task.list_id == list_id, Task.created_by_user_id != actor.id)
                .limit(1)
            )
            if foreign:
                raise ServiceError.forbidden("User cannot delete list holding manager-created tasks")
        elif actor.role not in (UserRole.manager, UserRole.admin):
            raise UnknownRoleError(actor.role)

        # tasks on the list go with it (ON DELETE CASCADE)
        await db.delete(todo)
        await db.flush()

    log.info("List deleted", extra={"user_id": actor.id, "target_user_id": todo.user_id})
    return {"id": list_id}
