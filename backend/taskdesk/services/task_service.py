# backend/taskdesk/services/task_service.py

from typing import Any, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taskdesk.core.auth import Actor
from taskdesk.core.errors import ServiceError, returns_result
from taskdesk.core.logger import get_logger
from taskdesk.core.roles import UserRole, UnknownRoleError
from taskdesk.core.utils import UNSET, utcnow
from taskdesk.crud.users import get_user, is_manager_of_user
from taskdesk.models import Task, TodoList, Category, TaskStatusEnum, TaskPriorityEnum
from taskdesk.services.ownership import (
    allowed_locked_fields,
    assert_can_access,
    is_locked_for_user,
    resolve_target_user_id,
)
from taskdesk.services.validation import reject_nulls

log = get_logger("tasks")

TASK_FIELDS = frozenset({
    "list_id",
    "category_id",
    "title",
    "description",
    "priority",
    "status",
    "due_date",
    "completed_at",
    "estimated_minutes",
})
STATUS_FIELDS = allowed_locked_fields("task")


# ====================================================================
# HELPERS
# ====================================================================

def _coerce(fields: dict[str, Any]) -> dict[str, Any]:
    unknown = set(fields) - TASK_FIELDS
    if unknown:
        raise ServiceError.validation("Unknown task fields", {"fields": sorted(unknown)})
    reject_nulls(Task, fields, "task")

    values = dict(fields)
    if "title" in values and not (values["title"] or "").strip():
        raise ServiceError.validation("Task title must not be empty")
    try:
        if values.get("status") is not None:
            values["status"] = TaskStatusEnum(values["status"])
        if values.get("priority") is not None:
            values["priority"] = TaskPriorityEnum(values["priority"])
    except ValueError as exc:
        raise ServiceError.validation("Validation failed", {"error": str(exc)})
    return values


async def _get_task(db: AsyncSession, task_id: str) -> Task:
    task = await db.scalar(
        select(Task).where(Task.id == task_id).with_for_update().execution_options(populate_existing=True)
    )
    if not task:
        raise ServiceError.not_found("Task not found")
    return task


async def _check_cross_refs(db: AsyncSession, owner_id: str, list_id=UNSET, category_id=UNSET) -> None:
    """Referenced list and category must belong to the task owner."""
    if list_id is not UNSET:
        found = list_id and await db.scalar(
            select(TodoList.id).where(TodoList.id == list_id, TodoList.user_id == owner_id)
        )
        if not found:
            raise ServiceError.validation("List does not exist for task owner")

    if category_id not in (UNSET, None):
        found = await db.scalar(
            select(Category.id).where(Category.id == category_id, Category.user_id == owner_id)
        )
        if not found:
            raise ServiceError.validation("Category does not exist for task owner")


async def _insert_task(db: AsyncSession, owner_id: str, creator_id: str, fields: dict[str, Any]) -> Task:
    values = _coerce(fields)
    if not values.get("title"):
        raise ServiceError.validation("Task title is required")

    await _check_cross_refs(
        db,
        owner_id,
        list_id=values.get("list_id"),
        category_id=values.get("category_id", UNSET),
    )

    task = Task(user_id=owner_id, created_by_user_id=creator_id, **values)
    db.add(task)
    await db.flush()
    return task


def _apply_status(task: Task, status, completed_at=UNSET) -> None:
    task.status = status
    if completed_at is not UNSET:
        task.completed_at = completed_at
    elif status is TaskStatusEnum.done:
        task.completed_at = utcnow()
    else:
        task.completed_at = None


# ====================================================================
# CREATE
# ====================================================================

@returns_result
async def create_manager_task(db: AsyncSession, manager_id: str, target_user_id: str, fields: dict[str, Any]) -> Task:
    async with db.begin():
        manager = await get_user(db, manager_id, for_update=True)
        if not manager or manager.role is not UserRole.manager or not manager.is_active:
            raise ServiceError.forbidden()

        if not await is_manager_of_user(db, manager_id, target_user_id):
            raise ServiceError.forbidden("Manager can only create tasks for own team")

        task = await _insert_task(db, target_user_id, manager_id, fields)

    log.info("Delegated task created", extra={"user_id": manager_id, "target_user_id": target_user_id})
    return task


@returns_result
async def create_task(db: AsyncSession, actor: Actor, fields: dict[str, Any], target_user_id: Optional[str] = None) -> Task:
    async with db.begin():
        owner_id = (await resolve_target_user_id(db, actor, target_user_id)).unwrap()
        task = await _insert_task(db, owner_id, actor.id, fields)
    return task


# ====================================================================
# UPDATE
# ====================================================================

@returns_result
async def update_task_status(db: AsyncSession, actor: Actor, task_id: str, status, completed_at=UNSET) -> Task:
    """
    Status progression; allowed for anyone who may act for the owner,
    including an owner whose task was written by their manager.
    """
    status = _coerce({"status": status})["status"]

    async with db.begin():
        task = await _get_task(db, task_id)
        await assert_can_access(db, actor, task)
        _apply_status(task, status, completed_at)
        await db.flush()
    return task


@returns_result
async def update_task(db: AsyncSession, actor: Actor, task_id: str, changes: dict[str, Any]) -> Task:
    if not changes:
        raise ServiceError.validation("At least one field is required for update")
    values = _coerce(changes)
    status_only = set(values) <= STATUS_FIELDS and values.get("status") is not None

    async with db.begin():
        task = await _get_task(db, task_id)
        await assert_can_access(db, actor, task)

        if is_locked_for_user(actor, task.user_id, task.created_by_user_id) and not status_only:
            raise ServiceError.forbidden(
                "User can only update status on manager-created task",
                {"blockedFields": sorted(set(values) - STATUS_FIELDS)},
            )

        if status_only:
            _apply_status(task, values["status"], values.get("completed_at", UNSET))
        else:
            await _check_cross_refs(
                db,
                task.user_id,
                list_id=values.get("list_id", UNSET),
                category_id=values.get("category_id", UNSET),
            )
            for name, value in values.items():
                setattr(task, name, value)

        await db.flush()
    return task


# ====================================================================
# DELETE
# ====================================================================

@returns_result
async def delete_task(db: AsyncSession, actor: Actor, task_id: str) -> dict:
    async with db.begin():
        task = await _get_task(db, task_id)
        await assert_can_access(db, actor, task)

        if actor.role is UserRole.user:
            if task.created_by_user_id != actor.id:
                raise ServiceError.forbidden("User cannot delete manager-created task")
        elif actor.role not in (UserRole.manager, UserRole.admin):
            raise UnknownRoleError(actor.role)

        await db.delete(task)
        await db.flush()

    log.info("Task deleted", extra={"user_id": actor.id, "target_user_id": task.user_id})
    return {"id": task_id}
