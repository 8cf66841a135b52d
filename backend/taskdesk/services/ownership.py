# backend/taskdesk/services/ownership.py

"""
Ownership resolver: who may act for whom, and which fields of a
resource its owning user may still change when someone else wrote it.
"""

from typing import Iterable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from taskdesk.core.auth import Actor
from taskdesk.core.errors import ServiceError, returns_result
from taskdesk.core.roles import UserRole, UnknownRoleError
from taskdesk.crud.users import is_manager_of_user


# Fields an owning user may change on a resource authored for them by someone else.
LOCKED_FIELD_ALLOWLIST = {
    "task": frozenset({"status", "completed_at"}),
    "reminder": frozenset({"is_sent", "sent_at"}),
    "note": frozenset(),
    "event": frozenset(),
    "category": frozenset(),
}


async def can_actor_access_user(db: AsyncSession, actor: Actor, target_user_id: str) -> bool:
    if actor.role is UserRole.admin:
        return True
    if actor.id == target_user_id:
        return True
    if actor.role is UserRole.manager:
        return await is_manager_of_user(db, actor.id, target_user_id)
    if actor.role is UserRole.user:
        return False
    raise UnknownRoleError(actor.role)


@returns_result
async def resolve_target_user_id(db: AsyncSession, actor: Actor, requested_user_id: Optional[str] = None) -> str:
    target_user_id = (requested_user_id or "").strip() or actor.id
    if not await can_actor_access_user(db, actor, target_user_id):
        raise ServiceError.forbidden("You are not allowed to act for this user")
    return target_user_id


def is_locked_for_user(actor: Actor, resource_owner_id: str, resource_creator_id: str) -> bool:
    if actor.role is UserRole.user:
        return resource_creator_id != actor.id
    if actor.role in (UserRole.manager, UserRole.admin):
        return False
    raise UnknownRoleError(actor.role)


def allowed_locked_fields(kind: str) -> frozenset:
    try:
        return LOCKED_FIELD_ALLOWLIST[kind]
    except KeyError:
        raise ValueError(f"Unknown resource kind: {kind!r}")


def assert_unlocked_fields(actor: Actor, kind: str, resource, fields: Iterable[str]) -> None:
    """
    Raise Forbidden when ``actor`` may not change ``fields`` on ``resource``.
    Unlocked resources accept any field; locked ones only the allowlist.
    """
    if not is_locked_for_user(actor, resource.user_id, resource.created_by_user_id):
        return

    requested = set(fields)
    blocked = requested - allowed_locked_fields(kind)
    if blocked or not requested:
        raise ServiceError.forbidden(
            f"User cannot modify {kind} created by someone else",
            {"blockedFields": sorted(blocked)},
        )


async def assert_can_access(db: AsyncSession, actor: Actor, resource) -> None:
    """Forbidden unless the actor may act for the resource owner."""
    if not await can_actor_access_user(db, actor, resource.user_id):
        raise ServiceError.forbidden()
