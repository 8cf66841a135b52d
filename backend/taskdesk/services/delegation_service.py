# backend/taskdesk/services/delegation_service.py

"""
Role and team-assignment transitions performed by admins.

Every public operation runs in exactly one transaction and re-reads (and
row-locks) the users it validates, so a manager deactivated or demoted
between a caller's pre-check and the commit makes the whole operation fail.
"""

from dataclasses import dataclass, field
from typing import Optional

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from taskdesk.core.errors import ServiceError, returns_result
from taskdesk.core.logger import get_logger
from taskdesk.core.roles import UserRole, parse_role
from taskdesk.core.utils import UNSET
from taskdesk.crud.audit_log import append_audit_entry
from taskdesk.crud.users import get_user, unassign_team, revoke_sessions
from taskdesk.models import User, Reminder, CalendarEvent, Task, Note, Category

log = get_logger("delegation")


@dataclass(frozen=True)
class CascadeStep:
    label: str
    model: type


# Content a demoted manager authored for others; deleted in this order.
DEMOTION_CASCADE = (
    CascadeStep("reminders", Reminder),
    CascadeStep("events", CalendarEvent),
    CascadeStep("tasks", Task),
    CascadeStep("notes", Note),
    CascadeStep("categories", Category),
)


@dataclass
class DemotionResult:
    user: User
    deleted: dict = field(default_factory=dict)
    unassigned_users_count: int = 0


# ====================================================================
# SHARED CHECKS (run inside the caller's transaction)
# ====================================================================

async def _require_active_admin(db: AsyncSession, admin_id: str) -> User:
    admin = await get_user(db, admin_id, for_update=True)
    if not admin or admin.role is not UserRole.admin or not admin.is_active:
        raise ServiceError.forbidden()
    return admin


async def _require_user(db: AsyncSession, user_id: str) -> User:
    target = await get_user(db, user_id, for_update=True)
    if not target:
        raise ServiceError.not_found("User not found")
    return target


def _parse_next_role(next_role) -> UserRole:
    role = parse_role(next_role)
    if role is None or role is UserRole.manager:
        raise ServiceError.validation("Illegal next role", {"nextRole": str(next_role)})
    return role


# ====================================================================
# STEPS
# ====================================================================

async def _assign(db: AsyncSession, admin_id: str, target: User, manager_id: Optional[str]) -> User:
    if target.role is not UserRole.user:
        raise ServiceError.validation("Only USER can be assigned to manager")

    if manager_id:
        if manager_id == target.id:
            raise ServiceError.validation("User cannot be assigned to themselves")

        manager = await get_user(db, manager_id, for_update=True)
        if not manager or manager.role is not UserRole.manager or not manager.is_active:
            raise ServiceError.validation("Target manager is invalid or inactive")

    previous_manager_id = target.manager_id
    target.manager_id = manager_id
    await db.flush()

    await append_audit_entry(
        db,
        admin_id=admin_id,
        target_user_id=target.id,
        action="assign_user_to_manager" if manager_id else "unassign_user_from_manager",
        details={"previousManagerId": previous_manager_id, "nextManagerId": manager_id},
    )
    return target


async def _demote(db: AsyncSession, admin_id: str, target: User, next_role: UserRole) -> DemotionResult:
    deleted = {}
    for step in DEMOTION_CASCADE:
        result = await db.execute(
            delete(step.model).where(step.model.created_by_user_id == target.id)
        )
        deleted[step.label] = result.rowcount

    unassigned = await unassign_team(db, target.id)

    target.role = next_role
    target.manager_id = None
    await db.flush()

    await revoke_sessions(db, target.id)

    await append_audit_entry(
        db,
        admin_id=admin_id,
        target_user_id=target.id,
        action="remove_manager_role",
        details={
            "nextRole": next_role.value,
            "deleted": deleted,
            "unassignedUsersCount": unassigned,
        },
    )
    return DemotionResult(user=target, deleted=deleted, unassigned_users_count=unassigned)


# ====================================================================
# PUBLIC OPERATIONS
# ====================================================================

@returns_result
async def assign_user_to_manager(db: AsyncSession, admin_id: str, user_id: str, manager_id: Optional[str]) -> User:
    manager_id = (manager_id or "").strip() or None

    async with db.begin():
        await _require_active_admin(db, admin_id)
        target = await _require_user(db, user_id)
        updated = await _assign(db, admin_id, target, manager_id)

    log.info(
        "Team assignment changed",
        extra={"admin_id": admin_id, "target_user_id": user_id, "action": "assign_user_to_manager"},
    )
    return updated


@returns_result
async def remove_manager_role(db: AsyncSession, admin_id: str, manager_user_id: str, next_role) -> DemotionResult:
    async with db.begin():
        await _require_active_admin(db, admin_id)
        target = await _require_user(db, manager_user_id)
        if target.role is not UserRole.manager:
            raise ServiceError.validation("Target user is not a manager")
        result = await _demote(db, admin_id, target, _parse_next_role(next_role))

    log.info(
        "Manager role removed",
        extra={
            "admin_id": admin_id,
            "target_user_id": manager_user_id,
            "action": "remove_manager_role",
            "counts": {**result.deleted, "unassignedUsers": result.unassigned_users_count},
        },
    )
    return result


@returns_result
async def update_user(
    db: AsyncSession,
    admin_id: str,
    user_id: str,
    role=UNSET,
    is_active=UNSET,
    manager_id=UNSET,
) -> User:
    """
    Admin edit of a user's role, active flag and manager in one transaction.
    A manager losing the role goes through the full demotion cascade;
    any other direct change revokes the user's sessions.
    """
    if role is UNSET and is_active is UNSET and manager_id is UNSET:
        raise ServiceError.validation("At least one field is required for update")

    next_role = UNSET
    if role is not UNSET:
        next_role = parse_role(role)
        if next_role is None:
            raise ServiceError.validation("Unknown role", {"role": str(role)})

    if user_id == admin_id and next_role is not UNSET and next_role is not UserRole.admin:
        raise ServiceError.validation("Admin cannot remove their own admin role")
    if user_id == admin_id and is_active is False:
        raise ServiceError.validation("Admin cannot deactivate their own account")

    async with db.begin():
        await _require_active_admin(db, admin_id)
        target = await _require_user(db, user_id)
        previous = {
            "role": target.role.value,
            "isActive": target.is_active,
            "managerId": target.manager_id,
        }

        direct_update = False
        if target.role is UserRole.manager and next_role is not UNSET and next_role is not UserRole.manager:
            await _demote(db, admin_id, target, next_role)
        elif next_role is not UNSET:
            target.role = next_role
            if next_role is not UserRole.user:
                target.manager_id = None
            direct_update = True

        if is_active is not UNSET:
            target.is_active = bool(is_active)
            direct_update = True

        if manager_id is not UNSET:
            await _assign(db, admin_id, target, (manager_id or "").strip() or None)

        await db.flush()
        if direct_update:
            await revoke_sessions(db, target.id)

        await append_audit_entry(
            db,
            admin_id=admin_id,
            target_user_id=target.id,
            action="update_user",
            details={
                "previous": previous,
                "next": {
                    "role": target.role.value,
                    "isActive": target.is_active,
                    "managerId": target.manager_id,
                },
            },
        )

    log.info("User updated", extra={"admin_id": admin_id, "target_user_id": user_id, "action": "update_user"})
    return target


@returns_result
async def delete_user(db: AsyncSession, admin_id: str, user_id: str) -> dict:
    if user_id == admin_id:
        raise ServiceError.validation("Admin cannot delete their own account")

    async with db.begin():
        await _require_active_admin(db, admin_id)
        target = await _require_user(db, user_id)
        snapshot = {"id": target.id, "email": target.email, "role": target.role.value}

        await db.delete(target)
        await db.flush()

        # the target row is gone, so the entry keeps the id in its details only
        await append_audit_entry(
            db,
            admin_id=admin_id,
            target_user_id=None,
            action="delete_user",
            details={"deleted": snapshot},
        )

    log.info("User deleted", extra={"admin_id": admin_id, "target_user_id": user_id, "action": "delete_user"})
    return snapshot
