# backend/taskdesk/services/reminder_service.py

from datetime import datetime
from typing import Any, List, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from taskdesk.core.auth import Actor
from taskdesk.core.errors import ServiceError, returns_result
from taskdesk.core.logger import get_logger
from taskdesk.core.utils import UNSET, utcnow
from taskdesk.models import Reminder, Task, CalendarEvent
from taskdesk.services.ownership import assert_can_access, assert_unlocked_fields, resolve_target_user_id
from taskdesk.services.validation import reject_nulls

log = get_logger("reminders")

REMINDER_FIELDS = frozenset({"task_id", "event_id", "message", "remind_at", "is_sent", "sent_at"})


# ====================================================================
# DISPATCH SWEEP
# ====================================================================

@returns_result
async def dispatch_due_reminders(db: AsyncSession, owner_id: str, now: Optional[datetime] = None) -> List[Reminder]:
    """
    Flip every due, unsent reminder of ``owner_id`` to sent and return exactly those rows.

    Selection and marking are one conditional UPDATE ... RETURNING, so two
    concurrent sweeps can never both claim the same reminder. All rows of
    one sweep share the same ``sent_at``.
    """
    now = now or utcnow()

    async with db.begin():
        rows = await db.scalars(
            update(Reminder)
            .where(
                Reminder.user_id == owner_id,
                Reminder.is_sent.is_(False),
                Reminder.remind_at <= now,
            )
            .values(is_sent=True, sent_at=now)
            .returning(Reminder)
            .execution_options(synchronize_session="fetch")
        )
        dispatched = rows.all()

    if dispatched:
        log.info("Reminders dispatched", extra={"user_id": owner_id, "counts": {"dispatched": len(dispatched)}})
    return dispatched


# ====================================================================
# CREATE / UPDATE
# ====================================================================

def _check_fields(fields: dict[str, Any]) -> None:
    unknown = set(fields) - REMINDER_FIELDS
    if unknown:
        raise ServiceError.validation("Unknown reminder fields", {"fields": sorted(unknown)})
    reject_nulls(Reminder, fields, "reminder")
    if "message" in fields and not (fields["message"] or "").strip():
        raise ServiceError.validation("Reminder message must not be empty")


async def _check_targets(db: AsyncSession, owner_id: str, task_id, event_id) -> None:
    if not task_id and not event_id:
        raise ServiceError.validation("Reminder must target task or event")

    if task_id:
        found = await db.scalar(select(Task.id).where(Task.id == task_id, Task.user_id == owner_id))
        if not found:
            raise ServiceError.validation("Task does not exist for reminder owner")

    if event_id:
        found = await db.scalar(
            select(CalendarEvent.id).where(CalendarEvent.id == event_id, CalendarEvent.user_id == owner_id)
        )
        if not found:
            raise ServiceError.validation("Event does not exist for reminder owner")


@returns_result
async def create_reminder(db: AsyncSession, actor: Actor, fields: dict[str, Any], target_user_id: Optional[str] = None) -> Reminder:
    _check_fields(fields)
    if not fields.get("message") or not fields.get("remind_at"):
        raise ServiceError.validation("Reminder message and remind_at are required")

    async with db.begin():
        owner_id = (await resolve_target_user_id(db, actor, target_user_id)).unwrap()
        await _check_targets(db, owner_id, fields.get("task_id"), fields.get("event_id"))

        reminder = Reminder(user_id=owner_id, created_by_user_id=actor.id, **fields)
        db.add(reminder)
        await db.flush()
    return reminder


@returns_result
async def update_reminder(db: AsyncSession, actor: Actor, reminder_id: str, changes: dict[str, Any]) -> Reminder:
    if not changes:
        raise ServiceError.validation("At least one field is required for update")
    _check_fields(changes)

    async with db.begin():
        reminder = await db.scalar(
            select(Reminder).where(Reminder.id == reminder_id).with_for_update().execution_options(populate_existing=True)
        )
        if not reminder:
            raise ServiceError.not_found("Reminder not found")

        await assert_can_access(db, actor, reminder)
        assert_unlocked_fields(actor, "reminder", reminder, changes.keys())

        if "task_id" in changes or "event_id" in changes:
            await _check_targets(
                db,
                reminder.user_id,
                changes.get("task_id", reminder.task_id),
                changes.get("event_id", reminder.event_id),
            )

        values = dict(changes)
        if "is_sent" in values:
            if reminder.is_sent and not values["is_sent"]:
                raise ServiceError.validation("A sent reminder cannot return to pending")
            if values["is_sent"] and not reminder.is_sent and values.get("sent_at", UNSET) is UNSET:
                values["sent_at"] = utcnow()

        for name, value in values.items():
            setattr(reminder, name, value)
        await db.flush()
    return reminder
