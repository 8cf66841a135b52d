# backend/taskdesk/api/reminders.py

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from taskdesk.core.auth import Actor, require_actor
from taskdesk.core.database import get_db
from taskdesk.schemas.reminder import ReminderCreate, ReminderUpdate, ReminderOut
from taskdesk.services import reminder_service

router = APIRouter(prefix="/reminders", tags=["reminders"])


@router.post("", response_model=ReminderOut, status_code=status.HTTP_201_CREATED)
async def create_reminder(payload: ReminderCreate, actor: Actor = Depends(require_actor), db: AsyncSession = Depends(get_db)):
    fields = payload.model_dump(exclude={"user_id"})
    result = await reminder_service.create_reminder(db, actor, fields, target_user_id=payload.user_id)
    return result.unwrap()


@router.patch("/{reminder_id}", response_model=ReminderOut)
async def update_reminder(
    reminder_id: str,
    payload: ReminderUpdate,
    actor: Actor = Depends(require_actor),
    db: AsyncSession = Depends(get_db),
):
    result = await reminder_service.update_reminder(db, actor, reminder_id, payload.model_dump(exclude_unset=True))
    return result.unwrap()


@router.post("/dispatch", response_model=list[ReminderOut])
async def dispatch_reminders(actor: Actor = Depends(require_actor), db: AsyncSession = Depends(get_db)):
    """Mark the caller's due reminders as sent and return the ones just sent."""
    result = await reminder_service.dispatch_due_reminders(db, actor.id)
    return result.unwrap()
