# backend/taskdesk/api/tasks.py

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from taskdesk.core.auth import Actor, require_actor
from taskdesk.core.database import get_db
from taskdesk.schemas.task import TaskCreate, TaskUpdate, TaskOut
from taskdesk.services import task_service

router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.post("", response_model=TaskOut, status_code=status.HTTP_201_CREATED)
async def create_task(payload: TaskCreate, actor: Actor = Depends(require_actor), db: AsyncSession = Depends(get_db)):
    fields = payload.model_dump(exclude={"user_id"})
    result = await task_service.create_task(db, actor, fields, target_user_id=payload.user_id)
    return result.unwrap()


@router.post("/team/{user_id}", response_model=TaskOut, status_code=status.HTTP_201_CREATED)
async def create_team_task(
    user_id: str,
    payload: TaskCreate,
    actor: Actor = Depends(require_actor),
    db: AsyncSession = Depends(get_db),
):
    """Manager creates a task owned by a member of their team."""
    fields = payload.model_dump(exclude={"user_id"})
    result = await task_service.create_manager_task(db, actor.id, user_id, fields)
    return result.unwrap()


@router.patch("/{task_id}", response_model=TaskOut)
async def update_task(
    task_id: str,
    payload: TaskUpdate,
    actor: Actor = Depends(require_actor),
    db: AsyncSession = Depends(get_db),
):
    result = await task_service.update_task(db, actor, task_id, payload.model_dump(exclude_unset=True))
    return result.unwrap()


@router.delete("/{task_id}", status_code=status.HTTP_200_OK)
async def delete_task(task_id: str, actor: Actor = Depends(require_actor), db: AsyncSession = Depends(get_db)):
    result = await task_service.delete_task(db, actor, task_id)
    return {"ok": True, "deleted": result.unwrap()["id"]}
