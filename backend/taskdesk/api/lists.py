# backend/taskdesk/api/lists.py

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from taskdesk.core.auth import Actor, require_actor
from taskdesk.core.database import get_db
from taskdesk.schemas.todo_list import ListCreate, ListUpdate, ListOut
from taskdesk.services import list_service

router = APIRouter(prefix="/lists", tags=["lists"])


@router.get("", response_model=list[ListOut])
async def get_lists(
    q: Optional[str] = Query(None, min_length=1, max_length=255),
    user_id: Optional[str] = Query(None),
    actor: Actor = Depends(require_actor),
    db: AsyncSession = Depends(get_db),
):
    result = await list_service.list_lists(db, actor, q=q, target_user_id=user_id)
    return result.unwrap()


@router.post("", response_model=ListOut, status_code=status.HTTP_201_CREATED)
async def create_list(payload: ListCreate, actor: Actor = Depends(require_actor), db: AsyncSession = Depends(get_db)):
    fields = payload.model_dump(exclude={"user_id"})
    result = await list_service.create_list(db, actor, fields, target_user_id=payload.user_id)
    return result.unwrap()


@router.patch("/{list_id}", response_model=ListOut)
async def update_list(
    list_id: str,
    payload: ListUpdate,
    actor: Actor = Depends(require_actor),
    db: AsyncSession = Depends(get_db),
):
    result = await list_service.update_list(db, actor, list_id, payload.model_dump(exclude_unset=True))
    return result.unwrap()


@router.delete("/{list_id}")
async def delete_list(list_id: str, actor: Actor = Depends(require_actor), db: AsyncSession = Depends(get_db)):
    result = await list_service.delete_list(db, actor, list_id)
    return {"ok": True, "deleted": result.unwrap()["id"]}
