# backend/taskdesk/api/resources.py

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from taskdesk.core.auth import Actor, require_actor
from taskdesk.core.database import get_db
from taskdesk.schemas.resources import (
    NoteCreate, NoteUpdate, NoteOut,
    EventCreate, EventUpdate, EventOut,
    CategoryCreate, CategoryUpdate, CategoryOut,
)
from taskdesk.services import resource_service


def build_resource_router(kind: str, prefix: str, create_schema, update_schema, out_schema) -> APIRouter:
    """Create/update/delete routes for one owned resource type."""
    router = APIRouter(prefix=prefix, tags=[prefix.strip("/")])

    @router.post("", response_model=out_schema, status_code=status.HTTP_201_CREATED)
    async def create_item(payload: create_schema, actor: Actor = Depends(require_actor), db: AsyncSession = Depends(get_db)):
        fields = payload.model_dump(exclude={"user_id"})
        result = await resource_service.create_resource(db, actor, kind, fields, target_user_id=payload.user_id)
        return result.unwrap()

    @router.patch("/{item_id}", response_model=out_schema)
    async def update_item(
        item_id: str,
        payload: update_schema,
        actor: Actor = Depends(require_actor),
        db: AsyncSession = Depends(get_db),
    ):
        result = await resource_service.update_resource(db, actor, kind, item_id, payload.model_dump(exclude_unset=True))
        return result.unwrap()

    @router.delete("/{item_id}")
    async def delete_item(item_id: str, actor: Actor = Depends(require_actor), db: AsyncSession = Depends(get_db)):
        result = await resource_service.delete_resource(db, actor, kind, item_id)
        return {"ok": True, "deleted": result.unwrap()["id"]}

    return router


notes_router = build_resource_router("note", "/notes", NoteCreate, NoteUpdate, NoteOut)
events_router = build_resource_router("event", "/events", EventCreate, EventUpdate, EventOut)
categories_router = build_resource_router("category", "/categories", CategoryCreate, CategoryUpdate, CategoryOut)
