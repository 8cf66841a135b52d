# backend/tests/helpers.py

from sqlalchemy import select

from taskdesk.core.auth import Actor
from taskdesk.core.roles import UserRole
from taskdesk.models import User


def actor_for(user: User) -> Actor:
    return Actor(id=user.id, role=UserRole(user.role), is_active=user.is_active, manager_id=user.manager_id)


async def reload(session_factory, model, row_id):
    """Read a row through a new session so the check sees committed state only."""
    async with session_factory() as session:
        return await session.scalar(select(model).where(model.id == row_id))


async def count_rows(session_factory, model, *criteria) -> int:
    async with session_factory() as session:
        rows = await session.scalars(select(model).where(*criteria))
        return len(rows.all())
