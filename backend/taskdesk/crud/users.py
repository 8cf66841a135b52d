from typing import Optional

from sqlalchemy import select, update, delete
from sqlalchemy.ext.asyncio import AsyncSession

from taskdesk.core.roles import UserRole
from taskdesk.models.user import User, Session


async def get_user(db: AsyncSession, user_id: str, for_update: bool = False) -> Optional[User]:
    q = select(User).where(User.id == user_id)
    if for_update:
        # row lock keeps the checked state stable until commit (no-op on SQLite);
        # populate_existing so a cached instance is refreshed from the locked row
        q = q.with_for_update().execution_options(populate_existing=True)
    return await db.scalar(q)


async def is_manager_of_user(db: AsyncSession, manager_id: str, target_user_id: str) -> bool:
    found = await db.scalar(
        select(User.id).where(
            User.id == target_user_id,
            User.manager_id == manager_id,
            User.role == UserRole.user,
        )
    )
    return found is not None


async def unassign_team(db: AsyncSession, manager_id: str) -> int:
    result = await db.execute(
        update(User)
        .where(User.manager_id == manager_id)
        .values(manager_id=None)
    )
    return result.rowcount


async def revoke_sessions(db: AsyncSession, user_id: str) -> int:
    result = await db.execute(
        delete(Session).where(Session.user_id == user_id)
    )
    return result.rowcount
