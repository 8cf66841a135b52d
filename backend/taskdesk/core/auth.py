# backend/taskdesk/core/auth.py

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taskdesk.core.config import settings
from taskdesk.core.database import get_db
from taskdesk.core.errors import ServiceError, returns_result
from taskdesk.core.roles import UserRole, parse_role
from taskdesk.models.user import User, Session, new_id

security = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Actor:
    """Authenticated caller of one request. Built per request, passed explicitly."""

    id: str
    role: UserRole
    is_active: bool
    manager_id: Optional[str] = None


# ------------------------------------------------
# SESSION TOKENS
# ------------------------------------------------
def create_access_token(data: dict, expires_delta: timedelta | None = None):
    to_encode = data.copy()
    if expires_delta:
        to_encode["exp"] = datetime.now(timezone.utc) + expires_delta
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_session_token(token: str) -> dict:
    try:
        return jwt.decode(
            token,
            settings.SECRET_KEY,
            algorithms=[settings.ALGORITHM],
        )
    except jwt.ExpiredSignatureError:
        raise ServiceError.unauthenticated("Session expired")
    except jwt.InvalidTokenError:
        raise ServiceError.unauthenticated("Invalid session token")


async def issue_session_token(
    db: AsyncSession,
    user_id: str,
    ttl: timedelta | None = None,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> str:
    """
    Write a session row and return its bearer token.
    Stands in for the identity provider in seeding scripts and tests.
    """
    ttl = ttl or timedelta(days=settings.SESSION_TTL_DAYS)
    session_id = new_id()
    token = create_access_token({"sid": session_id, "user_id": user_id}, expires_delta=ttl)

    async with db.begin():
        db.add(
            Session(
                id=session_id,
                token=token,
                user_id=user_id,
                expires_at=datetime.now(timezone.utc) + ttl,
                ip_address=ip_address,
                user_agent=user_agent,
            )
        )
    return token


# ------------------------------------------------
# ACTOR GUARD
# ------------------------------------------------
@returns_result
async def resolve_actor(db: AsyncSession, token: Optional[str]) -> Actor:
    if not token:
        raise ServiceError.unauthenticated()

    payload = decode_session_token(token)
    session_id = payload.get("sid")
    if not session_id:
        raise ServiceError.unauthenticated("Invalid session token")

    async with db.begin():
        session_row = await db.scalar(
            select(Session).where(
                Session.id == session_id,
                Session.token == token,
                Session.expires_at > datetime.now(timezone.utc),
            )
        )
        if not session_row:
            raise ServiceError.unauthenticated()

        try:
            user = await db.scalar(
                select(User).where(User.id == session_row.user_id).execution_options(populate_existing=True)
            )
        except LookupError:
            # stored role outside UserRole
            raise ServiceError.unauthenticated()

    role = parse_role(user.role) if user else None
    if not user or role is None:
        raise ServiceError.unauthenticated()

    if not user.is_active:
        raise ServiceError.forbidden("Account is deactivated")

    return Actor(id=user.id, role=role, is_active=user.is_active, manager_id=user.manager_id)


@returns_result
async def resolve_admin(db: AsyncSession, token: Optional[str]) -> str:
    actor = (await resolve_actor(db, token)).unwrap()
    if actor.role is not UserRole.admin:
        raise ServiceError.forbidden("Admin privileges required")
    return actor.id


def _bearer(credentials: HTTPAuthorizationCredentials | None) -> Optional[str]:
    return credentials.credentials if credentials else None


async def require_actor(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> Actor:
    """FastAPI dependency: 401 without a live session, 403 for deactivated accounts."""
    actor = (await resolve_actor(db, _bearer(credentials))).unwrap()
    request.state.actor_id = actor.id
    return actor


async def require_admin(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> str:
    """FastAPI dependency returning the admin id; 403 for any other role."""
    admin_id = (await resolve_admin(db, _bearer(credentials))).unwrap()
    request.state.actor_id = admin_id
    return admin_id
