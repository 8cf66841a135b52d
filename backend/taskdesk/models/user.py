# backend/taskdesk/models/user.py

import uuid

from sqlalchemy import Column, String, Text, Boolean, TIMESTAMP, ForeignKey, CheckConstraint, Enum as SAEnum
from sqlalchemy.sql import func, true

from taskdesk.core.database import Base
from taskdesk.core.roles import UserRole


def new_id() -> str:
    return str(uuid.uuid4())


class User(Base):
    __tablename__ = "user"
    __mapper_args__ = {"eager_defaults": True}

    id = Column(String(36), primary_key=True, default=new_id)
    name = Column(Text, nullable=False)
    email = Column(Text, nullable=False, unique=True)
    role = Column(
        SAEnum(UserRole, name="user_role", native_enum=False),
        nullable=False,
        default=UserRole.user,
        server_default=UserRole.user.value,
        index=True,
    )
    manager_id = Column(String(36), ForeignKey("user.id", ondelete="SET NULL"), index=True)
    is_active = Column(Boolean, nullable=False, default=True, server_default=true())
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
    updated_at = Column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now())

    __table_args__ = (
        CheckConstraint("manager_id IS NULL OR manager_id <> id", name="user_manager_self_check"),
    )


class Session(Base):
    """Login session row written by the identity provider; the engine only reads and revokes."""

    __tablename__ = "session"
    __mapper_args__ = {"eager_defaults": True}

    id = Column(String(36), primary_key=True, default=new_id)
    token = Column(Text, nullable=False, unique=True)
    user_id = Column(String(36), ForeignKey("user.id", ondelete="CASCADE"), nullable=False, index=True)
    expires_at = Column(TIMESTAMP(timezone=True), nullable=False)
    ip_address = Column(Text)
    user_agent = Column(Text)
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
