# backend/taskdesk/models/audit_log.py

from sqlalchemy import Column, String, Text, TIMESTAMP, ForeignKey, JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.sql import func

from taskdesk.core.database import Base
from taskdesk.models.user import new_id


class AdminAuditLog(Base):
    __tablename__ = "admin_audit_logs"
    __mapper_args__ = {"eager_defaults": True}

    id = Column(String(36), primary_key=True, default=new_id)
    admin_id = Column(String(36), ForeignKey("user.id", ondelete="CASCADE"), nullable=False, index=True)
    target_user_id = Column(String(36), ForeignKey("user.id", ondelete="SET NULL"))
    action = Column(Text, nullable=False)       # assign_user_to_manager, remove_manager_role, ...
    details = Column(JSON().with_variant(JSONB(), "postgresql"))
    created_at = Column(TIMESTAMP(timezone=True), server_default=func.now())
