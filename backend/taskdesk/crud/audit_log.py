from typing import Any, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taskdesk.models.audit_log import AdminAuditLog


async def append_audit_entry(
    db: AsyncSession,
    admin_id: str,
    target_user_id: Optional[str],
    action: str,
    details: Optional[dict[str, Any]] = None,
) -> AdminAuditLog:
    # Joins the caller's transaction; the entry lands or rolls back with the mutation it records.
    entry = AdminAuditLog(
        admin_id=admin_id,
        target_user_id=target_user_id,
        action=action,
        details=details,
    )
    db.add(entry)
    await db.flush()
    return entry


async def list_audit_entries(db: AsyncSession, limit: int = 50, target_user_id: Optional[str] = None) -> List[AdminAuditLog]:
    q = select(AdminAuditLog)
    if target_user_id:
        q = q.where(AdminAuditLog.target_user_id == target_user_id)
    q = q.order_by(AdminAuditLog.created_at.desc(), AdminAuditLog.id).limit(limit)
    rows = await db.scalars(q)
    return rows.all()
