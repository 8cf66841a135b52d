# backend/taskdesk/api/admin.py

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from taskdesk.core.auth import require_admin
from taskdesk.core.database import get_db
from taskdesk.core.utils import UNSET
from taskdesk.crud.audit_log import list_audit_entries
from taskdesk.schemas.user import (
    AdminUserUpdate,
    AuditLogOut,
    DemotionOut,
    ManagerAssign,
    ManagerDemotion,
    UserOut,
)
from taskdesk.services import delegation_service

router = APIRouter(prefix="/admin", tags=["admin"])


# -------------------------
# UPDATE USER (role / active / manager)
# -------------------------

@router.patch("/users/{user_id}", response_model=UserOut)
async def update_user(
    user_id: str,
    payload: AdminUserUpdate,
    admin_id: str = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    changes = payload.model_dump(exclude_unset=True)
    result = await delegation_service.update_user(
        db,
        admin_id,
        user_id,
        role=changes.get("role", UNSET),
        is_active=changes.get("is_active", UNSET),
        manager_id=changes.get("manager_id", UNSET),
    )
    return result.unwrap()


# -------------------------
# TEAM ASSIGNMENT
# -------------------------

@router.put("/users/{user_id}/manager", response_model=UserOut)
async def assign_manager(
    user_id: str,
    payload: ManagerAssign,
    admin_id: str = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    result = await delegation_service.assign_user_to_manager(db, admin_id, user_id, payload.manager_id)
    return result.unwrap()


# -------------------------
# DEMOTE MANAGER (cascade)
# -------------------------

@router.post("/users/{user_id}/remove-manager-role", response_model=DemotionOut)
async def remove_manager_role(
    user_id: str,
    payload: ManagerDemotion,
    admin_id: str = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    result = await delegation_service.remove_manager_role(db, admin_id, user_id, payload.next_role)
    demotion = result.unwrap()
    return {
        "user": demotion.user,
        "deleted": demotion.deleted,
        "unassigned_users_count": demotion.unassigned_users_count,
    }


# -------------------------
# DELETE USER
# -------------------------

@router.delete("/users/{user_id}")
async def delete_user(
    user_id: str,
    admin_id: str = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    result = await delegation_service.delete_user(db, admin_id, user_id)
    return {"ok": True, "deleted": result.unwrap()}


# -------------------------
# AUDIT LOG
# -------------------------

@router.get("/audit-logs", response_model=list[AuditLogOut])
async def audit_logs(
    limit: int = Query(50, ge=1, le=500),
    target_user_id: str | None = Query(None),
    admin_id: str = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    async with db.begin():
        entries = await list_audit_entries(db, limit=limit, target_user_id=target_user_id)
    return entries
