# backend/tests/test_delegation.py

from datetime import timedelta

import pytest
from sqlalchemy import select

from taskdesk.core.auth import issue_session_token, resolve_actor
from taskdesk.core.errors import ErrorKind
from taskdesk.core.roles import UserRole
from taskdesk.core.utils import utcnow
from taskdesk.models import AdminAuditLog, Note, Reminder, Session, Task, User
from taskdesk.services import delegation_service, reminder_service, resource_service, task_service

from .helpers import actor_for, count_rows, reload


async def _author_for_team(db, people) -> list[str]:
    """Manager writes 3 tasks and 2 notes for alice and bob; returns the task ids."""
    manager = people.manager
    task_ids = []
    for owner, title in ((people.alice, "Quarterly report"), (people.alice, "Review PR"), (people.bob, "Deploy")):
        result = await task_service.create_manager_task(
            db, manager.id, owner.id, {"title": title, "list_id": people.lists[owner.id]}
        )
        assert result.ok, result
        task_ids.append(result.value.id)

    for owner in (people.alice, people.bob):
        result = await resource_service.create_resource(
            db, actor_for(manager), "note", {"title": "1:1 notes", "content": "agenda"}, target_user_id=owner.id
        )
        assert result.ok, result
    return task_ids


# ====================================================================
# removeManagerRole
# ====================================================================

@pytest.mark.asyncio
async def test_demotion_unwinds_everything_the_manager_authored(db, session_factory, people) -> None:
    await _author_for_team(db, people)
    own = await task_service.create_task(
        db, actor_for(people.alice), {"title": "Own errand", "list_id": people.lists[people.alice.id]}
    )
    await issue_session_token(db, people.manager.id)

    result = await delegation_service.remove_manager_role(db, people.admin.id, people.manager.id, "user")

    assert result.ok, result
    assert result.value.deleted == {"reminders": 0, "events": 0, "tasks": 3, "notes": 2, "categories": 0}
    assert result.value.unassigned_users_count == 2

    manager = await reload(session_factory, User, people.manager.id)
    assert manager.role is UserRole.user
    assert manager.manager_id is None
    for report in (people.alice, people.bob):
        assert (await reload(session_factory, User, report.id)).manager_id is None

    assert await count_rows(session_factory, Task, Task.created_by_user_id == people.manager.id) == 0
    assert await count_rows(session_factory, Note, Note.created_by_user_id == people.manager.id) == 0
    assert await reload(session_factory, Task, own.value.id) is not None
    assert await count_rows(session_factory, Session, Session.user_id == people.manager.id) == 0

    async with session_factory() as session:
        entries = (await session.scalars(
            select(AdminAuditLog).where(AdminAuditLog.action == "remove_manager_role")
        )).all()
    assert len(entries) == 1
    assert entries[0].admin_id == people.admin.id
    assert entries[0].target_user_id == people.manager.id
    assert entries[0].details["deleted"]["tasks"] == 3
    assert entries[0].details["deleted"]["notes"] == 2
    assert entries[0].details["unassignedUsersCount"] == 2
    assert entries[0].details["nextRole"] == "user"


@pytest.mark.asyncio
async def test_demotion_removes_manager_reminders_first(db, session_factory, people) -> None:
    task_ids = await _author_for_team(db, people)
    reminder = await reminder_service.create_reminder(
        db,
        actor_for(people.manager),
        {"message": "Ping", "remind_at": utcnow() + timedelta(hours=1), "task_id": task_ids[0]},
        target_user_id=people.alice.id,
    )
    assert reminder.ok, reminder

    result = await delegation_service.remove_manager_role(db, people.admin.id, people.manager.id, "user")

    assert result.value.deleted["reminders"] == 1
    assert await reload(session_factory, Reminder, reminder.value.id) is None


@pytest.mark.asyncio
async def test_demoted_manager_session_stops_resolving(db, people) -> None:
    token = await issue_session_token(db, people.manager.id)
    assert (await resolve_actor(db, token)).ok

    await delegation_service.remove_manager_role(db, people.admin.id, people.manager.id, "user")

    assert (await resolve_actor(db, token)).status == 401


@pytest.mark.asyncio
async def test_demotion_rolls_back_when_audit_write_fails(db, session_factory, people, monkeypatch) -> None:
    await _author_for_team(db, people)
    await issue_session_token(db, people.manager.id)

    async def broken_audit(*args, **kwargs):
        raise RuntimeError("audit store unavailable")

    monkeypatch.setattr(delegation_service, "append_audit_entry", broken_audit)

    result = await delegation_service.remove_manager_role(db, people.admin.id, people.manager.id, "user")

    assert not result.ok
    assert result.kind is ErrorKind.internal
    assert result.status == 500
    assert result.details is None

    manager = await reload(session_factory, User, people.manager.id)
    assert manager.role is UserRole.manager
    assert (await reload(session_factory, User, people.alice.id)).manager_id == people.manager.id
    assert await count_rows(session_factory, Task, Task.created_by_user_id == people.manager.id) == 3
    assert await count_rows(session_factory, Note, Note.created_by_user_id == people.manager.id) == 2
    assert await count_rows(session_factory, Session, Session.user_id == people.manager.id) == 1
    assert await count_rows(session_factory, AdminAuditLog) == 0


@pytest.mark.asyncio
async def test_demotion_preconditions(db, people) -> None:
    not_manager = await delegation_service.remove_manager_role(db, people.admin.id, people.alice.id, "user")
    missing = await delegation_service.remove_manager_role(db, people.admin.id, "no-such-user", "user")
    to_manager = await delegation_service.remove_manager_role(db, people.admin.id, people.manager.id, "manager")
    bogus_role = await delegation_service.remove_manager_role(db, people.admin.id, people.manager.id, "overlord")
    by_manager = await delegation_service.remove_manager_role(db, people.other_manager.id, people.manager.id, "user")

    assert not_manager.status == 400
    assert not_manager.message == "Target user is not a manager"
    assert missing.status == 404
    assert to_manager.status == 400
    assert bogus_role.status == 400
    assert by_manager.status == 403


@pytest.mark.asyncio
async def test_demotion_to_admin_is_allowed(db, session_factory, people) -> None:
    result = await delegation_service.remove_manager_role(db, people.admin.id, people.manager.id, UserRole.admin)

    assert result.ok
    assert (await reload(session_factory, User, people.manager.id)).role is UserRole.admin


# ====================================================================
# assignUserToManager
# ====================================================================

@pytest.mark.asyncio
async def test_assign_records_previous_and_next_manager(db, session_factory, people) -> None:
    result = await delegation_service.assign_user_to_manager(
        db, people.admin.id, people.alice.id, people.other_manager.id
    )

    assert result.ok, result
    assert (await reload(session_factory, User, people.alice.id)).manager_id == people.other_manager.id

    async with session_factory() as session:
        entry = await session.scalar(select(AdminAuditLog).where(AdminAuditLog.target_user_id == people.alice.id))
    assert entry.action == "assign_user_to_manager"
    assert entry.details == {"previousManagerId": people.manager.id, "nextManagerId": people.other_manager.id}


@pytest.mark.asyncio
async def test_assign_none_unassigns(db, session_factory, people) -> None:
    result = await delegation_service.assign_user_to_manager(db, people.admin.id, people.alice.id, None)

    assert result.ok
    assert (await reload(session_factory, User, people.alice.id)).manager_id is None


@pytest.mark.asyncio
async def test_assign_rejects_non_user_target_and_self(db, people) -> None:
    manager_target = await delegation_service.assign_user_to_manager(
        db, people.admin.id, people.other_manager.id, people.manager.id
    )
    self_assign = await delegation_service.assign_user_to_manager(db, people.admin.id, people.carol.id, people.carol.id)

    assert manager_target.status == 400
    assert self_assign.status == 400


@pytest.mark.asyncio
async def test_assign_rejects_manager_deactivated_before_commit(db, session_factory, people) -> None:
    # the caller checked the manager earlier; deactivation lands before the assignment runs
    async with session_factory() as session, session.begin():
        manager = await session.get(User, people.other_manager.id)
        manager.is_active = False

    result = await delegation_service.assign_user_to_manager(
        db, people.admin.id, people.carol.id, people.other_manager.id
    )

    assert result.status == 400
    assert result.message == "Target manager is invalid or inactive"
    assert (await reload(session_factory, User, people.carol.id)).manager_id is None
    assert await count_rows(session_factory, AdminAuditLog) == 0


@pytest.mark.asyncio
async def test_assign_requires_active_admin(db, people) -> None:
    by_user = await delegation_service.assign_user_to_manager(db, people.bob.id, people.carol.id, people.manager.id)

    assert by_user.kind is ErrorKind.forbidden


# ====================================================================
# update_user / delete_user
# ====================================================================

@pytest.mark.asyncio
async def test_update_user_demoting_manager_runs_cascade(db, session_factory, people) -> None:
    await _author_for_team(db, people)

    result = await delegation_service.update_user(db, people.admin.id, people.manager.id, role="user")

    assert result.ok, result
    assert await count_rows(session_factory, Task, Task.created_by_user_id == people.manager.id) == 0
    assert (await reload(session_factory, User, people.bob.id)).manager_id is None

    async with session_factory() as session:
        actions = (await session.scalars(select(AdminAuditLog.action))).all()
    assert sorted(actions) == ["remove_manager_role", "update_user"]


@pytest.mark.asyncio
async def test_update_user_deactivation_revokes_sessions(db, session_factory, people) -> None:
    token = await issue_session_token(db, people.carol.id)

    result = await delegation_service.update_user(db, people.admin.id, people.carol.id, is_active=False)

    assert result.ok
    assert await count_rows(session_factory, Session, Session.user_id == people.carol.id) == 0
    assert (await resolve_actor(db, token)).status == 401


@pytest.mark.asyncio
async def test_admin_cannot_lock_themselves_out(db, people) -> None:
    demote_self = await delegation_service.update_user(db, people.admin.id, people.admin.id, role="user")
    deactivate_self = await delegation_service.update_user(db, people.admin.id, people.admin.id, is_active=False)
    delete_self = await delegation_service.delete_user(db, people.admin.id, people.admin.id)
    nothing = await delegation_service.update_user(db, people.admin.id, people.carol.id)

    assert demote_self.status == 400
    assert deactivate_self.status == 400
    assert delete_self.status == 400
    assert nothing.status == 400


@pytest.mark.asyncio
async def test_delete_user_cascades_owned_rows(db, session_factory, people) -> None:
    created = await task_service.create_task(
        db, actor_for(people.carol), {"title": "Water plants", "list_id": people.lists[people.carol.id]}
    )

    result = await delegation_service.delete_user(db, people.admin.id, people.carol.id)

    assert result.ok
    assert result.value["email"] == "carol@example.com"
    assert await reload(session_factory, User, people.carol.id) is None
    assert await reload(session_factory, Task, created.value.id) is None
