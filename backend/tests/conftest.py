# backend/tests/conftest.py

import os

# configure before taskdesk.core.config is imported anywhere
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ["LOG_TO_FILE"] = "false"
os.environ.setdefault("LOG_LEVEL", "WARNING")

from types import SimpleNamespace

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession

from taskdesk.core.database import Base, enable_sqlite_foreign_keys
from taskdesk.core.roles import UserRole
from taskdesk.models import User, TodoList


@pytest_asyncio.fixture()
async def engine(tmp_path):
    """Fresh SQLite file per test, foreign keys enforced like Postgres."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'taskdesk.sqlite3'}")
    enable_sqlite_foreign_keys(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return async_sessionmaker(bind=engine, expire_on_commit=False, class_=AsyncSession)


@pytest_asyncio.fixture()
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture()
async def people(session_factory) -> SimpleNamespace:
    """
    admin, manager with team [alice, bob], carol outside the team,
    plus one todo list per user.
    """
    async with session_factory() as session, session.begin():
        admin = User(name="Ada Admin", email="admin@example.com", role=UserRole.admin)
        manager = User(name="Max Manager", email="manager@example.com", role=UserRole.manager)
        other_manager = User(name="Olga Manager", email="olga@example.com", role=UserRole.manager)
        session.add_all([admin, manager, other_manager])
        await session.flush()

        alice = User(name="Alice", email="alice@example.com", manager_id=manager.id)
        bob = User(name="Bob", email="bob@example.com", manager_id=manager.id)
        carol = User(name="Carol", email="carol@example.com")
        session.add_all([alice, bob, carol])
        await session.flush()

        lists = {}
        for user in (manager, alice, bob, carol):
            todo = TodoList(user_id=user.id, title=f"{user.name}'s list")
            session.add(todo)
            await session.flush()
            lists[user.id] = todo.id

    return SimpleNamespace(
        admin=admin,
        manager=manager,
        other_manager=other_manager,
        alice=alice,
        bob=bob,
        carol=carol,
        lists=lists,
    )
