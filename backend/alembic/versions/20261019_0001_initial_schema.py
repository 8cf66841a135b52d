"""initial taskdesk schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-19
"""

from typing import Sequence, Union
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = '0001_initial_schema'
down_revision: Union[str, Sequence[str], None] = None
branch_labels = None
depends_on = None

ID = sa.String(length=36)


def _timestamps():
    return [
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=True),
    ]


def _ownership():
    return [
        sa.Column('user_id', ID, sa.ForeignKey('user.id', ondelete='CASCADE'), nullable=False),
        sa.Column('created_by_user_id', ID, sa.ForeignKey('user.id', ondelete='CASCADE'), nullable=False),
    ]


def _ownership_indexes(table):
    op.create_index(f'ix_{table}_user_id', table, ['user_id'])
    op.create_index(f'ix_{table}_created_by_user_id', table, ['created_by_user_id'])


def upgrade() -> None:
    # --- Users + sessions ---
    op.create_table(
        'user',
        sa.Column('id', ID, primary_key=True),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('email', sa.Text(), nullable=False, unique=True),
        sa.Column('role', sa.String(length=7), nullable=False, server_default='user'),
        sa.Column('manager_id', ID, sa.ForeignKey('user.id', ondelete='SET NULL'), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.CheckConstraint('manager_id IS NULL OR manager_id <> id', name='user_manager_self_check'),
    )
    op.create_index('ix_user_role', 'user', ['role'])
    op.create_index('ix_user_manager_id', 'user', ['manager_id'])

    op.create_table(
        'session',
        sa.Column('id', ID, primary_key=True),
        sa.Column('token', sa.Text(), nullable=False, unique=True),
        sa.Column('user_id', ID, sa.ForeignKey('user.id', ondelete='CASCADE'), nullable=False),
        sa.Column('expires_at', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('ip_address', sa.Text(), nullable=True),
        sa.Column('user_agent', sa.Text(), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=True),
    )
    op.create_index('ix_session_user_id', 'session', ['user_id'])

    # --- Lists + categories ---
    op.create_table(
        'todo_lists',
        sa.Column('id', ID, primary_key=True),
        sa.Column('user_id', ID, sa.ForeignKey('user.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index('ix_todo_lists_user_id', 'todo_lists', ['user_id'])

    op.create_table(
        'categories',
        sa.Column('id', ID, primary_key=True),
        *_ownership(),
        sa.Column('name', sa.Text(), nullable=False),
        sa.Column('color', sa.Text(), nullable=False, server_default='#2563eb'),
        *_timestamps(),
        sa.UniqueConstraint('user_id', 'name', name='categories_user_name_uq'),
    )
    _ownership_indexes('categories')

    # --- Tasks ---
    op.create_table(
        'tasks',
        sa.Column('id', ID, primary_key=True),
        *_ownership(),
        sa.Column('list_id', ID, sa.ForeignKey('todo_lists.id', ondelete='CASCADE'), nullable=False),
        sa.Column('category_id', ID, sa.ForeignKey('categories.id', ondelete='SET NULL'), nullable=True),
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('priority', sa.String(length=6), nullable=False, server_default='medium'),
        sa.Column('status', sa.String(length=11), nullable=False, server_default='not_started'),
        sa.Column('due_date', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('completed_at', sa.TIMESTAMP(timezone=True), nullable=True),
        sa.Column('estimated_minutes', sa.Integer(), nullable=False, server_default='30'),
        *_timestamps(),
    )
    _ownership_indexes('tasks')
    op.create_index('ix_tasks_list_id', 'tasks', ['list_id'])
    op.create_index('ix_tasks_status', 'tasks', ['status'])
    op.create_index('ix_tasks_due_date', 'tasks', ['due_date'])

    # --- Notes ---
    op.create_table(
        'notes',
        sa.Column('id', ID, primary_key=True),
        *_ownership(),
        sa.Column('category_id', ID, sa.ForeignKey('categories.id', ondelete='SET NULL'), nullable=True),
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('pinned', sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
    )
    _ownership_indexes('notes')

    # --- Calendar events ---
    op.create_table(
        'calendar_events',
        sa.Column('id', ID, primary_key=True),
        *_ownership(),
        sa.Column('task_id', ID, sa.ForeignKey('tasks.id', ondelete='SET NULL'), nullable=True),
        sa.Column('title', sa.Text(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('starts_at', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('ends_at', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('location', sa.Text(), nullable=True),
        *_timestamps(),
    )
    _ownership_indexes('calendar_events')
    op.create_index('ix_calendar_events_starts_at', 'calendar_events', ['starts_at'])

    # --- Reminders ---
    op.create_table(
        'reminders',
        sa.Column('id', ID, primary_key=True),
        *_ownership(),
        sa.Column('task_id', ID, sa.ForeignKey('tasks.id', ondelete='SET NULL'), nullable=True),
        sa.Column('event_id', ID, sa.ForeignKey('calendar_events.id', ondelete='SET NULL'), nullable=True),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('remind_at', sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column('is_sent', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('sent_at', sa.TIMESTAMP(timezone=True), nullable=True),
        *_timestamps(),
    )
    _ownership_indexes('reminders')
    op.create_index('ix_reminders_remind_at', 'reminders', ['remind_at'])

    # --- Admin audit log ---
    op.create_table(
        'admin_audit_logs',
        sa.Column('id', ID, primary_key=True),
        sa.Column('admin_id', ID, sa.ForeignKey('user.id', ondelete='CASCADE'), nullable=False),
        sa.Column('target_user_id', ID, sa.ForeignKey('user.id', ondelete='SET NULL'), nullable=True),
        sa.Column('action', sa.Text(), nullable=False),
        sa.Column('details', sa.JSON().with_variant(postgresql.JSONB(), 'postgresql'), nullable=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=sa.func.now(), nullable=True),
    )
    op.create_index('ix_admin_audit_logs_admin_id', 'admin_audit_logs', ['admin_id'])


def downgrade() -> None:
    op.drop_table('admin_audit_logs')
    op.drop_table('reminders')
    op.drop_table('calendar_events')
    op.drop_table('notes')
    op.drop_table('tasks')
    op.drop_table('categories')
    op.drop_table('todo_lists')
    op.drop_table('session')
    op.drop_table('user')
