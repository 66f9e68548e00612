"""Initial tables: project, task, agent, planning_session

Revision ID: 3f9c2a7d1e40
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from typing import Sequence, Union

import sqlalchemy as sa
import sqlmodel
from alembic import op

# revision identifiers, used by Alembic.
revision: str = '3f9c2a7d1e40'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'project',
        sa.Column('id', sqlmodel.sql.sqltypes.AutoString(length=24), nullable=False),
        sa.Column('name', sqlmodel.sql.sqltypes.AutoString(length=200), nullable=False),
        sa.Column('description', sqlmodel.sql.sqltypes.AutoString(length=1000), nullable=False),
        sa.Column('status', sqlmodel.sql.sqltypes.AutoString(), nullable=False, server_default='active'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(op.f('ix_project_status'), 'project', ['status'], unique=False)
    op.create_index(op.f('ix_project_created_at'), 'project', ['created_at'], unique=False)

    op.create_table(
        'task',
        sa.Column('id', sqlmodel.sql.sqltypes.AutoString(length=24), nullable=False),
        sa.Column('project_id', sqlmodel.sql.sqltypes.AutoString(length=24), nullable=False),
        sa.Column('title', sqlmodel.sql.sqltypes.AutoString(length=200), nullable=False),
        sa.Column('description', sqlmodel.sql.sqltypes.AutoString(length=1000), nullable=False),
        sa.Column('status', sqlmodel.sql.sqltypes.AutoString(), nullable=False, server_default='pending'),
        sa.Column('priority', sqlmodel.sql.sqltypes.AutoString(), nullable=False, server_default='medium'),
        sa.Column('agent_id', sqlmodel.sql.sqltypes.AutoString(length=24), nullable=True),
        sa.Column('dependencies', sa.JSON(), nullable=True),
        sa.Column('estimated_hours', sa.Float(), nullable=True),
        sa.Column('actual_hours', sa.Float(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    for column in ('project_id', 'status', 'priority', 'agent_id', 'created_at'):
        op.create_index(op.f(f'ix_task_{column}'), 'task', [column], unique=False)

    op.create_table(
        'agent',
        sa.Column('id', sqlmodel.sql.sqltypes.AutoString(length=24), nullable=False),
        sa.Column('project_id', sqlmodel.sql.sqltypes.AutoString(length=24), nullable=False),
        sa.Column('name', sqlmodel.sql.sqltypes.AutoString(length=100), nullable=False),
        sa.Column('type', sqlmodel.sql.sqltypes.AutoString(), nullable=False),
        sa.Column('status', sqlmodel.sql.sqltypes.AutoString(), nullable=False, server_default='idle'),
        sa.Column('current_task_id', sqlmodel.sql.sqltypes.AutoString(length=24), nullable=True),
        sa.Column('capabilities', sa.JSON(), nullable=True),
        sa.Column('efficiency', sa.Float(), nullable=False, server_default='0.8'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    for column in ('project_id', 'type', 'status', 'current_task_id'):
        op.create_index(op.f(f'ix_agent_{column}'), 'agent', [column], unique=False)

    op.create_table(
        'planning_session',
        sa.Column('id', sqlmodel.sql.sqltypes.AutoString(length=24), nullable=False),
        sa.Column('project_id', sqlmodel.sql.sqltypes.AutoString(length=24), nullable=False),
        sa.Column('name', sqlmodel.sql.sqltypes.AutoString(length=200), nullable=False),
        sa.Column('description', sqlmodel.sql.sqltypes.AutoString(length=1000), nullable=False),
        sa.Column('status', sqlmodel.sql.sqltypes.AutoString(), nullable=False, server_default='draft'),
        sa.Column('tasks', sa.JSON(), nullable=True),
        sa.Column('agents', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id'),
    )
    for column in ('project_id', 'status', 'created_at'):
        op.create_index(op.f(f'ix_planning_session_{column}'), 'planning_session', [column], unique=False)


def downgrade() -> None:
    for column in ('project_id', 'status', 'created_at'):
        op.drop_index(op.f(f'ix_planning_session_{column}'), table_name='planning_session')
    op.drop_table('planning_session')
    for column in ('project_id', 'type', 'status', 'current_task_id'):
        op.drop_index(op.f(f'ix_agent_{column}'), table_name='agent')
    op.drop_table('agent')
    for column in ('project_id', 'status', 'priority', 'agent_id', 'created_at'):
        op.drop_index(op.f(f'ix_task_{column}'), table_name='task')
    op.drop_table('task')
    op.drop_index(op.f('ix_project_created_at'), table_name='project')
    op.drop_index(op.f('ix_project_status'), table_name='project')
    op.drop_table('project')
