"""initial metadata schema: projects, tables, columns, api_tokens

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001_initial'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        'projects',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('name', sa.String(63), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('workspace_id', sa.Integer(), nullable=False),
        sa.Column('creator_id', sa.Integer(), nullable=False),
        sa.Column('pg_schema_identifier', sa.String(63), nullable=False, unique=True),
        sa.Column('pg_schema_owner', sa.String(63), nullable=False, unique=True),
        sa.Column('pg_schema_owner_password', sa.Text(), nullable=False),
        sa.Column('pg_schema_owner_password_iv', sa.String(32), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_projects_workspace_id', 'projects', ['workspace_id'])

    op.create_table(
        'tables',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            'project_id', sa.Integer(),
            sa.ForeignKey('projects.id', ondelete='CASCADE'), nullable=False,
        ),
        sa.Column('name', sa.String(63), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('pg_table_identifier', sa.String(63), nullable=False),
        sa.Column('creator_id', sa.Integer(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint('project_id', 'pg_table_identifier', name='uq_table_project_identifier'),
    )
    op.create_index('ix_tables_project_id', 'tables', ['project_id'])

    op.create_table(
        'columns',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            'table_id', sa.Integer(),
            sa.ForeignKey('tables.id', ondelete='CASCADE'), nullable=False,
        ),
        sa.Column('name', sa.String(63), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('column_type', sa.String(20), nullable=False),
        sa.Column('pg_column_identifier', sa.String(63), nullable=False),
        sa.Column('required', sa.Boolean(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('table_id', 'pg_column_identifier', name='uq_column_table_identifier'),
    )
    op.create_index('ix_columns_table_id', 'columns', ['table_id'])

    op.create_table(
        'api_tokens',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            'project_id', sa.Integer(),
            sa.ForeignKey('projects.id', ondelete='CASCADE'), nullable=False, unique=True,
        ),
        sa.Column('token', sa.Text(), nullable=False),
        sa.Column('read_only', sa.Boolean(), nullable=False),
        sa.Column('generated_by_user_id', sa.Integer(), nullable=False),
        *_timestamps(),
    )
    op.create_index('ix_api_tokens_token', 'api_tokens', ['token'])


def downgrade() -> None:
    op.drop_index('ix_api_tokens_token', table_name='api_tokens')
    op.drop_table('api_tokens')
    op.drop_index('ix_columns_table_id', table_name='columns')
    op.drop_table('columns')
    op.drop_index('ix_tables_project_id', table_name='tables')
    op.drop_table('tables')
    op.drop_index('ix_projects_workspace_id', table_name='projects')
    op.drop_table('projects')
