"""companies, users, shifts with single active shift per user

Revision ID: a1c4e7b20d31
Revises:
Create Date: 2025-11-03 10:12:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'a1c4e7b20d31'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'companies',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('company_id', sa.Integer(), sa.ForeignKey('companies.id', ondelete='CASCADE'), nullable=False),
        sa.Column('username', sa.String(length=100), nullable=False, unique=True),
        sa.Column('email', sa.String(length=255), nullable=False, unique=True),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('full_name', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=50), nullable=False, server_default='employee'),
        sa.Column('employment_type', sa.String(length=50), nullable=True),
        sa.Column('shift_type', sa.String(length=50), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("role in ('admin','manager','employee')", name='ck_users_role'),
    )
    op.create_index('ix_users_company_id', 'users', ['company_id'])

    op.create_table(
        'shifts',
        sa.Column('id', sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('company_id', sa.Integer(), sa.ForeignKey('companies.id', ondelete='CASCADE'), nullable=False),
        sa.Column('clock_in', sa.DateTime(), nullable=False),
        sa.Column('clock_out', sa.DateTime(), nullable=True),
        sa.Column('status', sa.String(length=50), nullable=False, server_default='in_progress'),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint("status in ('in_progress','completed','cancelled')", name='ck_shifts_status'),
        sa.CheckConstraint(
            "(status = 'in_progress' and clock_out is null) or "
            "(status <> 'in_progress' and clock_out is not null)",
            name='ck_shifts_clock_out_status',
        ),
    )
    op.create_index('ix_shifts_user_id', 'shifts', ['user_id'])
    op.create_index('ix_shifts_company_id', 'shifts', ['company_id'])
    op.create_index('ix_shifts_clock_in', 'shifts', ['clock_in'])

    # at most one open shift per user; clock-in depends on this
    op.create_index(
        'uq_shifts_one_active_per_user',
        'shifts',
        ['user_id'],
        unique=True,
        postgresql_where=sa.text("status = 'in_progress'"),
        sqlite_where=sa.text("status = 'in_progress'"),
    )


def downgrade() -> None:
    op.drop_index('uq_shifts_one_active_per_user', table_name='shifts')
    op.drop_index('ix_shifts_clock_in', table_name='shifts')
    op.drop_index('ix_shifts_company_id', table_name='shifts')
    op.drop_index('ix_shifts_user_id', table_name='shifts')
    op.drop_table('shifts')
    op.drop_index('ix_users_company_id', table_name='users')
    op.drop_table('users')
    op.drop_table('companies')
