"""Global users table

Revision ID: 001_users
Revises: 
Create Date: 2026-01-01 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '001_users'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Tenant tables are not migrated here; the tenant registry creates them
    # inside each tenant database on first use.
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('username', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=20), nullable=False),
        sa.Column('site', sa.String(length=255), nullable=False, server_default=''),
        sa.Column('company', sa.String(length=255), nullable=False, server_default=''),
        sa.Column('created_by_id', sa.Integer(), nullable=True),
        sa.Column('created_by_username', sa.String(length=255), nullable=True),
        sa.Column('created_by_role', sa.String(length=20), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_users_id'), 'users', ['id'], unique=False)
    op.create_index(op.f('ix_users_username'), 'users', ['username'], unique=False)
    op.create_index(op.f('ix_users_created_by_id'), 'users', ['created_by_id'], unique=False)
    op.create_index(
        'uq_users_tenant_username',
        'users',
        [sa.text('lower(username)'), sa.text('lower(site)'), sa.text('lower(company)')],
        unique=True,
        sqlite_where=sa.text("role = 'user'"),
        postgresql_where=sa.text("role = 'user'")
    )
    op.create_index(
        'uq_users_staff_username',
        'users',
        [sa.text('lower(username)')],
        unique=True,
        sqlite_where=sa.text("role IN ('admin', 'manager')"),
        postgresql_where=sa.text("role IN ('admin', 'manager')")
    )


def downgrade() -> None:
    op.drop_index('uq_users_staff_username', table_name='users')
    op.drop_index('uq_users_tenant_username', table_name='users')
    op.drop_index(op.f('ix_users_created_by_id'), table_name='users')
    op.drop_index(op.f('ix_users_username'), table_name='users')
    op.drop_index(op.f('ix_users_id'), table_name='users')
    op.drop_table('users')
