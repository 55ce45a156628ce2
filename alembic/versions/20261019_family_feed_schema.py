"""Family Feed schema for the local record store

Revision ID: 3f7a1c2e9b40
Revises:
Create Date: 2026-10-19

Creates the tables used when RECORD_STORE_PROVIDER=local:
- family_member_records: Family member documents (important dates and ACL as JSON)
- stored_assets: Uploaded birth chart images
- app_users: Local accounts
- user_sessions: Session tokens issued at login/signup
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '3f7a1c2e9b40'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _audit_columns() -> list:
    return [
        sa.Column('id', sa.CHAR(length=32), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('(CURRENT_TIMESTAMP)'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    op.create_table('family_member_records',
        sa.Column('owner_id', sa.String(length=64), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('relationship', sa.String(length=100), nullable=False),
        sa.Column('date_of_birth', sa.Date(), nullable=False),
        sa.Column('birth_place', sa.String(length=255), nullable=False),
        sa.Column('birth_chart', sa.Text(), nullable=True),
        sa.Column('important_dates', sa.JSON(), nullable=False),
        sa.Column('acl', sa.JSON(), nullable=False),
        *_audit_columns(),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('family_member_records', schema=None) as batch_op:
        batch_op.create_index('idx_family_member_record_owner', ['owner_id'], unique=False)
        batch_op.create_index('idx_family_member_record_deleted', ['deleted_at'], unique=False)

    op.create_table('stored_assets',
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('content_type', sa.String(length=100), nullable=False),
        sa.Column('data', sa.LargeBinary(), nullable=False),
        sa.Column('uploaded_by', sa.String(length=64), nullable=True),
        *_audit_columns(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name')
    )

    op.create_table('app_users',
        sa.Column('username', sa.String(length=150), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('full_name', sa.String(length=200), nullable=True),
        sa.Column('password_hash', sa.String(length=128), nullable=False),
        sa.Column('password_salt', sa.String(length=64), nullable=False),
        *_audit_columns(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('username')
    )
    with op.batch_alter_table('app_users', schema=None) as batch_op:
        batch_op.create_index('idx_app_user_deleted', ['deleted_at'], unique=False)

    op.create_table('user_sessions',
        sa.Column('user_id', sa.CHAR(length=32), nullable=False),
        sa.Column('session_token', sa.String(length=128), nullable=False),
        *_audit_columns(),
        sa.ForeignKeyConstraint(['user_id'], ['app_users.id'], ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('session_token')
    )
    with op.batch_alter_table('user_sessions', schema=None) as batch_op:
        batch_op.create_index('idx_user_session_user', ['user_id'], unique=False)


def downgrade() -> None:
    with op.batch_alter_table('user_sessions', schema=None) as batch_op:
        batch_op.drop_index('idx_user_session_user')
    op.drop_table('user_sessions')

    with op.batch_alter_table('app_users', schema=None) as batch_op:
        batch_op.drop_index('idx_app_user_deleted')
    op.drop_table('app_users')

    op.drop_table('stored_assets')

    with op.batch_alter_table('family_member_records', schema=None) as batch_op:
        batch_op.drop_index('idx_family_member_record_deleted')
        batch_op.drop_index('idx_family_member_record_owner')
    op.drop_table('family_member_records')
