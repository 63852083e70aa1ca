"""add user provider/picture and refresh token client metadata

Revision ID: b4e2d8c61a37
Revises: 7f3c1a9e0b21
Create Date: 2026-10-19 12:00:00.000000
"""
import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = 'b4e2d8c61a37'
down_revision = '7f3c1a9e0b21'
branch_labels = None
depends_on = None


def upgrade():
    with op.batch_alter_table('users', schema=None) as batch_op:
        batch_op.add_column(
            sa.Column(
                'provider',
                sa.Enum('local', 'google', name='auth_provider', native_enum=False, create_constraint=True, length=20),
                server_default='local',
                nullable=False,
            )
        )
        batch_op.add_column(sa.Column('picture_url', sa.String(length=2048), nullable=True))

    # Accounts created through Google before this revision have no password.
    op.execute("UPDATE users SET provider = 'google' WHERE password_hash IS NULL")

    with op.batch_alter_table('refresh_tokens', schema=None) as batch_op:
        batch_op.add_column(sa.Column('user_agent', sa.String(length=512), nullable=True))
        batch_op.add_column(sa.Column('ip_address', sa.String(length=64), nullable=True))


def downgrade():
    with op.batch_alter_table('refresh_tokens', schema=None) as batch_op:
        batch_op.drop_column('ip_address')
        batch_op.drop_column('user_agent')

    with op.batch_alter_table('users', schema=None) as batch_op:
        batch_op.drop_column('picture_url')
        batch_op.drop_column('provider')
