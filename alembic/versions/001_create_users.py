"""Create users table.

The web application owns user accounts; this service only needs the
identity and public profile columns.

Revision ID: 001
Revises:
Create Date: 2026-10-12
"""

from alembic import op

# revision identifiers, used by Alembic.
revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.execute("""
        CREATE TABLE IF NOT EXISTS users (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            email TEXT UNIQUE NOT NULL,
            name TEXT,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now()
        );
    """)


def downgrade():
    op.execute("DROP TABLE IF EXISTS users CASCADE")
