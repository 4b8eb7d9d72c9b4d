"""add device auth tables

Revision ID: 002
Revises: 001
Create Date: 2026-10-12

"""
from alembic import op


# revision identifiers, used by Alembic.
revision = '002'
down_revision = '001'
branch_labels = None
depends_on = None


def upgrade():
    # Issued CLI sessions; the primary key is the bearer token
    op.execute("""
        CREATE TABLE cli_sessions (
            id TEXT PRIMARY KEY,
            user_id UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            browser_session_id TEXT,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            not_after TIMESTAMPTZ NOT NULL
        )
    """)
    op.execute("CREATE INDEX idx_cli_sessions_user_id ON cli_sessions (user_id, created_at)")

    # One row per login attempt. The session FK is deferred so a claim and
    # its session insert can run in that order inside one transaction.
    op.execute("""
        CREATE TABLE device_auth_codes (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            device_code TEXT NOT NULL UNIQUE,
            user_code TEXT NOT NULL UNIQUE,
            created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
            expires_at TIMESTAMPTZ NOT NULL,
            is_used BOOLEAN NOT NULL DEFAULT false,
            user_id UUID REFERENCES users(id) ON DELETE CASCADE,
            cli_session_id TEXT REFERENCES cli_sessions(id)
                ON DELETE CASCADE DEFERRABLE INITIALLY DEFERRED,
            last_polled_at TIMESTAMPTZ,
            CONSTRAINT device_auth_codes_claim_together CHECK (
                is_used = (user_id IS NOT NULL AND cli_session_id IS NOT NULL)
            )
        )
    """)
    op.execute("CREATE INDEX idx_device_auth_codes_expires_at ON device_auth_codes (expires_at)")

    # RLS on cli_sessions: user connections see only their own rows,
    # system connections (empty app.user_id) see everything
    op.execute("ALTER TABLE cli_sessions ENABLE ROW LEVEL SECURITY")
    op.execute("ALTER TABLE cli_sessions FORCE ROW LEVEL SECURITY")
    op.execute("""
        CREATE POLICY cli_sessions_owner_policy ON cli_sessions
            USING (
                NULLIF(current_setting('app.user_id', true), '') IS NULL
                OR user_id = NULLIF(current_setting('app.user_id', true), '')::uuid
            )
    """)


def downgrade():
    op.execute("DROP TABLE IF EXISTS device_auth_codes CASCADE")
    op.execute("DROP TABLE IF EXISTS cli_sessions CASCADE")
