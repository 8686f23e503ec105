"""Create workforce analytics tables

Revision ID: 001_analytics_schema
Revises: None
Create Date: 2026-10-19
"""
from alembic import op

revision = '001_analytics_schema'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # Tables may already exist from create_all() at startup
    op.execute("""
        CREATE TABLE IF NOT EXISTS profiles (
            id VARCHAR(36) PRIMARY KEY,
            email VARCHAR NOT NULL UNIQUE,
            full_name VARCHAR,
            is_active BOOLEAN DEFAULT TRUE,
            created_at TIMESTAMPTZ DEFAULT now(),
            updated_at TIMESTAMPTZ
        );

        CREATE TABLE IF NOT EXISTS companies (
            id VARCHAR(36) PRIMARY KEY,
            name VARCHAR NOT NULL,
            timezone VARCHAR,
            created_at TIMESTAMPTZ DEFAULT now()
        );

        CREATE TABLE IF NOT EXISTS memberships (
            id VARCHAR(36) PRIMARY KEY,
            company_id VARCHAR(36) NOT NULL REFERENCES companies(id),
            user_id VARCHAR(36) NOT NULL REFERENCES profiles(id),
            role VARCHAR NOT NULL DEFAULT 'worker',
            created_at TIMESTAMPTZ DEFAULT now(),
            CONSTRAINT uq_membership_company_user UNIQUE (company_id, user_id)
        );

        CREATE TABLE IF NOT EXISTS time_events (
            id VARCHAR(36) PRIMARY KEY,
            company_id VARCHAR(36) NOT NULL REFERENCES companies(id),
            user_id VARCHAR(36) NOT NULL REFERENCES profiles(id),
            event_type VARCHAR NOT NULL,
            event_time TIMESTAMPTZ NOT NULL,
            latitude NUMERIC(10, 7),
            longitude NUMERIC(10, 7),
            created_at TIMESTAMPTZ DEFAULT now()
        );
        CREATE INDEX IF NOT EXISTS ix_time_events_company_time ON time_events (company_id, event_time);
        CREATE INDEX IF NOT EXISTS ix_time_events_user_id ON time_events (user_id);

        CREATE TABLE IF NOT EXISTS work_sessions (
            id VARCHAR(36) PRIMARY KEY,
            company_id VARCHAR(36) NOT NULL REFERENCES companies(id),
            user_id VARCHAR(36) NOT NULL REFERENCES profiles(id),
            clock_in_time TIMESTAMPTZ NOT NULL,
            clock_out_time TIMESTAMPTZ,
            total_pause_duration BIGINT,
            total_work_duration BIGINT,
            created_at TIMESTAMPTZ DEFAULT now(),
            updated_at TIMESTAMPTZ
        );
        CREATE INDEX IF NOT EXISTS ix_work_sessions_user_clock_in ON work_sessions (user_id, clock_in_time);

        CREATE TABLE IF NOT EXISTS absences (
            id VARCHAR(36) PRIMARY KEY,
            company_id VARCHAR(36) NOT NULL REFERENCES companies(id),
            user_id VARCHAR(36) NOT NULL REFERENCES profiles(id),
            absence_type VARCHAR,
            start_date DATE NOT NULL,
            end_date DATE NOT NULL,
            status VARCHAR NOT NULL DEFAULT 'pending',
            created_at TIMESTAMPTZ DEFAULT now()
        );
        CREATE INDEX IF NOT EXISTS ix_absences_company_status ON absences (company_id, status);

        CREATE TABLE IF NOT EXISTS scheduled_hours (
            id VARCHAR(36) PRIMARY KEY,
            company_id VARCHAR(36) NOT NULL REFERENCES companies(id),
            user_id VARCHAR(36) NOT NULL REFERENCES profiles(id),
            date DATE NOT NULL,
            expected_hours NUMERIC(5, 2) NOT NULL DEFAULT 0,
            start_time VARCHAR(5),
            end_time VARCHAR(5),
            created_at TIMESTAMPTZ DEFAULT now(),
            CONSTRAINT uq_scheduled_hours_day UNIQUE (company_id, user_id, date)
        );

        CREATE TABLE IF NOT EXISTS incidents (
            id VARCHAR(36) PRIMARY KEY,
            company_id VARCHAR(36) NOT NULL REFERENCES companies(id),
            user_id VARCHAR(36) NOT NULL REFERENCES profiles(id),
            type VARCHAR NOT NULL,
            description TEXT,
            status VARCHAR NOT NULL DEFAULT 'pending',
            created_at TIMESTAMPTZ DEFAULT now()
        );

        CREATE TABLE IF NOT EXISTS notifications (
            id VARCHAR(36) PRIMARY KEY,
            company_id VARCHAR(36) NOT NULL REFERENCES companies(id),
            user_id VARCHAR(36) NOT NULL REFERENCES profiles(id),
            title VARCHAR NOT NULL,
            message TEXT NOT NULL,
            type VARCHAR NOT NULL DEFAULT 'info',
            entity_type VARCHAR,
            entity_id VARCHAR(36),
            is_read BOOLEAN DEFAULT FALSE,
            created_at TIMESTAMPTZ DEFAULT now()
        );
        CREATE INDEX IF NOT EXISTS ix_notifications_user_id ON notifications (user_id);
    """)


def downgrade():
    op.execute("""
        DROP TABLE IF EXISTS notifications;
        DROP TABLE IF EXISTS incidents;
        DROP TABLE IF EXISTS scheduled_hours;
        DROP TABLE IF EXISTS absences;
        DROP TABLE IF EXISTS work_sessions;
        DROP TABLE IF EXISTS time_events;
        DROP TABLE IF EXISTS memberships;
        DROP TABLE IF EXISTS companies;
        DROP TABLE IF EXISTS profiles;
    """)
