"""Create the applications table.

Revision ID: 20261016_applications
Revises:
Create Date: 2026-10-16
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB, TIMESTAMP, UUID

# revision identifiers, used by Alembic.
revision = "20261016_applications"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "applications",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        # Identity
        sa.Column("session_id", sa.Text, nullable=False, unique=True),
        sa.Column("platform", sa.Text, nullable=False),
        # Lifecycle
        sa.Column(
            "status",
            sa.String(20),
            nullable=False,
            server_default=sa.text("'draft'"),
        ),
        sa.Column("end_reason", sa.String(20), nullable=True),
        # Schema
        sa.Column("schema_name", sa.Text, nullable=False),
        sa.Column("schema_version", sa.Text, nullable=True),
        # Dialogue state
        sa.Column("current_step_id", sa.Text, nullable=True),
        sa.Column(
            "answers",
            JSONB,
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column(
            "history",
            JSONB,
            nullable=False,
            server_default=sa.text("'[]'::jsonb"),
        ),
        sa.Column(
            "files",
            JSONB,
            nullable=False,
            server_default=sa.text("'[]'::jsonb"),
        ),
        # Timestamps
        sa.Column("created_at", TIMESTAMP(timezone=True), nullable=False),
        sa.Column("updated_at", TIMESTAMP(timezone=True), nullable=False),
        sa.Column("submitted_at", TIMESTAMP(timezone=True), nullable=True),
        sa.CheckConstraint(
            "status != 'submitted' OR submitted_at IS NOT NULL",
            name="ck_submitted_has_timestamp",
        ),
        sa.CheckConstraint("length(platform) > 0", name="ck_platform_not_empty"),
    )

    op.create_index("ix_applications_status", "applications", ["status"])
    op.create_index("ix_applications_created_at", "applications", ["created_at"])
    op.create_index(
        "ix_applications_answers_gin",
        "applications",
        ["answers"],
        postgresql_using="gin",
    )


def downgrade() -> None:
    op.drop_table("applications")
