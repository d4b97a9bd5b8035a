"""Application ORM model: one row per form application.

A row carries everything needed to rebuild a ``FormSession``: the answer
set, the step history and the current step, all in JSONB/text columns so
a single fetch replays the whole dialogue.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Index, String, Text, text
from sqlalchemy.dialects.postgresql import JSONB, TIMESTAMP, UUID
from sqlalchemy.orm import Mapped, mapped_column

from formflow_db.models.base import Base
from formflow_db.models.enums import ApplicationStatus


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Application(Base):
    __tablename__ = "applications"

    # --- Primary key (the public application uuid) ---
    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    # --- Identity ---
    # Chat session identifier handed to the client alongside the uuid
    session_id: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    # Host platform tag (web, miniapp, ...)
    platform: Mapped[str] = mapped_column(Text, nullable=False)

    # --- Lifecycle ---
    status: Mapped[ApplicationStatus] = mapped_column(
        String(20),
        nullable=False,
        default=ApplicationStatus.DRAFT,
        index=True,
    )
    # submit | terminate | form_end once the dialogue has ended
    end_reason: Mapped[str | None] = mapped_column(String(20), nullable=True)

    # --- Schema that drove the dialogue ---
    schema_name: Mapped[str] = mapped_column(Text, nullable=False)
    schema_version: Mapped[str | None] = mapped_column(Text, nullable=True)

    # --- Dialogue state ---
    # Null until the engine-driven step API has positioned the session
    current_step_id: Mapped[str | None] = mapped_column(Text, nullable=True)
    # field_id -> answer value
    answers: Mapped[dict] = mapped_column(
        JSONB,
        nullable=False,
        server_default=text("'{}'::jsonb"),
        default=dict,
    )
    # Stack of visited step ids, most recent last
    history: Mapped[list] = mapped_column(
        JSONB,
        nullable=False,
        server_default=text("'[]'::jsonb"),
        default=list,
    )
    # [{"file_id", "field_id", "filename", "linked_at"}]
    files: Mapped[list] = mapped_column(
        JSONB,
        nullable=False,
        server_default=text("'[]'::jsonb"),
        default=list,
    )

    # --- Timestamps ---
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), nullable=False, default=_utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow,
    )
    submitted_at: Mapped[datetime | None] = mapped_column(
        TIMESTAMP(timezone=True), nullable=True,
    )

    __table_args__ = (
        CheckConstraint(
            "status != 'submitted' OR submitted_at IS NOT NULL",
            name="ck_submitted_has_timestamp",
        ),
        CheckConstraint("length(platform) > 0", name="ck_platform_not_empty"),
        Index("ix_applications_created_at", "created_at"),
        Index("ix_applications_answers_gin", "answers", postgresql_using="gin"),
    )

    @property
    def is_submitted(self) -> bool:
        return self.status == ApplicationStatus.SUBMITTED

    def __repr__(self) -> str:
        return (
            f"<Application(id={self.id!s}, platform={self.platform!r}, "
            f"status={self.status!r}, step={self.current_step_id!r})>"
        )
