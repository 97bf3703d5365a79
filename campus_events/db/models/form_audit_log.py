from __future__ import annotations

from datetime import datetime

from sqlalchemy import Integer, ForeignKey, String, Text, DateTime, text
from sqlalchemy.orm import Mapped, mapped_column

from campus_events.db.base import Base


class FormAuditLog(Base):
    """Change log of registration form questions (create/delete).

    Kept per event so organizers can see who changed a form after
    participants had already registered.
    """

    __tablename__ = "form_audit_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)

    actor_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)
    event_id: Mapped[int | None] = mapped_column(Integer, nullable=True, index=True)

    # create/delete
    action: Mapped[str] = mapped_column(String(50), index=True)

    # form_field/event
    entity: Mapped[str] = mapped_column(String(80), index=True)
    entity_id: Mapped[int] = mapped_column(Integer, index=True)

    before_json: Mapped[str] = mapped_column(Text, default="")
    after_json: Mapped[str] = mapped_column(Text, default="")
    comment: Mapped[str] = mapped_column(Text, default="")

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("CURRENT_TIMESTAMP"),
        index=True,
    )
