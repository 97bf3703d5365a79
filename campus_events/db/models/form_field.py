from __future__ import annotations

from sqlalchemy import Integer, String, Text, Boolean, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from campus_events.db.base import Base


class FormField(Base):
    """Question of an event registration form.

    options_json holds a JSON list of strings (select fields only).
    A field with parent_field_id is conditional: it is shown only when the
    parent's answer equals conditional_value.
    """

    __tablename__ = "form_fields"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    event_id: Mapped[int] = mapped_column(ForeignKey("events.id", ondelete="CASCADE"), index=True)

    label: Mapped[str] = mapped_column(String(255))
    field_type: Mapped[str] = mapped_column(String(20), default="text")
    options_json: Mapped[str] = mapped_column(Text, default="[]")
    is_required: Mapped[bool] = mapped_column(Boolean, default=False)
    order: Mapped[int] = mapped_column(Integer, default=0)

    parent_field_id: Mapped[int | None] = mapped_column(
        ForeignKey("form_fields.id", ondelete="CASCADE"), nullable=True, index=True
    )
    conditional_value: Mapped[str] = mapped_column(String(255), default="")

    event = relationship("Event", back_populates="form_fields")
