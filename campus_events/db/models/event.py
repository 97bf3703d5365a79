from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import Integer, BigInteger, String, Text, DateTime, Enum, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from campus_events.db.base import Base


class EventStatus(str, enum.Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    DONE = "done"


class Event(Base):
    __tablename__ = "events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(String(255))
    slug: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    description: Mapped[str] = mapped_column(Text, default="")
    location: Mapped[str] = mapped_column(String(255), default="")

    start_date: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    end_date: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    # Registration closes after this moment (no deadline when NULL).
    registration_deadline: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    status: Mapped[EventStatus] = mapped_column(Enum(EventStatus), index=True, default=EventStatus.DRAFT)
    quota: Mapped[int] = mapped_column(Integer, default=0)  # 0 = unlimited
    price: Mapped[int] = mapped_column(BigInteger, default=0)  # rupiah

    created_by_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)
    created_by = relationship("User")

    form_fields = relationship(
        "FormField",
        back_populates="event",
        cascade="all, delete-orphan",
        order_by="FormField.order",
    )

    @property
    def is_free(self) -> bool:
        return not self.price
