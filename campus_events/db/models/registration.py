from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import Integer, String, Text, Boolean, DateTime, Enum, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from campus_events.db.base import Base
from campus_events.utils.timeutil import utcnow


class RegistrationStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    REJECTED = "rejected"
    CHECKED_IN = "checked_in"


# Statuses an organizer may set directly; check-in goes through the scan or attendance routes.
DECISION_STATUSES = (RegistrationStatus.CONFIRMED, RegistrationStatus.REJECTED)

STATUS_LABELS = {
    RegistrationStatus.PENDING: "Menunggu konfirmasi",
    RegistrationStatus.CONFIRMED: "Terkonfirmasi",
    RegistrationStatus.REJECTED: "Ditolak",
    RegistrationStatus.CHECKED_IN: "Hadir",
}


class Registration(Base):
    __tablename__ = "registrations"
    __table_args__ = (UniqueConstraint("event_id", "user_id", name="uq_registrations_event_user"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    event_id: Mapped[int] = mapped_column(ForeignKey("events.id", ondelete="CASCADE"), index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)

    status: Mapped[RegistrationStatus] = mapped_column(
        Enum(RegistrationStatus), index=True, default=RegistrationStatus.PENDING
    )
    attendance: Mapped[bool] = mapped_column(Boolean, default=False)
    # Ticket code shown as QR on the ticket page.
    qr_code: Mapped[str] = mapped_column(String(191), unique=True)

    checked_in_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, index=True)

    event = relationship("Event")
    user = relationship("User")
    answers = relationship(
        "FormAnswer",
        back_populates="registration",
        cascade="all, delete-orphan",
        order_by="FormAnswer.id",
    )

    @property
    def status_label(self) -> str:
        return STATUS_LABELS.get(self.status, getattr(self.status, "value", str(self.status)))


class FormAnswer(Base):
    __tablename__ = "form_answers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    registration_id: Mapped[int] = mapped_column(ForeignKey("registrations.id", ondelete="CASCADE"), index=True)
    form_field_id: Mapped[int] = mapped_column(ForeignKey("form_fields.id", ondelete="CASCADE"), index=True)
    value: Mapped[str] = mapped_column(Text, default="")

    registration = relationship("Registration", back_populates="answers")
    form_field = relationship("FormField")
