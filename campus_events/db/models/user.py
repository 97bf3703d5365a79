import enum
from sqlalchemy import String, Integer, Enum, Boolean
from sqlalchemy.orm import Mapped, mapped_column
from campus_events.db.base import Base

class Role(str, enum.Enum):
    ADMIN = "admin"
    ORGANIZER = "organizer"
    PARTICIPANT = "participant"

ROLE_LABELS = {
    Role.ADMIN: "Administrator",
    Role.ORGANIZER: "Panitia",
    Role.PARTICIPANT: "Peserta",
}

class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(120))
    email: Mapped[str] = mapped_column(String(191), unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String(255))

    role: Mapped[Role] = mapped_column(Enum(Role), index=True, default=Role.PARTICIPANT)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    @property
    def role_label(self) -> str:
        return ROLE_LABELS.get(self.role, self.role.value)
