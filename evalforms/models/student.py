import uuid

from sqlalchemy import String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column
from evalforms.db.session import Base
from evalforms.models.common import UUIDMixin, TimestampMixin

class Student(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "students"
    name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    profile_pic_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    position: Mapped[str | None] = mapped_column(String(100), nullable=True)
    height: Mapped[str | None] = mapped_column(String(30), nullable=True)
    weight: Mapped[str | None] = mapped_column(String(30), nullable=True)
    role_number: Mapped[str | None] = mapped_column(String(20), nullable=True)
    sport: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)
    school_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True, index=True)
