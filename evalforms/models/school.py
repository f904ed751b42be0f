from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column
from evalforms.db.session import Base
from evalforms.models.common import UUIDMixin, TimestampMixin

class School(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "schools"
    name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
