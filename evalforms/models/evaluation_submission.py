from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import DateTime, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from evalforms.db.session import Base
from evalforms.models.common import TimestampMixin, UUIDMixin


class EvaluationSubmission(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "evaluation_submissions"

    form_template_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False, index=True)
    submitted_by: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False, index=True)
    responsible: Mapped[str | None] = mapped_column(String(255), nullable=True)
    student_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True, index=True)

    # Subject snapshot: copied from the student profile or entered manually.
    student_name: Mapped[str | None] = mapped_column(Text, nullable=True)
    student_profile_pic_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    student_position: Mapped[str | None] = mapped_column(Text, nullable=True)
    student_height: Mapped[str | None] = mapped_column(Text, nullable=True)
    student_weight: Mapped[str | None] = mapped_column(Text, nullable=True)
    student_role_number: Mapped[str | None] = mapped_column(Text, nullable=True)
    student_sport: Mapped[str | None] = mapped_column(Text, nullable=True)
    student_school_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)
    student_school_name: Mapped[str | None] = mapped_column(Text, nullable=True)

    status: Mapped[str] = mapped_column(String(20), nullable=False, default="draft", index=True)  # draft|submitted
    submitted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
