from __future__ import annotations

import uuid

from sqlalchemy import Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from evalforms.db.session import Base
from evalforms.models.common import TimestampMixin, UUIDMixin


class EvaluationSubmissionResponse(Base, UUIDMixin, TimestampMixin):
    __tablename__ = "evaluation_submission_responses"
    __table_args__ = (
        UniqueConstraint("submission_id", "field_id", name="uq_evaluation_submission_responses_submission_field"),
    )

    submission_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False, index=True)
    field_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False, index=True)
    response_value: Mapped[str | None] = mapped_column(Text, nullable=True)
